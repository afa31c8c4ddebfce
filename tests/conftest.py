"""Shared fixtures: renderers, stores and processors wired to the stand-in toolchain."""

import sys

import pytest

from texcache.contexts.caching.store import CacheStore
from texcache.contexts.rendering.outcome import RasterStrategy
from texcache.contexts.rendering.renderer import Renderer
from texcache.contexts.serving.processor import Processor
from texcache.contexts.templating.templater import FormulaTemplater

from tests.fakes import FAKE_DVIPNG, FAKE_DVISVGM, FAKE_LATEX, FAKE_OPTIMIZER


@pytest.fixture
def fake_tools(tmp_path):
    """Write the stand-in stage scripts and return their command templates."""
    tools_dir = tmp_path / "tools"
    tools_dir.mkdir()

    commands = {}
    for name, script in [
        ("latex", FAKE_LATEX),
        ("svg", FAKE_DVISVGM),
        ("png", FAKE_DVIPNG),
        ("optimize", FAKE_OPTIMIZER),
    ]:
        script_path = tools_dir / f"{name}.py"
        script_path.write_text(script)
        commands[name] = [sys.executable, str(script_path), "{path}"]

    return commands


@pytest.fixture
def workspace_root(tmp_path):
    root = tmp_path / "work"
    root.mkdir()
    return root


@pytest.fixture
def make_renderer(fake_tools, workspace_root):
    """Factory for renderers wired to the stand-in tools."""

    def _make(raster=RasterStrategy.COMMAND, **kwargs):
        options = dict(
            templater=FormulaTemplater(),
            tmp_dir=workspace_root,
            latex_command=fake_tools["latex"],
            svg_command=fake_tools["svg"],
            raster=raster,
            png_command=fake_tools["png"],
            timeout=10,
            conversion_timeout=10,
        )
        options.update(kwargs)
        return Renderer(**options)

    return _make


@pytest.fixture
def store(tmp_path, fake_tools):
    return CacheStore(
        success_dir=tmp_path / "cache" / "_success",
        failure_dir=tmp_path / "cache" / "_error",
        optimizers={"svg": [fake_tools["optimize"]]},
    )


@pytest.fixture
def processor(make_renderer, store):
    return Processor(renderer=make_renderer(), store=store)
