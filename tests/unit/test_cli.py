"""Unit tests for the texcache CLI, wired to the stand-in toolchain."""

import sys

import pytest
from loguru import logger
from omegaconf import OmegaConf
from typer.testing import CliRunner

from scripts.texcache_cli import app
from texcache.contexts.caching.store import cache_key, shard_path

runner = CliRunner()


@pytest.fixture(autouse=True)
def restore_logger():
    """The CLI points loguru at the runner's captured stream; put stderr back afterwards."""
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def config_file(tmp_path, fake_tools):
    config = OmegaConf.create(
        {
            "tmp_dir": str(tmp_path / "work"),
            "log_dir": None,
            "raster": "command",
            "cache": {
                "success_dir": str(tmp_path / "cache" / "_success"),
                "failure_dir": str(tmp_path / "cache" / "_error"),
            },
            "commands": {
                "latex": fake_tools["latex"],
                "svg": fake_tools["svg"],
                "png": fake_tools["png"],
            },
        }
    )
    path = tmp_path / "config.yaml"
    OmegaConf.save(config, path)
    return path


@pytest.mark.unit
def test_render_writes_image_and_cache(config_file, tmp_path):
    out = tmp_path / "x2.svg"

    result = runner.invoke(app, ["render", "x^2", "--out", str(out), "-c", str(config_file)])

    assert result.exit_code == 0, result.output
    assert "Content-Type: image/svg+xml" in result.output
    assert out.read_bytes().startswith(b"<?xml")
    cached = tmp_path / "cache" / "_success" / shard_path(cache_key("x^2"), "png")
    assert cached.exists()


@pytest.mark.unit
def test_render_request_path(config_file):
    result = runner.invoke(app, ["render", "/png/x%5E2", "-c", str(config_file)])

    assert result.exit_code == 0, result.output
    assert "Content-Type: image/png" in result.output


@pytest.mark.unit
def test_render_forbidden_formula_exits_nonzero(config_file, tmp_path):
    result = runner.invoke(app, ["render", r"\input{/etc/passwd}", "-c", str(config_file)])

    assert result.exit_code == 1
    failure = tmp_path / "cache" / "_error" / shard_path(cache_key(r"\input{/etc/passwd}"), "svg")
    assert failure.read_text().startswith("cli svg: ")


@pytest.mark.unit
def test_render_rejects_bad_request_path(config_file):
    result = runner.invoke(app, ["render", "/gif/x", "-c", str(config_file)])

    assert result.exit_code == 2


@pytest.mark.unit
def test_invalid_config_exits_with_usage_error(config_file):
    result = runner.invoke(
        app, ["path", "x", "-c", str(config_file), "--set", "raster=imagick"]
    )

    assert result.exit_code == 2


@pytest.mark.unit
def test_path_marks_existing_entries(config_file):
    runner.invoke(app, ["render", "y", "-c", str(config_file)])

    result = runner.invoke(app, ["path", "y", "-c", str(config_file)])

    assert result.exit_code == 0
    assert f"Key: {cache_key('y')}" in result.output
    assert result.output.count(" * success") == 2
    assert result.output.count("   failure") == 2
