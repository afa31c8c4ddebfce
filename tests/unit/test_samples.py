"""Unit tests for sample rendering."""

import pytest

from texcache.contexts.rendering.outcome import ErrorKind, RasterStrategy
from texcache.contexts.rendering.samples import render_samples


@pytest.fixture
def sample_dir(tmp_path):
    src = tmp_path / "samples"
    src.mkdir()
    (src / "a_inline.tex").write_text("x^2\n")
    (src / "b_broken.tex").write_text("\\failhere\n")
    return src


@pytest.mark.unit
def test_render_samples_writes_both_kinds(make_renderer, sample_dir, tmp_path):
    out_dir = tmp_path / "out"

    results = render_samples(make_renderer(), sample_dir, out_dir)

    assert [r.source.name for r in results] == ["a_inline.tex", "b_broken.tex"]
    assert sorted(p.name for p in results[0].outputs) == ["a_inline.png", "a_inline.svg"]
    assert results[0].error is None
    assert results[1].outputs == []
    assert results[1].error.kind is ErrorKind.PROCESS_FAILURE
    assert sorted(p.name for p in out_dir.iterdir()) == ["a_inline.png", "a_inline.svg"]


@pytest.mark.unit
def test_render_samples_clears_previous_output(make_renderer, sample_dir, tmp_path):
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    (out_dir / "stale.svg").write_text("<svg/>")
    (out_dir / "notes.txt").write_text("kept")

    render_samples(make_renderer(raster=RasterStrategy.NONE), sample_dir, out_dir)

    assert sorted(p.name for p in out_dir.iterdir()) == ["a_inline.svg", "notes.txt"]
