"""
Sample rendering for checking a toolchain installation.

Renders every formula file matching a glob into an output directory,
bypassing the cache, so rendering changes can be reviewed side by side.
"""

import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from texcache.contexts.rendering.logger import _log_info
from texcache.contexts.rendering.outcome import OutputKind, RenderError
from texcache.contexts.rendering.renderer import Renderer


@dataclass
class SampleResult:
    """Outcome of one sample file."""

    source: Path
    elapsed: float
    outputs: List[Path]
    error: Optional[RenderError] = None


def clear_output_dir(out_dir: Path) -> None:
    """Remove images left by a previous run."""
    for kind in OutputKind:
        for old_file in out_dir.glob(f"*.{kind.value}"):
            old_file.unlink()


def render_samples(
    renderer: Renderer, src_dir: Path, out_dir: Path, pattern: str = "*.tex"
) -> List[SampleResult]:
    """
    Render each sample and save <stem>.svg / <stem>.png to out_dir.

    Args:
        renderer: Configured render pipeline
        src_dir: Directory with sample formula files
        out_dir: Directory for rendered images (cleared first)
        pattern: Glob for sample files

    Returns:
        One SampleResult per sample, in file name order
    """
    out_dir.mkdir(parents=True, exist_ok=True)
    clear_output_dir(out_dir)

    kind = OutputKind.PNG if renderer.supports_png else OutputKind.SVG
    results = []

    for sample in sorted(src_dir.glob(pattern)):
        formula = sample.read_text(encoding="utf-8").strip()
        start_time = time.monotonic()
        outcome = renderer.render(formula, kind)
        elapsed = time.monotonic() - start_time

        outputs = []
        for output_kind in OutputKind:
            content = outcome.content_for(output_kind)
            if content is not None:
                out_path = out_dir / f"{sample.stem}.{output_kind.value}"
                out_path.write_bytes(content)
                outputs.append(out_path)

        results.append(
            SampleResult(
                source=sample,
                elapsed=elapsed,
                outputs=outputs,
                error=outcome.error_for(kind),
            )
        )

    _log_info(f"Rendered {len(results)} samples into {out_dir}")
    return results
