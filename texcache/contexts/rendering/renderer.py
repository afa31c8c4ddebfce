"""
Formula render pipeline.

Runs formula -> LaTeX source -> DVI -> SVG (-> PNG) in a private temporary
workspace that is removed on every exit path.
"""

import shutil
import tempfile
import time
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from texcache.contexts.rendering.logger import (
    _log_debug,
    log_render_result,
    log_stage_result,
    log_stage_start,
)
from texcache.contexts.rendering.outcome import (
    ErrorKind,
    OutputKind,
    RasterStrategy,
    RenderOutcome,
)
from texcache.contexts.rendering.png import PngConverter
from texcache.contexts.rendering.runner import StageResult, format_command, run_stage
from texcache.contexts.rendering.svg import process_svg_content
from texcache.contexts.rendering.validator import validate_formula
from texcache.contexts.templating.templater import FormulaSource, FormulaTemplater

DEFAULT_TIMEOUT = 8.0

# Lines of the latex .log file kept in failure diagnostics
LOG_TAIL_LINES = 40


class Renderer:
    """
    Runs the LaTeX toolchain for one formula at a time.

    Each call gets its own workspace directory under tmp_dir, so concurrent
    renders never share intermediate files.

    Attributes:
        templater: Source materializer (formula -> FormulaSource)
        tmp_dir: Root for per-request workspaces
        latex_command: Template for the primary stage (source -> DVI)
        svg_command: Template for the vector stage (DVI -> SVG)
        raster: How PNG output is produced
        png_command: Template for the raster stage (RasterStrategy.COMMAND)
        png_converter: In-process converter (RasterStrategy.NATIVE)
        timeout: Bound for the primary stage
        conversion_timeout: Bound for the conversion stages
    """

    def __init__(
        self,
        templater: FormulaTemplater,
        tmp_dir: Path,
        latex_command: List[str],
        svg_command: List[str],
        raster: RasterStrategy = RasterStrategy.NONE,
        png_command: Optional[List[str]] = None,
        png_converter: Optional[PngConverter] = None,
        timeout: float = DEFAULT_TIMEOUT,
        conversion_timeout: float = 30.0,
        runner: Callable[..., StageResult] = run_stage,
    ):
        if raster is RasterStrategy.COMMAND and not png_command:
            raise ValueError("RasterStrategy.COMMAND requires a png_command")
        if raster is RasterStrategy.NATIVE and png_converter is None:
            png_converter = PngConverter()

        self.templater = templater
        self.tmp_dir = Path(tmp_dir)
        self.latex_command = list(latex_command)
        self.svg_command = list(svg_command)
        self.raster = raster
        self.png_command = list(png_command) if png_command else None
        self.png_converter = png_converter
        self.timeout = timeout
        self.conversion_timeout = conversion_timeout
        self.runner = runner

    @property
    def supports_png(self) -> bool:
        return self.raster is not RasterStrategy.NONE

    def render(self, formula: str, output_kind: OutputKind = OutputKind.SVG) -> RenderOutcome:
        """
        Render a formula.

        SVG is produced on every successful run; PNG only when requested.
        No stage is retried. If only the PNG step fails, the SVG is kept and
        the failure is reported in raster_error.

        Args:
            formula: Raw formula text
            output_kind: Requested kind; PNG implies SVG as well

        Returns:
            RenderOutcome with image bytes or an error
        """
        start_time = time.monotonic()

        error = validate_formula(formula)
        if error is not None:
            outcome = RenderOutcome(error=error)
        elif output_kind is OutputKind.PNG and not self.supports_png:
            outcome = RenderOutcome.failed(
                ErrorKind.UNSUPPORTED_OUTPUT, "PNG output is not configured."
            )
        else:
            outcome = self._run_pipeline(formula, output_kind)

        log_render_result(formula, outcome, time.monotonic() - start_time)
        return outcome

    def _run_pipeline(self, formula: str, output_kind: OutputKind) -> RenderOutcome:
        source = self.templater.run(formula)

        try:
            self.tmp_dir.mkdir(parents=True, exist_ok=True)
            workspace = Path(tempfile.mkdtemp(prefix="tex_", dir=self.tmp_dir))
        except OSError as e:
            return RenderOutcome.failed(
                ErrorKind.PROCESS_FAILURE, "Cannot create a render workspace.", str(e)
            )

        try:
            return self._run_stages(source, workspace / "formula", output_kind)
        except (OSError, UnicodeError) as e:
            return RenderOutcome.failed(
                ErrorKind.PROCESS_FAILURE,
                "Cannot access render artifacts.",
                f"{type(e).__name__}: {e}",
            )
        finally:
            cleanup_workspace(workspace)

    def _run_stages(
        self, source: FormulaSource, base_path: Path, output_kind: OutputKind
    ) -> RenderOutcome:
        base_path.with_suffix(".tex").write_text(source.text, encoding="utf-8")

        # LaTeX -> DVI
        _, failure = self._run_stage(
            "latex", self.latex_command, base_path, self.timeout, ".dvi", source=source.text
        )
        if failure is not None:
            return failure

        # DVI -> SVG
        svg_path, failure = self._run_stage(
            "svg", self.svg_command, base_path, self.conversion_timeout, ".svg"
        )
        if failure is not None:
            return failure

        svg_content = process_svg_content(
            svg_path.read_text(encoding="utf-8"), source.has_baseline
        )
        svg_path.write_text(svg_content, encoding="utf-8")
        svg_bytes = svg_content.encode("utf-8")

        if output_kind is not OutputKind.PNG:
            return RenderOutcome.succeeded(svg=svg_bytes)

        # The SVG stays valid when only the raster step fails
        png_content, failure = self._rasterize(base_path, svg_path)
        if failure is not None:
            return RenderOutcome.succeeded(svg=svg_bytes, raster_error=failure.error)
        return RenderOutcome.succeeded(svg=svg_bytes, png=png_content)

    def _rasterize(
        self, base_path: Path, svg_path: Path
    ) -> Tuple[Optional[bytes], Optional[RenderOutcome]]:
        if self.raster is RasterStrategy.NATIVE:
            # SVG -> PNG
            try:
                return self.png_converter.convert(svg_path), None
            except Exception as e:
                return None, RenderOutcome.failed(
                    ErrorKind.PROCESS_FAILURE, "Cannot convert SVG to PNG.", str(e)
                )

        # DVI -> PNG
        png_path, failure = self._run_stage(
            "png", self.png_command, base_path, self.conversion_timeout, ".png"
        )
        if failure is not None:
            return None, failure
        return png_path.read_bytes(), None

    def _run_stage(
        self,
        stage: str,
        template: List[str],
        base_path: Path,
        timeout: float,
        expected_suffix: str,
        source: str = None,
    ) -> Tuple[Optional[Path], Optional[RenderOutcome]]:
        """
        Run one stage and check the artifact it must produce.

        Returns:
            (artifact path, None) on success, (None, failed RenderOutcome) on
            timeout, nonzero exit, or a missing artifact
        """
        args = format_command(template, path=str(base_path), dir=str(base_path.parent))
        log_stage_start(stage, args)

        result = self.runner(args, timeout=timeout, cwd=base_path.parent)
        artifact = base_path.with_suffix(expected_suffix)

        if result.ok and artifact.exists():
            log_stage_result(stage, result)
            return artifact, None

        log_stage_result(stage, result, source=source)

        if result.timed_out:
            return None, RenderOutcome.failed(
                ErrorKind.TIMEOUT,
                f"{stage} has been interrupted by a timeout ({timeout:g}s).",
                result.output,
            )

        diagnostics = [result.output]
        if not artifact.exists():
            diagnostics.append(f"{artifact.name} was not created")
        log_path = base_path.with_suffix(".log")
        if stage == "latex" and log_path.exists():
            # TeX writes its log in latin-1 (font metadata is not UTF-8)
            log_lines = log_path.read_text(encoding="latin-1").splitlines()
            diagnostics.append("\n".join(log_lines[-LOG_TAIL_LINES:]))

        message = "Invalid formula." if stage == "latex" else f"{stage} conversion failed."
        return None, RenderOutcome.failed(
            ErrorKind.PROCESS_FAILURE,
            message,
            "\n".join(part for part in diagnostics if part),
        )


def cleanup_workspace(workspace: Path) -> None:
    """Remove a workspace and everything in it. A missing workspace is not an error."""
    shutil.rmtree(workspace, ignore_errors=True)
    _log_debug(f"Cleaned up {workspace}")
