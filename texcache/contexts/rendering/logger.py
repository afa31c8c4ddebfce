"""
Rendering context logger.

Provides logging interface for rendering context with automatic [render] prefix.
All rendering modules should import from this module, not from loguru directly.
"""

from loguru import logger

CONTEXT_PREFIX = "[render]"


def _log_info(message: str) -> None:
    """Log info message with [render] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [render] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [render] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [render] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [render] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level rendering-specific logging helpers


def log_forbidden_formula(command: str, formula: str) -> None:
    """Log a formula rejected by the validator."""
    _log_error(f'Forbidden command "{command}"')
    _log_error(f"  Formula: {formula!r}")


def log_stage_start(stage: str, args: list) -> None:
    _log_debug(f"Running {stage}: {' '.join(args)}")


def log_stage_result(stage: str, result, source: str = None) -> None:
    """
    Log a finished stage with diagnostics on failure.

    Args:
        stage: Stage name ("latex", "svg", "png")
        result: StageResult from run_stage()
        source: LaTeX source, included on failure of the latex stage
    """
    if result.timed_out:
        _log_error(f"{stage} has been interrupted by a timeout ({result.elapsed:.2f}s)")
    elif result.exit_code != 0:
        _log_error(f"{stage} finished incorrectly: exit code {result.exit_code}")
    else:
        _log_debug(f"{stage} finished ({result.elapsed:.2f}s)")
        return

    _log_debug(f"  Command: {' '.join(result.args)}")

    # Raw output keeps multi-line tool output readable in the log file
    if source:
        logger.opt(raw=True).debug(f"\n{'=' * 80}\nSOURCE:\n{'=' * 80}\n{source}\n")
    if result.stdout:
        logger.opt(raw=True).debug(
            f"\n{'=' * 80}\n{stage.upper()} STDOUT:\n{'=' * 80}\n{result.stdout}\n"
        )
    if result.stderr:
        logger.opt(raw=True).debug(
            f"\n{'=' * 80}\n{stage.upper()} STDERR:\n{'=' * 80}\n{result.stderr}\n"
        )


def log_render_result(formula: str, outcome, elapsed_time: float) -> None:
    """Log the overall outcome of a pipeline run."""
    if outcome.success and outcome.raster_error is not None:
        _log_warning(
            f"Rendered SVG only for {formula!r}: {outcome.raster_error.message} "
            f"({elapsed_time:.2f}s)"
        )
    elif outcome.success:
        _log_success(f"Rendered {formula!r} ({elapsed_time:.2f}s)")
    else:
        _log_warning(
            f"Render failed [{outcome.error.kind.value}]: {outcome.error.message} "
            f"({elapsed_time:.2f}s)"
        )
