"""
Caching context logger.

Provides logging interface for caching context with automatic [cache] prefix.
"""

from loguru import logger

CONTEXT_PREFIX = "[cache]"


def _log_info(message: str) -> None:
    """Log info message with [cache] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [cache] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [cache] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


def log_published(path, size: int) -> None:
    _log_debug(f"Published {path} ({size} bytes)")


def log_optimizer_result(path, result) -> None:
    """Log a post-publish optimizer run (StageResult)."""
    if result.ok:
        _log_debug(f"Optimized {path} with {result.args[0]} ({result.elapsed:.2f}s)")
        return

    reason = "timeout" if result.timed_out else f"exit code {result.exit_code}"
    _log_warning(f"Optimizer {result.args[0]} failed on {path}: {reason}")
    if result.output:
        logger.opt(raw=True).debug(f"{result.output}\n")
