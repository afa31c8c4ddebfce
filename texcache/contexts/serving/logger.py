"""
Serving context logger.

Provides logging interface for serving context with automatic [serve] prefix.
"""

from loguru import logger

CONTEXT_PREFIX = "[serve]"


def _log_info(message: str) -> None:
    """Log info message with [serve] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [serve] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [serve] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


def log_cache_hit(request, outcome) -> None:
    _log_debug(f"Cache hit ({outcome.value}): {request.kind.value} {request.formula!r}")


def log_cache_miss(request) -> None:
    _log_info(f"Cache miss: {request.kind.value} {request.formula!r}")


def log_persist_failed(path_hint: str, error: Exception) -> None:
    _log_warning(f"Could not persist {path_hint}: {error}")
