"""
Configuration loading.

Settings live in a YAML file (default: texcache/config/default.yaml, or the
path in TEXCACHE_CONFIG) loaded with OmegaConf, so values can reference
environment variables via ${oc.env:...}. Dot-list overrides such as
"timeout=4" are merged on top.
"""

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Union

from dotenv import load_dotenv
from omegaconf import OmegaConf

from texcache.contexts.rendering.outcome import RasterStrategy

load_dotenv()

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "default.yaml"
CONFIG_PATH = Path(os.getenv("TEXCACHE_CONFIG", DEFAULT_CONFIG_PATH))


class ConfigError(ValueError):
    """Raised when the configuration is incomplete or inconsistent."""


@dataclass
class Settings:
    """
    Resolved runtime settings.

    Attributes:
        latex_command: Primary typesetting stage (source -> DVI)
        svg_command: Vector conversion stage (DVI -> SVG)
        png_command: Raster conversion stage (DVI -> PNG), used by RasterStrategy.COMMAND
        raster: Raster strategy for PNG output
        raster_scale: Scale factor for native SVG -> PNG conversion
        timeout: Wall-clock bound for the primary stage, in seconds
        conversion_timeout: Bound for conversion stages, in seconds
        optimizer_timeout: Bound for each post-publish optimizer, in seconds
        success_dir: Cache root for servable images
        failure_dir: Cache root for failure diagnostics
        tmp_dir: Root for per-request workspaces
        svg_optimizers: Commands run against a freshly published SVG
        png_optimizers: Commands run against a freshly published PNG
        log_dir: Directory for the DEBUG log file (None for console only)
    """

    latex_command: List[str]
    svg_command: List[str]
    success_dir: Path
    failure_dir: Path
    tmp_dir: Path
    png_command: Optional[List[str]] = None
    raster: RasterStrategy = RasterStrategy.NATIVE
    raster_scale: float = 1.0
    timeout: float = 8.0
    conversion_timeout: float = 30.0
    optimizer_timeout: float = 60.0
    svg_optimizers: List[List[str]] = field(default_factory=list)
    png_optimizers: List[List[str]] = field(default_factory=list)
    log_dir: Optional[Path] = None


def as_command(value: Union[str, List[Any], None]) -> Optional[List[str]]:
    """
    Normalize a command template to an argument list.

    Strings are split with shell quoting rules but never run through a shell.
    """
    if value is None:
        return None
    if isinstance(value, str):
        parts = shlex.split(value)
    else:
        parts = [str(part) for part in value]
    return parts or None


def load_settings(config_path: Path = None, overrides: List[str] = None) -> Settings:
    """
    Load settings from YAML, apply overrides, and validate.

    Args:
        config_path: YAML file (defaults to TEXCACHE_CONFIG or the packaged default)
        overrides: Dot-list overrides, e.g. ["timeout=4", "raster=none"]

    Returns:
        Settings

    Raises:
        ConfigError: If a stage command is missing or the raster strategy
            does not match the configured commands
    """
    if config_path is None:
        config_path = CONFIG_PATH

    config = OmegaConf.load(config_path)
    if overrides:
        config = OmegaConf.merge(config, OmegaConf.from_dotlist(list(overrides)))
    data = OmegaConf.to_container(config, resolve=True)

    commands = data.get("commands") or {}
    cache = data.get("cache") or {}
    optimizers = data.get("optimizers") or {}

    latex_command = as_command(commands.get("latex"))
    svg_command = as_command(commands.get("svg"))
    if latex_command is None or svg_command is None:
        raise ConfigError("Both commands.latex and commands.svg must be configured")

    for key in ("success_dir", "failure_dir"):
        if not cache.get(key):
            raise ConfigError(f"cache.{key} must be configured")

    try:
        raster = RasterStrategy(str(data.get("raster", "native")).lower())
    except ValueError:
        choices = ", ".join(s.value for s in RasterStrategy)
        raise ConfigError(f"Unknown raster strategy '{data.get('raster')}' (choose {choices})")

    png_command = as_command(commands.get("png"))
    if raster is RasterStrategy.COMMAND and png_command is None:
        raise ConfigError("raster=command requires commands.png")

    success_dir = Path(cache["success_dir"])
    failure_dir = Path(cache["failure_dir"])
    success_root, failure_root = success_dir.resolve(), failure_dir.resolve()
    if (
        success_root == failure_root
        or success_root in failure_root.parents
        or failure_root in success_root.parents
    ):
        # A static server exposing the success root must never reach diagnostics
        raise ConfigError("cache.success_dir and cache.failure_dir must be disjoint directories")

    log_dir = data.get("log_dir")

    return Settings(
        latex_command=latex_command,
        svg_command=svg_command,
        png_command=png_command,
        raster=raster,
        raster_scale=float(data.get("raster_scale", 1.0)),
        timeout=float(data.get("timeout", 8)),
        conversion_timeout=float(data.get("conversion_timeout", 30)),
        optimizer_timeout=float(data.get("optimizer_timeout", 60)),
        success_dir=success_dir,
        failure_dir=failure_dir,
        tmp_dir=Path(data.get("tmp_dir") or "/tmp/texcache"),
        svg_optimizers=[as_command(c) for c in optimizers.get("svg") or [] if c],
        png_optimizers=[as_command(c) for c in optimizers.get("png") or [] if c],
        log_dir=Path(log_dir) if log_dir else None,
    )
