"""
Rendering Context

Responsibilities:
- Rejects formulas containing forbidden TeX commands
- Runs latex, dvisvgm and the raster stage as bounded child processes
- Aligns SVG output on the formula baseline
- Removes every intermediate file once a render ends

Owns: External toolchain invocation, per-request workspaces, render outcomes
Never: Reads or writes the cache
"""

from texcache.contexts.rendering.outcome import (
    ErrorKind,
    OutputKind,
    RasterStrategy,
    RenderError,
    RenderOutcome,
)
from texcache.contexts.rendering.png import PngConverter
from texcache.contexts.rendering.renderer import Renderer
from texcache.contexts.rendering.runner import StageResult, run_stage
from texcache.contexts.rendering.validator import validate_formula

__all__ = [
    # Pipeline
    "Renderer",
    "PngConverter",
    "run_stage",
    "StageResult",
    "validate_formula",
    # Result types
    "ErrorKind",
    "OutputKind",
    "RasterStrategy",
    "RenderError",
    "RenderOutcome",
]
