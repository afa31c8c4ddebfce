"""
Render result types.

Failures travel as values: validation and stage errors are returned inside a
RenderOutcome instead of being raised, so the processor can respond and then
persist the failure without unwinding.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class OutputKind(str, Enum):
    """Requested image kind, valued by its file extension."""

    SVG = "svg"
    PNG = "png"

    @property
    def content_type(self) -> str:
        return CONTENT_TYPES[self]


CONTENT_TYPES = {
    OutputKind.SVG: "image/svg+xml",
    OutputKind.PNG: "image/png",
}


class RasterStrategy(str, Enum):
    """How PNG output is produced. Chosen once per deployment."""

    NATIVE = "native"  # SVG -> PNG in-process (cairosvg)
    COMMAND = "command"  # DVI -> PNG via an external command
    NONE = "none"


class ErrorKind(str, Enum):
    SECURITY = "security"
    TIMEOUT = "timeout"
    PROCESS_FAILURE = "process_failure"
    UNSUPPORTED_OUTPUT = "unsupported_output"
    CACHED_FAILURE = "cached_failure"


@dataclass(frozen=True)
class RenderError:
    """
    Error variant of a render.

    Attributes:
        kind: Failure class
        message: Short human-readable summary (safe to show to callers)
        diagnostics: Captured process output or other detail for the failure cache
    """

    kind: ErrorKind
    message: str
    diagnostics: str = ""

    def describe(self) -> str:
        """Message followed by diagnostics, as stored in the failure cache."""
        if not self.diagnostics:
            return self.message
        return f"{self.message}\n{self.diagnostics}"


@dataclass(frozen=True)
class RenderOutcome:
    """
    Result of one pipeline run.

    Either image bytes (svg, optionally png) or an error, never both.
    raster_error is set when the SVG was produced but the PNG step failed;
    the SVG is still valid and servable.
    """

    svg: Optional[bytes] = None
    png: Optional[bytes] = None
    error: Optional[RenderError] = None
    raster_error: Optional[RenderError] = None

    def __post_init__(self):
        has_content = self.svg is not None or self.png is not None
        if has_content == (self.error is not None):
            raise ValueError("RenderOutcome needs either image bytes or an error, not both")
        if self.raster_error is not None and (self.svg is None or self.png is not None):
            raise ValueError("raster_error requires SVG bytes and no PNG bytes")

    @classmethod
    def succeeded(
        cls,
        svg: bytes,
        png: Optional[bytes] = None,
        raster_error: Optional[RenderError] = None,
    ) -> "RenderOutcome":
        return cls(svg=svg, png=png, raster_error=raster_error)

    @classmethod
    def failed(cls, kind: ErrorKind, message: str, diagnostics: str = "") -> "RenderOutcome":
        return cls(error=RenderError(kind=kind, message=message, diagnostics=diagnostics))

    @property
    def success(self) -> bool:
        return self.error is None

    def content_for(self, kind: OutputKind) -> Optional[bytes]:
        """Image bytes for an output kind (None on failure or when not produced)."""
        return self.svg if kind is OutputKind.SVG else self.png

    def error_for(self, kind: OutputKind) -> Optional[RenderError]:
        """Why no bytes exist for an output kind (None if they do)."""
        if self.error is not None:
            return self.error
        if kind is OutputKind.PNG and self.png is None:
            return self.raster_error
        return None
