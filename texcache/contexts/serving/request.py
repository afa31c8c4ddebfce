"""Inbound request values and URI parsing."""

from dataclasses import dataclass
from urllib.parse import unquote

from texcache.contexts.rendering.outcome import OutputKind


class InvalidRequestError(ValueError):
    """Raised when a request path does not name a supported format and a formula."""


@dataclass(frozen=True)
class RenderRequest:
    """
    One render request.

    Attributes:
        formula: Decoded, trimmed formula text (also the cache key seed)
        kind: Requested output kind
    """

    formula: str
    kind: OutputKind


@dataclass(frozen=True)
class RequestContext:
    """
    Caller information recorded in failure diagnostics.

    Passed explicitly instead of being read from process-wide state.
    """

    referrer: str = ""
    remote_addr: str = ""

    def describe(self) -> str:
        parts = [part for part in (self.referrer, self.remote_addr) if part]
        return " ".join(parts) if parts else "-"


def parse_uri(uri: str) -> RenderRequest:
    """
    Parse a request path of the form /<svg|png>/<urlencoded formula>.

    The formula is percent-decoded ("+" stays a plus sign) and trimmed.

    Raises:
        InvalidRequestError: On an unknown format or an empty formula

    Example:
        >>> parse_uri("/svg/x%5E2%20")
        RenderRequest(formula='x^2', kind=<OutputKind.SVG: 'svg'>)
    """
    parts = uri.split("/", 2)
    if len(parts) < 3 or parts[1] not in (OutputKind.SVG.value, OutputKind.PNG.value):
        raise InvalidRequestError(
            "Incorrect output format has been requested. Expected SVG or PNG."
        )

    formula = unquote(parts[2]).strip()
    if not formula:
        raise InvalidRequestError("Empty formula has been requested.")

    return RenderRequest(formula=formula, kind=OutputKind(parts[1]))
