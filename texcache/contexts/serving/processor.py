"""
Request processor.

Resolves a request against the cache, falls back to the render pipeline,
and persists fresh results once the caller has been answered.

The two phases are explicit:
    rendering = processor.respond(request, context)   # answer the caller
    processor.persist(rendering, context)             # fill the cache
handle() runs both and always persists, even if delivery fails.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Optional

from texcache.contexts.caching.store import CacheStore, CacheWriteError, Outcome, cache_key
from texcache.contexts.rendering.outcome import (
    ErrorKind,
    OutputKind,
    RenderError,
    RenderOutcome,
)
from texcache.contexts.rendering.renderer import Renderer
from texcache.contexts.serving.logger import (
    log_cache_hit,
    log_cache_miss,
    log_persist_failed,
)
from texcache.contexts.serving.request import RenderRequest, RequestContext
from texcache.utils.timestamp import http_date, utcnow


@dataclass(frozen=True)
class RenderResponse:
    """
    What the caller receives.

    Attributes:
        kind: Output kind of the content
        content: Image bytes (empty on error)
        last_modified: Cache entry time, or render time for a fresh render
        error: Set when no image could be produced
        from_cache: Whether the answer came from the cache
    """

    kind: OutputKind
    content: bytes
    last_modified: datetime
    error: Optional[RenderError] = None
    from_cache: bool = False

    @property
    def success(self) -> bool:
        return self.error is None

    def headers(self) -> Dict[str, str]:
        """Content-Type, Last-Modified and Content-Length for an image response."""
        if not self.success:
            return {}
        return {
            "Content-Type": self.kind.content_type,
            "Last-Modified": http_date(self.last_modified),
            "Content-Length": str(len(self.content)),
        }


@dataclass(frozen=True)
class Rendering:
    """
    Result of the respond phase, carried into the persist phase.

    outcome is None when the response came from the cache, so there is
    nothing to persist.
    """

    request: RenderRequest
    key: str
    response: RenderResponse
    outcome: Optional[RenderOutcome] = None


class Processor:
    """
    Cache-first facade over the render pipeline.

    Attributes:
        renderer: Render pipeline used on a cache miss
        store: Cache store for lookups and publishing
    """

    def __init__(self, renderer: Renderer, store: CacheStore):
        self.renderer = renderer
        self.store = store

    def handle(
        self,
        request: RenderRequest,
        context: RequestContext = None,
        deliver: Callable[[RenderResponse], None] = None,
    ) -> RenderResponse:
        """
        Answer a request, then persist the result.

        Args:
            request: Parsed request
            context: Caller information for failure diagnostics
            deliver: Sends the response to the caller before persisting

        Returns:
            The response that was delivered
        """
        context = context or RequestContext()
        rendering = self.respond(request, context)
        try:
            if deliver is not None:
                deliver(rendering.response)
        finally:
            self.persist(rendering, context)
        return rendering.response

    def respond(self, request: RenderRequest, context: RequestContext = None) -> Rendering:
        """
        Produce the response for a request without touching the cache on disk.

        1. Success-root hit: serve stored bytes with the entry's mtime.
        2. Failure-root hit: return the cached failure without rendering.
        3. Miss: run the pipeline (which validates first).
        """
        key = cache_key(request.formula)

        entry = self.store.lookup(key, request.kind, Outcome.SUCCESS)
        if entry is not None:
            log_cache_hit(request, Outcome.SUCCESS)
            response = RenderResponse(
                kind=request.kind,
                content=entry.content,
                last_modified=entry.modified_at,
                from_cache=True,
            )
            return Rendering(request=request, key=key, response=response)

        failure = self.store.lookup(key, request.kind, Outcome.FAILURE)
        if failure is not None:
            log_cache_hit(request, Outcome.FAILURE)
            error = RenderError(
                kind=ErrorKind.CACHED_FAILURE,
                message="Formula has failed to render before.",
                diagnostics=failure.content.decode("utf-8", errors="replace"),
            )
            response = RenderResponse(
                kind=request.kind,
                content=b"",
                last_modified=failure.modified_at,
                error=error,
                from_cache=True,
            )
            return Rendering(request=request, key=key, response=response)

        log_cache_miss(request)

        # One run yields both kinds when a raster strategy exists
        render_kind = OutputKind.PNG if self.renderer.supports_png else request.kind
        outcome = self.renderer.render(request.formula, render_kind)

        response = RenderResponse(
            kind=request.kind,
            content=outcome.content_for(request.kind) or b"",
            last_modified=utcnow(),
            error=outcome.error_for(request.kind),
        )
        return Rendering(request=request, key=key, response=response, outcome=outcome)

    def persist(self, rendering: Rendering, context: RequestContext = None) -> None:
        """
        Publish a fresh outcome for every extension, then optimize new images.

        Successes go to the success root; failures go to the failure root as
        "<caller> <ext>: <formula> <diagnostics>". A failed PNG step next to a
        good SVG publishes the SVG only and records no failure. Cache
        write errors are logged and dropped since the caller has already
        been answered.
        """
        outcome = rendering.outcome
        if outcome is None:
            return
        if not outcome.success and outcome.error.kind is ErrorKind.UNSUPPORTED_OUTPUT:
            # Depends on configuration, not on the formula
            return

        context = context or RequestContext()
        formula = rendering.request.formula

        for kind in OutputKind:
            if outcome.success:
                content = outcome.content_for(kind)
                if content is None:
                    continue
                try:
                    path = self.store.publish(rendering.key, kind, Outcome.SUCCESS, content)
                except CacheWriteError as e:
                    log_persist_failed(f"{kind.value} for {formula!r}", e)
                    continue
                self.store.optimize(path, kind)
            else:
                diagnostic = (
                    f"{context.describe()} {kind.value}: {formula} {outcome.error.describe()}"
                )
                try:
                    self.store.publish(
                        rendering.key, kind, Outcome.FAILURE, diagnostic.encode("utf-8")
                    )
                except CacheWriteError as e:
                    log_persist_failed(f"{kind.value} failure for {formula!r}", e)
