"""
Serving Context

Responsibilities:
- Parses /<svg|png>/<formula> request paths
- Answers from the cache when possible, otherwise renders
- Builds response metadata (Content-Type, Last-Modified, Content-Length)
- Persists fresh results after the caller has been answered

Owns: Request/response values, the respond/persist sequence
Never: Implements HTTP routing
"""

from texcache.contexts.serving.factory import build_processor
from texcache.contexts.serving.processor import Processor, RenderResponse, Rendering
from texcache.contexts.serving.request import (
    InvalidRequestError,
    RenderRequest,
    RequestContext,
    parse_uri,
)

__all__ = [
    "build_processor",
    "Processor",
    "Rendering",
    "RenderResponse",
    "InvalidRequestError",
    "RenderRequest",
    "RequestContext",
    "parse_uri",
]
