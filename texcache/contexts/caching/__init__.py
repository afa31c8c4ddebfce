"""
Caching Context

Responsibilities:
- Derives cache keys and sharded paths from formulas
- Serves lookups from the success root (and failure root for short-circuits)
- Publishes entries atomically into the root matching the outcome
- Runs post-publish optimizers on new images

Owns: On-disk cache layout under both roots
Never: Renders formulas
"""

from texcache.contexts.caching.store import (
    CacheEntry,
    CacheStore,
    CacheWriteError,
    Outcome,
    cache_key,
    shard_path,
)

__all__ = [
    "CacheEntry",
    "CacheStore",
    "CacheWriteError",
    "Outcome",
    "cache_key",
    "shard_path",
]
