"""
Shared utilities for texcache.

Common functionality used across contexts:
- Logger setup
- Configuration loading
- Timestamp formatting
"""

from texcache.utils.config import ConfigError, Settings, load_settings
from texcache.utils.timestamp import http_date, now, utcnow

__all__ = ["ConfigError", "Settings", "load_settings", "http_date", "now", "utcnow"]
