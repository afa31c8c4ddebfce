"""
Content-addressable image cache.

Layout (identical under both roots):

    <root>/<d[0:2]>/<d[2:4]>/<d[4:]>.<ext>      d = md5(formula)

The success root only ever holds servable images and may be exposed by a
static file server as-is; the failure root only holds diagnostic text.
Writes go to a temp file next to the target and are renamed into place,
so a reader never sees a partial file.
"""

import hashlib
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from texcache.contexts.caching.logger import (
    _log_debug,
    _log_warning,
    log_optimizer_result,
    log_published,
)
from texcache.contexts.rendering.outcome import OutputKind
from texcache.contexts.rendering.runner import StageResult, format_command, run_stage
from texcache.utils.timestamp import from_mtime

# Published files must be readable by the static file server
PUBLISHED_FILE_MODE = 0o644


class Outcome(str, Enum):
    """Selects the cache root."""

    SUCCESS = "success"
    FAILURE = "failure"


class CacheWriteError(OSError):
    """Raised when a cache entry cannot be written, even after a retry."""


@dataclass
class CacheEntry:
    """
    A file read from the cache.

    Attributes:
        path: Location of the entry
        content: File bytes
        modified_at: Modification time (UTC), used as Last-Modified
    """

    path: Path
    content: bytes
    modified_at: datetime


def cache_key(formula: str) -> str:
    """Digest of the formula text; shared by all extensions and both roots."""
    return hashlib.md5(formula.encode("utf-8")).hexdigest()


def shard_path(key: str, extension: Union[OutputKind, str]) -> Path:
    """
    Relative path of a key inside a cache root.

    Example:
        >>> shard_path("0123456789abcdef", "svg")
        PosixPath('01/23/456789abcdef.svg')
    """
    extension = OutputKind(extension).value
    return Path(key[:2]) / key[2:4] / f"{key[4:]}.{extension}"


class CacheStore:
    """
    Sharded file cache with disjoint success and failure roots.

    Attributes:
        success_dir: Root for servable images
        failure_dir: Root for failure diagnostics
        optimizers: Commands run against freshly published images, per kind
        optimizer_timeout: Bound for each optimizer run
    """

    def __init__(
        self,
        success_dir: Path,
        failure_dir: Path,
        optimizers: Dict[OutputKind, List[List[str]]] = None,
        optimizer_timeout: float = 60.0,
        runner: Callable[..., StageResult] = run_stage,
    ):
        self.success_dir = Path(success_dir)
        self.failure_dir = Path(failure_dir)
        self.optimizers = {OutputKind(k): list(v) for k, v in (optimizers or {}).items()}
        self.optimizer_timeout = optimizer_timeout
        self.runner = runner

    def root(self, outcome: Outcome) -> Path:
        return self.success_dir if outcome is Outcome.SUCCESS else self.failure_dir

    def path_for(
        self, key: str, extension: Union[OutputKind, str], outcome: Outcome = Outcome.SUCCESS
    ) -> Path:
        """Absolute cache path for (key, extension, outcome)."""
        return self.root(outcome) / shard_path(key, extension)

    def lookup(
        self, key: str, extension: Union[OutputKind, str], outcome: Outcome = Outcome.SUCCESS
    ) -> Optional[CacheEntry]:
        """
        Read an entry if it exists.

        Args:
            key: Formula digest from cache_key()
            extension: "svg" or "png"
            outcome: Root to look in (only SUCCESS entries are servable)

        Returns:
            CacheEntry, or None on a miss
        """
        path = self.path_for(key, extension, outcome)
        try:
            stat = path.stat()
            content = path.read_bytes()
        except FileNotFoundError:
            return None

        return CacheEntry(path=path, content=content, modified_at=from_mtime(stat.st_mtime))

    def publish(
        self,
        key: str,
        extension: Union[OutputKind, str],
        outcome: Outcome,
        content: bytes,
    ) -> Path:
        """
        Atomically write an entry.

        1. Creates parent directories if they do not exist.
        2. Writes to a uniquely named temp file in the target directory.
        3. Renames it over the target; retries the rename once, and if it
           still fails while the target exists, keeps the existing file
           (its content is a function of the key, so either copy is fine).

        Returns:
            Path of the published entry

        Raises:
            CacheWriteError: If the directory or file cannot be written
        """
        target = self.path_for(key, extension, outcome)

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheWriteError(f'Directory "{target.parent}" was not created: {e}') from e

        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=target.parent, prefix=f".{target.name}.", suffix=".temp"
            )
        except OSError as e:
            raise CacheWriteError(f"Cannot create temp file next to {target}: {e}") from e

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
            os.chmod(tmp_path, PUBLISHED_FILE_MODE)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise CacheWriteError(f"Cannot write {tmp_path}: {e}") from e

        try:
            os.replace(tmp_path, target)
        except OSError:
            _log_debug(f"Rename onto {target} failed, retrying once")
            try:
                os.replace(tmp_path, target)
            except OSError as e:
                tmp_path.unlink(missing_ok=True)
                if target.exists():
                    _log_debug(f"Keeping concurrently published {target}")
                    return target
                raise CacheWriteError(f"Cannot publish {target}: {e}") from e

        log_published(target, len(content))
        return target

    def optimize(self, path: Path, extension: Union[OutputKind, str]) -> None:
        """
        Run the configured optimizers against a published success entry.

        Optimizers shrink the file in place; a failing optimizer is logged
        and the next one still runs.
        """
        if self.success_dir not in Path(path).parents:
            _log_warning(f"Refusing to optimize {path}: outside of the success root")
            return

        for template in self.optimizers.get(OutputKind(extension), []):
            result = self.runner(
                format_command(template, path=str(path)), timeout=self.optimizer_timeout
            )
            log_optimizer_result(path, result)
