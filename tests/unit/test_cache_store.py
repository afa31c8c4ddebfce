"""Unit tests for the content-addressable cache store."""

import hashlib
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from texcache.contexts.caching import store as store_module
from texcache.contexts.caching.store import (
    CacheStore,
    CacheWriteError,
    Outcome,
    cache_key,
    shard_path,
)
from texcache.contexts.rendering.outcome import OutputKind


@pytest.mark.unit
def test_cache_key_is_md5_of_formula():
    assert cache_key("x^2") == hashlib.md5(b"x^2").hexdigest()
    assert cache_key("x^2") == cache_key("x^2")
    assert cache_key("x^2") != cache_key("x^3")


@pytest.mark.unit
def test_shard_path_splits_digest():
    key = "0123456789abcdef0123456789abcdef"

    assert shard_path(key, "svg") == Path("01/23/456789abcdef0123456789abcdef.svg")
    assert shard_path(key, OutputKind.PNG) == Path("01/23/456789abcdef0123456789abcdef.png")


@pytest.mark.unit
def test_shard_path_rejects_unknown_extension():
    with pytest.raises(ValueError):
        shard_path(cache_key("x"), "gif")


@pytest.mark.unit
def test_path_for_separates_roots(tmp_path):
    store = CacheStore(tmp_path / "ok", tmp_path / "err")
    key = cache_key("x^2")

    success = store.path_for(key, "svg", Outcome.SUCCESS)
    failure = store.path_for(key, "svg", Outcome.FAILURE)

    assert success == tmp_path / "ok" / shard_path(key, "svg")
    assert failure == tmp_path / "err" / shard_path(key, "svg")
    assert store.path_for(key, "svg") == success


@pytest.mark.unit
def test_lookup_miss_returns_none(store):
    assert store.lookup(cache_key("nothing"), "svg") is None


@pytest.mark.unit
def test_publish_then_lookup(store):
    key = cache_key("x^2")
    path = store.publish(key, "svg", Outcome.SUCCESS, b"<svg/>")

    entry = store.lookup(key, "svg")

    assert path.exists()
    assert entry is not None
    assert entry.path == path
    assert entry.content == b"<svg/>"
    assert entry.modified_at.tzinfo is not None
    assert entry.modified_at.timestamp() == int(path.stat().st_mtime)


@pytest.mark.unit
def test_publish_failure_never_touches_success_root(store):
    key = cache_key(r"\write18")
    store.publish(key, "png", Outcome.FAILURE, b"diagnostic")

    assert store.lookup(key, "png") is None
    assert store.lookup(key, "png", Outcome.FAILURE).content == b"diagnostic"
    assert not store.success_dir.exists()


@pytest.mark.unit
def test_published_file_is_world_readable(store):
    path = store.publish(cache_key("x"), "svg", Outcome.SUCCESS, b"<svg/>")

    assert path.stat().st_mode & 0o777 == 0o644


@pytest.mark.unit
def test_publish_twice_is_idempotent(store):
    key = cache_key("x^2")
    store.publish(key, "svg", Outcome.SUCCESS, b"<svg/>")
    path = store.publish(key, "svg", Outcome.SUCCESS, b"<svg/>")

    assert path.read_bytes() == b"<svg/>"
    assert sorted(p.name for p in path.parent.iterdir()) == [path.name]


@pytest.mark.unit
def test_concurrent_publish_leaves_one_complete_file(store):
    """Many writers racing on one key leave a single complete file and no temp files."""
    key = cache_key("race")
    content = b"<svg>" + b"x" * 200_000 + b"</svg>"

    with ThreadPoolExecutor(max_workers=8) as pool:
        paths = list(
            pool.map(
                lambda _: store.publish(key, "svg", Outcome.SUCCESS, content),
                range(16),
            )
        )

    target = paths[0]
    assert all(p == target for p in paths)
    assert target.read_bytes() == content
    assert [p.name for p in target.parent.iterdir()] == [target.name]


@pytest.mark.unit
def test_rename_is_retried_once(store, monkeypatch):
    real_replace = os.replace
    calls = []

    def flaky_replace(src, dst):
        calls.append(src)
        if len(calls) == 1:
            raise PermissionError("target busy")
        return real_replace(src, dst)

    monkeypatch.setattr(store_module.os, "replace", flaky_replace)
    path = store.publish(cache_key("x"), "svg", Outcome.SUCCESS, b"<svg/>")

    assert len(calls) == 2
    assert path.read_bytes() == b"<svg/>"


@pytest.mark.unit
def test_persistent_rename_failure_keeps_existing_target(store, monkeypatch):
    key = cache_key("x")
    path = store.publish(key, "svg", Outcome.SUCCESS, b"<svg>first</svg>")

    def failing_replace(src, dst):
        raise PermissionError("target busy")

    monkeypatch.setattr(store_module.os, "replace", failing_replace)
    result = store.publish(key, "svg", Outcome.SUCCESS, b"<svg>second</svg>")

    assert result == path
    assert path.read_bytes() == b"<svg>first</svg>"
    assert [p.name for p in path.parent.iterdir()] == [path.name]


@pytest.mark.unit
def test_persistent_rename_failure_without_target_raises(store, monkeypatch):
    def failing_replace(src, dst):
        raise PermissionError("read-only")

    monkeypatch.setattr(store_module.os, "replace", failing_replace)

    with pytest.raises(CacheWriteError):
        store.publish(cache_key("x"), "svg", Outcome.SUCCESS, b"<svg/>")

    shard_dir = store.path_for(cache_key("x"), "svg").parent
    assert list(shard_dir.iterdir()) == []


@pytest.mark.unit
def test_publish_raises_when_directory_cannot_be_created(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    store = CacheStore(blocker / "ok", tmp_path / "err")

    with pytest.raises(CacheWriteError):
        store.publish(cache_key("x"), "svg", Outcome.SUCCESS, b"<svg/>")


@pytest.mark.unit
def test_optimize_runs_configured_commands(store):
    path = store.publish(cache_key("x"), "svg", Outcome.SUCCESS, b"<svg/>\n\n")

    store.optimize(path, "svg")

    assert path.read_bytes() == b"<svg/>"


@pytest.mark.unit
def test_optimize_without_commands_is_noop(store):
    path = store.publish(cache_key("x"), "png", Outcome.SUCCESS, b"PNG  \n")

    store.optimize(path, "png")

    assert path.read_bytes() == b"PNG  \n"


@pytest.mark.unit
def test_optimize_refuses_failure_root(store):
    path = store.publish(cache_key("x"), "svg", Outcome.FAILURE, b"diagnostic\n\n")

    store.optimize(path, "svg")

    assert path.read_bytes() == b"diagnostic\n\n"
