"""Directory listing cache for ComicGlass.

Keeps one listing per absolute directory path, keyed by the directory's own
modification time. A lookup stats the directory and reuses the cached
listing only when the mtime is exactly the one recorded at scan time; any
difference, including an older mtime after a clock change, triggers a
rescan. The store is bounded: after every insertion the least recently
accessed entries are dropped until it is back at capacity.

The cache is shared by request handler threads and the pre-warm workers.
All map access happens under one lock that is never held across
filesystem I/O. Concurrent misses on the same path and mtime share a
single in-flight scan.
"""

from __future__ import annotations

import dataclasses
import os
import stat
import threading
import time
from concurrent.futures import Future
from typing import Callable

from pydantic import BaseModel

from .errors import NotFound, ScanError
from .logging_config import get_logger
from .scanner import DirectoryScanner, ListingEntry

logger = get_logger(__name__)


@dataclasses.dataclass
class CacheEntry:
    files: tuple[ListingEntry, ...]
    source_mtime_ns: int
    last_access: float


@dataclasses.dataclass
class _PendingScan:
    mtime_ns: int
    future: Future = dataclasses.field(default_factory=Future)


class CacheEntryStats(BaseModel):
    path: str
    mtime: float
    last_access: float
    file_count: int


class CacheStats(BaseModel):
    size: int
    max_size: int
    hits: int
    misses: int
    entries: list[CacheEntryStats]


class ListingCache:
    """Bounded, mtime-invalidated cache of directory listings."""

    def __init__(
        self,
        scanner: DirectoryScanner,
        max_entries: int = 4096,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self.scanner = scanner
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._inflight: dict[str, _PendingScan] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, dir_path: object) -> bool:
        if not isinstance(dir_path, str):
            return False
        with self._lock:
            return _normalize(dir_path) in self._entries

    def get_listing(self, dir_path: str) -> tuple[ListingEntry, ...]:
        """Return the listing of `dir_path`, scanning only when it changed.

        The returned tuple is the cached object itself on a hit.

        :raises NotFound: if the directory does not exist.
        :raises ScanError: on any other I/O failure. A prior cache entry
            for the path is left in place.
        """
        path = _normalize(dir_path)
        mtime_ns = _directory_mtime_ns(path)

        with self._lock:
            entry = self._entries.get(path)
            if entry is not None and entry.source_mtime_ns == mtime_ns:
                entry.last_access = self._clock()
                self._hits += 1
                return entry.files

            pending = self._inflight.get(path)
            owner = pending is None or pending.mtime_ns != mtime_ns
            if owner:
                pending = _PendingScan(mtime_ns)
                self._inflight[path] = pending
                self._misses += 1

        if not owner:
            logger.debug(f"Waiting for in-flight scan of {path}")
            return pending.future.result()

        logger.debug(f"Cache miss for {path}, scanning")
        try:
            files = self.scanner.scan(path)
        except BaseException as exc:
            with self._lock:
                if self._inflight.get(path) is pending:
                    del self._inflight[path]
            pending.future.set_exception(exc)
            raise

        with self._lock:
            self._entries[path] = CacheEntry(
                files=files,
                source_mtime_ns=mtime_ns,
                last_access=self._clock(),
            )
            if self._inflight.get(path) is pending:
                del self._inflight[path]
            self._evict_locked()

        pending.future.set_result(files)
        return files

    def evict_if_over_capacity(self) -> int:
        """Drop least recently accessed entries beyond capacity. Returns count evicted."""
        with self._lock:
            return self._evict_locked()

    def _evict_locked(self) -> int:
        overflow = len(self._entries) - self.max_entries
        if overflow <= 0:
            return 0

        victims = sorted(
            self._entries.items(),
            key=lambda item: (item[1].last_access, item[0]),
        )[:overflow]
        for path, _ in victims:
            del self._entries[path]

        logger.debug(f"Evicted {overflow} cache entries (max {self.max_entries})")
        return overflow

    def invalidate(self, dir_path: str) -> bool:
        """Forget the cached listing for one path. Returns True if one existed."""
        with self._lock:
            return self._entries.pop(_normalize(dir_path), None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> CacheStats:
        """Read-only snapshot of the store for diagnostics."""
        with self._lock:
            entries = [
                CacheEntryStats(
                    path=path,
                    mtime=entry.source_mtime_ns / 1e9,
                    last_access=entry.last_access,
                    file_count=len(entry.files),
                )
                for path, entry in sorted(self._entries.items())
            ]
            return CacheStats(
                size=len(self._entries),
                max_size=self.max_entries,
                hits=self._hits,
                misses=self._misses,
                entries=entries,
            )


def _normalize(dir_path: str) -> str:
    return os.path.abspath(os.fspath(dir_path))


def _directory_mtime_ns(path: str) -> int:
    try:
        st = os.stat(path)
    except (FileNotFoundError, NotADirectoryError) as exc:
        raise NotFound(path=path) from exc
    except ValueError as exc:
        # embedded NUL byte
        raise NotFound(path=path) from exc
    except OSError as exc:
        raise ScanError(
            f"Unable to stat directory: {exc.strerror or exc}", path=path
        ) from exc

    if not stat.S_ISDIR(st.st_mode):
        raise NotFound(path=path)
    return st.st_mtime_ns
