"""Background cache pre-warming for ComicGlass.

Walks the whole library at startup and populates the listing cache so the
first client requests are served from memory. Runs on a small worker pool
in a daemon thread and never blocks the server from accepting requests; a
request that races the walker just takes its own miss.
"""

from __future__ import annotations

import os
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from threading import Thread
from typing import Optional

from .cache import ListingCache
from .errors import NotFound, PrewarmSkip, ScanError
from .logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_WORKERS = 8


def _warm_directory(cache: ListingCache, dir_path: str) -> list[str]:
    """Cache one directory and return its subdirectory paths.

    :raises PrewarmSkip: if the directory vanished or cannot be read.
    """
    try:
        files = cache.get_listing(dir_path)
    except NotFound as exc:
        raise PrewarmSkip(dir_path, "no longer exists") from exc
    except ScanError as exc:
        if exc.permission_denied:
            raise PrewarmSkip(dir_path, "permission denied") from exc
        raise

    return [entry.path for entry in files if entry.is_dir]


def prewarm(
    cache: ListingCache,
    root: os.PathLike | str,
    max_workers: int = DEFAULT_WORKERS,
) -> int:
    """Populate the cache for `root` and every directory below it.

    At most `max_workers` directories are scanned at once. Subtrees that
    vanish or are unreadable are skipped; any other failure abandons that
    subtree while its siblings continue.

    :return: number of directories cached.
    """
    root_path = os.path.abspath(os.fspath(root))
    started = time.monotonic()
    cached = 0
    skipped = 0
    failed = 0

    logger.info(f"Pre-warming listing cache from {root_path}")

    with ThreadPoolExecutor(
        max_workers=max_workers, thread_name_prefix="ComicGlassPrewarm"
    ) as pool:
        pending: dict[Future, str] = {
            pool.submit(_warm_directory, cache, root_path): root_path
        }
        while pending:
            done, _ = wait(pending, return_when=FIRST_COMPLETED)
            for future in done:
                dir_path = pending.pop(future)
                try:
                    subdirs = future.result()
                except PrewarmSkip as skip:
                    skipped += 1
                    logger.debug(f"[SKIP] {skip.path} ({skip.reason})")
                    continue
                except Exception as exc:
                    failed += 1
                    logger.error(f"✗ Pre-warm abandoned {dir_path}: {exc}")
                    continue

                cached += 1
                for subdir in subdirs:
                    pending[pool.submit(_warm_directory, cache, subdir)] = subdir

    elapsed = time.monotonic() - started
    logger.info(
        f"Pre-warm complete: {cached} directories cached, "
        f"{skipped} skipped, {failed} failed in {elapsed:.2f}s"
    )
    return cached


def start_prewarm(
    cache: ListingCache,
    root: os.PathLike | str,
    max_workers: int = DEFAULT_WORKERS,
) -> Optional[Thread]:
    """Run `prewarm` in a daemon thread. Returns the thread, or None if root is missing."""
    if not os.path.isdir(root):
        logger.error(f"Library path does not exist: {root}")
        return None

    def _run() -> None:
        try:
            prewarm(cache, root, max_workers=max_workers)
        except Exception:
            logger.exception("Pre-warm failed")

    worker = Thread(target=_run, daemon=True, name="ComicGlassPrewarm")
    worker.start()
    return worker
