"""Path utilities for mapping client paths onto the library root.

Clients only ever see paths relative to the library root. Anything that
would resolve above the root is reported as a missing path.
"""

from __future__ import annotations

import os
import posixpath
from pathlib import Path

from .errors import NotFound


def resolve_path(relative_path: str, library_root: Path) -> str:
    """Convert a client-supplied relative path to an absolute path under the root.

    Args:
        relative_path: Path from the request, `/`-separated; may be empty.
            Used verbatim, so names with leading or trailing spaces resolve.
        library_root: Absolute library root from config

    Returns:
        Absolute path string inside the library root

    Raises:
        NotFound: if the path escapes the library root

    Example:
        >>> resolve_path("Marvel/X-Men", Path("/library"))
        "/library/Marvel/X-Men"
    """
    root = os.path.abspath(library_root)
    cleaned = posixpath.normpath(relative_path.replace("\\", "/").lstrip("/"))
    if cleaned == ".." or cleaned.startswith("../") or "\x00" in cleaned:
        raise NotFound(path=relative_path)

    if cleaned == ".":
        return root

    candidate = os.path.abspath(os.path.join(root, *cleaned.split("/")))
    if not is_within_root(candidate, root):
        raise NotFound(path=relative_path)
    return candidate


def is_within_root(target: str, library_root: str) -> bool:
    root = os.path.abspath(library_root)
    try:
        rel = os.path.relpath(os.path.abspath(target), root)
    except ValueError:
        # Different drive on Windows
        return False
    return rel == "." or not (rel == ".." or rel.startswith(".." + os.sep))


def to_relative(absolute_path: str, library_root: Path) -> str:
    """Convert an absolute path to a `/`-separated path relative to the root.

    Example:
        >>> to_relative("/library/Marvel/X-Men.cbz", Path("/library"))
        "Marvel/X-Men.cbz"
    """
    rel = os.path.relpath(absolute_path, os.path.abspath(library_root))
    return rel.replace(os.sep, "/")
