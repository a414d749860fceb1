"""Presentation helpers: turn cached listing entries into template rows.

The cache keeps scan order; the page shows directories first, then files,
each group in case-insensitive name order.
"""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Iterable, Optional
from urllib.parse import quote

from comicglass.path_utils import to_relative
from comicglass.scanner import ListingEntry


@dataclasses.dataclass(frozen=True)
class EntryView:
    name: str
    is_dir: bool
    modify_time: int
    size: int
    directory_href: Optional[str] = None
    file_href: Optional[str] = None


def _sort_key(entry: ListingEntry):
    return (not entry.is_dir, entry.name.lower())


def display_name(name: str) -> str:
    """Printable form of a filename; undecodable bytes become U+FFFD."""
    return os.fsencode(name).decode("utf-8", "replace")


def directory_href(relative: str) -> str:
    """Link to the listing of a subdirectory (query-escaped relative path)."""
    return "?path=" + quote(relative, safe="", errors="surrogateescape")


def file_href(relative: str) -> str:
    """Link to a library file, escaping each path segment."""
    clean = relative.replace("\\", "/")
    if clean.startswith("./"):
        clean = clean[2:]
    if not clean:
        return "/"
    return "/" + "/".join(
        quote(part, safe="", errors="surrogateescape") for part in clean.split("/")
    )


def build_entry_views(entries: Iterable[ListingEntry], library_root: Path) -> list[EntryView]:
    views = []
    for entry in sorted(entries, key=_sort_key):
        relative = to_relative(entry.path, library_root)
        if entry.is_dir:
            views.append(
                EntryView(
                    name=display_name(entry.name),
                    is_dir=True,
                    modify_time=entry.modify_time,
                    size=entry.size,
                    directory_href=directory_href(relative),
                )
            )
        else:
            views.append(
                EntryView(
                    name=display_name(entry.name),
                    is_dir=False,
                    modify_time=entry.modify_time,
                    size=entry.size,
                    file_href=file_href(relative),
                )
            )
    return views


def display_path(requested: str) -> str:
    """Heading shown for a listing: `./` for the root, the request otherwise."""
    requested = requested.strip()
    if not requested or requested == ".":
        return "./"
    return requested
