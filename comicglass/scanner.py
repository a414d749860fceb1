"""Filesystem scanner for ComicGlass.

Lists the immediate children of one directory and keeps the ones a
ComicGlass client can use: subdirectories, and regular files whose
extension matches the configured allow-list.
"""

from __future__ import annotations

import os
import stat
from typing import Iterable, Literal, Optional

from pydantic import BaseModel, ConfigDict

from .config import DEFAULT_EXTENSIONS
from .errors import NotFound, ScanError
from .logging_config import get_logger

logger = get_logger(__name__)

NS_PER_SECOND = 1_000_000_000


class ListingEntry(BaseModel):
    """One file or subdirectory of a scanned directory."""

    model_config = ConfigDict(frozen=True)

    name: str
    path: str
    modify_time: int
    size: int
    type: Literal["file", "dir"]

    @property
    def is_dir(self) -> bool:
        return self.type == "dir"


def extension_allowed(name: str, allowed_extensions: Iterable[str]) -> bool:
    """Return True if the file extension *contains* one of the allowed extensions.

    The check is a case-sensitive substring test on the extension including
    its dot, so `x.jpgx` passes on `jpg` while `x.JPG` does not.
    """
    ext = os.path.splitext(name)[1]
    return any(allowed in ext for allowed in allowed_extensions)


class DirectoryScanner:
    """Produce the filtered listing of a single directory."""

    def __init__(self, allowed_extensions: Optional[Iterable[str]] = None):
        self.allowed_extensions = tuple(
            DEFAULT_EXTENSIONS if allowed_extensions is None else allowed_extensions
        )

    def scan(self, dir_path: str) -> tuple[ListingEntry, ...]:
        """Return the entries of `dir_path` in enumeration order.

        :raises NotFound: if the directory is missing or not a directory.
        :raises ScanError: on any other I/O failure.
        """
        entries: list[ListingEntry] = []
        try:
            with os.scandir(dir_path) as it:
                for dir_entry in it:
                    entry = self._to_entry(dir_path, dir_entry)
                    if entry is not None:
                        entries.append(entry)
        except (FileNotFoundError, NotADirectoryError) as exc:
            raise NotFound(path=dir_path) from exc
        except ValueError as exc:
            raise NotFound(path=dir_path) from exc
        except OSError as exc:
            raise ScanError(
                f"Unable to read directory: {exc.strerror or exc}", path=dir_path
            ) from exc

        return tuple(entries)

    def _to_entry(self, dir_path: str, dir_entry: os.DirEntry) -> Optional[ListingEntry]:
        try:
            st = dir_entry.stat(follow_symlinks=False)
        except FileNotFoundError:
            # Removed between readdir and stat
            logger.debug(f"Skipping vanished entry {dir_entry.path}")
            return None

        if stat.S_ISDIR(st.st_mode):
            kind = "dir"
        elif stat.S_ISREG(st.st_mode):
            if not extension_allowed(dir_entry.name, self.allowed_extensions):
                return None
            kind = "file"
        else:
            return None

        return ListingEntry(
            name=dir_entry.name,
            path=os.path.join(dir_path, dir_entry.name),
            modify_time=st.st_mtime_ns // NS_PER_SECOND,
            size=st.st_size,
            type=kind,
        )
