"""Error taxonomy for directory listings.

Listing errors carry the HTTP status the web layer answers with, so the
request handlers never have to inspect the underlying OS error.
"""

from __future__ import annotations

from typing import Optional


class ListingError(Exception):
    """Base class for failures while producing a directory listing."""

    status_code = 500
    default_message = "internal server error"

    def __init__(self, message: Optional[str] = None, path: Optional[str] = None):
        self.message = message or self.default_message
        self.path = path
        super().__init__(self.message)


class NotFound(ListingError):
    """Target directory does not exist (or is not a directory, or escapes the root)."""

    status_code = 400
    default_message = "Path does not exist"


class ScanError(ListingError):
    """Any other I/O failure while reading or stating a directory."""

    status_code = 500
    default_message = "Unable to read directory"

    @property
    def permission_denied(self) -> bool:
        return isinstance(self.__cause__, PermissionError)


class PrewarmSkip(Exception):
    """Subtree skipped by the pre-warm walker (vanished or unreadable)."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")
