"""HTML directory browser for ComicGlass clients.

Serves / for browsing the library and the library files themselves.
"""

from .router import router

__all__ = ["router"]
