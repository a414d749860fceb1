"""ComicGlass library server package.

Modules:
- scanner: single-directory listing with type/extension filtering
- cache: mtime-invalidated listing cache with LRU eviction
- prewarm: background recursive cache population
- app: FastAPI app and routing
- config: INI parsing and config object
"""

__version__ = "0.1.0"
