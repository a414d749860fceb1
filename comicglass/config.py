"""Config management for ComicGlass.

Reads `config.ini` from DATA_DIR (beside main.py by default).
A missing config file is not an error: every setting has a default, and the
library root can come from the COMICGLASS_LIBRARY_ROOT environment variable.
"""

from __future__ import annotations

import configparser
import dataclasses
import os
import pathlib
from typing import Optional

from .logging_config import get_logger

logger = get_logger(__name__)


PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]

# DATA_DIR holds config.ini and comicglass.log.
# Set via env var for Docker; defaults to PROJECT_ROOT for standalone use.
DATA_DIR = pathlib.Path(os.environ.get("DATA_DIR", str(PROJECT_ROOT)))
DEFAULT_CONFIG_PATH = DATA_DIR / "config.ini"

LIBRARY_ROOT_ENV = "COMICGLASS_LIBRARY_ROOT"

DEFAULT_EXTENSIONS = (
    "gif",
    "png",
    "jpg",
    "jpeg",
    "tif",
    "tiff",
    "zip",
    "rar",
    "cbz",
    "cbr",
    "bmp",
    "pdf",
    "cgt",
)


def default_library_path() -> pathlib.Path:
    """Library root from the environment, else `./books`."""
    env = os.environ.get(LIBRARY_ROOT_ENV, "").strip()
    if env:
        return pathlib.Path(env).expanduser()
    return pathlib.Path(".") / "books"


@dataclasses.dataclass
class LibraryConfig:
    path: pathlib.Path
    name: str = "ComicGlass Library"


@dataclasses.dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 3000


@dataclasses.dataclass
class CacheConfig:
    max_entries: int = 4096
    prewarm: bool = True
    prewarm_workers: int = 8


@dataclasses.dataclass
class ScannerConfig:
    allowed_extensions: tuple[str, ...] = DEFAULT_EXTENSIONS


@dataclasses.dataclass
class ComicGlassConfig:
    library: LibraryConfig
    server: ServerConfig = dataclasses.field(default_factory=ServerConfig)
    cache: CacheConfig = dataclasses.field(default_factory=CacheConfig)
    scanner: ScannerConfig = dataclasses.field(default_factory=ScannerConfig)

    @property
    def library_path(self) -> pathlib.Path:
        """Absolute library root; listings never go above it."""
        return self.library.path.expanduser().absolute()

    @property
    def server_host(self) -> str:
        return self.server.host

    @property
    def server_port(self) -> int:
        return self.server.port


def _parse_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_list(value: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


def default_config() -> ComicGlassConfig:
    return ComicGlassConfig(library=LibraryConfig(path=default_library_path()))


def load_config(config_path: Optional[pathlib.Path] = None) -> ComicGlassConfig:
    """Load configuration from config.ini.

    Defaults to `config.ini` in DATA_DIR. Falls back to built-in defaults
    when the file does not exist.

    :raises ValueError: if a numeric setting is out of range.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    if not path.exists():
        logger.debug(f"Config file not found at {path}, using defaults")
        return default_config()

    parser = configparser.ConfigParser()
    parser.read(path)

    raw_library = parser.get("library", "path", fallback="").strip()
    lib_path = (
        pathlib.Path(raw_library).expanduser() if raw_library else default_library_path()
    )
    lib_name = parser.get("library", "name", fallback="ComicGlass Library")

    server = ServerConfig(
        host=parser.get("server", "host", fallback="0.0.0.0"),
        port=parser.getint("server", "port", fallback=3000),
    )

    cache = CacheConfig(
        max_entries=parser.getint("cache", "max_entries", fallback=4096),
        prewarm=_parse_bool(parser.get("cache", "prewarm", fallback="true"), True),
        prewarm_workers=parser.getint("cache", "prewarm_workers", fallback=8),
    )
    if cache.max_entries < 1:
        raise ValueError(f"[cache] max_entries must be >= 1, got {cache.max_entries}")
    if cache.prewarm_workers < 1:
        raise ValueError(
            f"[cache] prewarm_workers must be >= 1, got {cache.prewarm_workers}"
        )

    extensions = _parse_list(
        parser.get("scanner", "allowed_extensions", fallback=",".join(DEFAULT_EXTENSIONS))
    )
    scanner = ScannerConfig(allowed_extensions=extensions or DEFAULT_EXTENSIONS)

    return ComicGlassConfig(
        library=LibraryConfig(path=lib_path, name=lib_name),
        server=server,
        cache=cache,
        scanner=scanner,
    )


def write_config(config_path: pathlib.Path, config: ComicGlassConfig) -> None:
    """Write a config object back out as config.ini."""
    parser = configparser.ConfigParser()

    parser["library"] = {
        "path": str(config.library.path.expanduser()),
        "name": config.library.name,
    }
    parser["server"] = {
        "host": config.server.host,
        "port": str(config.server.port),
    }
    parser["cache"] = {
        "max_entries": str(config.cache.max_entries),
        "prewarm": "true" if config.cache.prewarm else "false",
        "prewarm_workers": str(config.cache.prewarm_workers),
    }
    parser["scanner"] = {
        "allowed_extensions": ",".join(config.scanner.allowed_extensions),
    }

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("w") as handle:
        parser.write(handle)
