"""ComicGlass CLI entry point."""

from __future__ import annotations

import dataclasses
import logging
import time
from pathlib import Path
from typing import Optional

import typer

from comicglass import __version__
from comicglass.app import build_cache, run_server
from comicglass.config import (
    DATA_DIR,
    DEFAULT_CONFIG_PATH,
    ComicGlassConfig,
    LibraryConfig,
    default_config,
    load_config,
    write_config,
)
from comicglass.errors import ListingError
from comicglass.logging_config import setup_logging
from comicglass.path_utils import resolve_path
from comicglass.prewarm import prewarm, start_prewarm


app = typer.Typer(add_completion=False, help="ComicGlass library server CLI")
logger = logging.getLogger("comicglass")

STARTUP_BANNER = r"""
   ___               _       ___  _
  / __\___  _ __ ___ (_) ___ / _ \| | __ _ ___ ___
 / /  / _ \| '_ ` _ \| |/ __/ /_\/| |/ _` / __/ __|
/ /__| (_) | | | | | | | (_/ /_\\ | | (_| \__ \__ \
\____/\___/|_| |_| |_|_|\___\____/|_|\__,_|___/___/
"""


def _ensure_config(library: Optional[Path] = None) -> ComicGlassConfig:
    try:
        config = load_config()
    except ValueError as exc:
        typer.echo(f"[ERROR] Invalid config.ini: {exc}")
        raise typer.Exit(code=1)

    if library is not None:
        config = dataclasses.replace(
            config,
            library=dataclasses.replace(config.library, path=library.expanduser()),
        )

    if not config.library_path.is_dir():
        typer.echo(
            f"[ERROR] Library path does not exist: {config.library_path}. "
            "Run: comicglass init --library /path/to/comics"
        )
        raise typer.Exit(code=1)
    return config


@app.command()
def init(
    library: Path = typer.Option(..., "--library", help="Path to your comics folder"),
    name: str = typer.Option("ComicGlass Library", "--name", help="Library name"),
) -> None:
    """Initialize config.ini with default settings."""
    config = default_config()
    config = dataclasses.replace(config, library=LibraryConfig(path=library, name=name))
    write_config(DEFAULT_CONFIG_PATH, config)
    typer.echo(f"[OK] Config created at {DEFAULT_CONFIG_PATH}")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Server host"),
    port: Optional[int] = typer.Option(None, "--port", help="Server port"),
    library: Optional[Path] = typer.Option(None, "--library", help="Override library path"),
    no_prewarm: bool = typer.Option(False, "--no-prewarm", help="Skip cache pre-warming"),
    log_level: str = typer.Option("INFO", "--log-level", help="Console log level"),
) -> None:
    """Start the listing server, pre-warming the cache in the background."""
    setup_logging(log_level, log_dir=DATA_DIR)

    typer.echo(typer.style(STARTUP_BANNER, fg=typer.colors.CYAN, bold=True))
    config = _ensure_config(library)
    cache = build_cache(config)
    logger.info(
        f"Library root: {config.library_path} (cache up to {config.cache.max_entries} directories)"
    )

    if config.cache.prewarm and not no_prewarm:
        start_prewarm(cache, config.library_path, max_workers=config.cache.prewarm_workers)
    else:
        logger.info("Cache pre-warming disabled")

    try:
        run_server(config, cache, host=host, port=port)
    except KeyboardInterrupt:
        pass


@app.command("ls")
def list_directory(
    path: str = typer.Argument("", help="Directory relative to the library root"),
) -> None:
    """Print the filtered listing of one library directory."""
    config = _ensure_config()
    cache = build_cache(config)
    try:
        entries = cache.get_listing(resolve_path(path, config.library_path))
    except ListingError as exc:
        typer.echo(f"[ERROR] {exc.message}: {path or './'}")
        raise typer.Exit(code=1)

    for entry in entries:
        marker = "d" if entry.is_dir else "-"
        typer.echo(f"{marker} {entry.size:>12} {entry.modify_time:>11} {entry.name}")
    typer.echo(f"{len(entries)} entries")


@app.command()
def warm(
    workers: Optional[int] = typer.Option(None, "--workers", help="Concurrent directory scans"),
) -> None:
    """Walk the whole library once and report how many directories were cached."""
    setup_logging(log_dir=DATA_DIR)

    config = _ensure_config()
    cache = build_cache(config)
    started = time.monotonic()
    count = prewarm(
        cache, config.library_path, max_workers=workers or config.cache.prewarm_workers
    )
    elapsed = time.monotonic() - started

    stats = cache.stats()
    total_entries = sum(entry.file_count for entry in stats.entries)
    typer.echo(
        f"✓ Cached {count} directories ({total_entries} entries) in {elapsed:.2f}s; "
        f"{stats.size} / {stats.max_size} kept after eviction."
    )


@app.command()
def version() -> None:
    """Print the version."""
    typer.echo(__version__)


if __name__ == "__main__":
    app()
