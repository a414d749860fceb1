"""FastAPI router for the HTML browser: directory listings and library files."""

from __future__ import annotations

import os
from pathlib import Path
from urllib.parse import parse_qs, unquote_to_bytes

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse
from fastapi.templating import Jinja2Templates

from comicglass.cache import ListingCache
from comicglass.config import ComicGlassConfig
from comicglass.errors import NotFound
from comicglass.path_utils import resolve_path

from . import views


TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

router = APIRouter(tags=["browser"])


def _config(request: Request) -> ComicGlassConfig:
    return request.app.state.config


def _cache(request: Request) -> ListingCache:
    return request.app.state.cache


def _raw_query_path(request: Request, default: str) -> str:
    """`?path=` decoded the way the filesystem decodes names.

    Starlette replaces bytes that are not UTF-8; links to such names carry
    them percent-escaped, so they are recovered from the raw query string.
    """
    query_string = request.scope.get("query_string")
    if not query_string:
        return default
    values = parse_qs(
        query_string.decode("latin-1"),
        encoding="utf-8",
        errors="surrogateescape",
    ).get("path")
    return values[0] if values else default


def _raw_file_path(request: Request, default: str) -> str:
    raw_path = request.scope.get("raw_path")
    if not raw_path:
        return default
    return os.fsdecode(unquote_to_bytes(raw_path).lstrip(b"/"))


@router.get("/")
def browse(request: Request, path: str = ""):
    """Listing page for one library directory (`?path=` relative to the root)."""
    library_root = _config(request).library_path
    requested = _raw_query_path(request, path).strip()
    absolute_path = resolve_path(requested, library_root)
    entries = _cache(request).get_listing(absolute_path)

    label = views.display_name(views.display_path(requested))
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "title": label,
            "path_label": label,
            "entries": views.build_entry_views(entries, library_root),
        },
    )


@router.get("/{file_path:path}")
def library_file(request: Request, file_path: str):
    """Return a library file as-is; the path is used exactly as requested."""
    try:
        absolute_path = resolve_path(
            _raw_file_path(request, file_path), _config(request).library_path
        )
    except NotFound:
        raise HTTPException(status_code=404, detail="File not found")

    if not os.path.isfile(absolute_path):
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(absolute_path)
