"""Tests for config.ini loading."""

from pathlib import Path

import pytest

from comicglass.config import (
    DEFAULT_EXTENSIONS,
    LIBRARY_ROOT_ENV,
    CacheConfig,
    ComicGlassConfig,
    LibraryConfig,
    load_config,
    write_config,
)


def test_missing_config_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv(LIBRARY_ROOT_ENV, raising=False)

    config = load_config(tmp_path / "config.ini")

    assert config.library.path == Path(".") / "books"
    assert config.server_port == 3000
    assert config.cache.max_entries == 4096
    assert config.cache.prewarm is True
    assert config.scanner.allowed_extensions == DEFAULT_EXTENSIONS


def test_library_root_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv(LIBRARY_ROOT_ENV, str(tmp_path / "comics"))

    config = load_config(tmp_path / "config.ini")

    assert config.library_path == tmp_path / "comics"


def test_load_config_reads_sections(tmp_path):
    config_path = tmp_path / "config.ini"
    config_path.write_text(
        "[library]\n"
        f"path = {tmp_path / 'comics'}\n"
        "name = Longboxes\n"
        "[server]\n"
        "host = 127.0.0.1\n"
        "port = 8080\n"
        "[cache]\n"
        "max_entries = 50\n"
        "prewarm = no\n"
        "prewarm_workers = 2\n"
        "[scanner]\n"
        "allowed_extensions = cbz, cbr ,pdf\n"
    )

    config = load_config(config_path)

    assert config.library_path == tmp_path / "comics"
    assert config.library.name == "Longboxes"
    assert config.server_host == "127.0.0.1"
    assert config.server_port == 8080
    assert config.cache == CacheConfig(max_entries=50, prewarm=False, prewarm_workers=2)
    assert config.scanner.allowed_extensions == ("cbz", "cbr", "pdf")


def test_invalid_cache_size_is_rejected(tmp_path):
    config_path = tmp_path / "config.ini"
    config_path.write_text("[cache]\nmax_entries = 0\n")

    with pytest.raises(ValueError):
        load_config(config_path)


def test_write_config_round_trips(tmp_path):
    config_path = tmp_path / "data" / "config.ini"
    original = ComicGlassConfig(
        library=LibraryConfig(path=tmp_path / "comics", name="Shelf"),
        cache=CacheConfig(max_entries=10, prewarm=False, prewarm_workers=4),
    )

    write_config(config_path, original)

    assert load_config(config_path) == original
