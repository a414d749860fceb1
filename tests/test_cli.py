"""Tests for the command line interface."""

import pytest
from typer.testing import CliRunner

import main
from comicglass.config import CacheConfig, ComicGlassConfig, LibraryConfig


runner = CliRunner()


@pytest.fixture
def library_config(tmp_path, monkeypatch):
    library_path = tmp_path / "books"
    (library_path / "Marvel" / "X-Men").mkdir(parents=True)
    (library_path / "Marvel" / "X-Men" / "issue01.cbz").write_bytes(b"zip")
    (library_path / "A.cbz").write_bytes(b"x" * 5)
    (library_path / "readme.txt").write_text("ignored")

    config = ComicGlassConfig(
        library=LibraryConfig(path=library_path),
        cache=CacheConfig(max_entries=100, prewarm_workers=2),
    )
    monkeypatch.setattr(main, "load_config", lambda: config)
    monkeypatch.setattr(main, "setup_logging", lambda *args, **kwargs: None)
    return config


def test_ls_prints_filtered_listing(library_config):
    result = runner.invoke(main.app, ["ls"])

    assert result.exit_code == 0
    assert "A.cbz" in result.output
    assert "Marvel" in result.output
    assert "readme.txt" not in result.output
    assert "2 entries" in result.output


def test_ls_missing_directory_fails(library_config):
    result = runner.invoke(main.app, ["ls", "DC"])

    assert result.exit_code == 1
    assert "Path does not exist" in result.output


def test_warm_reports_directory_count(library_config):
    result = runner.invoke(main.app, ["warm"])

    assert result.exit_code == 0
    assert "Cached 3 directories" in result.output


def test_init_writes_config(tmp_path, monkeypatch):
    config_path = tmp_path / "config.ini"
    monkeypatch.setattr(main, "DEFAULT_CONFIG_PATH", config_path)

    result = runner.invoke(main.app, ["init", "--library", str(tmp_path / "comics")])

    assert result.exit_code == 0
    text = config_path.read_text()
    assert "[cache]" in text
    assert str(tmp_path / "comics") in text
