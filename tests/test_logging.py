"""Tests for logging setup."""

import logging
import logging.handlers

import pytest
from rich.logging import RichHandler

from comicglass import logging_config


@pytest.fixture
def root_logger(monkeypatch):
    """Fresh logging state; handlers added by a test are removed afterwards."""
    monkeypatch.setattr(logging_config, "_logging_initialized", False)
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers[:]:
        if handler not in before:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def _added(root, before_count, kind):
    return [h for h in root.handlers[before_count:] if isinstance(h, kind)]


def test_setup_logging_writes_to_log_dir(tmp_path, root_logger):
    before = len(root_logger.handlers)

    log_file = logging_config.setup_logging("warning", log_dir=tmp_path / "data")

    assert log_file == tmp_path / "data" / "comicglass.log"
    (file_handler,) = _added(root_logger, before, logging.handlers.RotatingFileHandler)
    (console_handler,) = _added(root_logger, before, RichHandler)
    assert file_handler.level == logging.DEBUG
    assert console_handler.level == logging.WARNING

    logging_config.get_logger("comicglass.test").debug("scan finished")
    file_handler.flush()
    contents = log_file.read_text(encoding="utf-8")
    assert "scan finished" in contents
    assert "MainThread" in contents


def test_setup_logging_runs_once(tmp_path, root_logger):
    before = len(root_logger.handlers)

    assert logging_config.setup_logging(log_dir=tmp_path) is not None
    assert logging_config.setup_logging(log_dir=tmp_path) is None
    assert len(root_logger.handlers) == before + 2


def test_unknown_level_falls_back_to_info(tmp_path, root_logger):
    before = len(root_logger.handlers)

    logging_config.setup_logging("chatty", log_dir=tmp_path)

    (console_handler,) = _added(root_logger, before, RichHandler)
    assert console_handler.level == logging.INFO
    assert logging.getLogger("uvicorn.access").level == logging.WARNING


def test_default_log_dir_follows_data_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("DATA_DIR", str(tmp_path))

    assert logging_config.default_log_dir() == tmp_path


def test_undecodable_path_is_logged_escaped(tmp_path, root_logger):
    log_file = logging_config.setup_logging("ERROR", log_dir=tmp_path)

    name = "bad" + "\udcff" + ".cbz"
    logging_config.get_logger("comicglass.test").debug(f"Cache miss for {name}")
    for handler in root_logger.handlers:
        handler.flush()

    assert "Cache miss for bad\\udcff.cbz" in log_file.read_text(encoding="utf-8")
