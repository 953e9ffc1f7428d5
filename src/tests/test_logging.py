"""Tests for the logging helpers."""
import os
import time

from loguru import logger

from reelhost.settings.models import LoggingModel
from reelhost.utils import logging as reelhost_logging


def test_custom_levels_are_registered():
    for name in ("PROGRAM", "STREAM", "LIBRARY", "API"):
        assert logger.level(name).name == name


def test_log_cleaner_keeps_newest(tmp_path, monkeypatch):
    monkeypatch.setattr(reelhost_logging, "LAST_LOGS_CLEANED", None)
    old = time.time() - 48 * 3600
    for i, name in enumerate(["reelhost-1.log", "reelhost-2.log.gz", "reelhost-3.log"]):
        path = tmp_path / name
        path.write_text("log")
        os.utime(path, (old + i, old + i))

    reelhost_logging.log_cleaner(LoggingModel(retention_hours=24), tmp_path)

    assert [p.name for p in tmp_path.iterdir()] == ["reelhost-3.log"]


def test_log_cleaner_respects_retention(tmp_path, monkeypatch):
    monkeypatch.setattr(reelhost_logging, "LAST_LOGS_CLEANED", None)
    for name in ["reelhost-1.log", "reelhost-2.log"]:
        (tmp_path / name).write_text("log")

    reelhost_logging.log_cleaner(LoggingModel(retention_hours=24), tmp_path)

    assert len(list(tmp_path.iterdir())) == 2


def test_setup_logger_writes_log_file(tmp_path):
    logs_dir = tmp_path / "logs"
    reelhost_logging.setup_logger("DEBUG", LoggingModel(), logs_dir)
    try:
        logger.log("PROGRAM", "hello")
        logger.complete()
    finally:
        # Reconfiguring closes the file sink
        reelhost_logging.setup_logger("DEBUG")

    [log_file] = logs_dir.glob("reelhost-*.log")
    assert "hello" in log_file.read_text(encoding="utf-8")


def test_setup_logger_can_be_called_repeatedly():
    reelhost_logging.register_log_levels()
    reelhost_logging.setup_logger("INFO")
    reelhost_logging.setup_logger("DEBUG")

    assert logger.level("PROGRAM").no == 20
    assert logger.level("API").no == 10


def test_level_icon_override(monkeypatch):
    monkeypatch.setenv("REELHOST_LOGGER_STREAM_ICON", "S")
    try:
        reelhost_logging.register_log_levels()
        assert logger.level("STREAM").icon == "S"
    finally:
        monkeypatch.delenv("REELHOST_LOGGER_STREAM_ICON")
        reelhost_logging.register_log_levels()
