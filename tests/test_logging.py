"""Tests for loguru setup helpers."""

import os

from loguru import logger
import pytest

from infrastructure.logging import find_latest_log_file, init_logging


@pytest.fixture(autouse=True)
def _reset_logger():
    yield
    logger.remove()


def test_init_logging_creates_directory(tmp_path):
    log_dir = tmp_path / "nested" / "logs"
    assert init_logging(log_dir, "DEBUG") == log_dir
    assert log_dir.is_dir()
    assert find_latest_log_file(str(log_dir)) is not None


def test_find_latest_log_file(tmp_path):
    old = tmp_path / "capture_20251027.log"
    new = tmp_path / "capture_20251028.log"
    old.write_text("old", encoding="utf-8")
    new.write_text("new", encoding="utf-8")
    os.utime(old, (1_000_000, 1_000_000))
    assert find_latest_log_file(str(tmp_path)) == new
    assert find_latest_log_file(str(tmp_path), pattern="export_*.csv") is None


def test_find_latest_log_file_missing_directory(tmp_path):
    assert find_latest_log_file(str(tmp_path / "missing")) is None
