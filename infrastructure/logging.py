"""Logging initialization utilities using loguru."""

from __future__ import annotations

from pathlib import Path
import sys

from loguru import logger

APP_DIR_NAME = "CaptureNaming"


def get_log_directory() -> str:
    """Get the default log directory path."""
    return str(Path.home() / ".local" / "state" / APP_DIR_NAME / "logs")


def get_audit_log_directory() -> str:
    """Get the default directory for export audit logs."""
    return str(Path.home() / ".local" / "state" / APP_DIR_NAME / "export_logs")


def init_logging(log_dir: str | Path | None = None, level: str = "INFO") -> Path:
    """Initialize rotating file logging plus a stderr sink.

    Returns:
        The directory log files are written to.
    """
    log_path = Path(log_dir) if log_dir else Path(get_log_directory())
    log_path.mkdir(parents=True, exist_ok=True)

    logger.remove()
    logger.add(sys.stderr, level=level)
    logger.add(
        str(log_path / "capture_{time:YYYYMMDD}.log"),
        rotation="10 MB",
        retention="10 days",
        compression="zip",
        enqueue=True,
        backtrace=False,
        diagnose=False,
        level=level,
    )
    return log_path


def find_latest_log_file(log_dir: str | None = None, pattern: str = "capture_*.log") -> Path | None:
    """Find the most recently modified file matching `pattern` in `log_dir`."""
    if log_dir is None:
        log_dir = get_log_directory()

    try:
        log_path = Path(log_dir)
        if not log_path.exists():
            return None
        log_files = list(log_path.glob(pattern))
        if not log_files:
            return None
        return max(log_files, key=lambda p: p.stat().st_mtime)
    except (OSError, ValueError):
        return None
