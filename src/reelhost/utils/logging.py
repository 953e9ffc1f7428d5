"""Logging utils"""

import os
import sys
from datetime import datetime
from pathlib import Path

from loguru import logger

from reelhost.settings.models import LoggingModel

LAST_LOGS_CLEANED: datetime | None = None

# TRACE: 5
# DEBUG: 10
# INFO: 20
# SUCCESS: 25
# WARNING: 30
# ERROR: 40
# CRITICAL: 50
CUSTOM_LOG_LEVELS = {
    "PROGRAM": (20, "cc6600", "🤖"),
    "STREAM": (20, "3D5A80", "📽️ "),
    "LIBRARY": (20, "92a1cf", "🗃️ "),
    "API": (10, "006989", "👾"),  # debug
}


def _get_log_settings(name: str, default_color: str, default_icon: str) -> tuple[str, str]:
    color = os.getenv(f"REELHOST_LOGGER_{name}_FG", default_color)
    icon = os.getenv(f"REELHOST_LOGGER_{name}_ICON", default_icon)
    return f"<fg #{color}>", icon


def register_log_levels():
    """Register the custom log levels so modules can log before the sinks are configured."""
    for name, (no, default_color, default_icon) in CUSTOM_LOG_LEVELS.items():
        color, icon = _get_log_settings(name, default_color, default_icon)
        try:
            logger.level(name)
        except ValueError:
            logger.level(name, no=no, color=color, icon=icon)
        else:
            # Severity is fixed once registered
            logger.level(name, color=color, icon=icon)


def setup_logger(
    level: str,
    log_settings: LoggingModel | None = None,
    logs_dir: Path | None = None,
):
    """Setup the logger"""
    register_log_levels()

    debug_color, debug_icon = _get_log_settings("DEBUG", "98C1D9", "🐞")
    trace_color, trace_icon = _get_log_settings("TRACE", "27F5E7", "✏️ ")
    info_color, info_icon = _get_log_settings("INFO", "818589", "📰")
    warning_color, warning_icon = _get_log_settings("WARNING", "ffcc00", "⚠️ ")
    critical_color, critical_icon = _get_log_settings("CRITICAL", "ff0000", "")
    success_color, success_icon = _get_log_settings("SUCCESS", "00ff00", "✔️ ")

    logger.level("DEBUG", color=debug_color, icon=debug_icon)
    logger.level("INFO", color=info_color, icon=info_icon)
    logger.level("WARNING", color=warning_color, icon=warning_icon)
    logger.level("CRITICAL", color=critical_color, icon=critical_icon)
    logger.level("SUCCESS", color=success_color, icon=success_icon)
    logger.level("TRACE", color=trace_color, icon=trace_icon)

    log_format = (
        "<fg #818589>{time:YY-MM-DD} {time:HH:mm:ss}</fg #818589> | "
        "<level>{level.icon}</level> <level>{level: <9}</level> | "
        "<fg #e7e7e7>{module}</fg #e7e7e7>.<fg #e7e7e7>{function}</fg #e7e7e7> - <level>{message}</level>"
    )

    log_settings = log_settings or LoggingModel()

    handlers = [
        {
            "sink": sys.stderr,
            "level": level.upper() or "INFO",
            "format": log_format,
            "backtrace": False,
            "diagnose": False,
            "enqueue": True,
        }
    ]

    if log_settings.enabled and logs_dir is not None:
        os.makedirs(logs_dir, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d-%H%M")
        log_filename = logs_dir / f"reelhost-{timestamp}.log"

        handlers.append(
            {
                "sink": log_filename,
                "level": level.upper(),
                "format": log_format,
                "rotation": (
                    f"{log_settings.rotation_mb} MB" if log_settings.rotation_mb > 0 else None
                ),
                "retention": f"{log_settings.retention_hours} hours",
                "compression": (
                    log_settings.compression
                    if log_settings.compression != "disabled"
                    else None
                ),
                "backtrace": False,
                "diagnose": True,
                "enqueue": True,
            }
        )

    logger.configure(handlers=handlers)


def log_cleaner(log_settings: LoggingModel, logs_dir: Path):
    """Remove old log files based on user retention settings, leaving the most recent one."""
    if not log_settings.enabled:
        return

    global LAST_LOGS_CLEANED
    if (
        LAST_LOGS_CLEANED
        and (datetime.now() - LAST_LOGS_CLEANED).total_seconds() < 3600
    ):
        return

    try:
        if not logs_dir.exists():
            return

        # Include compressed rotated files too (e.g., .log.gz/.zip)
        log_files = sorted(
            logs_dir.glob("reelhost-*.log*"), key=lambda x: x.stat().st_mtime
        )
        cleaned = False
        retention_hours = max(0, int(log_settings.retention_hours))

        for log_file in log_files[:-1]:
            file_age_hours = (
                datetime.now() - datetime.fromtimestamp(log_file.stat().st_mtime)
            ).total_seconds() / 3600
            if file_age_hours > retention_hours:
                log_file.unlink()
                cleaned = True

        if cleaned:
            LAST_LOGS_CLEANED = datetime.now()
            logger.debug(f"Cleaned up old logs older than {retention_hours} hours.")
    except OSError as e:
        logger.error(f"Failed to clean old logs: {e}")
