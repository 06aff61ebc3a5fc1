"""
Logging configuration helper service.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional
import logging

from config.settings import Settings, get_settings


_FILE_HANDLER_TAG = "analytics_file_handler"
_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(settings: Optional[Settings] = None) -> Optional[Path]:
    """
    Configure the root logger for the analytics services.

    Applies ``LOG_LEVEL``. When ``ANALYTICS_LOG_DIRECTORY`` is set, records
    are also written to ``analytics.log`` there; calling again replaces that
    handler instead of stacking a second one.

    Returns:
        Path of the log file, or None when only console logging is active
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(level=level, format=_LOG_FORMAT)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    existing = next((h for h in root_logger.handlers if getattr(h, "name", "") == _FILE_HANDLER_TAG), None)
    if existing:
        root_logger.removeHandler(existing)
        existing.close()

    if not settings.log_directory:
        return None

    log_dir = Path(settings.log_directory).expanduser().resolve()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "analytics.log"

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.name = _FILE_HANDLER_TAG
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    root_logger.addHandler(file_handler)
    return log_file
