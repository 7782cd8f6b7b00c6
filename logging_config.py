"""
Logging setup for the API process.

Records go to the console and, when ``LOG_FILE`` is set, to that file as
well. The request log comes from the app's own middleware, so uvicorn's
access log and pymongo's driver chatter are held at WARNING.
"""

import logging
import logging.config
from pathlib import Path
from typing import Any, Dict, Optional

from config import Settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
QUIET_LOGGERS = ("pymongo", "uvicorn.access")


def _level_name(level: str) -> str:
    name = level.upper()
    return name if isinstance(logging.getLevelName(name), int) else "INFO"


def build_logging_config(level: str, logfile: Optional[str] = None) -> Dict[str, Any]:
    handlers: Dict[str, Dict[str, Any]] = {
        "console": {"class": "logging.StreamHandler", "formatter": "default"},
    }
    if logfile:
        handlers["file"] = {
            "class": "logging.FileHandler",
            "formatter": "default",
            "filename": str(Path(logfile).resolve()),
            "encoding": "utf-8",
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": {"format": LOG_FORMAT, "datefmt": DATE_FORMAT}},
        "handlers": handlers,
        "root": {"level": _level_name(level), "handlers": list(handlers)},
        "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
    }


def configure_logging(app_settings: Settings) -> None:
    """Apply the logging config once; later calls keep the existing handlers."""
    if logging.getLogger().handlers:
        return
    logging.config.dictConfig(build_logging_config(app_settings.log_level, app_settings.log_file or None))
