"""
Logging configuration for TubeRank.

This module provides centralized logging setup with structured logging support
and consistent formatting across all components.
"""

import logging
import logging.config
import sys
from pathlib import Path

from pythonjsonlogger.json import JsonFormatter

from tuberank.utils.errors import ConfigurationError

_TEXT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
_JSON_FORMAT = '%(asctime)s %(name)s %(levelname)s %(message)s'
_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _resolve_level(level: str) -> int:
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ConfigurationError(f"Unknown log level: {level}", suggestions=["Use DEBUG, INFO, WARNING, ERROR or CRITICAL"])
    return resolved


def setup_logging(
    name: str | None = None,
    level: str | None = None,
    structured: bool = False,
    log_file: Path | None = None
) -> logging.Logger:
    """Setup logging configuration.

    Args:
        name: Logger name (defaults to this module)
        level: Logging level (INFO, DEBUG, etc.)
        structured: Enable JSON structured logging
        log_file: Optional log file path

    Returns:
        Configured logger instance
    """
    if name is None:
        name = __name__

    if level is None:
        level = "INFO"

    logger = logging.getLogger(name)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    logger.setLevel(_resolve_level(level))

    if structured:
        formatter = JsonFormatter(fmt=_JSON_FORMAT, datefmt=_DATE_FORMAT)
    else:
        formatter = logging.Formatter(fmt=_TEXT_FORMAT, datefmt=_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def configure_root_logging(
    level: str = "INFO",
    structured: bool = False,
    log_file: Path | None = None
) -> None:
    """Configure root logging for the entire application.

    Args:
        level: Root logging level
        structured: Enable JSON structured logging
        log_file: Optional log file path
    """
    level = logging.getLevelName(_resolve_level(level))
    formatter_name = "structured" if structured else "standard"
    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": _TEXT_FORMAT,
                "datefmt": _DATE_FORMAT
            },
            "structured": {
                "()": "pythonjsonlogger.json.JsonFormatter",
                "fmt": _JSON_FORMAT,
                "datefmt": _DATE_FORMAT
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": formatter_name,
                "stream": "ext://sys.stderr"
            }
        },
        "root": {
            "level": level,
            "handlers": ["console"]
        },
        "loggers": {
            "tuberank": {
                "level": level,
                "handlers": ["console"],
                "propagate": False
            }
        }
    }

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        config["handlers"]["file"] = {
            "class": "logging.FileHandler",
            "level": level,
            "formatter": formatter_name,
            "filename": str(log_file)
        }
        config["root"]["handlers"].append("file")
        config["loggers"]["tuberank"]["handlers"].append("file")

    logging.config.dictConfig(config)


def configure_from_settings(settings) -> None:
    """Apply the logging section of a TubeRankSettings instance."""
    configure_root_logging(
        level=settings.log_level,
        structured=settings.log_structured,
        log_file=settings.get_log_file_path(),
    )
