"""
Logging configuration for applications using the SDK.
"""

import logging
import logging.config
import os
from typing import Any, Dict, Optional


class SignalTrafficFilter(logging.Filter):
    """Filter to suppress httpx request logs for signal publishes."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Filter out per-request httpx lines for the signals endpoints."""
        if record.name == "httpx" and record.levelno <= logging.INFO:
            message = record.getMessage()
            if "/signals/" in message and "POST" in message:
                return False  # One line per published signal is noise
        return True


def get_logging_config(level: Optional[str] = None) -> Dict[str, Any]:
    """Get logging configuration with signal traffic suppression."""
    level = (level or os.environ.get("HOMUNCULUS_LOG_LEVEL", "INFO")).upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "signal_traffic_filter": {
                "()": SignalTrafficFilter
            }
        },
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
            "http": {
                "format": "%(asctime)s - %(message)s"
            }
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout"
            },
            "http": {
                "class": "logging.StreamHandler",
                "formatter": "http",
                "stream": "ext://sys.stdout",
                "filters": ["signal_traffic_filter"]
            }
        },
        "loggers": {
            "homunculus": {
                "handlers": ["default"],
                "level": level,
                "propagate": False
            },
            "httpx": {
                "handlers": ["http"],
                "level": "INFO",
                "propagate": False
            }
        },
        "root": {
            "level": "WARNING",
            "handlers": ["default"]
        }
    }


def configure_logging(level: Optional[str] = None) -> None:
    """Apply get_logging_config()."""
    logging.config.dictConfig(get_logging_config(level))
