"""
Logging configuration for hosts embedding the Journey client

Apply with logging.config.dictConfig(get_logging_config(level)).
"""

import logging
import logging.config
from typing import Any, Dict

INGEST_PATHS = ("/session_head", "/session_tail", "/session_flush")


class IngestRequestFilter(logging.Filter):
    """Filter to suppress routine httpx request logs for the ingest endpoints."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Drop httpx request lines for ingest calls below WARNING."""
        if record.name.startswith("httpx") and record.levelno < logging.WARNING:
            message = record.getMessage()
            if any(path in message for path in INGEST_PATHS):
                return False
        return True


def get_logging_config(level: str = "INFO") -> Dict[str, Any]:
    """Get logging configuration with ingest request suppression."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "ingest_request_filter": {
                "()": IngestRequestFilter
            }
        },
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
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
                "formatter": "default",
                "stream": "ext://sys.stdout",
                "filters": ["ingest_request_filter"]
            }
        },
        "loggers": {
            "journey": {
                "handlers": ["default"],
                "level": level,
                "propagate": False
            },
            "httpx": {
                "handlers": ["http"],
                "level": level,
                "propagate": False
            }
        },
        "root": {
            "level": level,
            "handlers": ["default"]
        }
    }
