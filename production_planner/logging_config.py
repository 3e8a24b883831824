"""Structured logging setup for the planner.

Events are key=value lines rendered by structlog. Records from plain
``logging`` loggers (uvicorn, sqlite helpers) go through the same
formatter, so a log file reads uniformly.
"""

import logging
import logging.config
import sys
from typing import Any, Dict, List, Optional

import structlog

PACKAGE_LOGGER = "production_planner"
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3


def _shared_processors() -> List[Any]:
    return [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]


def _handler(level: str, **options: Any) -> Dict[str, Any]:
    return {"level": level, "formatter": "key_value", **options}


def configure_logging(log_level: str = "INFO", log_file: Optional[str] = None):
    """Route planner events to stdout and, optionally, a rotating file."""

    level = log_level.upper()
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handlers = {
        "console": _handler(level, **{"class": "logging.StreamHandler", "stream": sys.stdout})
    }
    if log_file:
        handlers["file"] = _handler(
            level,
            **{
                "class": "logging.handlers.RotatingFileHandler",
                "filename": log_file,
                "maxBytes": LOG_FILE_MAX_BYTES,
                "backupCount": LOG_FILE_BACKUPS,
                "encoding": "utf-8",
            },
        )

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "key_value": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "processor": structlog.processors.KeyValueRenderer(
                        key_order=["timestamp", "level", "logger", "event"]
                    ),
                    "foreign_pre_chain": _shared_processors(),
                }
            },
            "handlers": handlers,
            "loggers": {
                PACKAGE_LOGGER: {
                    "level": level,
                    "handlers": list(handlers),
                    "propagate": False,
                }
            },
        }
    )

    logger = structlog.get_logger(PACKAGE_LOGGER)
    logger.info("Logging configured", log_level=level, log_file=log_file)
    return logger


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
