"""Logging configuration for the WebSocket proxy."""

import logging
import logging.config
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import structlog

LOG_DIR = Path.cwd() / "logs"


def _console_handler(level: str) -> Dict[str, Any]:
    """Rich output on a terminal, plain stderr lines otherwise."""
    if sys.stderr.isatty():
        return {
            "class": "rich.logging.RichHandler",
            "level": level,
            "formatter": "default",
            "rich_tracebacks": True,
            "markup": False,
        }
    return {
        "class": "logging.StreamHandler",
        "level": level,
        "formatter": "default",
        "stream": "ext://sys.stderr",
    }


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configure structured logging with rich console output.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file name, written under ``logs/``
    """
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer() if sys.stderr.isatty() else structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging_config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(message)s",
            },
            "detailed": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": _console_handler(level),
        },
        "root": {
            "level": level,
            "handlers": ["console"],
        },
        "loggers": {
            "src.wsproxy": {
                "level": level,
                "handlers": ["console"],
                "propagate": False,
            },
            "websockets": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
            "uvicorn": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }

    if log_file:
        LOG_DIR.mkdir(exist_ok=True)
        logging_config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": level,
            "formatter": "detailed",
            "filename": str(LOG_DIR / log_file),
            "maxBytes": 10485760,  # 10MB
            "backupCount": 5,
        }
        logging_config["root"]["handlers"].append("file")
        logging_config["loggers"]["src.wsproxy"]["handlers"].append("file")

    logging.config.dictConfig(logging_config)
