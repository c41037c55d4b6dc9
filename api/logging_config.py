"""
Logging configuration for the Marketing Workflow API

Call setup_logging() once at startup. Application loggers ("workflow",
"routers" and the top-level modules) log at LOG_LEVEL; chatty third-party
loggers are held at WARNING.
"""

import logging
import logging.config
import sys
from typing import Dict, Any

from config.workflow_config import WorkflowConfig

FORMATS = {
    "default": "%(levelname)s:     %(name)s - %(message)s",
    "detailed": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}

APP_LOGGERS = ("workflow", "routers", "main", "dependencies", "redis_client")

# Third-party loggers and the level they are capped at
LIBRARY_LEVELS = {
    "uvicorn": "INFO",
    "uvicorn.access": "WARNING",
    "sqlalchemy": "WARNING",
    "httpx": "WARNING",
    "httpcore": "WARNING",
}


def _logger(level: str) -> Dict[str, Any]:
    return {"level": level, "handlers": ["console"], "propagate": False}


def get_logging_config(log_level: str = "INFO", log_format: str = "default") -> Dict[str, Any]:
    """
    Build the dictConfig for the service

    Args:
        log_level: Level for application loggers and the root logger
        log_format: Key of FORMATS used by the console handler
    """
    loggers = {name: _logger(log_level) for name in APP_LOGGERS}
    loggers.update({name: _logger(level) for name, level in LIBRARY_LEVELS.items()})

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            name: {"format": fmt, "datefmt": "%Y-%m-%d %H:%M:%S"}
            for name, fmt in FORMATS.items()
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": log_format if log_format in FORMATS else "default",
                "stream": sys.stdout,
            },
        },
        "loggers": loggers,
        "root": {
            "level": log_level,
            "handlers": ["console"],
        },
    }


def setup_logging(log_level: str = None, log_format: str = None):
    """
    Configure logging for the application

    Args:
        log_level: Overrides LOG_LEVEL
        log_format: Overrides LOG_FORMAT ("default" or "detailed")
    """
    log_level = (log_level or WorkflowConfig.LOG_LEVEL).upper()
    log_format = log_format or WorkflowConfig.LOG_FORMAT
    logging.config.dictConfig(get_logging_config(log_level, log_format))

    logger = logging.getLogger(__name__)
    logger.info(f"📝 Logging configured (level={log_level}, format={log_format})")
