"""
Logging configuration for the hospital billing client
"""

import logging
import logging.config
import sys
from typing import Any, Dict, Optional

from hospital_billing.core.config import settings

ROOT_LOGGER = "hospital_billing"


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Setup logging configuration."""
    level = (level or settings.LOG_LEVEL).upper()

    logging_config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "detailed": {
                "format": "%(asctime)s | %(name)s | %(levelname)s | %(funcName)s:%(lineno)d | %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S"
            },
            "simple": {
                "format": "%(levelname)s | %(name)s | %(message)s"
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "detailed" if level == "DEBUG" else "simple",
                "stream": sys.stderr
            }
        },
        "loggers": {
            ROOT_LOGGER: {
                "level": level,
                "handlers": ["console"],
                "propagate": False
            }
        }
    }

    logging.config.dictConfig(logging_config)

    # Request lines are logged by the client itself
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.info(f"Logging configured with level: {level}")

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
