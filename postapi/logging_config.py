# postapi/logging_config.py

import logging
import logging.config

_CONFIGURED = False


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once per process."""
    global _CONFIGURED
    if _CONFIGURED:
        return

    level = level.upper()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "plain": {"format": "%(asctime)s [%(levelname)s] %(message)s"},
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "plain",
                    "level": level,
                }
            },
            "root": {"level": level, "handlers": ["default"]},
            "loggers": {
                "uvicorn.access": {"level": "INFO"},
                "uvicorn.error": {"level": "INFO"},
            },
        }
    )

    _CONFIGURED = True
