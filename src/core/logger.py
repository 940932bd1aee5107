import json
import logging
import logging.config
import sys

from core.config import configs

# Package loggers of this service; module loggers are children of these
SERVICE_LOGGERS = ("app", "core", "api", "main")

# Third-party loggers kept quiet unless something goes wrong
QUIET_LOGGERS = {
    "PIL": "WARNING",  # plugin probing is logged at DEBUG on every open
    "aiofiles": "WARNING",
    "multipart": "WARNING",
}


class JsonFormatter(logging.Formatter):
    """
    Formatter for logging in JSON format.

    Fields passed through ``extra={"photo_id": ...}`` are carried into the record.
    """

    EXTRA_FIELDS = ("photo_id", "task_id", "upload_target")

    def format(self, record):
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        for key in self.EXTRA_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_record[key] = str(value)
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record, ensure_ascii=False)


def _logger_entries(handler: str, level: str) -> dict:
    loggers = {
        "root": {"level": level, "handlers": [handler]},
        "uvicorn": {"level": "INFO", "handlers": [handler], "propagate": False},
        "uvicorn.access": {"level": "INFO", "handlers": [handler], "propagate": False},
    }
    for name in SERVICE_LOGGERS:
        loggers[name] = {"level": level, "handlers": [handler], "propagate": False}
    for name, quiet_level in QUIET_LOGGERS.items():
        loggers[name] = {"level": quiet_level, "handlers": [handler], "propagate": False}
    return loggers


# -----------------------------------------------------------------------------
# Development Logging Configuration
# -----------------------------------------------------------------------------
# Console-friendly, readable text format.
DEV_LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "stream": sys.stdout,
            "formatter": "default",
        },
    },
    "loggers": _logger_entries("console", configs.LOG_LEVEL),
}

# -----------------------------------------------------------------------------
# Production Logging Configuration
# -----------------------------------------------------------------------------
# One JSON object per line for the log collector on the field gateway.
PROD_LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "()": JsonFormatter,
            "datefmt": "%Y-%m-%dT%H:%M:%S%z",
        },
    },
    "handlers": {
        "console_json": {
            "class": "logging.StreamHandler",
            "stream": sys.stdout,
            "formatter": "json",
        },
    },
    "loggers": {
        **_logger_entries("console_json", configs.LOG_LEVEL),
        "uvicorn.error": {"level": "ERROR", "handlers": ["console_json"], "propagate": False},
    },
}


def setup_logging():
    """
    Set up logging configuration based on the environment.
    """
    env = configs.ENVIRONMENT.lower()
    log_config = PROD_LOGGING_CONFIG if env == "production" else DEV_LOGGING_CONFIG

    logging.config.dictConfig(log_config)

    logger = logging.getLogger("app")
    logger.info(f"Logging setup complete for {env} environment with level {configs.LOG_LEVEL}")
