import logging
import logging.config
import os
import sys

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE", "/tmp/ledger_submit.log")


def build_logging_config(level: str = LOG_LEVEL, filename: str = LOG_FILE) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)-6s %(name)8s:%(lineno)d %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": sys.stdout,
            },
            "file": {
                "class": "logging.FileHandler",
                "formatter": "default",
                "filename": filename,
                "mode": "a",
            },
        },
        "loggers": {
            "ledger_submit": {
                "level": level,
                "handlers": ["console", "file"],
                "propagate": False,  # Don't pass 'ledger_submit' logs up to the root logger
            },
            # Request lines from the transport are noise at INFO
            "httpx": {
                "level": "WARNING",
                "handlers": ["console", "file"],
                "propagate": False,
            },
            "httpcore": {
                "level": "WARNING",
                "handlers": ["console", "file"],
                "propagate": False,
            },
        },
        "root": {
            "level": "WARNING",
            "handlers": ["console", "file"],
        },
    }


def setup_logging(level: str | None = None, filename: str | None = None) -> None:
    """ Apply the logging configuration. """
    logging.config.dictConfig(build_logging_config(level or LOG_LEVEL, filename or LOG_FILE))
    os.environ.setdefault("PYTHONUNBUFFERED", "1")
