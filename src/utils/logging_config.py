"""Logging configuration read from the environment."""

import os
import logging
import sys
from pythonjsonlogger import jsonlogger


# Client libraries that log every HTTP round trip to Supabase at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "hpack", "supabase", "postgrest")


class LoggingConfig:
    """Logging settings for the serverless functions."""

    SERVICE_NAME = os.environ.get("SERVICE_NAME", "listing-manager")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "json").lower()
    LOG_MASK_SENSITIVE = os.environ.get("LOG_MASK_SENSITIVE", "true").lower() == "true"
    LOG_CORRELATION_ID_HEADER = os.environ.get("LOG_CORRELATION_ID_HEADER", "X-Correlation-ID")
    LOG_SLOW_OPERATION_THRESHOLD_MS = int(os.environ.get("LOG_SLOW_OPERATION_THRESHOLD_MS", "1000"))

    @classmethod
    def level(cls) -> int:
        return getattr(logging, cls.LOG_LEVEL, logging.INFO)

    @classmethod
    def build_formatter(cls) -> logging.Formatter:
        if cls.LOG_FORMAT == "json":
            return jsonlogger.JsonFormatter(
                "%(levelname)s %(name)s %(message)s",
                rename_fields={"levelname": "level", "name": "logger"},
                static_fields={"service": cls.SERVICE_NAME},
                timestamp=True,
            )
        return logging.Formatter(
            f"%(asctime)s [{cls.SERVICE_NAME}] %(levelname)s %(name)s: %(message)s"
        )

    @classmethod
    def setup_logging(cls) -> None:
        """Send all records to stdout, where the function runtime collects them."""
        root_logger = logging.getLogger()
        root_logger.setLevel(cls.level())
        root_logger.handlers.clear()

        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(cls.level())
        handler.setFormatter(cls.build_formatter())
        root_logger.addHandler(handler)

        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
