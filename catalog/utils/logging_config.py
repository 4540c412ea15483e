"""
Logging configuration for production

Handlers are attached to the ``catalog`` package logger, so every module
logger (``catalog.services.category_service`` and friends) inherits them
without touching the root logger of the hosting process.
"""
import logging
import sys
from pathlib import Path
from typing import Optional, Union
from catalog.config import settings

LOGGER_NAME = "catalog"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Library loggers that are too chatty at INFO
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "alembic.runtime.migration")


def configure_logging(log_dir: Optional[Union[str, Path]] = None) -> logging.Logger:
    """
    Attach console and file handlers to the catalog logger

    Writes ``catalog.log`` (INFO and up) and ``catalog-error.log`` (ERROR and
    up) under ``log_dir`` (default ``settings.LOG_DIR``). Calling it again is
    a no-op once the handlers are installed.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if getattr(logger, "_catalog_configured", False):
        return logger

    logs_dir = Path(log_dir or settings.LOG_DIR)
    logs_dir.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    logger.setLevel(logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL)
    # Our handlers only; keep records out of the host's root handlers
    logger.propagate = False

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)

    file_handler = logging.FileHandler(logs_dir / "catalog.log")
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)

    error_handler = logging.FileHandler(logs_dir / "catalog-error.log")
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(formatter)

    for handler in (console_handler, file_handler, error_handler):
        logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger._catalog_configured = True
    return logger
