"""
QMS Logging Configuration
Centralized logging setup for the QMS application
"""
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

from .config import settings

MODULE_LOGGERS = ("database", "api", "business", "security")

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

MB = 1024 * 1024


def _rotating_handler(path: Path, level: int, max_mb: int, backups: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_mb * MB, backupCount=backups, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, DATE_FORMAT))
    return handler


def setup_logging(
    log_level: Optional[str] = None,
    log_to_file: Optional[bool] = None,
    log_to_console: bool = True
) -> logging.Logger:
    """
    Configure the ``qms`` logger tree

    Args:
        log_level: Logging level name, defaults to settings.LOG_LEVEL
        log_to_file: Write rotating log files under settings.LOG_DIR
            (defaults to settings.LOG_TO_FILE)
        log_to_console: Echo records to stdout

    Returns:
        The application logger
    """
    level = getattr(logging, (log_level or settings.LOG_LEVEL).upper(), logging.INFO)
    if log_to_file is None:
        log_to_file = settings.LOG_TO_FILE

    app_logger = logging.getLogger("qms")
    app_logger.setLevel(level)
    app_logger.handlers.clear()

    if log_to_console:
        console = logging.StreamHandler(sys.stdout)
        console.setLevel(level)
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT, DATE_FORMAT))
        app_logger.addHandler(console)

    log_dir = Path(settings.LOG_DIR) if log_to_file else None
    if log_dir:
        log_dir.mkdir(exist_ok=True, parents=True)
        app_logger.addHandler(_rotating_handler(log_dir / settings.LOG_FILE, level, 10, 5))
        app_logger.addHandler(_rotating_handler(log_dir / settings.ERROR_LOG_FILE, logging.ERROR, 5, 3))

    # Sub-loggers propagate to the application handlers and optionally keep a file of their own
    for name in MODULE_LOGGERS:
        module_logger = logging.getLogger(f"qms.{name}")
        module_logger.setLevel(level)
        module_logger.handlers.clear()
        if log_dir:
            module_logger.addHandler(_rotating_handler(log_dir / f"{name}.log", level, 5, 3))

    return app_logger


def get_logger(name: str) -> logging.Logger:
    """Return the ``qms.<name>`` logger"""
    return logging.getLogger(f"qms.{name}")
