"""
Centralised logging configuration for the entire application.
Logs to console and to a rotating file in /logs/.
"""

import logging
import os
from logging.handlers import RotatingFileHandler

LOG_DIR = os.environ.get(
    "LOG_DIR",
    os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "logs"),
)

_configured = False
_handlers: list[logging.Handler] = []


def _configure_root_logger(level: str = "INFO"):
    global _configured
    if _configured:
        return
    _configured = True
    level = level.upper()

    fmt = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Console handler
    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(fmt)

    # Rotating file handler — keeps last 10 × 5MB log files
    os.makedirs(LOG_DIR, exist_ok=True)
    file_handler = RotatingFileHandler(
        filename=os.path.join(LOG_DIR, "telemetry.log"),
        maxBytes=5 * 1024 * 1024,
        backupCount=10,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(fmt)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(console)
    root.addHandler(file_handler)
    _handlers.extend([console, file_handler])


def configure_logging(level: str):
    """Apply LOG_LEVEL from settings. Safe to call again after get_logger()."""
    _configure_root_logger(level)
    level = level.upper()
    root = logging.getLogger()
    root.setLevel(level)
    for handler in _handlers:
        handler.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger. Call this at the top of every module."""
    _configure_root_logger(os.environ.get("LOG_LEVEL", "INFO"))
    return logging.getLogger(name)
