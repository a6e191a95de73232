"""Logging configuration."""

import logging
from typing import Dict, Union

ROOT_LOGGER = "audioops"
ENGINE_LOGGER = f"{ROOT_LOGGER}.engine"
"""Receives raw engine log lines at DEBUG."""

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_loggers: Dict[str, logging.Logger] = {}


def _root() -> logging.Logger:
    """Package logger; the only one that owns a handler."""
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
        if root.level == logging.NOTSET:
            root.setLevel(logging.WARNING)  # Only show warnings and errors
    return root


def get_logger(name: str) -> logging.Logger:
    """
    Get or create a logger for the given module name.

    Loggers outside the package namespace are nested under it so that
    every audioops record goes through the one package handler.
    """
    if name not in _loggers:
        _root()
        if name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
            name_in_package = f"{ROOT_LOGGER}.{name}"
        else:
            name_in_package = name
        _loggers[name] = logging.getLogger(name_in_package)
    return _loggers[name]


def set_log_level(level: Union[int, str]) -> None:
    """Set the level of every audioops logger, e.g. "DEBUG" to see engine output."""
    _root().setLevel(level.upper() if isinstance(level, str) else level)
