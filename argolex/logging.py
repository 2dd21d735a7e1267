"""
Argolex logging: module loggers and an opt-in rich console handler.

Behavior
- every module asks get_logger(__name__) for its logger; all of them hang off
  the "argolex" package logger.
- the package logger carries a NullHandler, so a library import stays silent
  until the application configures logging (its own way, or via setup_logging()).
- setup_logging() installs a rich.logging.RichHandler on the package logger.
  The level comes from the argument, else ARGOLEX_LOG_LEVEL, else WARNING.
"""
import logging
import os

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "argolex"

logging.getLogger(LOGGER_NAME).addHandler(logging.NullHandler())


def get_logger(name, /):
    """
    Return the logger for a module of this package.

    Names outside the package namespace are nested under it, so every record
    produced by argolex can be routed through a single handler.
    """
    if not isinstance(name, str):
        raise TypeError("get_logger() argument must be a string")
    if name != LOGGER_NAME and not name.startswith(LOGGER_NAME + "."):
        name = LOGGER_NAME + "." + name
    return logging.getLogger(name)


def resolve_env_log_level():
    """
    Return a logging level from ARGOLEX_LOG_LEVEL, or None when unset or unknown.

    Accepts level names ("debug", "INFO", "warn") and numeric strings ("10").
    """
    if not (value := os.environ.get("ARGOLEX_LOG_LEVEL", "").strip().upper()):
        return None
    if value.isdigit():
        return int(value)
    return {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "WARN": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
        "FATAL": logging.CRITICAL,
        "NOTSET": logging.NOTSET,
    }.get(value)


def setup_logging(level=None, /, *, console=None):
    """
    Route argolex records to a rich handler (stderr by default).

    Calling it again replaces the previously installed rich handler instead of
    stacking a second one.
    """
    if level is None:
        level = resolve_env_log_level()
    if level is None:
        level = logging.WARNING

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(console=console or Console(stderr=True), show_path=level <= logging.DEBUG)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger


__all__ = (
    "get_logger",
    "resolve_env_log_level",
    "setup_logging",
)
