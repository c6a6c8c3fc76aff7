"""Logging for FormGrid.

Editing never raises for bad input: unknown ids, out-of-range positions and
refused merges are reported here at debug level and the edit is dropped.
Problems with the saved-layout file are reported as warnings.
"""

from __future__ import annotations

import logging
import sys

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from .config import LogSettings


LOGGER_NAME = "formgrid"
DEFAULT_FORMAT = "%(name)s - %(levelname)s - %(message)s"

_state: dict[str, logging.Logger] = {}


def get_logger() -> logging.Logger:
    """Return the ``formgrid`` logger, attaching a stderr handler on first use."""
    logger = _state.get("logger")
    if logger is None:
        logger = logging.getLogger(LOGGER_NAME)
        logger.setLevel(logging.WARNING)
        if not logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setLevel(logging.DEBUG)
            handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
            logger.addHandler(handler)
        _state["logger"] = logger
    return logger


def configure(level: int | str, fmt: str | None = None) -> None:
    """Set the level and, optionally, the format of every handler.

    Parameters
    ----------
    level : int or str
        A ``logging`` level or its name, e.g. ``"DEBUG"``.
    fmt : str, optional
        A ``logging.Formatter`` format string.
    """
    set_level(level)
    if fmt:
        for handler in get_logger().handlers:
            handler.setFormatter(logging.Formatter(fmt))


def configure_from_settings(settings: LogSettings) -> None:
    """Apply the ``[log]`` section of the settings."""
    configure(settings.level, settings.format)


def set_level(level: int | str) -> None:
    """Set the logger level from a number or a level name."""
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        if not isinstance(resolved, int):
            warn(f"Unknown log level '{level}', keeping {logging.getLevelName(get_logger().level)}")
            return
        level = resolved
    get_logger().setLevel(level)


def enable_debug() -> None:
    """Show refused edits, unknown ids and saved-layout reads and writes."""
    set_level(logging.DEBUG)


def debug(msg: str) -> None:
    get_logger().debug(msg)


def info(msg: str) -> None:
    get_logger().info(msg)


def warn(msg: str) -> None:
    get_logger().warning(msg)


def error(msg: str) -> None:
    get_logger().error(msg)


def exception(msg: str) -> None:
    """Log ``msg`` with the traceback of the exception being handled."""
    get_logger().exception(msg)


def refused(action: str, reason: str, **context: object) -> None:
    """Log an edit that was dropped.

    Parameters
    ----------
    action : str
        What was attempted, e.g. ``"merge"``.
    reason : str
        Why it was refused.
    **context
        Identifiers worth showing, rendered as ``key='value'`` pairs.
    """
    details = ", ".join(f"{k}={v!r}" for k, v in context.items())
    get_logger().debug(f"Refused {action}: {reason}" + (f" ({details})" if details else ""))
