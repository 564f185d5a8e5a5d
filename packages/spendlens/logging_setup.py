"""Centralized logging configuration for the ``spendlens`` package.

This module provides two public helpers:

- ``configure_logging(...)``: attach a single ``StreamHandler`` to the package
  root logger (``"spendlens"``) and, by default, route Python ``warnings``
  from the spreadsheet readers through it. Called once by entrypoints (the
  CLI) at process startup.
- ``get_logger(name)``: acquire a logger by name, making sure the package root
  logger has at least a ``NullHandler`` when nothing has been configured.

Library modules never attach their own handlers. They call
``get_logger("spendlens.<module>")`` and emit structured ``event:key=value``
messages; statement contents (narrations, amounts) are logged at DEBUG only.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "spendlens"
_LEVEL_ENV_VAR = "SPENDLENS_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
# Spreadsheet readers (openpyxl, xlrd, pandas) report workbook quirks such as
# missing default styles through ``warnings``; these are routed here too.
_WARNINGS_LOGGER_NAME = "py.warnings"
_CONFIGURED = False


def _parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        # Numeric strings or standard level names (INFO/DEBUG/etc.).
        name = level.strip().upper()
        if name.isdigit():
            return int(name)
        numeric = getattr(logging, name, None)
        if isinstance(numeric, int):
            return numeric
        return logging.INFO
    env_val = os.getenv(_LEVEL_ENV_VAR)
    if env_val:
        return _parse_level(env_val)
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
    capture_warnings: bool = True,
) -> None:
    """Configure the package root logger exactly once.

    Parameters
    ----------
    level:
        Logging level as ``int`` or level-name string (e.g., ``"INFO"``). If
        ``None``, the ``SPENDLENS_LOG_LEVEL`` environment variable is used when
        set, otherwise ``logging.INFO``.
    fmt:
        Optional format string. Defaults to
        ``"%(asctime)s %(name)s %(levelname)s %(message)s"``.
    stream:
        Output stream for the handler (defaults to ``sys.stderr`` at call time).
    capture_warnings:
        Route Python ``warnings`` (e.g. openpyxl's "Workbook contains no default
        style") through the same handler at WARNING level instead of printing
        them raw in the middle of CLI output.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)

    # Drop placeholder NullHandlers so configured output is not swallowed.
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False

    if capture_warnings:
        logging.captureWarnings(True)
        warnings_logger = logging.getLogger(_WARNINGS_LOGGER_NAME)
        warnings_logger.addHandler(handler)
        warnings_logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger by name with a silent default for library use."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger"]
