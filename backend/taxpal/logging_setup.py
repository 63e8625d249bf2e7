"""Logging for the ``taxpal`` package.

The CLI calls ``configure_logging`` once, after ``.env`` has been loaded so
that ``LOG_LEVEL`` from the file takes effect. Everything else only calls
``get_logger("taxpal.<module>")``. Messages carry a bracketed area tag
(``[db]``, ``[server]``, ``[mailer]`` ...) so the startup sequence can be
followed in a plain stream.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "taxpal"
LEVEL_ENV_VAR = "LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s %(message)s"

_CONFIGURED = False


def resolve_level(level: int | str | None = None) -> int:
    """Turn ``--log-level`` / ``LOG_LEVEL`` into a numeric level.

    An explicit ``level`` wins; otherwise ``LOG_LEVEL`` is read. Unknown
    names fall back to ``INFO``.
    """
    if level is None or (isinstance(level, str) and not level.strip()):
        level = os.getenv(LEVEL_ENV_VAR)
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        name = level.strip().upper()
        if name.isdigit():
            return int(name)
        numeric = logging.getLevelName(name)
        if isinstance(numeric, int):
            return numeric
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    global _CONFIGURED
    if _CONFIGURED:
        return

    numeric = resolve_level(level)
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(numeric)
    # uvicorn logs through its own handlers; keep ours off the root logger.
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
