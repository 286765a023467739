"""Logging for the ``upi_pay`` package.

Library modules only call ``get_logger("upi_pay.<module>")``; until an
entrypoint calls :func:`configure_logging`, the package logger carries a
``NullHandler`` so embedding applications see nothing they did not ask for.

The CLI configures logging once per process with the level resolved by
:func:`upi_pay.config.load_settings` (``UPI_PAY_LOG_LEVEL``). Records go to
stderr so command output on stdout stays machine-readable.
"""

from __future__ import annotations

import logging
import sys

_PKG_LOGGER_NAME = "upi_pay"
_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_CONFIGURED = False


def resolve_level(name: str) -> int:
    """Map a level name (``"debug"``, ``"WARNING"``...) to its number; unknown names are INFO."""

    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: str = "INFO") -> None:
    """Attach the package's single stderr handler. Later calls are no-ops."""

    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(resolve_level(level))
    # Avoid double emission via the root logger.
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "resolve_level"]
