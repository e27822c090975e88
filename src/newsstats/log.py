"""Logging setup for the ``newsstats`` logger hierarchy."""

from __future__ import annotations

import logging

LOGGER_NAME = "newsstats"

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(
    production: bool,
    level: int | None = None,
    force: bool = False,
) -> logging.Logger:
    """Configure logging once at startup.

    In production only warnings and errors are emitted; elsewhere the
    package logs at DEBUG.  *level* overrides both.  A root handler is
    installed unless one already exists (or *force* replaces it).
    """
    if level is None:
        level = logging.WARNING if production else logging.DEBUG

    logging.basicConfig(format=_FORMAT, force=force)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    return logger
