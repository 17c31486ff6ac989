"""Logging setup for the caseledger package logger."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    """Attach one stream handler to the ``caseledger`` logger. Safe to call twice."""
    logger = logging.getLogger("caseledger")
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    if not any(getattr(h, "_caseledger", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._caseledger = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger
