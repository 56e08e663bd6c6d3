# observability/logging.py
"""Shared logger factory.

Usage:
    from observability.logging import get_logger

    logger = get_logger("matching.engine")
    logger.info("Ranked %s vehicles", count)
"""
from __future__ import annotations

import logging
import os
import time

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def get_logger(name: str) -> logging.Logger:
    """Return a logger with a single UTC stream handler.

    Level comes from EVMATCH_LOG_LEVEL (default INFO).
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(fmt=_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT)
        formatter.converter = time.gmtime
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(os.getenv("EVMATCH_LOG_LEVEL", "INFO").upper())
        logger.propagate = False
    return logger
