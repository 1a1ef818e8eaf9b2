"""
Logging setup.

Every module logs through `logging.getLogger(__name__)`; applications call
configure_logging() once at startup.
"""

from __future__ import annotations

import logging

FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logging.basicConfig(level=level, format=FORMAT)
    logging.getLogger("storefront").setLevel(level)


__all__ = ("configure_logging", "FORMAT")
