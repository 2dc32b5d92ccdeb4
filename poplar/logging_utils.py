"""Logging configuration helpers."""

from __future__ import annotations

import logging


def configure_logging(level: str = "INFO", poplar_level: str | None = None) -> None:
    """Configure root logging; ``poplar_level`` tunes only the ``poplar.*`` loggers.

    ``configure_logging("WARNING", poplar_level="DEBUG")`` shows listener tree
    rebuilds and validator lookups without debug noise from other libraries.
    """
    normalized = level.upper()
    logging.basicConfig(
        level=getattr(logging, normalized, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    if poplar_level:
        logging.getLogger("poplar").setLevel(getattr(logging, poplar_level.upper(), logging.INFO))
