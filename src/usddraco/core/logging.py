"""Logging setup shared by the CLI and the translators."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logging(level: str = "INFO", verbose: bool = False) -> None:
    """Configure root logging for usddraco.

    Args:
        level: Log level name (e.g. "INFO", "warning").
        verbose: Force DEBUG output regardless of ``level``.
    """
    resolved = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=resolved,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )
    logging.getLogger("usddraco").setLevel(resolved)
