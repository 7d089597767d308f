"""Logging setup. Every module logs under the ``docvault`` namespace."""

import logging
from typing import Optional

from docvault.core.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(debug: Optional[bool] = None) -> None:
    """Configure the root handler once for the API process or the CLI."""
    debug = settings.DEBUG if debug is None else debug
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
    )
    # Engine echo is too noisy for INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a child of the ``docvault`` logger, e.g. ``docvault.upload``."""
    return logging.getLogger(f"docvault.{name}")
