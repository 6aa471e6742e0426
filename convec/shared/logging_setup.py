"""
Logging setup for Convec entry points.
"""

import logging
from typing import Optional

from convec.shared.config import Settings, get_settings


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Apply the configured level and format to the root logger."""
    settings = settings or get_settings()

    logging.basicConfig(
        level=settings.logging.level.upper(),
        format=settings.logging.format,
    )
    logging.getLogger("convec").setLevel(settings.logging.level.upper())
