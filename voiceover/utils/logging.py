"""Process-wide logging setup."""

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Apply the configured log level once at process start."""
    if level is None:
        from voiceover.config import get_settings

        level = get_settings().log_level

    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # Keep HTTP client chatter out of service logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
