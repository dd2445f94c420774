"""Process-wide logging setup shared by the API and the CLI entrypoints."""

import logging
import time

from app.core.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%SZ"


def configure_logging(settings: Settings) -> None:
    """Install the root handler once; later calls only adjust the level."""
    # Timestamps are UTC to match the trailing Z in LOG_DATEFMT.
    logging.Formatter.converter = time.gmtime
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )
    logging.getLogger().setLevel(settings.LOG_LEVEL)
