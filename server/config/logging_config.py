# server/config/logging_config.py
"""Process-wide logging setup."""

import logging
import sys

from config.settings import LOG_LEVEL


def setup_logging(level: str = LOG_LEVEL):
    """
    Configure the root logger for the server.

    Messages go to stdout with a timestamp, level and logger name. Uvicorn's
    access log is kept at WARNING so position updates don't flood the output.
    """
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s:%(lineno)d | %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
