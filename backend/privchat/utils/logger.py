# privchat/utils/logger.py

import logging
import os
import sys

LOG_FORMAT = "[%(asctime)s] %(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured = False


def setup_logger(level: str | None = None) -> logging.Logger:
    """
    Configure the root logger once for the whole process.

    Level comes from the argument, then LOG_LEVEL, then INFO.
    Calling it again only adjusts the level.
    """
    global _configured

    root = logging.getLogger()
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    root.setLevel(getattr(logging, level_name, logging.INFO))

    if not _configured:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(handler)
        _configured = True

    return root
