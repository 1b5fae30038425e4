from __future__ import annotations

import logging
import sys

LOGGER_NAME = "ytdata"


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Route the ytdata logger to stderr. Stdout stays free for command output."""
    level = logging.DEBUG if verbose else logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        fmt = "%(asctime)s | %(levelname)s | %(name)s | %(message)s" if verbose else "%(message)s"
        handler.setFormatter(logging.Formatter(fmt))
        logger.addHandler(handler)

    # discovery cache complains loudly on every build() without oauth2client
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)
    return logger
