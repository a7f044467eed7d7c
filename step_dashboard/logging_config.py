"""Logging bootstrap, called once per script run from the Streamlit entry point."""

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = None) -> None:
    """Configure the root logger.

    `level` wins over the LOG_LEVEL environment variable; both fall back to INFO.
    Safe to call on every rerun: basicConfig does nothing once the root logger
    has a handler, so only the level is reapplied.
    """
    log_level = getattr(logging, (level or os.environ.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(level=log_level, format=LOG_FORMAT)
    logging.getLogger().setLevel(log_level)
