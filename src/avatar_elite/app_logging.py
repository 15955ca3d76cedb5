"""Logging configuration helpers."""

import logging

PACKAGE_LOGGER = "avatar_elite"
LOG_FORMAT = "%(levelname)s: %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Attach one stream handler to the package logger; safe to call twice."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level.upper())
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    # Request URLs carry the bot token.
    logging.getLogger("httpx").setLevel(logging.WARNING)
