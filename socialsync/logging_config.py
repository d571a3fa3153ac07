"""Logging setup shared by the API process and the sync scheduler."""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure root logging once with a consistent format.

    Args:
        level: Log level name, e.g. "INFO" or "DEBUG".

    Returns:
        The package logger.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        force=True,
    )
    # httpx logs every request at INFO, which drowns out sync results
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logging.getLogger("socialsync")
