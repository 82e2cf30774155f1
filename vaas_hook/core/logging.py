"""Logging configuration utilities for the VaaS registration hook."""
import logging
import os


def setup_logging() -> None:
    """Configure root logging from the LOG_LEVEL and LOG_FILE environment variables."""
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        filename=os.getenv("LOG_FILE") or None,
        level=level,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
