"""Logging setup shared by workers embedding the engine"""
import os
import logging


def configure_logging(level: str = None) -> None:
    """
    Configure root logging.

    Args:
        level: Log level name, defaults to the LOG_LEVEL environment variable
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
