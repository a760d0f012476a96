"""
Logging setup for the print pipeline.

Usage:
    from storyprint.config.logging_config import get_logger
    logger = get_logger(__name__)
    logger.info("Message here")
"""
import logging

from storyprint.config.settings import LOG_FORMAT, LOG_LEVEL

ROOT_LOGGER_NAME = "storyprint"


def setup_logger(name: str = None) -> logging.Logger:
    """
    Get a logger under the 'storyprint' hierarchy, configuring the root of that
    hierarchy on first use.

    Args:
        name: Logger name. If None, uses 'storyprint'.

    Returns:
        Configured logging.Logger instance.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)

    # Avoid adding handlers multiple times
    if not root.handlers:
        root.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(console)

    return logging.getLogger(name or ROOT_LOGGER_NAME)


def get_logger(name: str = None) -> logging.Logger:
    """Alias for setup_logger."""
    return setup_logger(name)
