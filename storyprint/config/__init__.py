"""Configuration: settings, logging and the paper registry"""

from storyprint.config.paper import PaperConfig, PaperType, load_paper_config
from storyprint.config.logging_config import get_logger

__all__ = [
    "PaperConfig",
    "PaperType",
    "load_paper_config",
    "get_logger",
]
