"""Interior page layout: page estimation, image detection and binding reorder"""

from storyprint.layout.page_processor import (
    LayoutValidation,
    PageLayoutProcessor,
    PageProcessingResult,
    remap_pages,
    reorder_for_binding,
)
from storyprint.layout.page_estimation import calculate_chapter_layout, estimate_chapter_pages

__all__ = [
    "LayoutValidation",
    "PageLayoutProcessor",
    "PageProcessingResult",
    "remap_pages",
    "reorder_for_binding",
    "calculate_chapter_layout",
    "estimate_chapter_pages",
]
