"""
Page estimation

Estimates how many interior pages a story will take before it is rendered, so the
spine (and therefore the cover spread) can be sized up front.
"""

import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from storyprint.config.logging_config import get_logger
from storyprint.config.settings import FRONT_MATTER_PAGES

logger = get_logger(__name__)

DEFAULT_AUDIENCE = "all-ages"

# Characters that fit on the first content page (below the chapter title)
# and on every following full page, per target audience font size.
PAGE_CAPACITIES: Dict[str, Dict[str, int]] = {
    "children-0-2": {"first_page": 400, "full_page": 600},
    "children-3-6": {"first_page": 565, "full_page": 800},
    "children-7-10": {"first_page": 1030, "full_page": 1300},
    "children-11-14": {"first_page": 1255, "full_page": 1657},
    "young-adult-15-17": {"first_page": 1480, "full_page": 2014},
    "adult-18-plus": {"first_page": 1860, "full_page": 2270},
    "all-ages": {"first_page": 1480, "full_page": 2014},
}

_ENTITIES = {
    "&nbsp;": " ",
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
}


@dataclass
class ChapterLayout:
    chapter_index: int
    needs_blank_page: bool
    image_page_number: int
    content_start_page: int
    content_pages: int
    content_end_page: int


@dataclass
class StoryLayout:
    layouts: List[ChapterLayout]
    total_pages: int


def strip_html_tags(content: str) -> str:
    text = re.sub(r"<[^>]*>", "", content or "")
    for entity, char in _ENTITIES.items():
        text = text.replace(entity, char)
    return text.strip()


def _capacity(audience: Optional[str]) -> Dict[str, int]:
    key = (audience or DEFAULT_AUDIENCE).replace("_", "-")
    if key not in PAGE_CAPACITIES:
        logger.warning("Unknown target audience %s, using %s", key, DEFAULT_AUDIENCE)
        key = DEFAULT_AUDIENCE
    return PAGE_CAPACITIES[key]


def estimate_chapter_pages(content: str, audience: Optional[str] = None) -> int:
    """Pages needed for one chapter's text; always at least one."""
    capacity = _capacity(audience)
    total_chars = len(strip_html_tags(content))
    if total_chars <= capacity["first_page"]:
        return 1
    remaining = total_chars - capacity["first_page"]
    return 1 + math.ceil(remaining / capacity["full_page"])


def calculate_chapter_layout(chapters: Sequence[Any], audience: Optional[str] = None) -> StoryLayout:
    """
    Lay chapters out after the front matter: each chapter image on an even page
    (with a blank page inserted when needed), text starting on the following odd page.

    Args:
        chapters: Objects or dicts exposing a `content` field
        audience: Target audience key, e.g. 'children-3-6'
    """
    current_page = FRONT_MATTER_PAGES + 1
    layouts: List[ChapterLayout] = []

    for index, chapter in enumerate(chapters):
        content = chapter.get("content", "") if isinstance(chapter, dict) else getattr(chapter, "content", "")

        needs_blank_page = current_page % 2 != 0
        if needs_blank_page:
            current_page += 1

        image_page = current_page
        content_start = image_page + 1
        content_pages = estimate_chapter_pages(content, audience)
        content_end = content_start + content_pages - 1

        layouts.append(ChapterLayout(
            chapter_index=index,
            needs_blank_page=needs_blank_page,
            image_page_number=image_page,
            content_start_page=content_start,
            content_pages=content_pages,
            content_end_page=content_end,
        ))
        current_page = content_end + 1

    total_pages = current_page - 1
    logger.debug("Estimated layout: %d chapters, %d pages", len(layouts), total_pages)
    return StoryLayout(layouts=layouts, total_pages=total_pages)
