"""
HTML assembly for the interior and cover spread.

Templates are plain HTML with {{name}} placeholders; the renderer turns the result into
a PDF at the physical size given by PrintDimensions.
"""

import html
import re
from pathlib import Path
from typing import Dict, Iterable, Optional

from storyprint.config.logging_config import get_logger
from storyprint.config.paper import PaperConfig, load_paper_config
from storyprint.config.settings import PUBLISHER_NAME, PUBLISHER_WEBSITE, QR_CODE_IMAGE, TEMPLATES_PATH
from storyprint.dimensions.calculator import PrintDimensions
from storyprint.models import Chapter, StoryData
from storyprint.renderer.translations import format_publish_date, get_print_translations

logger = get_logger(__name__)

INTERIOR_TEMPLATE = "interior-default.html"
COVER_TEMPLATE = "cover-default.html"

_PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")


def _fmt(value: float) -> str:
    # 176.0 -> "176", 5.4 -> "5.4"
    return f"{value:g}"


def load_template(template_name: str, variables: Dict[str, str], templates_dir: Optional[Path] = None) -> str:
    """Read a template and substitute every {{name}}; unknown names become ''."""
    path = Path(templates_dir or TEMPLATES_PATH) / template_name
    template = path.read_text(encoding="utf-8")
    missing = set()

    def _sub(match):
        key = match.group(1)
        if key not in variables:
            missing.add(key)
            return ""
        return str(variables[key])

    rendered = _PLACEHOLDER.sub(_sub, template)
    if missing:
        logger.debug("Template %s left placeholders empty: %s", template_name, sorted(missing))
    return rendered


def clean_chapter_title(title: str) -> str:
    """Drop a translated 'Chapter N:' style prefix, keeping what follows the first colon."""
    if ":" in title:
        return title.split(":", 1)[1].strip()
    return title


def generate_table_of_contents(chapters: Iterable[Chapter]) -> str:
    return "".join(
        f"""
      <div class="toc-item">
        <span class="toc-chapter-title">{html.escape(clean_chapter_title(chapter.title))}</span>
      </div>
    """
        for chapter in chapters
    )


def generate_chapters_html(chapters: Iterable[Chapter]) -> str:
    """Each chapter is an image page (left) followed by its text (right)."""
    parts = []
    for number, chapter in enumerate(chapters, start=1):
        image = ""
        if chapter.image_uri:
            image = f'<img src="{html.escape(chapter.image_uri, quote=True)}" alt="Chapter {number} illustration" />'
        # content is trusted, pre-formatted HTML from the story pipeline
        parts.append(f"""
      <!-- Chapter {number} Image Page (Even/Left) -->
      <div class="chapter-image-page">
        <div class="chapter-image">
          {image}
        </div>
      </div>

      <!-- Chapter {number} Content Page (Odd/Right) -->
      <div class="chapter-content-page">
        <div class="chapter-content-wrapper">
          <div class="chapter-title"><br/><br/>{html.escape(chapter.title)}</div>
          <div class="chapter-content">
            {chapter.content}
          </div>
        </div>
      </div>
    """)
    return "".join(parts)


def generate_interior_html(
    story: StoryData,
    dimensions: PrintDimensions,
    config: Optional[PaperConfig] = None,
    templates_dir: Optional[Path] = None,
) -> str:
    """
    Interior markup.

    Chapter images bleed to the page edge (no margin); text stays inside the safe zone.
    """
    conf = config or load_paper_config()
    bleed = conf.bleed_mm.interior
    safe_zone = conf.safe_zone_mm
    translations = get_print_translations(story.story_language)

    variables = {
        "title": html.escape(story.title),
        "pageWidthMM": _fmt(dimensions.page_width_mm),
        "pageHeightMM": _fmt(dimensions.page_height_mm),
        "interiorBleedMM": _fmt(bleed),
        "safeZoneMM": _fmt(safe_zone),
        "totalMarginMM": _fmt((bleed + safe_zone) * 2),
        "imageMarginMM": "0",
        "textSafeZoneMM": _fmt(safe_zone),
        "textTotalMarginMM": _fmt(safe_zone * 2),
        "dedicationMessage": html.escape(story.dedication_message),
        "customAuthor": html.escape(story.custom_author or "Anonymous"),
        "publishDate": format_publish_date(story.created_at, story.story_language),
        "synopsis": html.escape(story.synopsis),
        "publisherName": html.escape(PUBLISHER_NAME),
        "publisherWebsite": html.escape(PUBLISHER_WEBSITE),
        "qrCodeImage": html.escape(QR_CODE_IMAGE, quote=True),
        "tableOfContents": generate_table_of_contents(story.chapters),
        "chapters": generate_chapters_html(story.chapters),
    }
    translations["promotionText"] = translations["promotionText"].format(publisher=html.escape(PUBLISHER_NAME))
    variables.update(translations)
    return load_template(INTERIOR_TEMPLATE, variables, templates_dir)


def generate_cover_html(
    story: StoryData,
    dimensions: PrintDimensions,
    config: Optional[PaperConfig] = None,
    templates_dir: Optional[Path] = None,
) -> str:
    """Cover spread markup: back cover, spine and front cover on one sheet."""
    conf = config or load_paper_config()

    def _background(uri: Optional[str], fallback: str) -> str:
        return f'url("{html.escape(uri, quote=True)}")' if uri else fallback

    variables = {
        "title": html.escape(story.title),
        "coverSpreadWMM": _fmt(dimensions.cover_spread_width_mm),
        "coverSpreadHMM": _fmt(dimensions.cover_spread_height_mm),
        "coverBleedMM": _fmt(conf.bleed_mm.cover),
        "spineWidthMM": _fmt(dimensions.spine_width_mm),
        "backcoverBackground": _background(story.backcover_uri, "#f5f5f5"),
        "frontcoverBackground": _background(story.cover_uri, "#e0e0e0"),
    }
    return load_template(COVER_TEMPLATE, variables, templates_dir)
