"""HTML assembly and the HTML -> PDF renderer boundary"""

from storyprint.renderer.html_renderer import HtmlRenderer, PlaywrightRenderer
from storyprint.renderer.templates import generate_cover_html, generate_interior_html

__all__ = [
    "HtmlRenderer",
    "PlaywrightRenderer",
    "generate_cover_html",
    "generate_interior_html",
]
