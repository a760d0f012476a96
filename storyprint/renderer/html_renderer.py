"""
HTML -> PDF rendering through headless Chromium (Playwright).

The renderer is a black box to the rest of the pipeline: markup and a physical page size
in, one PDF file out. Anything with the same `render` coroutine can stand in for it.
"""

import os
from pathlib import Path
from typing import List, Optional, Protocol

from storyprint.config.logging_config import get_logger
from storyprint.errors import RenderingFailed

logger = get_logger(__name__)

CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    # keep RGB values exactly as authored; colour management happens in Ghostscript
    "--disable-color-correct-rendering",
]


class HtmlRenderer(Protocol):
    async def render(self, html: str, width_mm: float, height_mm: float, output_path) -> str:
        ...


class PlaywrightRenderer:
    """Renders markup with zero margins, backgrounds on, and CSS-driven page size."""

    def __init__(self, launch_args: Optional[List[str]] = None, timeout_ms: int = 120_000):
        self.launch_args = launch_args if launch_args is not None else list(CHROMIUM_ARGS)
        self.timeout_ms = timeout_ms

    async def render(self, html: str, width_mm: float, height_mm: float, output_path) -> str:
        try:
            from playwright.async_api import async_playwright
        except ImportError:
            raise RuntimeError(
                "Playwright not installed. Run: pip install playwright && playwright install chromium"
            )

        output_path = str(output_path)
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        logger.info("Starting PDF rendering: %.1fx%.1f mm -> %s", width_mm, height_mm, output_path)

        try:
            async with async_playwright() as p:
                browser = await p.chromium.launch(headless=True, args=self.launch_args)
                try:
                    page = await browser.new_page()
                    await page.set_content(html, wait_until="networkidle", timeout=self.timeout_ms)
                    await page.pdf(
                        path=output_path,
                        print_background=True,
                        width=f"{width_mm}mm",
                        height=f"{height_mm}mm",
                        margin={"top": "0mm", "right": "0mm", "bottom": "0mm", "left": "0mm"},
                        prefer_css_page_size=True,
                        display_header_footer=False,
                    )
                finally:
                    await browser.close()
        except Exception as e:
            logger.error("PDF generation failed for %s: %s", output_path, e)
            raise RenderingFailed(f"PDF generation failed for {output_path}: {e}") from e

        if not os.path.exists(output_path):
            raise RenderingFailed(f"Renderer reported success but wrote no file: {output_path}")
        logger.info("PDF generated successfully: %s", output_path)
        return output_path
