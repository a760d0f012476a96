"""
Print production orchestration

dimensioning -> rendering (interior + cover in parallel) -> page layout processing
(interior) -> optional CMYK conversion (interior + cover in parallel) -> done.

Renderer and layout failures abort the job. CMYK failures are logged and the job
finishes with RGB-only artifacts. Nothing is retried here.
"""

import asyncio
from pathlib import Path
from typing import Dict, Optional

from storyprint.color.ghostscript import CMYKConversionEngine
from storyprint.config.logging_config import get_logger
from storyprint.config.paper import PaperConfig, load_paper_config
from storyprint.config.settings import PRINT_WORK_DIR
from storyprint.dimensions.calculator import PrintDimensions, calculate_dimensions
from storyprint.errors import PrintProductionError
from storyprint.layout.page_estimation import calculate_chapter_layout
from storyprint.layout.page_processor import PageLayoutProcessor
from storyprint.production.models import ConversionArtifactSet, PrintJobRequest, PrintJobResult
from storyprint.renderer.html_renderer import HtmlRenderer, PlaywrightRenderer
from storyprint.renderer.templates import generate_cover_html, generate_interior_html
from storyprint.tasks import gather_or_cancel
from storyprint.validator.cover_validator import CoverReport, validate_cover

logger = get_logger(__name__)


class PrintProductionService:
    """Turns a story into interior + cover PDFs (RGB, and CMYK when possible)."""

    def __init__(
        self,
        renderer: Optional[HtmlRenderer] = None,
        engine: Optional[CMYKConversionEngine] = None,
        processor: Optional[PageLayoutProcessor] = None,
        paper_config: Optional[PaperConfig] = None,
        work_dir: Optional[Path] = None,
        templates_dir: Optional[Path] = None,
    ):
        self.renderer = renderer or PlaywrightRenderer()
        self._engine = engine
        self.processor = processor or PageLayoutProcessor()
        self.paper_config = paper_config or load_paper_config()
        self.work_dir = Path(work_dir or PRINT_WORK_DIR)
        self.templates_dir = templates_dir

    @property
    def engine(self) -> CMYKConversionEngine:
        # Built on first use so RGB-only jobs never touch the ICC registry
        if self._engine is None:
            self._engine = CMYKConversionEngine()
        return self._engine

    def estimate_page_count(self, request: PrintJobRequest) -> int:
        if request.page_count:
            return request.page_count
        layout = calculate_chapter_layout(request.story.chapters, request.story.target_audience)
        return max(layout.total_pages, 1)

    def calculate_dimensions(self, request: PrintJobRequest) -> PrintDimensions:
        return calculate_dimensions(self.estimate_page_count(request), request.paper_type, self.paper_config)

    def _metadata(self, request: PrintJobRequest) -> Dict[str, str]:
        story = request.story
        meta = {
            "title": story.title,
            "author": story.custom_author or "Anonymous",
            "creator": "storyprint",
        }
        meta.update({k: v for k, v in request.metadata.items() if v})
        return meta

    async def _validate_cover(self, cover_path: Path, dims: PrintDimensions) -> Optional[CoverReport]:
        try:
            report = await asyncio.to_thread(validate_cover, str(cover_path), dims)
        except Exception as e:
            logger.warning("Cover validation could not run for %s: %s", cover_path, e)
            return None
        for issue in report.issues:
            logger.warning("Cover %s: %s", issue.level, issue.message)
        return report

    async def run(self, request: PrintJobRequest) -> PrintJobResult:
        story = request.story
        job_dir = self.work_dir / request.job_id
        job_dir.mkdir(parents=True, exist_ok=True)
        stages = []
        logger.info("Print job %s started (%d chapters) in %s", request.job_id, len(story.chapters), job_dir)

        # dimensioning
        page_count = self.estimate_page_count(request)
        dims = calculate_dimensions(page_count, request.paper_type, self.paper_config)
        stages.append("dimensioning")
        logger.info(
            "Print job %s dimensions: %d pages, page %.1fx%.1f mm, spine %.1f mm, cover %.1fx%.1f mm",
            request.job_id, page_count, dims.page_width_mm, dims.page_height_mm,
            dims.spine_width_mm, dims.cover_spread_width_mm, dims.cover_spread_height_mm,
        )

        # rendering
        interior_raw = job_dir / f"{request.interior_name}.pdf"
        cover_rgb = job_dir / f"{request.cover_name}.pdf"
        interior_html = generate_interior_html(story, dims, self.paper_config, self.templates_dir)
        cover_html = generate_cover_html(story, dims, self.paper_config, self.templates_dir)
        await gather_or_cancel(
            self.renderer.render(interior_html, dims.page_width_mm, dims.page_height_mm, interior_raw),
            self.renderer.render(cover_html, dims.cover_spread_width_mm, dims.cover_spread_height_mm, cover_rgb),
        )
        stages.append("rendering")

        # layout processing; binding-incorrect output must never ship, so errors propagate
        interior_rgb = job_dir / f"{request.interior_name}_post-page-processing.pdf"
        processing = await asyncio.to_thread(self.processor.process_pages, interior_raw, interior_rgb)
        validation = await asyncio.to_thread(self.processor.validate_page_layout, interior_rgb)
        if not validation.is_valid:
            logger.warning("Page layout issues for job %s: %s", request.job_id, validation.issues)
        cover_report = await self._validate_cover(cover_rgb, dims)
        stages.append("layoutProcessing")

        artifacts = ConversionArtifactSet(
            interior_rgb_path=str(interior_rgb),
            cover_rgb_path=str(cover_rgb),
            interior_raw_path=str(interior_raw),
        )

        cmyk_error = None
        if request.generate_cmyk:
            try:
                # read the processed interior back: image pages moved during reordering
                image_pages = await asyncio.to_thread(self.processor.detect_image_pages, interior_rgb)
                conversion = await self.engine.convert_print_set_to_cmyk(
                    interior_rgb,
                    cover_rgb,
                    metadata=self._metadata(request),
                    image_page_numbers=image_pages,
                    interior_output_path=job_dir / f"{request.interior_name}-cmyk.pdf",
                    cover_output_path=job_dir / f"{request.cover_name}-cmyk.pdf",
                    profile_name=request.profile_name,
                    keep_intermediates=request.keep_intermediates,
                )
                artifacts.interior_cmyk_path = conversion.interior_cmyk
                artifacts.cover_cmyk_path = conversion.cover_cmyk
                artifacts.interior_color_variant_path = conversion.interior_color_variant
                artifacts.interior_gray_variant_path = conversion.interior_gray_variant
                stages.append("cmykConversion")
            except Exception as e:
                # any conversion failure degrades the job to RGB; only cancellation escapes
                cmyk_error = str(e) or type(e).__name__
                logger.warning(
                    "CMYK conversion failed for job %s, continuing with RGB only: %s",
                    request.job_id, e,
                    exc_info=not isinstance(e, (PrintProductionError, OSError)),
                )

        stages.append("done")
        logger.info(
            "Print job %s done (print optimized: %s)", request.job_id, artifacts.print_optimized
        )
        return PrintJobResult(
            job_id=request.job_id,
            work_dir=str(job_dir),
            page_count=page_count,
            dimensions=dims,
            artifacts=artifacts,
            page_processing=processing,
            layout_validation=validation,
            cover_report=cover_report,
            cmyk_error=cmyk_error,
            stages=stages,
        )
