import asyncio
import json
import os

import click
from pydantic import ValidationError

from storyprint.color.ghostscript import CMYKConversionEngine
from storyprint.config.logging_config import setup_logger
from storyprint.dimensions.calculator import calculate_dimensions
from storyprint.errors import PrintProductionError
from storyprint.layout.page_processor import PageLayoutProcessor
from storyprint.models import StoryData
from storyprint.production.models import PrintJobRequest
from storyprint.production.service import PrintProductionService


def _parse_pages(value: str | None) -> list[int]:
    if not value:
        return []
    try:
        return sorted({int(p) for p in value.split(",") if p.strip()})
    except ValueError:
        raise click.BadParameter(f"expected comma separated page numbers, got '{value}'", param_hint="--image-pages")


@click.command(help="Produce print-ready story PDFs, or run a single pipeline step on an existing PDF.")
@click.option("--dimensions", "show_dimensions", is_flag=True, default=False, help="Print page, spine and cover spread dimensions for --pages/--paper")
@click.option("--pages", type=click.IntRange(min=1), default=32, show_default=True, help="Interior page count used for dimensions")
@click.option("--paper", type=str, default=None, help="Paper registry key (registry default if omitted)")
@click.option("--process-pages", "process_pages_path", type=str, default=None, help="Reorder the given interior PDF for binding (writes --out)")
@click.option("--detect-images", "detect_images_path", type=str, default=None, help="List the pages of a PDF that carry raster images")
@click.option("--validate-layout", "validate_layout_path", type=str, default=None, help="Sanity check a processed interior PDF")
@click.option("--convert-cmyk", "convert_cmyk_path", type=str, default=None, help="Convert an interior PDF to CMYK (with --cover, the whole print set)")
@click.option("--cover", "cover_path", type=str, default=None, help="Cover PDF converted together with --convert-cmyk")
@click.option("--image-pages", "image_pages", type=str, default=None, help="Comma separated colour pages for selective conversion, e.g. 6,8")
@click.option("--profile", "profile_name", type=str, default=None, help="ICC registry profile name (registry default if omitted)")
@click.option("--check-engine", "check_engine", is_flag=True, default=False, help="Check the Ghostscript binary and exit")
@click.option("--story", "story_path", type=str, default=None, help="Story JSON file: run a complete print job")
@click.option("--no-cmyk", "no_cmyk", is_flag=True, default=False, help="Skip CMYK conversion for --story jobs")
@click.option("--work-dir", "work_dir", type=str, default=None, help="Root directory for print job output (default: PRINT_WORK_DIR)")
@click.option("--out", "out_path", type=str, default=None, help="Output PDF path for --process-pages and --convert-cmyk")
def main(show_dimensions: bool, pages: int, paper: str | None, process_pages_path: str | None, detect_images_path: str | None,
         validate_layout_path: str | None, convert_cmyk_path: str | None, cover_path: str | None, image_pages: str | None,
         profile_name: str | None, check_engine: bool, story_path: str | None, no_cmyk: bool, work_dir: str | None, out_path: str | None):
    setup_logger()

    if show_dimensions:
        try:
            dims = calculate_dimensions(pages, paper)
        except ValueError as e:
            click.echo(f"ERROR: {e}")
            raise SystemExit(1)
        click.echo(f"Dimensions for {pages} pages (paper={paper or 'default'})")
        click.echo(f"Page:         {dims.page_width_mm:.1f} x {dims.page_height_mm:.1f} mm")
        click.echo(f"Spine:        {dims.spine_width_mm:.1f} mm")
        click.echo(f"Cover spread: {dims.cover_spread_width_mm:.1f} x {dims.cover_spread_height_mm:.1f} mm")
        return

    if check_engine:
        engine = CMYKConversionEngine()
        if asyncio.run(engine.validate_engine()):
            click.echo(f"✅ Ghostscript available: {engine.binary}")
            return
        click.echo(f"❌ Ghostscript not available: {engine.binary}")
        raise SystemExit(1)

    processor = PageLayoutProcessor()

    if detect_images_path:
        try:
            found = processor.detect_image_pages(detect_images_path)
        except PrintProductionError as e:
            click.echo(f"ERROR: {e}")
            raise SystemExit(1)
        click.echo(f"Image pages in {detect_images_path}: {', '.join(str(p) for p in sorted(found)) or 'none'}")
        return

    if validate_layout_path:
        report = processor.validate_page_layout(validate_layout_path)
        click.echo(f"Layout validation for {validate_layout_path}")
        if not report.issues:
            click.echo("✅ No issues found.")
        else:
            for issue in report.issues:
                click.echo(f"WARNING: {issue}")
        if not report.is_valid:
            raise SystemExit(1)
        return

    if process_pages_path:
        if not out_path:
            raise click.UsageError("--process-pages requires --out")
        try:
            result = processor.process_pages(process_pages_path, out_path)
        except (PrintProductionError, RuntimeError) as e:
            click.echo(f"ERROR: {e}")
            raise SystemExit(1)
        click.echo(f"✅ Processed {result.final_page_count} pages -> {result.processed_file_path}")
        click.echo(f"   Image pages: {result.image_pages_detected} -> {result.final_image_pages}")
        click.echo(f"   Swapped pairs: {result.reordered_pairs or 'none'}")
        return

    if convert_cmyk_path:
        selected = _parse_pages(image_pages)
        try:
            engine = CMYKConversionEngine()
            if cover_path:
                conversion = asyncio.run(engine.convert_print_set_to_cmyk(
                    convert_cmyk_path,
                    cover_path,
                    image_page_numbers=selected,
                    interior_output_path=out_path,
                    profile_name=profile_name,
                ))
                click.echo(f"✅ Interior CMYK: {conversion.interior_cmyk}")
                click.echo(f"✅ Cover CMYK:    {conversion.cover_cmyk}")
            else:
                out_path = out_path or os.path.splitext(convert_cmyk_path)[0] + "-cmyk.pdf"
                asyncio.run(engine.convert_to_cmyk(convert_cmyk_path, out_path, profile_name))
                click.echo(f"✅ CMYK: {out_path}")
        except PrintProductionError as e:
            click.echo(f"ERROR: {e}")
            raise SystemExit(1)
        return

    if story_path:
        try:
            with open(story_path, "r", encoding="utf-8") as f:
                story = StoryData.model_validate(json.load(f))
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            click.echo(f"ERROR: cannot load story {story_path}: {e}")
            raise SystemExit(1)

        request = PrintJobRequest(story=story, paper_type=paper, generate_cmyk=not no_cmyk, profile_name=profile_name)
        service = PrintProductionService(work_dir=work_dir)
        try:
            result = asyncio.run(service.run(request))
        except (PrintProductionError, RuntimeError, ValueError) as e:
            click.echo(f"❌ Print job {request.job_id} failed: {e}")
            raise SystemExit(1)

        click.echo(f"✅ Print job {result.job_id} ({result.page_count} pages) in {result.work_dir}")
        click.echo(f"   Interior: {result.artifacts.interior_rgb_path}")
        click.echo(f"   Cover:    {result.artifacts.cover_rgb_path}")
        if result.print_optimized:
            click.echo(f"   Interior CMYK: {result.artifacts.interior_cmyk_path}")
            click.echo(f"   Cover CMYK:    {result.artifacts.cover_cmyk_path}")
        elif result.cmyk_error:
            click.echo(f"WARNING: CMYK conversion failed, RGB files only: {result.cmyk_error}")
        for issue in result.layout_validation.issues:
            click.echo(f"WARNING: {issue}")
        return

    click.echo(click.get_current_context().get_help())


if __name__ == "__main__":
    main()
