"""
Page layout processing

The interior is rendered without any knowledge of page parity, so a chapter image can
land on an odd (recto) page and push the chapter text onto an even one. This module finds
the pages carrying raster images and swaps odd image pages with the page after them so
every chapter opens with its image on the left and its text on the right.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set, Tuple

import pdfplumber
from pypdf import PdfReader, PdfWriter

from storyprint.config.logging_config import get_logger
from storyprint.config.settings import FRONT_MATTER_PAGES, MIN_EXPECTED_PAGES
from storyprint.errors import SourceDocumentUnreadable

logger = get_logger(__name__)


@dataclass
class PageProcessingResult:
    original_page_count: int
    final_page_count: int
    pages_reordered: int
    reordered_pairs: List[Tuple[int, int]]
    image_pages_detected: List[int]
    final_image_pages: List[int]
    processed_file_path: str


@dataclass
class LayoutValidation:
    is_valid: bool
    issues: List[str] = field(default_factory=list)


def reorder_for_binding(
    page_count: int,
    image_pages: Iterable[int],
    front_matter_pages: int = FRONT_MATTER_PAGES,
) -> Tuple[List[int], List[Tuple[int, int]]]:
    """
    Compute the binding permutation.

    Every image page p past the front matter that sits on an odd page is swapped with
    p+1, provided p+1 exists. Odd p only ever pairs with the even page after it, so the
    swaps touch disjoint (2k+1, 2k+2) pairs and cannot cascade.

    Returns:
        (order, pairs): order[i] is the 0-based source index for output position i;
        pairs lists the swapped (p, p+1) page numbers, ascending.
    """
    order = list(range(page_count))
    pairs: List[Tuple[int, int]] = []
    for page in sorted(set(image_pages)):
        if page <= front_matter_pages or page % 2 == 0:
            continue
        if page + 1 > page_count:
            logger.debug("Image page %d is the last page; nothing to swap with", page)
            continue
        order[page - 1], order[page] = order[page], order[page - 1]
        pairs.append((page, page + 1))
    return order, pairs


def remap_pages(pages: Iterable[int], order: Sequence[int]) -> List[int]:
    """Where each 1-based source page ends up after applying `order`."""
    position_of = {source: position for position, source in enumerate(order)}
    return sorted(position_of[p - 1] + 1 for p in pages if 0 <= p - 1 < len(order))


def _resolve(obj):
    return obj.get_object() if obj is not None and hasattr(obj, "get_object") else obj


def _resources_have_image(resources, seen: Set[int], depth: int = 0) -> bool:
    resources = _resolve(resources)
    if not resources or not hasattr(resources, "get") or depth > 8:
        return False
    xobjects = _resolve(resources.get("/XObject"))
    if not xobjects or not hasattr(xobjects, "keys"):
        return False
    for name in list(xobjects.keys()):
        xobj = _resolve(xobjects[name])
        if xobj is None or not hasattr(xobj, "get"):
            continue
        if id(xobj) in seen:
            continue
        seen.add(id(xobj))
        subtype = str(xobj.get("/Subtype", ""))
        if subtype == "/Image":
            return True
        # Chromium and friends often wrap images in form XObjects
        if subtype == "/Form" and _resources_have_image(xobj.get("/Resources"), seen, depth + 1):
            return True
    return False


class PageLayoutProcessor:
    """Detects image pages and reorders an interior PDF for binding."""

    def __init__(self, front_matter_pages: int = FRONT_MATTER_PAGES):
        self.front_matter_pages = front_matter_pages

    def _detect_with_plumber(self, pdf_path: str) -> Set[int]:
        pages: Set[int] = set()
        try:
            with pdfplumber.open(pdf_path) as pdf:
                for page in pdf.pages:
                    if page.images:
                        pages.add(page.page_number)
        except Exception as e:
            logger.warning("Structural image detection failed for %s: %s", pdf_path, e)
            return set()
        return pages

    def _detect_with_resources(self, pdf_path: str) -> Set[int]:
        try:
            reader = PdfReader(pdf_path)
        except Exception as e:
            raise SourceDocumentUnreadable(pdf_path, str(e)) from e

        pages: Set[int] = set()
        for page_number, page in enumerate(reader.pages, start=1):
            try:
                if _resources_have_image(page.get("/Resources"), set()):
                    pages.add(page_number)
            except Exception as e:
                logger.debug("Resource scan failed on page %d: %s", page_number, e)
        return pages

    def detect_image_pages(self, pdf_path) -> Set[int]:
        """
        1-based page numbers carrying at least one raster image.

        pdfplumber walks the content streams first; if it finds nothing (or fails) the
        page resource dictionaries are scanned for /XObject entries of /Subtype /Image.
        """
        pdf_path = str(pdf_path)
        if not os.path.exists(pdf_path):
            raise SourceDocumentUnreadable(pdf_path, "file not found")

        pages = self._detect_with_plumber(pdf_path)
        strategy = "content-stream"
        if not pages:
            pages = self._detect_with_resources(pdf_path)
            strategy = "resource-dictionary"

        logger.info("Detected %d image page(s) via %s scan: %s", len(pages), strategy, sorted(pages))
        return pages

    def detect_large_image_pages(
        self,
        pdf_path,
        image_threshold: int = 0,
        min_page_coverage_ratio: float = 0.12,
    ) -> Set[int]:
        """
        Pages whose placed images cover at least `min_page_coverage_ratio` of the page
        area and that carry more than `image_threshold` images. Picks out full-page
        chapter illustrations and skips small ornaments or logos.
        """
        pdf_path = str(pdf_path)
        pages: Set[int] = set()
        try:
            with pdfplumber.open(pdf_path) as pdf:
                for page in pdf.pages:
                    images = page.images
                    if len(images) <= image_threshold:
                        continue
                    page_area = float(page.width) * float(page.height)
                    if page_area <= 0:
                        continue
                    covered = 0.0
                    for img in images:
                        # clip to the page box; bleed images can extend past it
                        x0 = max(float(img["x0"]), 0.0)
                        x1 = min(float(img["x1"]), float(page.width))
                        top = max(float(img["top"]), 0.0)
                        bottom = min(float(img["bottom"]), float(page.height))
                        if x1 > x0 and bottom > top:
                            covered += (x1 - x0) * (bottom - top)
                    if covered / page_area >= min_page_coverage_ratio:
                        pages.add(page.page_number)
        except Exception as e:
            raise SourceDocumentUnreadable(pdf_path, str(e)) from e

        logger.info("Detected %d large image page(s): %s", len(pages), sorted(pages))
        return pages

    def reorder_for_binding(self, page_count: int, image_pages: Iterable[int]) -> Tuple[List[int], List[Tuple[int, int]]]:
        return reorder_for_binding(page_count, image_pages, self.front_matter_pages)

    def process_pages(self, input_path, output_path) -> PageProcessingResult:
        """
        Write a copy of `input_path` with its pages permuted for binding.

        The page count never changes. If the source cannot be loaded nothing is written.
        """
        input_path = str(input_path)
        output_path = str(output_path)
        logger.info("PDF page processing start: %s -> %s", input_path, output_path)

        try:
            reader = PdfReader(input_path)
            original_page_count = len(reader.pages)
        except Exception as e:
            logger.error("Cannot load source PDF %s: %s", input_path, e)
            raise SourceDocumentUnreadable(input_path, str(e)) from e

        image_pages = self.detect_image_pages(input_path)
        order, pairs = self.reorder_for_binding(original_page_count, image_pages)

        writer = PdfWriter()
        for source_index in order:
            writer.add_page(reader.pages[source_index])
        final_page_count = len(writer.pages)
        if final_page_count != original_page_count:
            raise RuntimeError(
                f"Page processing changed page count ({original_page_count} -> {final_page_count})"
            )

        # Write next to the target and move into place so a failed write leaves no half file
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        partial_path = output_path + ".part"
        try:
            with open(partial_path, "wb") as f:
                writer.write(f)
            os.replace(partial_path, output_path)
        finally:
            if os.path.exists(partial_path):
                os.remove(partial_path)

        result = PageProcessingResult(
            original_page_count=original_page_count,
            final_page_count=final_page_count,
            pages_reordered=len(pairs) * 2,
            reordered_pairs=pairs,
            image_pages_detected=sorted(image_pages),
            final_image_pages=remap_pages(image_pages, order),
            processed_file_path=output_path,
        )
        logger.info(
            "PDF page processing done: %d pages, swapped %s, image pages now %s",
            final_page_count, pairs, result.final_image_pages,
        )
        return result

    def validate_page_layout(self, pdf_path) -> LayoutValidation:
        """Sanity checks on a processed interior. Diagnostics only, never raises."""
        pdf_path = str(pdf_path)
        logger.info("Validating page layout: %s", pdf_path)
        issues: List[str] = []
        try:
            reader = PdfReader(pdf_path)
            pages = reader.pages
            page_count = len(pages)
            if page_count < MIN_EXPECTED_PAGES:
                issues.append(f"PDF has unusually few pages: {page_count}")
            if page_count % 2 != 0:
                issues.append(f"PDF has an odd page count ({page_count}); bound books need an even count")

            first_size: Optional[Tuple[float, float]] = None
            for page_number, page in enumerate(pages, start=1):
                size = (float(page.mediabox.width), float(page.mediabox.height))
                if first_size is None:
                    first_size = size
                elif abs(size[0] - first_size[0]) > 0.5 or abs(size[1] - first_size[1]) > 0.5:
                    issues.append(
                        f"Page {page_number} size {size[0]:.2f}x{size[1]:.2f} pt differs from first page "
                        f"({first_size[0]:.2f}x{first_size[1]:.2f} pt)"
                    )
        except Exception as e:
            message = f"Failed to validate page layout: {e}"
            logger.error(message)
            return LayoutValidation(is_valid=False, issues=[message])

        logger.info("Page layout validation completed: %d page(s), %d issue(s)", page_count, len(issues))
        return LayoutValidation(is_valid=not issues, issues=issues)
