"""
CMYK conversion through Ghostscript

RGB print PDFs are handed to Ghostscript's pdfwrite device as a subprocess; the colour
math stays on the other side of that process boundary. Interiors with known image pages
get a selective conversion: full CMYK on illustrated pages, grayscale (black ink only)
everywhere else, which keeps per-copy cost down with vendors that price by colour page.
"""

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PyPdfError

from storyprint.color.profiles import ColorProfileResolver, GhostscriptSettings
from storyprint.config.logging_config import get_logger
from storyprint.config.settings import GHOSTSCRIPT_TIMEOUT_S, resolve_ghostscript_binary
from storyprint.errors import (
    EngineExecutionFailed,
    EngineUnavailable,
    PageCountMismatch,
    SourceDocumentUnreadable,
)
from storyprint.tasks import gather_or_cancel

logger = get_logger(__name__)

VERSION_CHECK_TIMEOUT_S = 30.0
METADATA_KEYS = ("title", "author", "subject", "creator")


@dataclass
class PrintSetConversion:
    interior_cmyk: str
    cover_cmyk: str
    interior_color_variant: Optional[str] = None
    interior_gray_variant: Optional[str] = None


def generate_cmyk_filename(rgb_path) -> str:
    """story.pdf -> story-cmyk.pdf"""
    return build_variant_path(rgb_path, "-cmyk")


def build_variant_path(base_path, suffix: str) -> str:
    path = Path(base_path)
    return str(path.with_name(f"{path.stem}{suffix}{path.suffix}"))


def _ps_string(value: str) -> str:
    """PostScript string literal; non-ASCII text goes out as UTF-16BE hex with a BOM."""
    if value.isascii():
        escaped = value.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
        return f"({escaped})"
    return "<FEFF" + value.encode("utf-16-be").hex().upper() + ">"


def docinfo_pdfmark(metadata: Optional[Dict[str, str]]) -> Optional[str]:
    if not metadata:
        return None
    entries = [
        f"/{key.capitalize()} {_ps_string(str(metadata[key]))}"
        for key in METADATA_KEYS
        if metadata.get(key)
    ]
    if not entries:
        return None
    return "[ " + " ".join(entries) + " /DOCINFO pdfmark"


async def _drain(stream: asyncio.StreamReader, chunks: List[bytes]) -> None:
    while True:
        chunk = await stream.read(4096)
        if not chunk:
            return
        chunks.append(chunk)


async def _kill_and_reap(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            # exited between the check and the signal
            pass
    await proc.wait()


def _with_subject(metadata: Optional[Dict[str, str]], part: str) -> Dict[str, str]:
    meta = dict(metadata or {})
    meta["subject"] = f"{meta.get('subject') or 'Story'} - {part}"
    return meta


class CMYKConversionEngine:
    """Ghostscript-backed RGB -> CMYK / grayscale conversion."""

    def __init__(
        self,
        binary: Optional[str] = None,
        resolver: Optional[ColorProfileResolver] = None,
        settings: Optional[GhostscriptSettings] = None,
        timeout_s: float = GHOSTSCRIPT_TIMEOUT_S,
    ):
        self.binary = binary or resolve_ghostscript_binary()
        self.resolver = resolver or ColorProfileResolver()
        self.settings = settings or self.resolver.config.ghostscript_settings
        self.timeout_s = timeout_s
        logger.info(
            "CMYK conversion engine initialized (binary=%s, profiles=%s, default profile=%s)",
            self.binary, self.resolver.profiles_dir, self.resolver.default_profile,
        )

    async def validate_engine(self) -> bool:
        """Run `<engine> --version`. Never raises; False means no conversion is possible."""
        try:
            proc = await asyncio.create_subprocess_exec(
                self.binary, "--version",
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            try:
                stdout, stderr = await asyncio.wait_for(proc.communicate(), VERSION_CHECK_TIMEOUT_S)
            except (asyncio.TimeoutError, asyncio.CancelledError):
                await _kill_and_reap(proc)
                raise
            if proc.returncode != 0:
                raise RuntimeError(stderr.decode(errors="replace").strip() or f"exit {proc.returncode}")
            version = stdout.decode(errors="replace").strip()
            logger.info("Ghostscript validation successful (version %s)", version)
            return True
        except Exception as e:
            logger.error("Ghostscript validation failed (binary=%s): %s", self.binary, e)
            return False

    async def _run(self, args: List[str], output_path: str) -> None:
        logger.debug("Executing Ghostscript: %s %s", self.binary, " ".join(args))
        try:
            proc = await asyncio.create_subprocess_exec(
                self.binary, *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise EngineExecutionFailed(f"Failed to execute Ghostscript: {e}") from e

        # stderr is drained into `chunks` so a timeout still has the partial output
        chunks: List[bytes] = []
        reader = asyncio.ensure_future(_drain(proc.stderr, chunks))
        try:
            await asyncio.wait_for(proc.wait(), self.timeout_s)
        except asyncio.TimeoutError:
            await _kill_and_reap(proc)
            await reader
            raise EngineExecutionFailed(
                f"Ghostscript timed out after {self.timeout_s:g}s",
                stderr=b"".join(chunks).decode(errors="replace"),
                timed_out=True,
            ) from None
        except asyncio.CancelledError:
            await _kill_and_reap(proc)
            reader.cancel()
            raise
        await reader

        stderr = b"".join(chunks).decode(errors="replace")
        if proc.returncode != 0:
            raise EngineExecutionFailed(
                f"Ghostscript exited with code {proc.returncode}", returncode=proc.returncode, stderr=stderr
            )
        if stderr.strip() and "Warning" not in stderr:
            logger.warning("Ghostscript stderr output: %s", stderr.strip())
        if not os.path.exists(output_path):
            raise EngineExecutionFailed("Expected output PDF was not generated", returncode=0, stderr=stderr)

    def _base_args(self, strategy: str, color_model: str) -> List[str]:
        return [
            "-dSAFER",
            "-dBATCH",
            "-dNOPAUSE",
            f"-sDEVICE={self.settings.device}",
            f"-dCompatibilityLevel={self.settings.compatibility_level}",
            f"-dColorConversionStrategy=/{strategy}",
            f"-dProcessColorModel=/{color_model}",
        ]

    def _cmyk_intent_args(self) -> List[str]:
        args = []
        if self.settings.pdfx:
            args.append("-dPDFX")
        if self.settings.black_point_compensation:
            args.append("-dBlackPtComp=1")
        if self.settings.preserve_blacks:
            args.append("-dKPreserve=1")
        return args

    @staticmethod
    def _tail_args(input_path: str, output_path: str, metadata: Optional[Dict[str, str]]) -> List[str]:
        args = [
            "-dDeviceGrayToK",
            "-dAutoRotatePages=/None",
            "-dEmbedAllFonts=true",
            "-dSubsetFonts=true",
            "-o", output_path,
        ]
        pdfmark = docinfo_pdfmark(metadata)
        if pdfmark:
            args += ["-c", pdfmark, "-f"]
        args.append(input_path)
        return args

    async def _prepare(self, input_path: str, output_path: str) -> None:
        if not os.path.exists(input_path):
            raise SourceDocumentUnreadable(input_path, "input PDF not found")
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        if not await self.validate_engine():
            raise EngineUnavailable(f"Ghostscript is not available (binary: {self.binary})")

    async def convert_to_cmyk(
        self,
        input_path,
        output_path,
        profile_name: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> str:
        input_path, output_path = str(input_path), str(output_path)
        logger.info(
            "Starting CMYK conversion: %s -> %s (profile %s)",
            input_path, output_path, profile_name or self.resolver.default_profile,
        )
        await self._prepare(input_path, output_path)
        profile_path = self.resolver.resolve_path(profile_name)

        args = self._base_args(self.settings.color_conversion_strategy, self.settings.process_color_model)
        args += self._cmyk_intent_args()
        if profile_path:
            args += ["-dOverrideICC", f"-sDefaultCMYKProfile={profile_path}"]
            logger.info("Using ICC profile for CMYK conversion: %s", profile_path)
        else:
            logger.info("Using built-in CMYK conversion (no ICC profile)")
        args += self._tail_args(input_path, output_path, metadata)

        try:
            await self._run(args, output_path)
        except EngineExecutionFailed as e:
            logger.error("CMYK conversion failed for %s: %s", input_path, e)
            raise

        logger.info(
            "CMYK conversion completed: %s (%d bytes)", output_path, os.path.getsize(output_path)
        )
        return output_path

    async def convert_to_grayscale(self, input_path, output_path, metadata: Optional[Dict[str, str]] = None) -> str:
        """Intermediate for selective conversion only; never a deliverable on its own."""
        input_path, output_path = str(input_path), str(output_path)
        logger.info("Starting grayscale conversion: %s -> %s", input_path, output_path)
        await self._prepare(input_path, output_path)

        args = self._base_args("Gray", "DeviceGray") + self._tail_args(input_path, output_path, metadata)
        try:
            await self._run(args, output_path)
        except EngineExecutionFailed as e:
            logger.error("Grayscale conversion failed for %s: %s", input_path, e)
            raise

        logger.info(
            "Grayscale conversion completed: %s (%d bytes)", output_path, os.path.getsize(output_path)
        )
        return output_path

    def merge_selective_pages(self, color_path, grayscale_path, color_page_numbers: Iterable[int], output_path) -> str:
        """
        Build `output_path` page by page: 1-based pages listed in `color_page_numbers`
        come from the colour PDF, everything else from the grayscale PDF.
        """
        color_path, grayscale_path, output_path = str(color_path), str(grayscale_path), str(output_path)
        color_pages = set(color_page_numbers)
        logger.info("Starting selective page merge (color pages %s)", sorted(color_pages))

        # pypdf parses the page tree lazily, so a damaged intermediate can fail
        # at page access rather than at open time
        counts = []
        readers = []
        for path in (color_path, grayscale_path):
            try:
                reader = PdfReader(path)
                counts.append(len(reader.pages))
            except Exception as e:
                raise SourceDocumentUnreadable(path, str(e)) from e
            readers.append(reader)
        color_doc, gray_doc = readers

        total_pages, gray_total = counts
        if gray_total != total_pages:
            raise PageCountMismatch(total_pages, gray_total)

        writer = PdfWriter()
        used_color: List[int] = []
        used_gray: List[int] = []
        for index in range(total_pages):
            page_number = index + 1
            if page_number in color_pages:
                source_path, doc, used = color_path, color_doc, used_color
            else:
                source_path, doc, used = grayscale_path, gray_doc, used_gray
            try:
                writer.add_page(doc.pages[index])
            except Exception as e:
                raise SourceDocumentUnreadable(source_path, f"page {page_number}: {e}") from e
            used.append(page_number)

        try:
            with open(output_path, "wb") as f:
                writer.write(f)
        except PyPdfError as e:
            raise EngineExecutionFailed(f"Failed to write merged PDF {output_path}: {e}") from e

        logger.info(
            "Page merge completed: %d pages, color %s, grayscale %d page(s) -> %s",
            total_pages, used_color, len(used_gray), output_path,
        )
        return output_path

    async def _convert_interior_selective(
        self,
        interior_path: str,
        output_path: str,
        image_pages: List[int],
        profile_name: Optional[str],
        metadata: Dict[str, str],
        keep_intermediates: bool,
    ) -> PrintSetConversion:
        color_path = build_variant_path(output_path, "-color")
        gray_path = build_variant_path(output_path, "-gray")

        await gather_or_cancel(
            self.convert_to_cmyk(interior_path, color_path, profile_name, metadata),
            self.convert_to_grayscale(interior_path, gray_path, metadata),
        )
        await asyncio.to_thread(self.merge_selective_pages, color_path, gray_path, image_pages, output_path)

        if keep_intermediates:
            return PrintSetConversion(output_path, "", color_path, gray_path)
        for scratch in (color_path, gray_path):
            try:
                os.remove(scratch)
            except FileNotFoundError:
                pass
        return PrintSetConversion(output_path, "")

    async def convert_print_set_to_cmyk(
        self,
        interior_path,
        cover_path,
        metadata: Optional[Dict[str, str]] = None,
        image_page_numbers: Iterable[int] = (),
        interior_output_path=None,
        cover_output_path=None,
        profile_name: Optional[str] = None,
        keep_intermediates: bool = False,
    ) -> PrintSetConversion:
        """
        Convert interior and cover concurrently.

        The cover is always one whole-document CMYK pass. The interior is converted
        selectively when image pages are known, otherwise in one CMYK pass.
        """
        interior_path, cover_path = str(interior_path), str(cover_path)
        interior_out = str(interior_output_path or generate_cmyk_filename(interior_path))
        cover_out = str(cover_output_path or generate_cmyk_filename(cover_path))
        image_pages = sorted(set(image_page_numbers))

        logger.info(
            "Converting print set to CMYK: interior %s -> %s, cover %s -> %s, image pages %s (selective=%s)",
            interior_path, interior_out, cover_path, cover_out, image_pages, bool(image_pages),
        )

        interior_meta = _with_subject(metadata, "Interior")
        cover_meta = _with_subject(metadata, "Cover")

        if image_pages:
            interior_job = self._convert_interior_selective(
                interior_path, interior_out, image_pages, profile_name, interior_meta, keep_intermediates
            )
        else:
            interior_job = self._convert_interior_whole(interior_path, interior_out, profile_name, interior_meta)

        interior_result, cover_result = await gather_or_cancel(
            interior_job,
            self.convert_to_cmyk(cover_path, cover_out, profile_name, cover_meta),
        )
        interior_result.cover_cmyk = cover_result
        return interior_result

    async def _convert_interior_whole(self, interior_path, output_path, profile_name, metadata) -> PrintSetConversion:
        await self.convert_to_cmyk(interior_path, output_path, profile_name, metadata)
        return PrintSetConversion(output_path, "")
