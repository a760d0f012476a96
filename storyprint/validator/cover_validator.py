from dataclasses import dataclass
from typing import List

from pypdf import PdfReader

from storyprint.dimensions.calculator import PrintDimensions

PT_PER_MM = 72.0 / 25.4


@dataclass
class CoverIssue:
    level: str  # "error" | "warning" | "info"
    message: str


@dataclass
class CoverReport:
    ok: bool
    width_pt: float
    height_pt: float
    expected_width_pt: float
    expected_height_pt: float
    expected_spine_pt: float
    issues: List[CoverIssue]


def validate_cover(pdf_path: str, dims: PrintDimensions, tolerance_pt: float = 0.5) -> CoverReport:
    issues: List[CoverIssue] = []
    expected_w = dims.cover_spread_width_mm * PT_PER_MM
    expected_h = dims.cover_spread_height_mm * PT_PER_MM
    expected_spine = dims.spine_width_mm * PT_PER_MM

    reader = PdfReader(str(pdf_path))
    if len(reader.pages) != 1:
        issues.append(CoverIssue("error", f"Cover must be a single-page PDF. Found {len(reader.pages)} page(s)."))

    w = h = 0.0
    if reader.pages:
        media = reader.pages[0].mediabox
        w = float(media.width)
        h = float(media.height)

        # Size match (within small tolerance)
        if abs(w - expected_w) > tolerance_pt or abs(h - expected_h) > tolerance_pt:
            issues.append(CoverIssue(
                "error",
                f"Page size {w:.2f}x{h:.2f} pt does not match expected cover {expected_w:.2f}x{expected_h:.2f} pt."
            ))

    if reader.is_encrypted:
        issues.append(CoverIssue("error", "PDF is encrypted. Covers must be unencrypted."))

    ok = not any(i.level == "error" for i in issues)
    return CoverReport(
        ok=ok,
        width_pt=w,
        height_pt=h,
        expected_width_pt=expected_w,
        expected_height_pt=expected_h,
        expected_spine_pt=expected_spine,
        issues=issues,
    )
