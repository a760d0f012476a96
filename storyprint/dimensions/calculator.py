import math
from dataclasses import dataclass, asdict
from typing import Optional

from storyprint.config.paper import PaperConfig, load_paper_config
from storyprint.errors import UnknownPaperType


@dataclass(frozen=True)
class PrintDimensions:
    page_width_mm: float
    page_height_mm: float
    spine_width_mm: float
    cover_spread_width_mm: float
    cover_spread_height_mm: float

    def to_dict(self) -> dict:
        return asdict(self)


def spine_width_mm(page_count: int, caliper_mm: float) -> float:
    # One sheet carries two pages. Round *up* to 0.1mm: a spine thinner than
    # the page stack misaligns the cover at the bindery.
    # round() first so float noise (10.000000000000002) does not add 0.1mm.
    tenths = round((page_count / 2) * caliper_mm * 10, 9)
    return math.ceil(tenths) / 10


def calculate_dimensions(
    page_count: int,
    paper_type: Optional[str] = None,
    config: Optional[PaperConfig] = None,
) -> PrintDimensions:
    if page_count < 1:
        raise ValueError(f"page_count must be >= 1, got {page_count}")

    conf = config or load_paper_config()
    paper_key = paper_type or conf.default_paper_type
    if paper_key not in conf.paper_types:
        raise UnknownPaperType(paper_key, conf.paper_types.keys())

    paper = conf.paper_types[paper_key]
    trim_w = conf.trim_size.width
    trim_h = conf.trim_size.height
    bleed = conf.bleed_mm

    spine = spine_width_mm(page_count, paper.caliper)

    # Interior pages carry bleed on every edge; the cover spread is back + spine + front
    # with cover bleed around the outside.
    return PrintDimensions(
        page_width_mm=trim_w + 2 * bleed.interior,
        page_height_mm=trim_h + 2 * bleed.interior,
        spine_width_mm=spine,
        cover_spread_width_mm=(2 * trim_w) + spine + 2 * bleed.cover,
        cover_spread_height_mm=trim_h + 2 * bleed.cover,
    )
