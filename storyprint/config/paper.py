"""
Paper registry

Paper stocks, bleed, safe zone and trim size for the printed book (all in mm).
Loaded once from paper-caliper.json and treated as immutable.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, Field

from storyprint.config.settings import PAPER_CONFIG_PATH


class PaperType(BaseModel):
    """One paper stock"""
    name: str = Field(..., description="Human readable stock name")
    caliper: float = Field(..., gt=0, description="Thickness of one sheet in mm")
    description: str = Field(default="", description="Where the stock is used")

    class Config:
        frozen = True


class Bleed(BaseModel):
    """Bleed beyond the trim line, in mm"""
    interior: float = Field(..., ge=0)
    cover: float = Field(..., ge=0)

    class Config:
        frozen = True


class TrimSize(BaseModel):
    """Final page size after cutting, in mm"""
    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)

    class Config:
        frozen = True


class PaperConfig(BaseModel):
    """Complete paper registry"""
    paper_types: Dict[str, PaperType] = Field(..., alias="paperTypes")
    default_paper_type: str = Field(..., alias="defaultPaperType")
    bleed_mm: Bleed = Field(..., alias="bleedMM")
    safe_zone_mm: float = Field(..., ge=0, alias="safeZoneMM")
    trim_size: TrimSize = Field(..., alias="trimSize")

    class Config:
        frozen = True
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "paperTypes": {
                    "coated_130": {"name": "Coated 130gsm", "caliper": 0.1, "description": "Picture books"}
                },
                "defaultPaperType": "coated_130",
                "bleedMM": {"interior": 3, "cover": 5},
                "safeZoneMM": 10,
                "trimSize": {"width": 170, "height": 240},
            }
        }


@lru_cache(maxsize=None)
def _load(path: str) -> PaperConfig:
    with open(path, "r", encoding="utf-8") as f:
        return PaperConfig.model_validate(json.load(f))


def load_paper_config(path: Optional[Path] = None) -> PaperConfig:
    """Load (once per path) and validate the paper registry."""
    return _load(str(path or PAPER_CONFIG_PATH))
