"""
Print job request and result models
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from storyprint.dimensions.calculator import PrintDimensions
from storyprint.layout.page_processor import LayoutValidation, PageProcessingResult
from storyprint.models import StoryData
from storyprint.validator.cover_validator import CoverReport


class PrintJobRequest(BaseModel):
    """One print job"""
    story: StoryData = Field(..., description="Story to print")
    job_id: str = Field(default_factory=lambda: uuid4().hex, description="Scopes the working directory")
    paper_type: Optional[str] = Field(None, description="Paper registry key; registry default when omitted")
    page_count: Optional[int] = Field(None, ge=1, description="Interior page count; estimated when omitted")
    generate_cmyk: bool = Field(default=True, description="Also produce CMYK print files")
    profile_name: Optional[str] = Field(None, description="ICC registry key; registry default when omitted")
    metadata: Dict[str, str] = Field(default_factory=dict, description="title/author/subject/creator overrides")
    interior_name: str = Field(default="interior")
    cover_name: str = Field(default="cover")
    keep_intermediates: bool = Field(default=False, description="Keep -color/-gray scratch PDFs")


@dataclass
class ConversionArtifactSet:
    interior_rgb_path: str
    cover_rgb_path: str
    interior_raw_path: Optional[str] = None
    interior_cmyk_path: Optional[str] = None
    cover_cmyk_path: Optional[str] = None
    interior_color_variant_path: Optional[str] = None
    interior_gray_variant_path: Optional[str] = None

    @property
    def print_optimized(self) -> bool:
        """False means RGB only: the CMYK step was skipped or failed."""
        return bool(self.interior_cmyk_path and self.cover_cmyk_path)


@dataclass
class PrintJobResult:
    job_id: str
    work_dir: str
    page_count: int
    dimensions: PrintDimensions
    artifacts: ConversionArtifactSet
    page_processing: PageProcessingResult
    layout_validation: LayoutValidation
    cover_report: Optional[CoverReport] = None
    cmyk_error: Optional[str] = None
    stages: List[str] = field(default_factory=list)

    @property
    def print_optimized(self) -> bool:
        return self.artifacts.print_optimized
