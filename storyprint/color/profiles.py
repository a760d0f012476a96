"""
ICC profile registry and resolution

Maps a registry profile name to an .icc file on disk. Profiles that are missing, too
small, or look like text placeholders resolve to None, which tells the engine to use its
built-in CMYK conversion instead of failing the job.
"""

import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional, Protocol

from pydantic import BaseModel, Field

from storyprint.config.logging_config import get_logger
from storyprint.config.settings import (
    ICC_CONFIG_PATH,
    ICC_PROFILES_PATH,
    ICC_SIGNATURE,
    ICC_SIGNATURE_OFFSET,
    MIN_ICC_PROFILE_BYTES,
    PLACEHOLDER_MARKERS,
    PLACEHOLDER_SNIFF_BYTES,
)
from storyprint.errors import UnknownColorProfile

logger = get_logger(__name__)


class IccProfileEntry(BaseModel):
    """One ICC profile in the registry"""
    name: str = Field(default="", description="Display name")
    filename: str = Field(..., description="File name under the ICC profiles directory")
    description: str = Field(default="")
    color_space: str = Field(default="CMYK", alias="colorSpace")
    output_intent: str = Field(default="", alias="outputIntent")
    registry_name: str = Field(default="", alias="registryName")
    info: str = Field(default="")

    class Config:
        frozen = True
        populate_by_name = True


class GhostscriptSettings(BaseModel):
    """Engine flags shared by every conversion"""
    device: str = Field(default="pdfwrite")
    color_conversion_strategy: str = Field(default="CMYK", alias="colorConversionStrategy")
    process_color_model: str = Field(default="DeviceCMYK", alias="processColorModel")
    compatibility_level: str = Field(default="1.4", alias="compatibilityLevel")
    pdfx: bool = Field(default=False)
    black_point_compensation: bool = Field(default=False, alias="blackPointCompensation")
    preserve_blacks: bool = Field(default=False, alias="preserveBlacks")

    class Config:
        frozen = True
        populate_by_name = True


class IccProfileConfig(BaseModel):
    """Complete ICC registry"""
    profiles: Dict[str, IccProfileEntry] = Field(default_factory=dict)
    default_profile: str = Field(..., alias="defaultProfile")
    ghostscript_settings: GhostscriptSettings = Field(default_factory=GhostscriptSettings, alias="ghostscriptSettings")

    class Config:
        frozen = True
        populate_by_name = True


@lru_cache(maxsize=None)
def _load(path: str) -> IccProfileConfig:
    with open(path, "r", encoding="utf-8") as f:
        return IccProfileConfig.model_validate(json.load(f))


def load_icc_config(path: Optional[Path] = None) -> IccProfileConfig:
    return _load(str(path or ICC_CONFIG_PATH))


@dataclass(frozen=True)
class ColorProfile:
    registry_name: str
    file_path: str
    is_valid: bool


class ProfileValidator(Protocol):
    def is_valid_profile(self, path: Path) -> bool:
        ...


class PlaceholderAwareValidator:
    """
    Rejects files that cannot be a real binary ICC profile: missing files, files under
    `min_bytes`, and files without an ICC header whose first bytes contain a placeholder marker.
    """

    def __init__(self, min_bytes: int = MIN_ICC_PROFILE_BYTES, markers=PLACEHOLDER_MARKERS, sniff_bytes: int = PLACEHOLDER_SNIFF_BYTES):
        self.min_bytes = min_bytes
        self.markers = tuple(markers)
        self.sniff_bytes = sniff_bytes

    def is_valid_profile(self, path: Path) -> bool:
        path = Path(path)
        if not path.is_file():
            logger.warning("ICC profile file not found: %s, using built-in CMYK conversion", path)
            return False

        size = path.stat().st_size
        if size < self.min_bytes:
            logger.warning(
                "ICC profile file too small (%d bytes), likely a placeholder. Using built-in CMYK conversion", size
            )
            return False

        with open(path, "rb") as f:
            head = f.read(self.sniff_bytes)
        # a binary ICC header carries the 'acsp' signature at offset 36; marker
        # bytes inside such a header are profile data, not placeholder text
        if head[ICC_SIGNATURE_OFFSET:ICC_SIGNATURE_OFFSET + 4] == ICC_SIGNATURE:
            return True
        text = head.decode("utf-8", errors="ignore")
        if any(marker in text for marker in self.markers):
            logger.warning("ICC profile %s is a placeholder file. Using built-in CMYK conversion", path)
            return False

        return True


class ColorProfileResolver:
    """Resolves registry profile names to validated .icc paths."""

    def __init__(
        self,
        config: Optional[IccProfileConfig] = None,
        profiles_dir: Optional[Path] = None,
        validator: Optional[ProfileValidator] = None,
    ):
        self.config = config or load_icc_config()
        self.profiles_dir = Path(profiles_dir or ICC_PROFILES_PATH)
        self.validator = validator or PlaceholderAwareValidator()

    @property
    def default_profile(self) -> str:
        return self.config.default_profile

    def resolve(self, profile_name: Optional[str] = None) -> ColorProfile:
        name = profile_name or self.config.default_profile
        entry = self.config.profiles.get(name)
        if entry is None:
            raise UnknownColorProfile(name, self.config.profiles.keys())

        path = self.profiles_dir / entry.filename
        return ColorProfile(
            registry_name=name,
            file_path=str(path.resolve()),
            is_valid=self.validator.is_valid_profile(path),
        )

    def resolve_path(self, profile_name: Optional[str] = None) -> Optional[str]:
        """Absolute profile path, or None when the engine should use its built-in conversion."""
        profile = self.resolve(profile_name)
        return profile.file_path if profile.is_valid else None
