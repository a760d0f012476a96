"""Colour management: ICC profile resolution and Ghostscript conversion"""

from storyprint.color.profiles import (
    ColorProfile,
    ColorProfileResolver,
    IccProfileConfig,
    PlaceholderAwareValidator,
    load_icc_config,
)
from storyprint.color.ghostscript import (
    CMYKConversionEngine,
    PrintSetConversion,
    build_variant_path,
    generate_cmyk_filename,
)

__all__ = [
    "ColorProfile",
    "ColorProfileResolver",
    "IccProfileConfig",
    "PlaceholderAwareValidator",
    "load_icc_config",
    "CMYKConversionEngine",
    "PrintSetConversion",
    "build_variant_path",
    "generate_cmyk_filename",
]
