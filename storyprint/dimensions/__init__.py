"""Physical page, spine and cover measurements"""

from storyprint.dimensions.calculator import PrintDimensions, calculate_dimensions, spine_width_mm

__all__ = ["PrintDimensions", "calculate_dimensions", "spine_width_mm"]
