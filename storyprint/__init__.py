"""Print-ready PDF production for illustrated stories: interior, cover, RGB and CMYK."""

__version__ = "1.0.0"
