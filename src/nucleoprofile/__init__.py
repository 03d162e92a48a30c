"""nucleoprofile — boundary profile segmentation and alignment for cell outlines."""

__version__ = "0.1.0"
