"""Public interface for the ASCII World image-to-text renderer."""

from __future__ import annotations

from .config import CHARACTER_SETS, GlyphSet, RenderOptions, SegmentationMode, SegmentationProfile
from .renderer import InvalidImageError, compute_bbox, render_ascii
from .segmentation import BoundingBox
from .worker import RenderWorker, render_or_none

__version__ = "0.1.0"

__all__ = [
    "BoundingBox",
    "CHARACTER_SETS",
    "GlyphSet",
    "InvalidImageError",
    "RenderOptions",
    "RenderWorker",
    "SegmentationMode",
    "SegmentationProfile",
    "compute_bbox",
    "render_ascii",
    "render_or_none",
]
