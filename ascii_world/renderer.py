"""
Image-to-text rendering pipeline.

``render_ascii`` turns an RGBA pixel buffer into a character grid:

1. optional colour inversion on a working copy
2. luminance and Sobel gradient fields
3. background classification (border heuristic or a local classifier)
4. foreground bounding box
5. gamma tone curve, optional posterize/median blend
6. Floyd-Steinberg dithering of foreground pixels (glyph sets only)
7. glyph lookup or Braille packing

Every table, field and mask is built per call; nothing is shared between
invocations.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

import numpy as np

from .config import RenderOptions, SegmentationMode
from .glyphs import glyph_table, render_braille_rows, render_glyph_rows
from .luminance import edge_aware_smooth, luminance, luminance_linear, sobel_gradient
from .morphology import refine_masks
from .segmentation import (
    BoundingBox,
    adaptive_background_mask,
    foreground_bbox,
    heuristic_background_mask,
    retinex_background_mask,
    soft_background_probability,
)
from .tone import apply_tone, floyd_steinberg, glyph_step, preprocess_blend

logger = logging.getLogger(__name__)

PixelSource = Union[bytes, bytearray, memoryview, np.ndarray]


class InvalidImageError(ValueError):
    """Raised when a pixel buffer cannot describe a ``width x height`` image."""


def load_rgba(pixels: PixelSource, width: int, height: int) -> np.ndarray:
    """Validate a flat RGBA buffer and return a writable ``(h, w, 4)`` copy."""
    if width <= 0 or height <= 0:
        raise InvalidImageError(f"Image dimensions must be positive, got {width}x{height}")
    if isinstance(pixels, np.ndarray):
        flat = np.asarray(pixels, dtype=np.uint8).reshape(-1)
    else:
        flat = np.frombuffer(pixels, dtype=np.uint8)
    expected = width * height * 4
    if flat.size != expected:
        raise InvalidImageError(
            f"Pixel buffer holds {flat.size} bytes, expected {expected} for {width}x{height} RGBA"
        )
    return flat.reshape(height, width, 4).copy()


def invert_rgb(rgba: np.ndarray) -> np.ndarray:
    """Invert colour channels in place; alpha is untouched."""
    rgba[..., :3] = 255 - rgba[..., :3]
    return rgba


def classify_background(
    rgba: np.ndarray,
    luma: np.ndarray,
    gradient: np.ndarray,
    options: RenderOptions,
) -> np.ndarray:
    """Background mask (1 = background) for the selected segmentation mode."""
    mode = options.segmentation
    if mode is SegmentationMode.HEURISTIC:
        return heuristic_background_mask(rgba)

    profile = options.profile
    if mode is SegmentationMode.ADAPTIVE:
        smoothed = edge_aware_smooth(luma, gradient, profile.smooth_strength)
        mask = adaptive_background_mask(
            smoothed, profile.radius, profile.threshold, gradient, profile.gradient_gate
        )
    elif mode is SegmentationMode.SOFT:
        probability = soft_background_probability(
            luma, profile.radius, profile.threshold, gradient, profile.gradient_gate
        )
        mask = (probability >= 0.5).astype(np.uint8)
    else:
        mask = retinex_background_mask(
            luminance_linear(rgba),
            profile.radius,
            profile.retinex_percentile,
            gradient,
            profile.gradient_gate,
        )
    return refine_masks(mask, gradient, profile.morph_passes, profile.edge_threshold)


def _segment(pixels: PixelSource, width: int, height: int, options: RenderOptions):
    rgba = load_rgba(pixels, width, height)
    if options.invert_colors:
        invert_rgb(rgba)

    luma = luminance(rgba)
    gradient = sobel_gradient(luma)
    bg_mask = classify_background(rgba, luma, gradient, options)
    bbox = foreground_bbox(bg_mask, compact=options.compact_mode)
    return luma, bg_mask, bbox


def compute_bbox(
    pixels: PixelSource,
    width: int,
    height: int,
    options: Optional[RenderOptions] = None,
) -> BoundingBox:
    """Crop box ``render_ascii`` would use, before any Braille alignment."""
    _, _, bbox = _segment(pixels, width, height, options or RenderOptions())
    return bbox


def render_ascii(
    pixels: PixelSource,
    width: int,
    height: int,
    options: Optional[RenderOptions] = None,
) -> str:
    """Render an RGBA buffer to newline-separated text rows."""
    options = options or RenderOptions()
    luma, bg_mask, bbox = _segment(pixels, width, height, options)
    logger.debug(
        "Rendering %dx%d [%s/%s] bbox=%s background=%d px",
        width,
        height,
        options.glyph_set.value,
        options.segmentation.value,
        tuple(bbox),
        int(bg_mask.sum()),
    )

    gray = apply_tone(luma, options.gamma)
    if options.preprocess:
        gray = preprocess_blend(gray, options.compact_mode, options.preprocess_strength)

    if options.is_braille:
        rows = render_braille_rows(gray, bbox)
    else:
        step = glyph_step(len(options.glyphs))
        if options.dithering:
            gray = floyd_steinberg(gray, bg_mask, step)
        rows = render_glyph_rows(gray, bg_mask, bbox, glyph_table(options.glyphs, step))

    return "\n".join(rows)
