"""
Tone pipeline: gamma, optional posterize/median simplification, and
Floyd-Steinberg error diffusion over the grayscale buffer.

Grayscale buffers are ``uint8`` arrays.  Every intermediate write is rounded
half-to-even and clamped to 0..255, so results are identical run to run.
"""

from __future__ import annotations

import math

import numpy as np

from .config import (
    MAX_PREPROCESS_STRENGTH,
    PREPROCESS_LEVELS,
    PREPROCESS_LEVELS_COMPACT,
    PREPROCESS_MEDIAN_RADIUS,
)

# Floyd-Steinberg kernel: (dx, dy, weight)
DIFFUSION_KERNEL = (
    (1, 0, 7 / 16),
    (-1, 1, 3 / 16),
    (0, 1, 5 / 16),
    (1, 1, 1 / 16),
)


def _round_half_up(values: np.ndarray) -> np.ndarray:
    return np.floor(values + 0.5)


def _to_byte(values: np.ndarray) -> np.ndarray:
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)


def gamma_lut(gamma: float) -> np.ndarray:
    """256-entry lookup table ``255 * (i / 255) ** gamma``."""
    levels = np.arange(256, dtype=np.float64) / 255.0
    return _to_byte(np.power(levels, gamma) * 255.0)


def apply_tone(luma: np.ndarray, gamma: float) -> np.ndarray:
    """Quantize luminance to 0..255 and run it through the gamma table."""
    lut = gamma_lut(gamma)
    idx = np.clip(_round_half_up(luma), 0, 255).astype(np.intp)
    return lut[idx]


def posterize(gray: np.ndarray, levels: int) -> np.ndarray:
    """Snap each sample to the nearest of ``levels`` evenly spaced rungs."""
    if levels <= 1:
        levels = 2
    step = 255.0 / (levels - 1)
    return _to_byte(_round_half_up(gray.astype(np.float64) / step) * step)


def median_filter(gray: np.ndarray, radius: int = 1) -> np.ndarray:
    """Median over a square window with replicated borders.

    Sorts the whole neighbourhood; windows are tiny so selection tricks buy
    nothing here.
    """
    h, w = gray.shape
    size = 2 * radius + 1
    padded = np.pad(gray, radius, mode="edge")
    stack = np.stack(
        [padded[dy:dy + h, dx:dx + w] for dy in range(size) for dx in range(size)]
    )
    stack.sort(axis=0)
    return stack[stack.shape[0] // 2].astype(np.uint8)


def preprocess_blend(gray: np.ndarray, compact: bool, strength: float) -> np.ndarray:
    """Simplify the buffer, then blend the original back in.

    ``strength`` 0 keeps only the posterized/median result, 10 keeps only
    the original.
    """
    levels = PREPROCESS_LEVELS_COMPACT if compact else PREPROCESS_LEVELS
    simplified = median_filter(posterize(gray, levels), PREPROCESS_MEDIAN_RADIUS)
    blend = min(1.0, max(0.0, (strength or 0) / MAX_PREPROCESS_STRENGTH))
    mixed = simplified.astype(np.float64) * (1.0 - blend) + gray.astype(np.float64) * blend
    return np.clip(_round_half_up(mixed), 0, 255).astype(np.uint8)


def glyph_step(glyph_count: int) -> int:
    """Intensity step between adjacent glyphs."""
    return max(1, 255 // max(1, glyph_count))


def _store(value: float) -> int:
    # round() is half-to-even, matching a clamped byte store
    return min(255, max(0, int(round(value))))


def floyd_steinberg(gray: np.ndarray, bg_mask: np.ndarray, step: int) -> np.ndarray:
    """Error-diffuse ``gray`` onto multiples of ``step``, foreground only.

    Pixels are visited row-major; the order is part of the result.  Error
    that would land on a background pixel is dropped.
    """
    h, w = gray.shape
    buf = gray.astype(np.int64).tolist()
    background = bg_mask.astype(bool).tolist()

    for y in range(h):
        row = buf[y]
        bg_row = background[y]
        for x in range(w):
            if bg_row[x]:
                continue
            old = row[x]
            quantized = math.floor(old / step + 0.5) * step
            err = old - quantized
            row[x] = _store(quantized)
            if not err:
                continue
            for dx, dy, weight in DIFFUSION_KERNEL:
                nx, ny = x + dx, y + dy
                if 0 <= nx < w and ny < h and not background[ny][nx]:
                    buf[ny][nx] = _store(buf[ny][nx] + err * weight)

    return np.asarray(buf, dtype=np.uint8).reshape(h, w)
