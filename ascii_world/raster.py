"""
Decode an image file and rasterize it to the pixel grid a render expects.

The renderer never resizes anything: one pixel becomes one glyph, or one
Braille dot.  This module picks the grid size from a column count, the image
aspect ratio and the character cell aspect, then resamples with Pillow.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Tuple, Union

from PIL import Image

DEFAULT_COLUMNS = 120
# Fallback monospace cell when the display font cannot be measured
DEFAULT_CHAR_WIDTH = 8.0
DEFAULT_CHAR_HEIGHT = 16.0


def _round(value: float) -> int:
    return int(math.floor(value + 0.5))


def grid_size(
    image_width: int,
    image_height: int,
    columns: int = DEFAULT_COLUMNS,
    braille: bool = False,
    char_width: float = DEFAULT_CHAR_WIDTH,
    char_height: float = DEFAULT_CHAR_HEIGHT,
) -> Tuple[int, int]:
    """Pixel dimensions to rasterize to for ``columns`` output characters.

    Rows are chosen so the text keeps the image's aspect ratio once drawn
    in cells of ``char_width x char_height``.  Braille characters cover
    2x4 pixels each.
    """
    if image_width <= 0 or image_height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {image_width}x{image_height}")
    if columns <= 0:
        raise ValueError(f"columns must be positive, got {columns}")

    aspect = image_width / image_height
    if braille:
        cell_aspect = 2 / 4
        rows = _round(columns * (1 / aspect) * (char_height / (char_width / cell_aspect)) / 2)
    else:
        rows = _round((columns / aspect) * (char_width / char_height))
    rows = max(1, rows)

    if braille:
        return columns * 2, rows * 4
    return columns, rows


def rasterize(
    image: Image.Image,
    columns: int = DEFAULT_COLUMNS,
    braille: bool = False,
    char_width: float = DEFAULT_CHAR_WIDTH,
    char_height: float = DEFAULT_CHAR_HEIGHT,
) -> Tuple[bytes, int, int]:
    """Resample ``image`` to its grid size; returns ``(rgba_bytes, width, height)``."""
    width, height = grid_size(image.width, image.height, columns, braille, char_width, char_height)
    resized = image.convert("RGBA").resize((width, height), Image.Resampling.LANCZOS)
    return resized.tobytes(), width, height


def load_pixels(
    path: Union[str, Path],
    columns: int = DEFAULT_COLUMNS,
    braille: bool = False,
    char_width: float = DEFAULT_CHAR_WIDTH,
    char_height: float = DEFAULT_CHAR_HEIGHT,
) -> Tuple[bytes, int, int]:
    """Open an image file and rasterize it for rendering."""
    with Image.open(path) as image:
        image.load()
        return rasterize(image, columns, braille, char_width, char_height)
