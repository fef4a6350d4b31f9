"""
Map grayscale intensities onto text.

Regular glyph sets use a 256-entry lookup from intensity to glyph.  Braille
output packs each 2x4 block of pixels into one Unicode Braille pattern, one
dot per sub-pixel brighter than ``BRAILLE_ON_THRESHOLD``.
"""

from __future__ import annotations

from typing import List, Sequence

import numpy as np

from .config import (
    BLANK_GLYPH,
    BRAILLE_BASE,
    BRAILLE_CELL_HEIGHT,
    BRAILLE_CELL_WIDTH,
    BRAILLE_DOT_ORDER,
    BRAILLE_ON_THRESHOLD,
)
from .segmentation import BoundingBox


def glyph_table(glyphs: Sequence[str], step: int) -> List[str]:
    """Glyph for every intensity 0..255; an empty glyph list maps to blanks."""
    count = len(glyphs)
    table = []
    for intensity in range(256):
        idx = min(count - 1, max(0, int(np.floor(intensity / step + 0.5))))
        table.append(glyphs[idx] if count else BLANK_GLYPH)
    return table


def render_glyph_rows(
    gray: np.ndarray,
    bg_mask: np.ndarray,
    bbox: BoundingBox,
    table: Sequence[str],
) -> List[str]:
    """One string per row of ``bbox``; background pixels render blank."""
    lookup = np.array(table, dtype="<U1")
    window = (slice(bbox.top, bbox.bottom), slice(bbox.left, bbox.right))
    chars = lookup[gray[window]]
    chars[bg_mask[window].astype(bool)] = BLANK_GLYPH
    return ["".join(row) for row in chars]


def braille_bbox(bbox: BoundingBox) -> BoundingBox:
    """Grow ``bbox`` outward to whole 2x4 Braille cells."""
    cw, ch = BRAILLE_CELL_WIDTH, BRAILLE_CELL_HEIGHT
    return BoundingBox(
        left=(bbox.left // cw) * cw,
        top=(bbox.top // ch) * ch,
        right=-(-bbox.right // cw) * cw,
        bottom=-(-bbox.bottom // ch) * ch,
    )


def _dot_weights() -> np.ndarray:
    """Bit value for each (row, col) sub-pixel of a cell."""
    weights = np.zeros((BRAILLE_CELL_HEIGHT, BRAILLE_CELL_WIDTH), dtype=np.int64)
    for i, dot in enumerate(BRAILLE_DOT_ORDER):
        col, row = divmod(i, BRAILLE_CELL_HEIGHT)
        weights[row, col] = 1 << (dot - 1)
    return weights


def pack_braille_cell(cell: np.ndarray) -> str:
    """Pack a 4x2 block of intensities into a Braille character."""
    on = np.asarray(cell) > BRAILLE_ON_THRESHOLD
    return chr(BRAILLE_BASE + int((on * _dot_weights()).sum()))


def render_braille_rows(gray: np.ndarray, bbox: BoundingBox) -> List[str]:
    """Braille rows covering ``bbox`` after 2x4 alignment.

    Sub-pixels outside the buffer count as unlit.
    """
    box = braille_bbox(bbox)
    h, w = gray.shape
    region = np.zeros((box.height, box.width), dtype=np.uint8)
    src_bottom, src_right = min(h, box.bottom), min(w, box.right)
    region[: src_bottom - box.top, : src_right - box.left] = gray[
        box.top:src_bottom, box.left:src_right
    ]

    on = (region > BRAILLE_ON_THRESHOLD).astype(np.int64)
    codes = np.zeros(
        (box.height // BRAILLE_CELL_HEIGHT, box.width // BRAILLE_CELL_WIDTH), dtype=np.int64
    )
    weights = _dot_weights()
    for row in range(BRAILLE_CELL_HEIGHT):
        for col in range(BRAILLE_CELL_WIDTH):
            codes += on[row::BRAILLE_CELL_HEIGHT, col::BRAILLE_CELL_WIDTH] * weights[row, col]

    return ["".join(chr(BRAILLE_BASE + int(code)) for code in line) for line in codes]
