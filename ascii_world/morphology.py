"""Edge-gated binary morphology for cleaning background masks."""

from __future__ import annotations

from typing import Optional

import cv2
import numpy as np

from .config import MORPH_EDGE_THRESHOLD

_KERNEL = np.ones((3, 3), dtype=np.uint8)


def _gate(result: np.ndarray, mask: np.ndarray, edge_mask: Optional[np.ndarray]) -> np.ndarray:
    if edge_mask is None:
        return result
    return np.where(edge_mask.astype(bool), mask, result).astype(np.uint8)


def erode(mask: np.ndarray, edge_mask: Optional[np.ndarray] = None) -> np.ndarray:
    """A pixel stays on only if its whole 3x3 neighbourhood is on."""
    mask = np.ascontiguousarray(mask, dtype=np.uint8)
    eroded = cv2.erode(mask, _KERNEL, borderType=cv2.BORDER_REPLICATE)
    return _gate(eroded, mask, edge_mask)


def dilate(mask: np.ndarray, edge_mask: Optional[np.ndarray] = None) -> np.ndarray:
    """A pixel turns on if any pixel of its 3x3 neighbourhood is on."""
    mask = np.ascontiguousarray(mask, dtype=np.uint8)
    dilated = cv2.dilate(mask, _KERNEL, borderType=cv2.BORDER_REPLICATE)
    return _gate(dilated, mask, edge_mask)


def refine_masks(
    bg_mask: np.ndarray,
    gradient: np.ndarray,
    passes: int,
    edge_threshold: float = MORPH_EDGE_THRESHOLD,
) -> np.ndarray:
    """Close the background and open the foreground, leaving edges alone.

    Each pass dilates then erodes the background (filling pinholes) and
    erodes then dilates the foreground complement (dropping speckle).  A
    pixel ends up foreground only if it survives both.  Pixels whose
    gradient exceeds ``edge_threshold`` keep their input value.
    """
    if passes <= 0:
        return bg_mask

    edge_mask = (gradient > edge_threshold).astype(np.uint8)
    bg = np.ascontiguousarray(bg_mask, dtype=np.uint8)
    fg = (1 - bg).astype(np.uint8)
    for _ in range(passes):
        bg = erode(dilate(bg, edge_mask), edge_mask)
        fg = dilate(erode(fg, edge_mask), edge_mask)

    return (bg.astype(bool) | ~fg.astype(bool)).astype(np.uint8)
