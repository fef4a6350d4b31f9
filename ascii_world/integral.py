"""
Integral images (summed-area tables) for constant-time window queries.

Tables carry a leading zero row and column, the same layout ``cv2.integral``
produces, so a table built from an ``(h, w)`` field has shape ``(h + 1, w + 1)``
and the sum over rows ``[y0, y1)`` and columns ``[x0, x1)`` is::

    T[y1, x1] - T[y0, x1] - T[y1, x0] + T[y0, x0]

Windows are squares of side ``2 * radius + 1`` clipped to the image.  A
clipped window simply covers fewer pixels; its area is recomputed from the
clipped rectangle rather than assumed constant.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np


def build(field: np.ndarray) -> np.ndarray:
    """Return the summed-area table of a 2D scalar field."""
    values = np.asarray(field, dtype=np.float64)
    if values.ndim != 2:
        raise ValueError("Integral tables are built from 2D fields.")
    h, w = values.shape
    table = np.zeros((h + 1, w + 1), dtype=np.float64)
    np.cumsum(np.cumsum(values, axis=0), axis=1, out=table[1:, 1:])
    return table


def build2(field: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Return summed-area tables of the field and of its squares."""
    values = np.asarray(field, dtype=np.float64)
    return build(values), build(values * values)


def _window(table: np.ndarray, x: int, y: int, radius: int) -> Tuple[int, int, int, int]:
    h, w = table.shape[0] - 1, table.shape[1] - 1
    x0 = max(0, x - radius)
    y0 = max(0, y - radius)
    x1 = min(w, x + radius + 1)
    y1 = min(h, y + radius + 1)
    return x0, y0, x1, y1


def _corner_sum(table: np.ndarray, x0: int, y0: int, x1: int, y1: int) -> float:
    return float(table[y1, x1] - table[y0, x1] - table[y1, x0] + table[y0, x0])


def range_sum(table: np.ndarray, x: int, y: int, radius: int) -> float:
    """Sum of the clipped square window centred on ``(x, y)``."""
    x0, y0, x1, y1 = _window(table, x, y, radius)
    return _corner_sum(table, x0, y0, x1, y1)


def range_stats(
    table: np.ndarray, table_sq: np.ndarray, x: int, y: int, radius: int
) -> Tuple[float, float]:
    """Mean and standard deviation of the clipped window centred on ``(x, y)``."""
    x0, y0, x1, y1 = _window(table, x, y, radius)
    area = max(1, (x1 - x0) * (y1 - y0))
    mean = _corner_sum(table, x0, y0, x1, y1) / area
    variance = _corner_sum(table_sq, x0, y0, x1, y1) / area - mean * mean
    return mean, float(np.sqrt(max(0.0, variance)))


def _window_edges(size: int, radius: int) -> Tuple[np.ndarray, np.ndarray]:
    centres = np.arange(size)
    lo = np.clip(centres - radius, 0, size)
    hi = np.clip(centres + radius + 1, 0, size)
    return lo, hi


def _box_corners(table: np.ndarray, radius: int):
    h, w = table.shape[0] - 1, table.shape[1] - 1
    y0, y1 = _window_edges(h, radius)
    x0, x1 = _window_edges(w, radius)
    area = (y1 - y0)[:, None] * (x1 - x0)[None, :]
    return (y0[:, None], y1[:, None], x0[None, :], x1[None, :]), area


def _gather(table: np.ndarray, corners) -> np.ndarray:
    y0, y1, x0, x1 = corners
    return table[y1, x1] - table[y0, x1] - table[y1, x0] + table[y0, x0]


def box_sum(table: np.ndarray, radius: int) -> Tuple[np.ndarray, np.ndarray]:
    """Window sums for every pixel at once, with the clipped window areas."""
    corners, area = _box_corners(table, radius)
    return _gather(table, corners), area.astype(np.float64)


def box_stats(
    table: np.ndarray, table_sq: np.ndarray, radius: int
) -> Tuple[np.ndarray, np.ndarray]:
    """Per-pixel windowed mean and standard deviation."""
    corners, area = _box_corners(table, radius)
    area = np.maximum(area, 1).astype(np.float64)
    mean = _gather(table, corners) / area
    variance = _gather(table_sq, corners) / area - mean * mean
    return mean, np.sqrt(np.maximum(variance, 0.0))
