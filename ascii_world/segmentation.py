"""
Background / foreground classification and foreground cropping.

Four classifiers are available.  The border heuristic looks only at the
outer ring of the image and picks a transparent, white or black background
colour.  The local classifiers (hard Bradley threshold, soft sigmoid
probability and reflectance percentile) compare each pixel with its
neighbourhood through integral tables and refuse to call strong edges
background.

Masks are ``uint8`` arrays where 1 marks background.
"""

from __future__ import annotations

import logging
from typing import Callable, NamedTuple, Optional

import numpy as np

from . import integral
from .config import (
    BLACK_BRIGHTNESS,
    BORDER_DOMINANCE,
    DEFAULT_GRADIENT_GATE,
    EDGE_PROBABILITY_SUPPRESSION,
    EPSILON,
    MIN_SIGMOID_BETA,
    OPAQUE_ALPHA,
    TRANSPARENT_ALPHA,
    WHITE_BRIGHTNESS,
)
from .luminance import local_mean, luminance, percentile_threshold, reflectance_log

logger = logging.getLogger(__name__)

BackgroundPredicate = Callable[[np.ndarray], np.ndarray]


class BoundingBox(NamedTuple):
    """Half-open pixel rectangle ``[left, right) x [top, bottom)``."""

    left: int
    top: int
    right: int
    bottom: int

    @classmethod
    def full_frame(cls, width: int, height: int) -> "BoundingBox":
        return cls(0, 0, width, height)

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top


# ---------------------------------------------------------------------------
# Border heuristic
# ---------------------------------------------------------------------------


def _border_ring(rgba: np.ndarray) -> np.ndarray:
    h = rgba.shape[0]
    parts = [rgba[0], rgba[h - 1]]
    if h > 2:
        parts.append(rgba[1:h - 1, 0])
        parts.append(rgba[1:h - 1, -1])
    return np.concatenate(parts, axis=0)


def _is_transparent(rgba: np.ndarray) -> np.ndarray:
    return rgba[..., 3] < TRANSPARENT_ALPHA


def _is_white(rgba: np.ndarray) -> np.ndarray:
    return (luminance(rgba) >= WHITE_BRIGHTNESS) & (rgba[..., 3] >= OPAQUE_ALPHA)


def _is_black(rgba: np.ndarray) -> np.ndarray:
    return (luminance(rgba) <= BLACK_BRIGHTNESS) & (rgba[..., 3] >= OPAQUE_ALPHA)


def _never(rgba: np.ndarray) -> np.ndarray:
    return np.zeros(rgba.shape[:2], dtype=bool)


def detect_background(rgba: np.ndarray) -> BackgroundPredicate:
    """Guess the background colour class from the image border.

    Returns a predicate mapping an RGBA array to a boolean background mask.
    When no class dominates the border, nothing is background.
    """
    ring = _border_ring(rgba)
    samples = ring.shape[0]
    transparent = int(np.count_nonzero(_is_transparent(ring)))
    white = int(np.count_nonzero(_is_white(ring)))
    black = int(np.count_nonzero(_is_black(ring)))
    floor = samples * BORDER_DOMINANCE

    if transparent >= max(white, black) and transparent > floor:
        logger.debug("Border heuristic: transparent background (%d/%d)", transparent, samples)
        return _is_transparent
    if white >= max(black, transparent) and white > floor:
        logger.debug("Border heuristic: white background (%d/%d)", white, samples)
        return _is_white
    if black >= max(white, transparent) and black > floor:
        logger.debug("Border heuristic: black background (%d/%d)", black, samples)
        return _is_black
    logger.debug("Border heuristic: no dominant background class")
    return _never


def heuristic_background_mask(rgba: np.ndarray) -> np.ndarray:
    predicate = detect_background(rgba)
    return predicate(rgba).astype(np.uint8)


# ---------------------------------------------------------------------------
# Local classifiers
# ---------------------------------------------------------------------------


def adaptive_background_mask(
    field: np.ndarray,
    radius: int,
    t: float,
    gradient: Optional[np.ndarray] = None,
    grad_threshold: float = DEFAULT_GRADIENT_GATE,
) -> np.ndarray:
    """Bradley adaptive threshold: background iff ``value >= mean * (1 - t)``.

    Pixels whose gradient exceeds ``grad_threshold`` are always foreground.
    """
    values = np.asarray(field, dtype=np.float64)
    sums, area = integral.box_sum(integral.build(values), radius)
    mean = sums / area
    background = values >= mean * (1.0 - t)
    if gradient is not None:
        background &= ~(gradient > grad_threshold)
    return background.astype(np.uint8)


def soft_background_probability(
    field: np.ndarray,
    radius: int,
    k: float,
    gradient: Optional[np.ndarray] = None,
    grad_threshold: float = DEFAULT_GRADIENT_GATE,
) -> np.ndarray:
    """Per-pixel background probability in [0, 1].

    Pixels darker than ``mean - k * std`` of their window lean towards
    foreground; the sigmoid softness grows with local contrast.  Strong
    edges have their probability scaled down by up to
    ``EDGE_PROBABILITY_SUPPRESSION``.
    """
    values = np.asarray(field, dtype=np.float64)
    table, table_sq = integral.build2(values)
    mean, std = integral.box_stats(table, table_sq, radius)
    threshold = mean - k * std
    beta = np.maximum(MIN_SIGMOID_BETA, 0.5 * std + 5.0)
    z = (values - threshold) / beta
    probability = 1.0 / (1.0 + np.exp(-z))

    if gradient is not None:
        ramp = (gradient - grad_threshold) / max(EPSILON, 1.0 - grad_threshold)
        gate = np.where(gradient > grad_threshold, np.minimum(1.0, ramp), 0.0)
        probability *= 1.0 - EDGE_PROBABILITY_SUPPRESSION * gate

    return np.clip(probability, 0.0, 1.0)


def retinex_background_mask(
    linear: np.ndarray,
    radius: int,
    percentile: float,
    gradient: Optional[np.ndarray] = None,
    grad_threshold: float = DEFAULT_GRADIENT_GATE,
) -> np.ndarray:
    """Background where reflectance over local illumination is high.

    ``linear`` is linear-light luminance; illumination is its windowed mean.
    """
    reflectance = reflectance_log(linear, local_mean(linear, radius))
    cutoff = percentile_threshold(reflectance, percentile)
    background = reflectance >= cutoff
    if gradient is not None:
        background &= ~(gradient > grad_threshold)
    return background.astype(np.uint8)


# ---------------------------------------------------------------------------
# Cropping
# ---------------------------------------------------------------------------


def foreground_bbox(mask: np.ndarray, compact: bool = False) -> BoundingBox:
    """Tight box around non-background pixels with a 1px margin.

    Compact mode, or a frame with no foreground at all, yields the full frame.
    """
    height, width = mask.shape
    if compact:
        return BoundingBox.full_frame(width, height)

    foreground = mask == 0
    rows = np.nonzero(foreground.any(axis=1))[0]
    cols = np.nonzero(foreground.any(axis=0))[0]
    if rows.size == 0 or cols.size == 0:
        return BoundingBox.full_frame(width, height)

    return BoundingBox(
        left=max(0, int(cols[0]) - 1),
        top=max(0, int(rows[0]) - 1),
        right=min(width, int(cols[-1]) + 2),
        bottom=min(height, int(rows[-1]) + 2),
    )
