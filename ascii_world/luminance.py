"""
Scalar fields derived from an RGBA buffer: luminance, gradient magnitude and
a handful of illumination helpers used by the local classifiers.
"""

from __future__ import annotations

import cv2
import numpy as np

from . import integral
from .config import EDGE_SMOOTH_BLEND, EPSILON

PERCEPTUAL_WEIGHTS = (0.299, 0.587, 0.114)
REC709_WEIGHTS = (0.2126, 0.7152, 0.0722)

# 3x3 Gaussian spatial weights for the bilateral pass
_SPATIAL_KERNEL = np.array([[1, 2, 1], [2, 4, 2], [1, 2, 1]], dtype=np.float64)


def luminance(rgba: np.ndarray) -> np.ndarray:
    """Perceptual luminance (0..255) from raw 8-bit channels."""
    rgb = rgba[..., :3].astype(np.float64)
    wr, wg, wb = PERCEPTUAL_WEIGHTS
    return wr * rgb[..., 0] + wg * rgb[..., 1] + wb * rgb[..., 2]


def srgb_to_linear(channel: np.ndarray) -> np.ndarray:
    v = np.asarray(channel, dtype=np.float64) / 255.0
    return np.where(v <= 0.04045, v / 12.92, np.power((v + 0.055) / 1.055, 2.4))


def luminance_linear(rgba: np.ndarray) -> np.ndarray:
    """Linear-light luminance (0..1): sRGB decode then Rec. 709 weights."""
    wr, wg, wb = REC709_WEIGHTS
    return (
        wr * srgb_to_linear(rgba[..., 0])
        + wg * srgb_to_linear(rgba[..., 1])
        + wb * srgb_to_linear(rgba[..., 2])
    )


def sobel_gradient(field: np.ndarray) -> np.ndarray:
    """L1 Sobel magnitude normalized to [0, 1].

    Only interior pixels carry a gradient; the outer ring stays at zero.
    A flat image yields an all-zero field.
    """
    values = np.asarray(field, dtype=np.float64)
    gx = cv2.Sobel(values, cv2.CV_64F, 1, 0, ksize=3, borderType=cv2.BORDER_REPLICATE)
    gy = cv2.Sobel(values, cv2.CV_64F, 0, 1, ksize=3, borderType=cv2.BORDER_REPLICATE)
    magnitude = np.abs(gx) + np.abs(gy)
    magnitude[0, :] = 0.0
    magnitude[-1, :] = 0.0
    magnitude[:, 0] = 0.0
    magnitude[:, -1] = 0.0
    peak = max(EPSILON, float(magnitude.max()))
    return np.minimum(1.0, magnitude / peak)


def edge_aware_smooth(field: np.ndarray, gradient: np.ndarray, strength: float) -> np.ndarray:
    """Blend a 3x3 bilateral pass into ``field`` away from strong edges."""
    values = np.asarray(field, dtype=np.float64)
    if strength <= 0:
        return values.copy()
    h, w = values.shape
    sigma_r = 4.0 + strength * 5.0
    inv_two_sigma_sq = 1.0 / (2.0 * sigma_r * sigma_r)
    padded = np.pad(values, 1, mode="edge")

    weight_sum = np.zeros_like(values)
    value_sum = np.zeros_like(values)
    for dy in range(3):
        for dx in range(3):
            neighbour = padded[dy:dy + h, dx:dx + w]
            diff = neighbour - values
            weight = _SPATIAL_KERNEL[dy, dx] * np.exp(-diff * diff * inv_two_sigma_sq)
            weight_sum += weight
            value_sum += neighbour * weight

    bilateral = value_sum / np.maximum(EPSILON, weight_sum)
    edge_factor = 1.0 - np.minimum(1.0, gradient)
    blend = np.clip(strength * edge_factor * EDGE_SMOOTH_BLEND, 0.0, 1.0)
    return values * (1.0 - blend) + bilateral * blend


def local_mean(field: np.ndarray, radius: int) -> np.ndarray:
    """Mean over a clipped square window around every pixel."""
    sums, area = integral.box_sum(integral.build(field), radius)
    return sums / area


def reflectance_log(linear: np.ndarray, illumination: np.ndarray) -> np.ndarray:
    """Retinex-style reflectance ``log(Y) - log(L)`` rescaled to [0, 1]."""
    r = np.log(linear + EPSILON) - np.log(illumination + EPSILON)
    lo, hi = float(r.min()), float(r.max())
    span = max(EPSILON, hi - lo)
    return np.clip((r - lo) / span, 0.0, 1.0)


def percentile_threshold(field: np.ndarray, percentile: float) -> float:
    """Histogram percentile of a [0, 1] field, quantized to 256 bins."""
    bins = 256
    values = np.asarray(field, dtype=np.float64).ravel()
    idx = np.clip(np.floor(values * (bins - 1)), 0, bins - 1).astype(np.int64)
    cumulative = np.cumsum(np.bincount(idx, minlength=bins))
    target = int(values.size * percentile // 100)
    reached = np.nonzero(cumulative >= target)[0]
    if reached.size == 0:
        return 0.5
    return float(reached[0]) / (bins - 1)
