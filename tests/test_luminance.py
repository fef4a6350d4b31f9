"""Luminance, gradient and illumination helpers."""

from __future__ import annotations

import numpy as np
import pytest

from ascii_world.luminance import (
    edge_aware_smooth,
    local_mean,
    luminance,
    luminance_linear,
    percentile_threshold,
    reflectance_log,
    sobel_gradient,
)


def _rgba(color, h: int = 1, w: int = 1) -> np.ndarray:
    return np.full((h, w, 4), color, dtype=np.uint8)


def _step_edge(h: int = 6, w: int = 8) -> np.ndarray:
    field = np.zeros((h, w))
    field[:, w // 2:] = 255.0
    return field


class TestLuminance:
    def test_perceptual_weights(self):
        assert luminance(_rgba((255, 0, 0, 255)))[0, 0] == pytest.approx(76.245)
        assert luminance(_rgba((0, 255, 0, 255)))[0, 0] == pytest.approx(149.685)
        assert luminance(_rgba((0, 0, 255, 255)))[0, 0] == pytest.approx(29.07)

    def test_alpha_is_ignored(self):
        opaque = luminance(_rgba((40, 80, 120, 255)))
        clear = luminance(_rgba((40, 80, 120, 0)))
        assert np.array_equal(opaque, clear)

    def test_linear_extremes(self):
        assert luminance_linear(_rgba((255, 255, 255, 255)))[0, 0] == pytest.approx(1.0)
        assert luminance_linear(_rgba((0, 0, 0, 255)))[0, 0] == pytest.approx(0.0)

    def test_linear_mid_gray_is_darker_than_perceptual(self):
        linear = luminance_linear(_rgba((128, 128, 128, 255)))[0, 0]
        assert linear == pytest.approx(0.2158605, abs=1e-5)
        assert linear < 128 / 255


class TestSobelGradient:
    def test_flat_image_is_all_zero(self):
        gradient = sobel_gradient(np.full((5, 5), 90.0))
        assert gradient.shape == (5, 5)
        assert np.all(gradient == 0)

    def test_normalized_to_unit_maximum(self):
        gradient = sobel_gradient(_step_edge())
        assert gradient.max() == 1.0
        assert gradient.min() >= 0.0

    def test_border_ring_is_zero(self):
        rng = np.random.RandomState(7)
        gradient = sobel_gradient(rng.uniform(0, 255, (6, 7)))
        assert np.all(gradient[0, :] == 0)
        assert np.all(gradient[-1, :] == 0)
        assert np.all(gradient[:, 0] == 0)
        assert np.all(gradient[:, -1] == 0)

    def test_edge_columns_carry_the_gradient(self):
        gradient = sobel_gradient(_step_edge())
        # the step sits between columns 3 and 4
        assert np.all(gradient[1:-1, 3:5] == 1.0)
        assert np.all(gradient[1:-1, 1:3] == 0.0)

    def test_tiny_images_do_not_fail(self):
        assert np.all(sobel_gradient(np.array([[10.0, 200.0]])) == 0)


class TestIlluminationHelpers:
    def test_smooth_strength_zero_is_identity(self):
        field = np.random.RandomState(1).uniform(0, 255, (5, 5))
        out = edge_aware_smooth(field, np.zeros_like(field), 0.0)
        assert np.array_equal(out, field)
        assert out is not field

    def test_smooth_keeps_flat_field(self):
        field = np.full((4, 4), 120.0)
        out = edge_aware_smooth(field, np.zeros_like(field), 0.25)
        assert np.allclose(out, field)

    def test_smooth_skips_full_strength_edges(self):
        field = np.random.RandomState(3).uniform(0, 255, (5, 5))
        out = edge_aware_smooth(field, np.ones_like(field), 1.0)
        assert np.allclose(out, field)

    def test_local_mean_of_constant(self):
        assert np.allclose(local_mean(np.full((4, 6), 3.0), 2), 3.0)

    def test_reflectance_is_normalized(self):
        linear = np.random.RandomState(5).uniform(0.05, 1.0, (6, 6))
        reflectance = reflectance_log(linear, local_mean(linear, 1))
        assert reflectance.min() == pytest.approx(0.0)
        assert reflectance.max() == pytest.approx(1.0)

    def test_percentile_threshold(self):
        field = np.array([0.0, 0.0, 0.0, 0.0, 1.0, 1.0, 1.0, 1.0])
        assert percentile_threshold(field, 50) == 0.0
        assert percentile_threshold(field, 75) == 1.0
