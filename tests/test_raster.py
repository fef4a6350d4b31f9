"""Grid sizing and Pillow rasterization."""

from __future__ import annotations

import pytest
from PIL import Image

from ascii_world.raster import grid_size, load_pixels, rasterize


class TestGridSize:
    def test_square_image_halves_rows(self):
        assert grid_size(100, 100, columns=40) == (40, 20)

    def test_wide_image(self):
        assert grid_size(200, 100, columns=40) == (40, 10)

    def test_braille_grid_is_cell_aligned(self):
        width, height = grid_size(100, 100, columns=10, braille=True)
        assert (width, height) == (20, 20)
        assert height % 4 == 0

    def test_at_least_one_row(self):
        assert grid_size(1000, 1, columns=10) == (10, 1)

    def test_char_cell_changes_rows(self):
        assert grid_size(100, 100, columns=40, char_width=10, char_height=10) == (40, 40)

    @pytest.mark.parametrize("args", [(0, 10, 10), (10, 0, 10), (10, 10, 0)])
    def test_rejects_bad_sizes(self, args):
        with pytest.raises(ValueError):
            grid_size(*args)


class TestRasterize:
    def test_returns_rgba_bytes(self):
        image = Image.new("RGB", (64, 32), (10, 20, 30))
        pixels, width, height = rasterize(image, columns=16)
        assert (width, height) == (16, 4)
        assert len(pixels) == width * height * 4
        assert pixels[3] == 255

    def test_load_pixels_from_disk(self, tmp_path):
        path = tmp_path / "tile.png"
        Image.new("RGBA", (40, 40), (255, 255, 255, 0)).save(path)
        pixels, width, height = load_pixels(path, columns=8, braille=True)
        assert (width, height) == (16, 16)
        assert len(pixels) == 16 * 16 * 4
