"""Glyph lookup and Braille packing."""

from __future__ import annotations

import numpy as np
import pytest

from ascii_world.glyphs import (
    braille_bbox,
    glyph_table,
    pack_braille_cell,
    render_braille_rows,
    render_glyph_rows,
)
from ascii_world.segmentation import BoundingBox


class TestGlyphTable:
    @pytest.mark.parametrize(
        "intensity, glyph",
        [(0, "#"), (42, "#"), (43, "."), (90, "."), (127, "."), (128, " "), (200, " "), (255, " ")],
    )
    def test_nearest_glyph(self, intensity, glyph):
        table = glyph_table(["#", ".", " "], 85)
        assert len(table) == 256
        assert table[intensity] == glyph

    def test_empty_glyph_list_is_blank(self):
        assert set(glyph_table([], 255)) == {" "}

    def test_single_glyph(self):
        assert set(glyph_table(["x"], 255)) == {"x"}


class TestGlyphRows:
    def test_rows_cover_bbox(self):
        gray = np.array([[0, 255, 0], [255, 0, 255]], dtype=np.uint8)
        bg = np.zeros_like(gray)
        rows = render_glyph_rows(gray, bg, BoundingBox(0, 0, 3, 2), glyph_table(["#", " "], 127))
        assert rows == ["# #", " # "]

    def test_background_is_blank(self):
        gray = np.zeros((2, 2), dtype=np.uint8)
        bg = np.array([[1, 0], [0, 1]], dtype=np.uint8)
        rows = render_glyph_rows(gray, bg, BoundingBox(0, 0, 2, 2), glyph_table(["#", " "], 127))
        assert rows == [" #", "# "]

    def test_crop(self):
        gray = np.zeros((4, 4), dtype=np.uint8)
        bg = np.zeros_like(gray)
        rows = render_glyph_rows(gray, bg, BoundingBox(1, 1, 3, 4), glyph_table(["#"], 255))
        assert rows == ["##", "##", "##"]


class TestBraille:
    def test_all_lit_cell(self):
        assert pack_braille_cell(np.full((4, 2), 255)) == "⣿"

    def test_all_dark_cell(self):
        assert pack_braille_cell(np.zeros((4, 2))) == "⠀"

    @pytest.mark.parametrize(
        "row, col, code",
        [(0, 0, 0x2801), (1, 0, 0x2802), (2, 0, 0x2804), (3, 0, 0x2840),
         (0, 1, 0x2808), (1, 1, 0x2810), (2, 1, 0x2820), (3, 1, 0x2880)],
    )
    def test_dot_positions(self, row, col, code):
        cell = np.zeros((4, 2))
        cell[row, col] = 200
        assert pack_braille_cell(cell) == chr(code)

    def test_threshold_is_strict(self):
        assert pack_braille_cell(np.full((4, 2), 127)) == "⠀"
        assert pack_braille_cell(np.full((4, 2), 128)) == "⣿"

    def test_bbox_alignment(self):
        assert braille_bbox(BoundingBox(1, 1, 5, 6)) == BoundingBox(0, 0, 6, 8)
        assert braille_bbox(BoundingBox(2, 4, 4, 8)) == BoundingBox(2, 4, 4, 8)

    def test_out_of_bounds_subpixels_are_unlit(self):
        gray = np.full((3, 1), 255, dtype=np.uint8)
        assert render_braille_rows(gray, BoundingBox(0, 0, 1, 3)) == ["⠇"]

    def test_multi_cell_rows(self):
        gray = np.zeros((8, 4), dtype=np.uint8)
        gray[:4, :2] = 255
        gray[4:, 2:] = 255
        rows = render_braille_rows(gray, BoundingBox(0, 0, 4, 8))
        assert rows == ["⣿⠀", "⠀⣿"]

    def test_rows_match_cell_packing(self):
        gray = np.random.RandomState(6).randint(0, 256, (8, 6)).astype(np.uint8)
        rows = render_braille_rows(gray, BoundingBox(0, 0, 6, 8))
        for cy, line in enumerate(rows):
            for cx, char in enumerate(line):
                cell = gray[cy * 4:cy * 4 + 4, cx * 2:cx * 2 + 2]
                assert char == pack_braille_cell(cell)
