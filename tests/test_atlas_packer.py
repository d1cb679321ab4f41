import itertools
import logging
import math
import unittest

import numpy as np
import pytest

from uvgen.core.atlas_packer import (
    PackedRect,
    RectPacker,
    pack_islands,
    sort_islands,
)
from uvgen.core.box_projector import project_triangles
from uvgen.core.island_segmenter import UvIsland, find_islands
from uvgen.core.seam_splitter import split_seams


def _cube_islands():
    vertices = np.array(
        [
            [-0.5, -0.5, 0.5],
            [-0.5, 0.5, 0.5],
            [0.5, 0.5, 0.5],
            [0.5, -0.5, 0.5],
            [-0.5, -0.5, -0.5],
            [-0.5, 0.5, -0.5],
            [0.5, 0.5, -0.5],
            [0.5, -0.5, -0.5],
        ],
        dtype=np.float64,
    )
    triangles = np.array(
        [
            [2, 1, 0], [3, 2, 0],
            [4, 5, 6], [4, 6, 7],
            [7, 6, 2], [2, 3, 7],
            [0, 1, 5], [0, 5, 4],
            [5, 1, 2], [5, 2, 6],
            [3, 0, 4], [7, 3, 4],
        ],
        dtype=np.int64,
    )
    uv_box = project_triangles(vertices, triangles)
    seams = split_seams(vertices, triangles, uv_box)
    return find_islands(seams.triangles, uv_box.projections)


def _box_island(width, height):
    proj = np.array([[[0.0, 0.0], [width, 0.0], [width, height]]])
    return UvIsland.from_triangles([0], proj)


class TestRectPacker(unittest.TestCase):
    def test_places_inside_canvas(self):
        packer = RectPacker()

        first = packer.find_free(0.6, 0.6)
        second = packer.find_free(0.4, 1.0)

        self.assertEqual((first.x, first.y), (0.0, 0.0))
        self.assertAlmostEqual(second.x, 0.6)
        self.assertAlmostEqual(second.y, 0.0)
        self.assertFalse(first.overlaps(second))
        self.assertLessEqual(second.x_max, 1.0 + 1e-9)

    def test_exact_fill_stays_inside_canvas(self):
        packer = RectPacker()

        left = packer.find_free(0.6, 1.0)
        right = packer.find_free(0.4, 1.0)

        self.assertIsNotNone(right)
        self.assertAlmostEqual(right.x, 0.6)
        self.assertLessEqual(right.x_max, 1.0)
        self.assertLessEqual(right.y_max, 1.0)
        self.assertFalse(left.overlaps(right))

    def test_keeps_placing_after_a_miss(self):
        packer = RectPacker()

        self.assertIsNotNone(packer.find_free(0.5, 0.5))
        self.assertIsNone(packer.find_free(0.9, 0.9))

        small = packer.find_free(0.1, 0.1)
        self.assertIsNotNone(small)
        self.assertLessEqual(small.x_max, 1.0)
        self.assertLessEqual(small.y_max, 1.0)
        self.assertFalse(small.overlaps(PackedRect(0.0, 0.0, 0.5, 0.5)))

    def test_rejects_what_does_not_fit(self):
        packer = RectPacker()
        self.assertIsNone(packer.find_free(1.2, 0.1))
        self.assertIsNone(packer.find_free(float("nan"), 0.1))

    def test_reset_clears_placements(self):
        packer = RectPacker()
        packer.find_free(1.0, 1.0)
        self.assertIsNone(packer.find_free(0.1, 0.1))

        packer.reset(1.0, 1.0)
        rect = packer.find_free(1.0, 1.0)
        self.assertEqual((rect.x, rect.y, rect.width, rect.height), (0.0, 0.0, 1.0, 1.0))

    def test_zero_size_still_occupies_a_slot(self):
        rect = RectPacker().find_free(0.0, 0.0)
        self.assertIsNotNone(rect)
        self.assertEqual(rect.width, 0.0)


class TestPackIslands(unittest.TestCase):
    def test_cube_layout(self):
        spacing = 0.005
        islands = _cube_islands()

        layout = pack_islands(islands, spacing)

        self.assertTrue(layout.complete)
        self.assertEqual(layout.n_placed, 10)
        self.assertEqual(layout.attempts, 2)

        square_side = math.sqrt(10.0) + spacing * 10
        self.assertAlmostEqual(layout.square_side, square_side)
        self.assertAlmostEqual(layout.scale, 1.0 / (square_side * 1.1 * 1.33), places=12)

        for rect in layout.rects:
            self.assertAlmostEqual(rect.width, layout.scale + 2 * spacing)
            self.assertGreaterEqual(rect.x, 0.0)
            self.assertGreaterEqual(rect.y, 0.0)
            self.assertLessEqual(rect.x_max, 1.0 + 1e-9)
            self.assertLessEqual(rect.y_max, 1.0 + 1e-9)
        self.assertEqual((layout.rects[0].x, layout.rects[0].y), (0.0, 0.0))

        for a, b in itertools.combinations(layout.rects, 2):
            self.assertFalse(a.overlaps(b, tolerance=1e-9))

    def test_islands_sorted_by_descending_area(self):
        islands = [_box_island(1, 1), _box_island(2, 2), _box_island(1, 1), _box_island(2, 2)]

        ordered = sort_islands(islands)

        self.assertEqual([id(i) for i in ordered], [id(islands[k]) for k in (1, 3, 0, 2)])

    def test_incomplete_layout_keeps_partial_placements(self):
        islands = _cube_islands()

        layout = pack_islands(islands, 0.005, max_attempts=1)

        self.assertFalse(layout.complete)
        self.assertEqual(layout.attempts, 1)
        self.assertEqual(len(layout.rects), 10)
        placed = layout.n_placed
        self.assertTrue(0 < placed < 10)
        self.assertTrue(all(r is not None for r in layout.rects[:placed]))
        self.assertTrue(all(r is None for r in layout.rects[placed:]))
        self.assertEqual(len(list(layout.placements())), placed)

    def test_retry_shrinks_scale(self):
        islands = _cube_islands()
        first = pack_islands(islands, 0.005, max_attempts=1)
        second = pack_islands(islands, 0.005, max_attempts=2)
        self.assertAlmostEqual(second.scale, first.scale / 1.33)

    def test_degenerate_islands_use_unit_scale(self):
        point = UvIsland.from_triangles([0], np.zeros((1, 3, 2)))

        layout = pack_islands([point, point], 0.0)

        self.assertEqual(layout.square_side, 0.0)
        self.assertEqual(layout.scale, 1.0)
        self.assertTrue(layout.complete)

    def test_empty(self):
        layout = pack_islands([], 0.005)
        self.assertTrue(layout.complete)
        self.assertEqual(layout.rects, [])
        self.assertEqual(layout.attempts, 0)

    def test_invalid_arguments(self):
        islands = [_box_island(1, 1)]
        with self.assertRaises(ValueError):
            pack_islands(islands, -0.01)
        with self.assertRaises(ValueError):
            pack_islands(islands, float("inf"))
        with self.assertRaises(ValueError):
            pack_islands(islands, 0.005, max_attempts=0)


def test_spacing_separates_island_content():
    spacing = 0.02
    layout = pack_islands(_cube_islands(), spacing)
    assert layout.complete

    content = [
        PackedRect(r.x + spacing, r.y + spacing, r.width - 2 * spacing, r.height - 2 * spacing)
        for r in layout.rects
    ]
    for a, b in itertools.combinations(content, 2):
        gap_x = max(b.x - a.x_max, a.x - b.x_max)
        gap_y = max(b.y - a.y_max, a.y - b.y_max)
        assert max(gap_x, gap_y) >= 2 * spacing - 1e-9


def test_incomplete_packing_is_logged(caplog):
    huge = [_box_island(1, 1), _box_island(1, 1)]
    with caplog.at_level(logging.WARNING, logger="uvgen.core.atlas_packer"):
        layout = pack_islands(huge, 0.3, max_attempts=3)

    assert not layout.complete
    assert any("incomplete" in r.getMessage() for r in caplog.records)


@pytest.mark.parametrize("spacing", [0.0, 0.005, 0.05])
def test_cube_always_packs(spacing):
    layout = pack_islands(_cube_islands(), spacing)
    assert layout.complete
    assert 0.0 < layout.scale < 1.0
