import unittest

import numpy as np

from uvgen.core.box_projector import (
    as_triangle_array,
    as_vertex_array,
    project_triangles,
    validate_indices,
)
from uvgen.core.errors import InvalidIndexError, UvGenError
from uvgen.core.plane_classifier import BoxFace


def _cube():
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
    return vertices, triangles


class TestProjectTriangles(unittest.TestCase):
    def test_cube_faces(self):
        vertices, triangles = _cube()
        uv_box = project_triangles(vertices, triangles)

        expected = [
            BoxFace.PZ, BoxFace.PZ,
            BoxFace.NZ, BoxFace.NZ,
            BoxFace.PX, BoxFace.PX,
            BoxFace.NX, BoxFace.NX,
            BoxFace.PY, BoxFace.PY,
            BoxFace.NY, BoxFace.NY,
        ]
        self.assertEqual([BoxFace(int(f)) for f in uv_box.faces], expected)
        self.assertEqual(uv_box.n_triangles, 12)
        np.testing.assert_array_equal(uv_box.triangles_on(BoxFace.PX), [4, 5])
        self.assertEqual([len(b) for b in uv_box.buckets()], [2] * 6)

    def test_cube_projections_use_face_axes(self):
        vertices, triangles = _cube()
        uv_box = project_triangles(vertices, triangles)

        self.assertEqual(uv_box.projections.shape, (12, 3, 2))
        # +Z keeps (x, y)
        np.testing.assert_allclose(uv_box.projections[0], [[0.5, 0.5], [-0.5, 0.5], [-0.5, -0.5]])
        # -Z swaps to (y, x)
        np.testing.assert_allclose(uv_box.projections[2], [[-0.5, -0.5], [0.5, -0.5], [0.5, 0.5]])
        # +X keeps (y, z)
        np.testing.assert_allclose(uv_box.projections[4], [[-0.5, -0.5], [0.5, -0.5], [0.5, 0.5]])

    def test_projection_drops_dominant_axis_for_every_triangle(self):
        rng = np.random.default_rng(3)
        vertices = rng.normal(size=(30, 3))
        triangles = rng.integers(0, 30, size=(40, 3))

        uv_box = project_triangles(vertices, triangles)
        for t, face in enumerate(uv_box.faces):
            face = BoxFace(int(face))
            remaining = [axis for axis in range(3) if axis != face.axis]
            corners = vertices[triangles[t]]
            projected = uv_box.projections[t]
            self.assertEqual(
                sorted(map(tuple, np.round(projected.T, 12))),
                sorted(map(tuple, np.round(corners[:, remaining].T, 12))),
            )

    def test_degenerate_triangle_goes_to_positive_z(self):
        vertices = np.array([[0.0, 0.0, 0.0], [1.0, 1.0, 1.0], [2.0, 2.0, 2.0]])
        uv_box = project_triangles(vertices, [[0, 1, 2]])
        self.assertEqual(int(uv_box.faces[0]), int(BoxFace.PZ))
        np.testing.assert_allclose(uv_box.projections[0], [[0, 0], [1, 1], [2, 2]])

    def test_empty_mesh(self):
        uv_box = project_triangles(np.zeros((0, 3)), np.zeros((0, 3), dtype=np.int64))
        self.assertEqual(uv_box.n_triangles, 0)
        self.assertEqual(uv_box.projections.shape, (0, 3, 2))

    def test_input_is_not_modified(self):
        vertices, triangles = _cube()
        v_before, t_before = vertices.copy(), triangles.copy()
        project_triangles(vertices, triangles)
        np.testing.assert_array_equal(vertices, v_before)
        np.testing.assert_array_equal(triangles, t_before)


class TestIndexValidation(unittest.TestCase):
    def test_index_equal_to_vertex_count(self):
        vertices, triangles = _cube()
        triangles = np.vstack([triangles, [[0, 1, 8]]])

        with self.assertRaises(InvalidIndexError) as ctx:
            project_triangles(vertices, triangles)

        err = ctx.exception
        self.assertEqual(err.index, 8)
        self.assertEqual(err.limit, 8)
        self.assertEqual(err.triangle, 12)
        self.assertIsInstance(err, UvGenError)
        self.assertIsInstance(err, IndexError)

    def test_negative_index(self):
        with self.assertRaises(InvalidIndexError) as ctx:
            validate_indices(np.array([[0, -1, 2]]), 3)
        self.assertEqual(ctx.exception.index, -1)
        self.assertEqual(ctx.exception.triangle, 0)

    def test_bad_shapes(self):
        with self.assertRaises(ValueError):
            as_vertex_array(np.zeros((4, 2)))
        with self.assertRaises(ValueError):
            as_triangle_array([0, 1, 2, 3])
        self.assertEqual(as_triangle_array([]).shape, (0, 3))

    def test_fractional_indices_rejected(self):
        with self.assertRaises(ValueError):
            as_triangle_array([[0, 1, 2.7]])
        with self.assertRaises(ValueError):
            as_triangle_array(np.array([[0.0, 1.0, np.nan]]))
        with self.assertRaises(ValueError):
            as_triangle_array([["0", "1", "2"]])

    def test_whole_float_indices_accepted(self):
        arr = as_triangle_array([[0.0, 1.0, 2.0]])
        self.assertEqual(arr.dtype, np.int64)
        np.testing.assert_array_equal(arr, [[0, 1, 2]])

    def test_iterators_are_materialized(self):
        vertices, triangles = _cube()

        verts = as_vertex_array(iter(vertices.tolist()))
        tris = as_triangle_array(tuple(t) for t in triangles.tolist())
        rows = as_vertex_array(iter(row) for row in vertices.tolist())

        np.testing.assert_array_equal(verts, vertices)
        np.testing.assert_array_equal(tris, triangles)
        np.testing.assert_array_equal(rows, vertices)


if __name__ == "__main__":
    unittest.main()
