"""
Box Projector
박스 투영 - 각 삼각형을 분류된 박스 면 평면에 투영

Produces one 2D projection per triangle (parallel to the triangle buffer)
and buckets triangle indices per box face.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging

import numpy as np

from .errors import InvalidIndexError
from .plane_classifier import BoxFace, PROJECTION_AXES, classify_normals

_LOGGER = logging.getLogger(__name__)


@dataclass
class UvBox:
    """
    Box mapping result

    Attributes:
        faces: (M,) BoxFace code per triangle
        projections: (M, 3, 2) projected triangle corners
    """
    faces: np.ndarray
    projections: np.ndarray

    @property
    def n_triangles(self) -> int:
        return int(self.faces.shape[0])

    def triangles_on(self, face: BoxFace) -> np.ndarray:
        """Triangle indices assigned to ``face``, ascending."""
        return np.flatnonzero(self.faces == int(face))

    def buckets(self) -> list[np.ndarray]:
        return [self.triangles_on(face) for face in BoxFace]


def _materialize(values):
    # one-shot iterables (generators, iterators) are drained once, rows included
    if isinstance(values, np.ndarray) or hasattr(values, "__len__"):
        return values
    return [row if hasattr(row, "__len__") else list(row) for row in values]


def as_vertex_array(vertices) -> np.ndarray:
    arr = np.asarray(_materialize(vertices), dtype=np.float64)
    if arr.size == 0:
        return arr.reshape(0, 3)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError(f"vertices must have shape (N, 3), got {arr.shape}")
    return arr


def as_triangle_array(triangles) -> np.ndarray:
    """
    Triangle index buffer as (M, 3) int64.

    Float input is accepted only when every value is a whole number.
    """
    arr = np.asarray(_materialize(triangles))
    if arr.size == 0:
        return arr.astype(np.int64).reshape(0, 3)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError(f"triangles must have shape (M, 3), got {arr.shape}")
    if arr.dtype.kind not in "iu":
        if arr.dtype.kind not in "fO":
            raise ValueError(f"triangle indices must be integers, got dtype {arr.dtype}")
        try:
            values = arr.astype(np.float64)
        except (TypeError, ValueError) as e:
            raise ValueError(f"triangle indices must be integers: {e}") from e
        if not np.all(np.isfinite(values)) or np.any(values != np.round(values)):
            raise ValueError("triangle indices must be integers")
        arr = values
    return arr.astype(np.int64)


def validate_indices(triangles: np.ndarray, vertex_count: int, *, stage: str = "projection") -> None:
    """Raise :class:`InvalidIndexError` for the first index outside ``[0, vertex_count)``."""
    if triangles.size == 0:
        return
    bad = (triangles < 0) | (triangles >= int(vertex_count))
    if not bad.any():
        return
    tri_index, slot = np.argwhere(bad)[0]
    raise InvalidIndexError(
        int(triangles[tri_index, slot]),
        vertex_count,
        triangle=int(tri_index),
        stage=stage,
    )


def triangle_normals(vertices: np.ndarray, triangles: np.ndarray) -> np.ndarray:
    """Unnormalized geometric normals ``(b - a) x (c - a)``."""
    a = vertices[triangles[:, 0]]
    b = vertices[triangles[:, 1]]
    c = vertices[triangles[:, 2]]
    return np.cross(b - a, c - a)


def project_triangles(vertices, triangles) -> UvBox:
    """
    Box-map every triangle.

    Args:
        vertices: (N, 3) vertex positions
        triangles: (M, 3) vertex indices

    Returns:
        UvBox with per-triangle faces and projections

    Raises:
        InvalidIndexError: a triangle references a missing vertex
    """
    vertices = as_vertex_array(vertices)
    triangles = as_triangle_array(triangles)
    validate_indices(triangles, vertices.shape[0])

    m = int(triangles.shape[0])
    if m == 0:
        return UvBox(faces=np.zeros((0,), dtype=np.int8), projections=np.zeros((0, 3, 2), dtype=np.float64))

    faces = classify_normals(triangle_normals(vertices, triangles))
    corners = vertices[triangles]  # (M, 3, 3)

    projections = np.empty((m, 3, 2), dtype=np.float64)
    for face, (u_axis, v_axis) in PROJECTION_AXES.items():
        mask = faces == int(face)
        if not mask.any():
            continue
        projections[mask, :, 0] = corners[mask][:, :, u_axis]
        projections[mask, :, 1] = corners[mask][:, :, v_axis]

    if _LOGGER.isEnabledFor(logging.DEBUG):
        counts = np.bincount(faces.astype(np.intp), minlength=len(BoxFace))
        _LOGGER.debug(
            "Box projection: %s",
            ", ".join(f"{face.label}={int(counts[face])}" for face in BoxFace),
        )
    return UvBox(faces=faces, projections=projections)
