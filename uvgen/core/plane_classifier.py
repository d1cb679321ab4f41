"""
Plane Classifier
박스 매핑 면 분류 - 삼각형 법선으로 6개 박스 면 중 하나를 선택

Each triangle is assigned to the box face its normal most closely faces.
"""

from __future__ import annotations

from enum import IntEnum
import logging

import numpy as np

from .logging_utils import log_once

_LOGGER = logging.getLogger(__name__)


class BoxFace(IntEnum):
    """Box faces, in the order seams are processed."""

    PX = 0
    NX = 1
    PY = 2
    NY = 3
    PZ = 4
    NZ = 5

    @property
    def axis(self) -> int:
        return int(self) // 2

    @property
    def negative(self) -> bool:
        return bool(int(self) % 2)

    @property
    def label(self) -> str:
        return ("-" if self.negative else "+") + "XYZ"[self.axis]


# (u_axis, v_axis) kept after dropping the face's dominant axis.
PROJECTION_AXES: dict[BoxFace, tuple[int, int]] = {
    BoxFace.PX: (1, 2),
    BoxFace.NX: (2, 1),
    BoxFace.PY: (2, 0),
    BoxFace.NY: (0, 2),
    BoxFace.PZ: (0, 1),
    BoxFace.NZ: (1, 0),
}


def _face_for(axis: int, component: float) -> BoxFace:
    return BoxFace(axis * 2 + (1 if component < 0.0 else 0))


def classify_plane(normal) -> BoxFace:
    """
    Pick the box face for a single normal.

    The largest absolute component wins; ties go to Z, then Y, then X.
    Zero and non-finite normals fall through to +Z.
    """
    x, y, z = (float(c) for c in np.asarray(normal, dtype=np.float64).reshape(3))
    ax, ay, az = abs(x), abs(y), abs(z)

    if ax > ay and ax > az:
        return _face_for(0, x)
    if ay > az:
        return _face_for(1, y)
    return _face_for(2, z)


def classify_normals(normals: np.ndarray) -> np.ndarray:
    """
    Vectorized :func:`classify_plane` over ``(M, 3)`` normals.

    Returns:
        (M,) int8 array of :class:`BoxFace` codes
    """
    normals = np.asarray(normals, dtype=np.float64).reshape(-1, 3)
    if normals.shape[0] == 0:
        return np.zeros((0,), dtype=np.int8)

    magnitude = np.abs(normals)
    ax, ay, az = magnitude[:, 0], magnitude[:, 1], magnitude[:, 2]

    axis = np.full(normals.shape[0], 2, dtype=np.int8)
    axis[ay > az] = 1
    axis[(ax > ay) & (ax > az)] = 0

    component = np.take_along_axis(normals, axis.astype(np.intp)[:, None], axis=1)[:, 0]
    faces = (axis * 2 + (component < 0.0)).astype(np.int8)

    degenerate = ~np.isfinite(normals).all(axis=1) | ~(magnitude > 0.0).any(axis=1)
    if degenerate.any():
        log_once(
            _LOGGER,
            "plane_classifier:degenerate_normals",
            logging.DEBUG,
            "%d degenerate triangle normal(s); zero normals map to %s",
            int(degenerate.sum()),
            BoxFace.PZ.label,
        )
    return faces
