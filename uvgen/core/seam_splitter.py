"""
Seam Splitter
경계 정점 복제 - 서로 다른 박스 면에 걸친 정점을 분리

After box mapping, a vertex shared by triangles on two different faces would
need two different UVs. Every such occurrence gets its own clone so that no
vertex index is shared across a face boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging

import numpy as np

from .box_projector import UvBox
from .errors import InvalidIndexError
from .plane_classifier import BoxFace

_LOGGER = logging.getLogger(__name__)


class VertexArena:
    """
    Append-only vertex buffer.

    Original indices never move; clones get increasing indices and remember
    their source in ``additional_vertices``.
    """

    def __init__(self, vertices: np.ndarray):
        self._base = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
        self.additional_vertices: list[int] = []

    def __len__(self) -> int:
        return int(self._base.shape[0]) + len(self.additional_vertices)

    @property
    def n_original(self) -> int:
        return int(self._base.shape[0])

    def _root(self, index: int) -> int:
        while index >= self.n_original:
            index = self.additional_vertices[index - self.n_original]
        return index

    def clone(self, index: int) -> int:
        index = int(index)
        limit = len(self)
        if index < 0 or index >= limit:
            raise InvalidIndexError(index, limit, stage="seam split")
        self.additional_vertices.append(index)
        return limit

    def positions(self) -> np.ndarray:
        if not self.additional_vertices:
            return self._base.copy()
        roots = [self._root(i) for i in self.additional_vertices]
        return np.concatenate([self._base, self._base[np.asarray(roots, dtype=np.intp)]], axis=0)


@dataclass
class SeamSplit:
    vertices: np.ndarray
    triangles: np.ndarray
    additional_vertices: list[int] = field(default_factory=list)

    @property
    def n_added(self) -> int:
        return len(self.additional_vertices)


def _split_face_pair(
    triangles: np.ndarray,
    face_triangles: np.ndarray,
    other_triangles: np.ndarray,
    arena: VertexArena,
) -> int:
    # Clone order follows a scan over other-face triangles (outer), then
    # face triangles, then slots: sort occurrences by that key.
    first_seen: dict[int, int] = {}
    for position, tri_index in enumerate(other_triangles.tolist()):
        for vertex in triangles[tri_index].tolist():
            first_seen.setdefault(vertex, position)

    if not first_seen:
        return 0

    occurrences: list[tuple[int, int, int]] = []
    for position, tri_index in enumerate(face_triangles.tolist()):
        for slot, vertex in enumerate(triangles[tri_index].tolist()):
            other_position = first_seen.get(vertex)
            if other_position is not None:
                occurrences.append((other_position, position, slot))

    occurrences.sort()
    for _, position, slot in occurrences:
        tri_index = int(face_triangles[position])
        triangles[tri_index, slot] = arena.clone(int(triangles[tri_index, slot]))
    return len(occurrences)


def split_seams(vertices, triangles, uv_box: UvBox) -> SeamSplit:
    """
    Duplicate vertices on box-face boundaries.

    Args:
        vertices: (N, 3) vertex positions
        triangles: (M, 3) vertex indices (copied, never modified)
        uv_box: classification of ``triangles``

    Returns:
        SeamSplit with the grown vertex buffer, rewritten triangles and the
        clone source list
    """
    arena = VertexArena(vertices)
    triangles = np.array(triangles, dtype=np.int64, copy=True).reshape(-1, 3)

    if triangles.shape[0] != uv_box.n_triangles:
        raise ValueError(
            f"uv_box covers {uv_box.n_triangles} triangles, got {triangles.shape[0]}"
        )

    buckets = uv_box.buckets()
    for face in BoxFace:
        face_triangles = buckets[face]
        if face_triangles.size == 0:
            continue
        for other in BoxFace:
            if other == face or buckets[other].size == 0:
                continue
            cloned = _split_face_pair(triangles, face_triangles, buckets[other], arena)
            if cloned:
                _LOGGER.debug("Seam %s/%s: %d vertices cloned", face.label, other.label, cloned)

    _LOGGER.debug(
        "Seam split: %d original vertices, %d clones",
        arena.n_original,
        len(arena.additional_vertices),
    )
    return SeamSplit(
        vertices=arena.positions(),
        triangles=triangles,
        additional_vertices=list(arena.additional_vertices),
    )
