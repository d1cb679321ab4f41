"""
Island Segmenter
UV 섬 분할 - 정점을 공유하는 삼각형끼리 하나의 섬으로 묶음

After seam splitting, triangles that share a vertex index always lie on the
same box face, so each connected group can be packed as one rigid unit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence
import logging

import numpy as np

_LOGGER = logging.getLogger(__name__)


@dataclass
class UvIsland:
    """
    Connected group of triangles on the box map

    Attributes:
        triangles: triangle indices, in absorption order
        uv_min: lower corner of the projected bounding box
        uv_max: upper corner of the projected bounding box
    """
    triangles: np.ndarray
    uv_min: np.ndarray
    uv_max: np.ndarray

    @classmethod
    def from_triangles(cls, triangle_indices: Sequence[int], projections: np.ndarray) -> "UvIsland":
        indices = np.asarray(triangle_indices, dtype=np.int64)
        corners = np.asarray(projections, dtype=np.float64)[indices].reshape(-1, 2)
        return cls(
            triangles=indices,
            uv_min=corners.min(axis=0),
            uv_max=corners.max(axis=0),
        )

    @property
    def n_triangles(self) -> int:
        return int(self.triangles.shape[0])

    @property
    def width(self) -> float:
        return float(self.uv_max[0] - self.uv_min[0])

    @property
    def height(self) -> float:
        return float(self.uv_max[1] - self.uv_min[1])

    @property
    def area(self) -> float:
        return self.width * self.height


def _incident_triangles(triangles: list[list[int]]) -> dict[int, list[int]]:
    incident: dict[int, list[int]] = {}
    for tri_index, triangle in enumerate(triangles):
        for vertex in triangle:
            bucket = incident.setdefault(vertex, [])
            if not bucket or bucket[-1] != tri_index:
                bucket.append(tri_index)
    return incident


def find_islands(triangles, projections: np.ndarray) -> list[UvIsland]:
    """
    Partition triangles into connected islands.

    Seeds from the lowest unassigned triangle, then grows breadth-first: each
    member in turn absorbs every unassigned triangle sharing one of its
    vertices, in ascending triangle order.
    """
    tri_list = np.asarray(triangles, dtype=np.int64).reshape(-1, 3).tolist()
    m = len(tri_list)
    incident = _incident_triangles(tri_list)
    assigned = np.zeros(m, dtype=bool)

    islands: list[UvIsland] = []
    for seed in range(m):
        if assigned[seed]:
            continue
        assigned[seed] = True
        members = [seed]

        i = 0
        while i < len(members):
            neighbours = {
                other
                for vertex in tri_list[members[i]]
                for other in incident[vertex]
                if not assigned[other]
            }
            for other in sorted(neighbours):
                assigned[other] = True
                members.append(other)
            i += 1

        islands.append(UvIsland.from_triangles(members, projections))

    _LOGGER.debug("Found %d UV islands in %d triangles", len(islands), m)
    return islands


def check_partition(islands: Iterable[UvIsland], triangle_count: int) -> bool:
    """True when every triangle index appears in exactly one island."""
    seen = np.zeros(int(triangle_count), dtype=np.int64)
    for island in islands:
        idx = island.triangles
        if idx.size and (idx.min() < 0 or idx.max() >= triangle_count):
            return False
        np.add.at(seen, idx, 1)
    return bool(np.all(seen == 1))
