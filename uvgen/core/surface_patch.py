"""
Surface data patch
UV 생성 결과 패치 - 추가 정점, 새 토폴로지, 두 번째 텍스처 좌표

The generator splits vertices at seams, so its result cannot be stored as
plain texture coordinates: whoever reloads the original mesh data has to
replay the split first. SurfaceDataPatch carries everything needed for that.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence
import hashlib
import logging

import numpy as np

from .atlas_packer import AtlasLayout
from .errors import InvalidIndexError

_LOGGER = logging.getLogger(__name__)


@dataclass
class SurfaceDataPatch:
    """
    Patch for a mesh's surface data

    Attributes:
        data_id: opaque id of the source surface data (often a content hash)
        additional_vertices: source index of every appended vertex, in append order
        triangles: (M, 3) new topology replacing the original triangles
        second_tex_coords: (N + K, 2) lightmap UV per vertex, clones included
    """
    data_id: int = 0
    additional_vertices: list[int] = field(default_factory=list)
    triangles: np.ndarray = field(default_factory=lambda: np.zeros((0, 3), dtype=np.uint32))
    second_tex_coords: np.ndarray = field(default_factory=lambda: np.zeros((0, 2), dtype=np.float64))

    def __post_init__(self):
        self.data_id = int(self.data_id)
        self.additional_vertices = [int(i) for i in self.additional_vertices]
        self.triangles = np.asarray(self.triangles, dtype=np.uint32).reshape(-1, 3)
        self.second_tex_coords = np.asarray(self.second_tex_coords, dtype=np.float64).reshape(-1, 2)

    @property
    def vertex_count(self) -> int:
        """Vertex count after the additional vertices are appended."""
        return int(self.second_tex_coords.shape[0])

    @property
    def original_vertex_count(self) -> int:
        return self.vertex_count - len(self.additional_vertices)

    def apply_to_vertices(self, values: np.ndarray) -> np.ndarray:
        """
        Extend a per-vertex attribute array with one clone per additional vertex.

        Clones are appended one by one, so a source may itself be an earlier clone.

        Raises:
            InvalidIndexError: a source index is not present yet
        """
        values = np.asarray(values)
        extended = list(values)
        for source in self.additional_vertices:
            if source < 0 or source >= len(extended):
                raise InvalidIndexError(source, len(extended), stage="patch apply")
            extended.append(extended[source])
        if not extended:
            return values.copy()
        return np.asarray(extended, dtype=values.dtype).reshape((len(extended),) + values.shape[1:])

    def to_dict(self) -> dict[str, Any]:
        return {
            "data_id": int(self.data_id),
            "additional_vertices": list(self.additional_vertices),
            "triangles": self.triangles.astype(np.int64).tolist(),
            "second_tex_coords": self.second_tex_coords.tolist(),
        }

    @classmethod
    def from_dict(cls, doc: dict[str, Any]) -> "SurfaceDataPatch":
        return cls(
            data_id=int(doc.get("data_id", 0)),
            additional_vertices=list(doc.get("additional_vertices", [])),
            triangles=np.asarray(doc.get("triangles", []), dtype=np.int64).reshape(-1, 3),
            second_tex_coords=np.asarray(doc.get("second_tex_coords", []), dtype=np.float64).reshape(-1, 2),
        )


def surface_data_id(vertices, triangles) -> int:
    """64-bit content hash of positions and indices."""
    digest = hashlib.blake2b(digest_size=8)
    digest.update(np.ascontiguousarray(vertices, dtype="<f8").tobytes())
    digest.update(b"|")
    digest.update(np.ascontiguousarray(triangles, dtype="<i8").tobytes())
    return int.from_bytes(digest.digest(), "little")


def assemble_patch(
    *,
    data_id: int,
    triangles: np.ndarray,
    additional_vertices: Sequence[int],
    projections: np.ndarray,
    layout: AtlasLayout,
    spacing: float,
    vertex_count: int,
) -> SurfaceDataPatch:
    """
    Write final lightmap UVs for every placed island.

    Each corner gets ``(projection - uv_min) * scale + spacing + rect position``.
    Vertices of unplaced islands keep (0, 0).

    Raises:
        InvalidIndexError: a triangle references a vertex past ``vertex_count``
    """
    triangles = np.asarray(triangles, dtype=np.int64).reshape(-1, 3)
    second = np.zeros((int(vertex_count), 2), dtype=np.float64)
    offset = np.array([spacing, spacing], dtype=np.float64)

    for island, rect in layout.placements():
        island_triangles = triangles[island.triangles]
        bad = (island_triangles < 0) | (island_triangles >= vertex_count)
        if bad.any():
            row, slot = np.argwhere(bad)[0]
            raise InvalidIndexError(
                int(island_triangles[row, slot]),
                vertex_count,
                triangle=int(island.triangles[row]),
                stage="patch assembly",
            )

        uv = (projections[island.triangles] - island.uv_min) * layout.scale + offset + rect.position
        second[island_triangles.reshape(-1)] = uv.reshape(-1, 2)

    if not layout.complete:
        _LOGGER.debug(
            "%d of %d islands left at the origin",
            len(layout.islands) - layout.n_placed,
            len(layout.islands),
        )

    return SurfaceDataPatch(
        data_id=data_id,
        additional_vertices=list(additional_vertices),
        triangles=triangles,
        second_tex_coords=second,
    )
