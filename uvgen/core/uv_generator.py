"""
Lightmap UV generator
라이트맵용 두 번째 UV 생성 - 박스 매핑 기반

Generates a non-overlapping second texture coordinate set for a triangle
mesh: box projection, seam splitting, island segmentation, atlas packing.

Every call works on private copies of its inputs and keeps no state, so
independent meshes can be processed concurrently (see generate_uvs_many).
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Optional
import logging

from .atlas_packer import (
    DEFAULT_EMPIRIC_GROWTH,
    DEFAULT_EMPIRIC_SCALE,
    pack_islands,
)
from .box_projector import as_triangle_array, as_vertex_array, project_triangles
from .errors import PackingError
from .island_segmenter import find_islands
from .runtime_defaults import DEFAULTS
from .seam_splitter import split_seams
from .surface_patch import SurfaceDataPatch, assemble_patch, surface_data_id

if TYPE_CHECKING:
    from .mesh_loader import MeshData

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class UvGenSettings:
    max_attempts: int = DEFAULTS.pack_max_attempts
    initial_empiric_scale: float = DEFAULT_EMPIRIC_SCALE
    empiric_growth: float = DEFAULT_EMPIRIC_GROWTH
    strict_packing: bool = DEFAULTS.strict_packing


def generate_uvs(
    vertices,
    triangles,
    spacing: float,
    *,
    data_id: int = 0,
    settings: Optional[UvGenSettings] = None,
) -> SurfaceDataPatch:
    """
    Generate lightmap UVs for the given vertices and triangles.

    Args:
        vertices: (N, 3) vertex positions
        triangles: (M, 3) vertex indices
        spacing: margin between islands in UV space
        data_id: opaque id stored in the patch
        settings: packing search tuning

    Returns:
        SurfaceDataPatch with N + K second texture coordinates

    Raises:
        InvalidIndexError: a vertex index is out of range
        PackingError: strict packing is enabled and some island did not fit
    """
    settings = settings or UvGenSettings()
    vertices = as_vertex_array(vertices).copy()
    triangles = as_triangle_array(triangles).copy()

    uv_box = project_triangles(vertices, triangles)
    seams = split_seams(vertices, triangles, uv_box)
    islands = find_islands(seams.triangles, uv_box.projections)

    layout = pack_islands(
        islands,
        spacing,
        max_attempts=settings.max_attempts,
        initial_empiric_scale=settings.initial_empiric_scale,
        empiric_growth=settings.empiric_growth,
    )
    if settings.strict_packing and not layout.complete:
        raise PackingError(layout.n_placed, len(layout.islands), layout.attempts)

    patch = assemble_patch(
        data_id=data_id,
        triangles=seams.triangles,
        additional_vertices=seams.additional_vertices,
        projections=uv_box.projections,
        layout=layout,
        spacing=spacing,
        vertex_count=seams.vertices.shape[0],
    )

    _LOGGER.info(
        "Generated lightmap UVs: %d vertices (+%d), %d triangles, %d islands, scale=%.6g",
        vertices.shape[0],
        len(patch.additional_vertices),
        triangles.shape[0],
        len(islands),
        layout.scale,
    )
    return patch


def generate_uvs_many(
    jobs: Iterable[tuple[object, object]],
    spacing: float,
    *,
    max_workers: Optional[int] = None,
    settings: Optional[UvGenSettings] = None,
) -> list[SurfaceDataPatch]:
    """
    Run :func:`generate_uvs` over many ``(vertices, triangles)`` pairs.

    Results are returned in input order. The first failing job re-raises its
    error.
    """
    jobs = list(jobs)
    if not jobs:
        return []

    workers = int(max_workers or DEFAULTS.batch_workers)
    workers = max(1, min(workers, len(jobs)))

    def _run(job: tuple[object, object]) -> SurfaceDataPatch:
        vertices, triangles = job
        return generate_uvs(vertices, triangles, spacing, settings=settings)

    if workers == 1:
        return [_run(job) for job in jobs]

    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(_run, jobs))


def unwrap_mesh(
    mesh: "MeshData",
    spacing: Optional[float] = None,
    *,
    settings: Optional[UvGenSettings] = None,
) -> tuple["MeshData", SurfaceDataPatch]:
    """
    Generate lightmap UVs for a MeshData and apply the patch.

    Returns:
        (patched mesh with ``lightmap_uv``, patch)
    """
    spacing = DEFAULTS.spacing if spacing is None else float(spacing)
    patch = generate_uvs(
        mesh.vertices,
        mesh.faces,
        spacing,
        data_id=surface_data_id(mesh.vertices, mesh.faces),
        settings=settings,
    )
    return mesh.apply_patch(patch), patch

