"""
Default output file names.

Every export written next to its source mesh swaps the mesh extension for a
fixed suffix, so the CLI and batch scripts agree on names.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]

LIGHTMAP_MESH_SUFFIX = ".lightmap.glb"
LAYOUT_PREVIEW_SUFFIX = ".uv2.png"
PATCH_SUFFIX = ".uvpatch"


def _sibling(input_path: PathLike, output_path: Optional[PathLike], suffix: str) -> Path:
    if output_path:
        return Path(output_path)
    return Path(input_path).with_suffix(suffix)


def lightmap_mesh_path(input_path: PathLike, output_path: Optional[PathLike] = None) -> Path:
    """Mesh re-exported with lightmap UVs (``crate.obj`` -> ``crate.lightmap.glb``)."""
    return _sibling(input_path, output_path, LIGHTMAP_MESH_SUFFIX)


def layout_preview_path(input_path: PathLike, output_path: Optional[PathLike] = None) -> Path:
    return _sibling(input_path, output_path, LAYOUT_PREVIEW_SUFFIX)


def patch_output_path(input_path: PathLike, output_path: Optional[PathLike] = None) -> Path:
    return _sibling(input_path, output_path, PATCH_SUFFIX)
