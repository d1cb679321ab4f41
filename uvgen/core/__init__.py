"""
Core processing modules for uvgen
"""

from .errors import UvGenError, InvalidIndexError, PackingError
from .plane_classifier import BoxFace, classify_plane, classify_normals
from .box_projector import UvBox, project_triangles
from .seam_splitter import SeamSplit, VertexArena, split_seams
from .island_segmenter import UvIsland, find_islands
from .atlas_packer import AtlasLayout, PackedRect, RectPacker, pack_islands
from .surface_patch import SurfaceDataPatch, assemble_patch, surface_data_id
from .uv_generator import UvGenSettings, generate_uvs, generate_uvs_many, unwrap_mesh
from .mesh_loader import MeshLoader, MeshData
from .patch_file import PatchFormatError, load_patch, save_patch
from .layout_visualizer import UvLayoutImage, render_uv_layout

__all__ = [
    # Errors
    'UvGenError',
    'InvalidIndexError',
    'PackingError',
    # Box mapping
    'BoxFace',
    'classify_plane',
    'classify_normals',
    'UvBox',
    'project_triangles',
    # Seams and islands
    'SeamSplit',
    'VertexArena',
    'split_seams',
    'UvIsland',
    'find_islands',
    # Packing
    'AtlasLayout',
    'PackedRect',
    'RectPacker',
    'pack_islands',
    # Patch
    'SurfaceDataPatch',
    'assemble_patch',
    'surface_data_id',
    # Pipeline
    'UvGenSettings',
    'generate_uvs',
    'generate_uvs_many',
    'unwrap_mesh',
    # Mesh loading
    'MeshLoader',
    'MeshData',
    # Patch files
    'PatchFormatError',
    'load_patch',
    'save_patch',
    # Layout preview
    'UvLayoutImage',
    'render_uv_layout',
]
