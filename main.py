"""
uvgen - Box-mapped lightmap UV generator
라이트맵용 두 번째 UV 자동 생성 도구

Main entry point
"""

import sys
import logging
from pathlib import Path

# Ensure repository root is on sys.path so "uvgen" is importable.
ROOT_DIR = Path(__file__).resolve().parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from uvgen.core.runtime_defaults import DEFAULTS
from uvgen.core.output_paths import (
    lightmap_mesh_path,
    layout_preview_path,
    patch_output_path,
)

_LOGGER = logging.getLogger(__name__)
DEFAULT_SPACING = DEFAULTS.spacing
DEFAULT_LAYOUT_RESOLUTION = DEFAULTS.layout_resolution
DEFAULT_MESH_UNIT = "m"

_LOG_PATH = None


def run_cli(argv=None) -> int:
    """커맨드라인 인터페이스 실행"""
    global _LOG_PATH
    from uvgen.core.logging_utils import setup_logging

    _LOG_PATH = setup_logging()

    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print_help()
        return 0

    cmd = args[0]

    if cmd in ('--help', '-h'):
        print_help()
        return 0

    if cmd == '--info' and len(args) > 1:
        return show_file_info(args[1])

    if cmd == '--unwrap' and len(args) > 1:
        return unwrap_file(args[1], args[2] if len(args) > 2 else None)

    if cmd == '--layout' and len(args) > 1:
        return layout_file(args[1], args[2] if len(args) > 2 else None)

    if cmd == '--patch' and len(args) > 1:
        return patch_file(args[1], args[2] if len(args) > 2 else None)

    # 기본: 파일 처리
    if Path(cmd).exists():
        return process_mesh(cmd)

    print(f"Error: Unknown command or file not found: {cmd}")
    print("Use --help for usage information")
    return 2


def print_help():
    """도움말 출력"""
    from uvgen.core.mesh_loader import MeshLoader

    print("=" * 60)
    print("uvgen - Box-mapped lightmap UV generator")
    print("=" * 60)
    print()
    print("Usage:")
    print("  python main.py <mesh_file>                   # Mesh + layout preview + patch")
    print("  python main.py --info <mesh_file>            # Show file info")
    print("  python main.py --unwrap <mesh_file> [output] # Mesh with lightmap UVs")
    print("  python main.py --layout <mesh_file> [output] # UV layout preview (PNG)")
    print("  python main.py --patch <mesh_file> [output]  # Surface data patch only")
    print()
    print(f"Supported formats: {list(MeshLoader.SUPPORTED_FORMATS.keys())}")
    print(f"Spacing: {DEFAULT_SPACING} (UVGEN_SPACING)")
    print()
    print("Examples:")
    print("  python main.py crate.obj")
    print("  python main.py --unwrap level_block.ply level_block_lm.glb")


def _report_error(prefix: str, exc: Exception) -> None:
    from uvgen.core.logging_utils import format_exception_message

    _LOGGER.error("%s: %s", prefix, exc, exc_info=True)
    print(format_exception_message(prefix, f"{type(exc).__name__}: {exc}", log_path=_LOG_PATH))


def _load_and_unwrap(filepath: str):
    from uvgen.core.mesh_loader import MeshLoader
    from uvgen.core.uv_generator import unwrap_mesh

    loader = MeshLoader(default_unit=DEFAULT_MESH_UNIT)
    mesh = loader.load(filepath)
    print(f"  Loaded: {mesh.n_vertices:,} vertices, {mesh.n_faces:,} faces")

    patched, patch = unwrap_mesh(mesh, DEFAULT_SPACING)
    print(f"  Seam vertices added: {len(patch.additional_vertices):,}")
    return patched, patch


def show_file_info(filepath: str) -> int:
    """파일 정보 표시"""
    from uvgen.core.mesh_loader import MeshLoader

    print(f"\nFile Info: {filepath}")
    print("-" * 40)

    try:
        loader = MeshLoader(default_unit=DEFAULT_MESH_UNIT)
        info = loader.get_file_info(filepath)
    except (FileNotFoundError, ValueError) as e:
        print(f"  Error: {e}")
        return 1

    for key, value in info.items():
        print(f"  {key}: {value}")
    return 0


def unwrap_file(filepath: str, output_path: str | None = None) -> int:
    """라이트맵 UV가 포함된 메쉬 저장"""
    from uvgen.core.errors import UvGenError
    from uvgen.core.mesh_loader import MeshProcessor

    print(f"\nUnwrapping: {filepath}")
    print("-" * 40)

    try:
        patched, _ = _load_and_unwrap(filepath)
        save_path = lightmap_mesh_path(filepath, output_path)
        MeshProcessor().save_mesh(patched, save_path)
    except (UvGenError, ValueError, TypeError, OSError) as e:
        _report_error("Unwrap failed for this mesh", e)
        return 1

    print(f"  Saved: {save_path}")
    return 0


def layout_file(filepath: str, output_path: str | None = None) -> int:
    """UV 배치 미리보기 저장"""
    from uvgen.core.errors import UvGenError
    from uvgen.core.layout_visualizer import render_uv_layout

    print(f"\nLayout preview: {filepath}")
    print("-" * 40)

    try:
        _, patch = _load_and_unwrap(filepath)
        preview = render_uv_layout(
            patch.triangles,
            patch.second_tex_coords,
            resolution=DEFAULT_LAYOUT_RESOLUTION,
        )
        save_path = layout_preview_path(filepath, output_path)
        preview.save(str(save_path))
    except (UvGenError, ValueError, TypeError, OSError) as e:
        _report_error("Unwrap failed for this mesh", e)
        return 1

    print(f"  Image size: {preview.resolution} x {preview.resolution} pixels")
    print(f"  Saved: {save_path}")
    return 0


def patch_file(filepath: str, output_path: str | None = None) -> int:
    """서피스 데이터 패치만 저장"""
    from uvgen.core.errors import UvGenError
    from uvgen.core.patch_file import save_patch

    print(f"\nPatch: {filepath}")
    print("-" * 40)

    try:
        _, patch = _load_and_unwrap(filepath)
        save_path = patch_output_path(filepath, output_path)
        save_patch(save_path, patch, meta={"source": Path(filepath).name, "spacing": DEFAULT_SPACING})
    except (UvGenError, ValueError, TypeError, OSError) as e:
        _report_error("Unwrap failed for this mesh", e)
        return 1

    print(f"  Data id: {patch.data_id:016x}")
    print(f"  Saved: {save_path}")
    return 0


def process_mesh(filepath: str) -> int:
    """메쉬 전체 처리 (로드 → UV 생성 → 메쉬/미리보기/패치 저장)"""
    from uvgen.core.errors import UvGenError
    from uvgen.core.layout_visualizer import render_uv_layout
    from uvgen.core.mesh_loader import MeshProcessor
    from uvgen.core.patch_file import save_patch

    print(f"\n{'='*60}")
    print(f"Processing: {filepath}")
    print(f"{'='*60}")

    try:
        print("\n[1/4] Generating lightmap UVs...")
        patched, patch = _load_and_unwrap(filepath)

        print("\n[2/4] Saving mesh...")
        mesh_path = lightmap_mesh_path(filepath)
        MeshProcessor().save_mesh(patched, mesh_path)
        print(f"      Saved: {mesh_path}")

        print("\n[3/4] Rendering layout preview...")
        preview = render_uv_layout(
            patch.triangles,
            patch.second_tex_coords,
            resolution=DEFAULT_LAYOUT_RESOLUTION,
        )
        preview_path = layout_preview_path(filepath)
        preview.save(str(preview_path))
        print(f"      Saved: {preview_path}")

        print("\n[4/4] Saving patch...")
        out_patch = patch_output_path(filepath)
        save_patch(out_patch, patch, meta={"source": Path(filepath).name, "spacing": DEFAULT_SPACING})
        print(f"      Saved: {out_patch}")
    except (UvGenError, ValueError, TypeError, OSError) as e:
        _report_error("Unwrap failed for this mesh", e)
        return 1

    print(f"\n{'='*60}")
    print("Done!")
    print(f"{'='*60}")
    return 0


if __name__ == '__main__':
    sys.exit(run_cli())
