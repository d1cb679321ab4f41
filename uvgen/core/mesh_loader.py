"""
Mesh Loader Module
메쉬 파일 입출력 및 라이트맵 UV 패치 적용

Reads and writes OBJ, PLY, STL, OFF and GLTF/GLB through trimesh. MeshData
owns the per-vertex buffers, so it is also where a SurfaceDataPatch gets
replayed.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, List, Union
import logging
import numpy as np

try:
    import trimesh
except ImportError:
    raise ImportError("trimesh is required. Install with: pip install trimesh")

from .errors import InvalidIndexError
from .surface_patch import SurfaceDataPatch

_LOGGER = logging.getLogger(__name__)


def _optional_array(values, dtype) -> Optional[np.ndarray]:
    return None if values is None else np.asarray(values, dtype=dtype)


@dataclass
class MeshData:
    """
    삼각형 메쉬 컨테이너

    Attributes:
        vertices: (N, 3) 정점 좌표
        faces: (M, 3) 삼각형 인덱스
        normals: (N, 3) 정점 법선 (선택)
        face_normals: (M, 3) 면 법선 (선택)
        uv_coords: (N, 2) 원본 텍스처 UV (선택)
        lightmap_uv: (N, 2) 생성된 라이트맵 UV (선택)
        unit: 좌표 단위 ('mm', 'cm', 'm')
        filepath: 원본 파일 경로
    """
    vertices: np.ndarray
    faces: np.ndarray
    normals: Optional[np.ndarray] = None
    face_normals: Optional[np.ndarray] = None
    uv_coords: Optional[np.ndarray] = None
    lightmap_uv: Optional[np.ndarray] = None
    unit: str = 'mm'
    filepath: Optional[Path] = None

    def __post_init__(self):
        self.vertices = np.asarray(self.vertices, dtype=np.float64).reshape(-1, 3)
        self.faces = np.asarray(self.faces, dtype=np.int64).reshape(-1, 3)
        self.normals = _optional_array(self.normals, np.float64)
        self.face_normals = _optional_array(self.face_normals, np.float32)
        self.uv_coords = _optional_array(self.uv_coords, np.float64)
        self.lightmap_uv = _optional_array(self.lightmap_uv, np.float64)

    @property
    def n_vertices(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def n_faces(self) -> int:
        return int(self.faces.shape[0])

    @property
    def bounds(self) -> np.ndarray:
        """(2, 3) 경계 박스 [최소, 최대]"""
        if self.n_vertices == 0:
            return np.zeros((2, 3), dtype=np.float64)
        return np.stack([self.vertices.min(axis=0), self.vertices.max(axis=0)])

    @property
    def extents(self) -> np.ndarray:
        """경계 박스 크기 (x, y, z)"""
        lo, hi = self.bounds
        return hi - lo

    @property
    def surface_area(self) -> float:
        if self.n_faces == 0:
            return 0.0
        tri = self.vertices[self.faces]
        cross = np.cross(tri[:, 1] - tri[:, 0], tri[:, 2] - tri[:, 0])
        return float(0.5 * np.linalg.norm(cross, axis=1).sum())

    @property
    def has_lightmap_uv(self) -> bool:
        return self.lightmap_uv is not None and len(self.lightmap_uv) == self.n_vertices

    def compute_normals(self, *, compute_vertex_normals: bool = True) -> None:
        """면 법선(단위 벡터)과 인접 면 평균 정점 법선 계산, 이미 있으면 유지"""
        if self.face_normals is None:
            tri = self.vertices[self.faces]
            cross = np.cross(tri[:, 1] - tri[:, 0], tri[:, 2] - tri[:, 0])
            length = np.linalg.norm(cross, axis=1, keepdims=True)
            length[length == 0] = 1.0
            self.face_normals = (cross / length).astype(np.float32)

        if not compute_vertex_normals or self.normals is not None:
            return

        acc = np.zeros((self.n_vertices, 3), dtype=np.float64)
        for corner in range(3):
            np.add.at(acc, self.faces[:, corner], self.face_normals.astype(np.float64))
        length = np.linalg.norm(acc, axis=1, keepdims=True)
        length[length == 0] = 1.0
        self.normals = acc / length

    def apply_patch(self, patch: SurfaceDataPatch) -> 'MeshData':
        """
        패치를 적용한 새 MeshData 반환 (원본은 그대로)

        추가 정점마다 모든 정점 속성을 복제하고, 삼각형을 교체한 뒤
        second_tex_coords를 lightmap_uv로 설정. 삼각형 수와 순서가 같으므로
        면 법선은 그대로 복사.

        Raises:
            InvalidIndexError: 텍스처 좌표 수가 이 메쉬와 맞지 않음
            ValueError: 삼각형 수가 다름
        """
        expected = self.n_vertices + len(patch.additional_vertices)
        if patch.vertex_count != expected:
            raise InvalidIndexError(
                patch.vertex_count, expected, stage="patch apply (tex coord count)"
            )
        if len(patch.triangles) != self.n_faces:
            raise ValueError(
                f"Patch has {len(patch.triangles)} triangles, mesh has {self.n_faces}"
            )

        def clone(values: Optional[np.ndarray]) -> Optional[np.ndarray]:
            if values is None or len(values) != self.n_vertices:
                return None
            return patch.apply_to_vertices(values)

        patched = MeshData(
            vertices=patch.apply_to_vertices(self.vertices),
            faces=patch.triangles.astype(np.int64),
            normals=clone(self.normals),
            face_normals=None if self.face_normals is None else self.face_normals.copy(),
            uv_coords=clone(self.uv_coords),
            lightmap_uv=patch.second_tex_coords.copy(),
            unit=self.unit,
            filepath=self.filepath,
        )
        _LOGGER.debug(
            "Applied patch %016x: %d -> %d vertices",
            patch.data_id, self.n_vertices, patched.n_vertices,
        )
        return patched

    def to_trimesh(self) -> 'trimesh.Trimesh':
        """trimesh 변환 - lightmap_uv가 있으면 그것을 텍스처 좌표로 내보냄"""
        uv = self.lightmap_uv if self.has_lightmap_uv else self.uv_coords
        if uv is not None and len(uv) == self.n_vertices:
            visual = trimesh.visual.TextureVisuals(uv=uv)
        else:
            visual = None
        return trimesh.Trimesh(
            vertices=self.vertices,
            faces=self.faces,
            vertex_normals=self.normals,
            visual=visual,
            process=False,
        )

    @classmethod
    def from_trimesh(cls, mesh: 'trimesh.Trimesh',
                     filepath: Optional[Path] = None,
                     unit: str = 'mm') -> 'MeshData':
        uv = getattr(getattr(mesh, "visual", None), "uv", None)
        if uv is not None and len(uv) != len(mesh.vertices):
            uv = None
        return cls(vertices=mesh.vertices, faces=mesh.faces, uv_coords=uv,
                   unit=unit, filepath=filepath)


class MeshLoader:
    """trimesh 기반 메쉬 파일 로더 (정점 순서 유지)"""

    SUPPORTED_FORMATS = {
        '.obj': 'Wavefront OBJ',
        '.ply': 'Polygon File Format',
        '.stl': 'Stereolithography',
        '.off': 'Object File Format',
        '.gltf': 'GL Transmission Format',
        '.glb': 'GL Transmission Format (Binary)',
    }

    def __init__(self, default_unit: str = 'mm'):
        self.default_unit = default_unit

    @classmethod
    def get_supported_formats(cls) -> dict:
        return dict(cls.SUPPORTED_FORMATS)

    @staticmethod
    def _read(filepath: Path) -> 'trimesh.Trimesh':
        # process=False: 정점 병합/재정렬 없이 파일 순서 그대로
        loaded = trimesh.load(str(filepath), force='mesh', process=False, maintain_order=True)

        if isinstance(loaded, trimesh.Scene):
            parts = [g for g in loaded.geometry.values() if isinstance(g, trimesh.Trimesh)]
            if not parts:
                raise ValueError(f"No valid mesh found in: {filepath}")
            loaded = trimesh.util.concatenate(parts)

        if not isinstance(loaded, trimesh.Trimesh):
            raise TypeError(f"Expected trimesh.Trimesh, got {type(loaded).__name__}")
        return loaded

    def _check_path(self, filepath: Union[str, Path]) -> Path:
        filepath = Path(filepath)
        if not filepath.exists():
            raise FileNotFoundError(f"File not found: {filepath}")
        return filepath

    def load(self, filepath: Union[str, Path], unit: Optional[str] = None) -> MeshData:
        """
        메쉬 파일 로드 (면 법선 포함)

        Raises:
            FileNotFoundError: 파일 없음
            ValueError: 지원하지 않는 포맷이거나 메쉬가 없음
        """
        filepath = self._check_path(filepath)
        ext = filepath.suffix.lower()
        if ext not in self.SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported format: {ext}\n"
                f"Supported formats: {list(self.SUPPORTED_FORMATS.keys())}"
            )

        mesh = MeshData.from_trimesh(self._read(filepath), filepath=filepath,
                                     unit=unit or self.default_unit)
        mesh.compute_normals(compute_vertex_normals=False)
        _LOGGER.info("Loaded %s: %d vertices, %d faces", filepath.name, mesh.n_vertices, mesh.n_faces)
        return mesh

    def load_multiple(self, filepaths: List[Union[str, Path]],
                      unit: Optional[str] = None) -> List[MeshData]:
        return [self.load(fp, unit) for fp in filepaths]

    def get_file_info(self, filepath: Union[str, Path]) -> dict:
        """파일 요약 정보 (읽기 실패 시 'error' 키에 메시지)"""
        filepath = self._check_path(filepath)
        ext = filepath.suffix.lower()
        info = {
            'filename': filepath.name,
            'format': self.SUPPORTED_FORMATS.get(ext, 'Unknown'),
            'extension': ext,
            'file_size_mb': round(filepath.stat().st_size / (1024 * 1024), 2),
        }

        try:
            mesh = self._read(filepath)
        except (ValueError, TypeError, OSError) as e:
            info['error'] = str(e)
            return info

        info['n_vertices'] = int(len(mesh.vertices))
        info['n_faces'] = int(len(mesh.faces))
        info['has_uv'] = getattr(getattr(mesh, "visual", None), "uv", None) is not None
        return info


class MeshProcessor:
    """메쉬 저장"""

    def save_mesh(self, mesh_data: Union[MeshData, 'trimesh.Trimesh'], filepath: Union[str, Path]) -> str:
        """포맷은 확장자로 결정 (라이트맵 UV는 glTF/OBJ에서 유지됨)"""
        mesh = mesh_data.to_trimesh() if isinstance(mesh_data, MeshData) else mesh_data
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        mesh.export(str(filepath))
        _LOGGER.info("Saved mesh: %s", filepath)
        return str(filepath)
