"""
Layout Visualizer Module
라이트맵 UV 배치 미리보기 이미지 생성

Draws the second UV set over the unit square so packing quality and seams
can be checked by eye.
"""

from dataclasses import dataclass
from typing import Optional
import numpy as np
from PIL import Image, ImageDraw

from .atlas_packer import AtlasLayout


@dataclass
class UvLayoutImage:
    """
    UV 배치 미리보기 결과

    Attributes:
        image: RGB 이미지 (numpy array)
        n_triangles: 그려진 삼각형 수
    """
    image: np.ndarray
    n_triangles: int = 0

    @property
    def resolution(self) -> int:
        return int(self.image.shape[0])

    def to_pil_image(self) -> Image.Image:
        return Image.fromarray(self.image.astype(np.uint8))

    def save(self, filepath: str) -> None:
        self.to_pil_image().save(filepath)


def render_uv_layout(
    triangles: np.ndarray,
    uv: np.ndarray,
    *,
    resolution: int = 1024,
    layout: Optional[AtlasLayout] = None,
    background: tuple = (255, 255, 255),
    fill_color: tuple = (214, 226, 240),
    edge_color: tuple = (40, 60, 90),
    rect_color: tuple = (220, 80, 60),
) -> UvLayoutImage:
    """
    UV 와이어프레임 렌더링

    Args:
        triangles: (M, 3) 정점 인덱스
        uv: (N, 2) 두 번째 UV 좌표 ([0, 1] 범위)
        resolution: 출력 이미지 한 변의 픽셀 수
        layout: 주어지면 패킹 사각형도 함께 그림

    Returns:
        UvLayoutImage
    """
    resolution = max(int(resolution), 2)
    img = Image.new('RGB', (resolution, resolution), background)
    draw = ImageDraw.Draw(img)

    scale = float(resolution - 1)

    def to_px(points: np.ndarray) -> list:
        # 이미지 좌표계는 y축이 아래로 향함
        return [(float(p[0]) * scale, (1.0 - float(p[1])) * scale) for p in points]

    tris = np.asarray(triangles, dtype=np.int64).reshape(-1, 3)
    uv = np.asarray(uv, dtype=np.float64).reshape(-1, 2)

    if layout is not None:
        for rect in layout.rects:
            if rect is None:
                continue
            x0, y1 = to_px([(rect.x, rect.y)])[0]
            x1, y0 = to_px([(rect.x_max, rect.y_max)])[0]
            draw.rectangle([x0, y0, x1, y1], outline=rect_color)

    drawn = 0
    for face in tris:
        if face.min() < 0 or face.max() >= len(uv):
            continue
        pts = to_px(uv[face])
        draw.polygon(pts, fill=fill_color, outline=edge_color)
        drawn += 1

    return UvLayoutImage(image=np.asarray(img), n_triangles=drawn)
