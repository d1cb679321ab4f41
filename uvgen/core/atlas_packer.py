"""
Atlas Packer
아틀라스 패킹 - 모든 UV 섬을 [0, 1] 정사각형 안에 겹치지 않게 배치

Finds one uniform scale for all islands so that every island, inflated by
the spacing margin, fits into the unit square. The scale is searched
iteratively: each failed attempt shrinks it and starts over.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Sequence
import logging
import math

import numpy as np
from rectpack import MaxRectsBssf, PackingBin, PackingMode, float2dec, newPacker

from .island_segmenter import UvIsland

_LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 100
DEFAULT_EMPIRIC_SCALE = 1.1
DEFAULT_EMPIRIC_GROWTH = 1.33


@dataclass(frozen=True)
class PackedRect:
    x: float
    y: float
    width: float
    height: float

    @property
    def position(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=np.float64)

    @property
    def x_max(self) -> float:
        return self.x + self.width

    @property
    def y_max(self) -> float:
        return self.y + self.height

    def overlaps(self, other: "PackedRect", tolerance: float = 0.0) -> bool:
        """True when the interiors intersect by more than ``tolerance``."""
        return (
            min(self.x_max, other.x_max) - max(self.x, other.x) > tolerance
            and min(self.y_max, other.y_max) - max(self.y, other.y) > tolerance
        )


class RectPacker:
    """
    Online rectangle packer over a fixed canvas.

    Wraps rectpack's MaxRects (best short side fit, no rotation). Sizes are
    quantized upwards to ``decimal_digits`` so placements never overlap; the
    bin is one quantum wider per axis to absorb that rounding. Containment is
    checked against the float canvas.
    """

    def __init__(self, canvas_width: float = 1.0, canvas_height: float = 1.0, *, decimal_digits: int = 9):
        self.decimal_digits = int(decimal_digits)
        self._quantum = Decimal(10) ** (-self.decimal_digits)
        self._packer = None
        self.canvas_width = float(canvas_width)
        self.canvas_height = float(canvas_height)
        self.reset(canvas_width, canvas_height)

    def _to_decimal(self, value: float) -> Decimal:
        return max(float2dec(max(float(value), 0.0), self.decimal_digits), self._quantum)

    def reset(self, canvas_width: float, canvas_height: float) -> None:
        """Forget all placed rectangles and start over on a new canvas."""
        self.canvas_width = float(canvas_width)
        self.canvas_height = float(canvas_height)
        # BFF keeps the bin open after a miss, so smaller rects still fit later
        self._packer = newPacker(
            mode=PackingMode.Online,
            bin_algo=PackingBin.BFF,
            pack_algo=MaxRectsBssf,
            rotation=False,
        )
        self._packer.add_bin(
            self._to_decimal(canvas_width) + self._quantum,
            self._to_decimal(canvas_height) + self._quantum,
        )

    def find_free(self, width: float, height: float) -> Optional[PackedRect]:
        """Place a ``width x height`` rectangle, or return None if no space remains."""
        if not (math.isfinite(width) and math.isfinite(height)):
            return None
        placed = self._packer.add_rect(self._to_decimal(width), self._to_decimal(height))
        if placed is None:
            return None
        rect = PackedRect(float(placed.x), float(placed.y), float(width), float(height))
        # Rounding slack may push a rect past the float canvas; treat that as a miss.
        if rect.x_max > self.canvas_width or rect.y_max > self.canvas_height:
            return None
        return rect


@dataclass
class AtlasLayout:
    """
    Packing result

    Attributes:
        islands: islands in packing order (descending area)
        rects: placement per island, None where it was never placed
        scale: projection-to-atlas scale shared by all islands
        square_side: estimated side of the unscaled atlas
        attempts: packing attempts used
    """
    islands: list[UvIsland]
    rects: list[Optional[PackedRect]] = field(default_factory=list)
    scale: float = 1.0
    square_side: float = 0.0
    attempts: int = 0

    @property
    def complete(self) -> bool:
        return len(self.rects) == len(self.islands) and all(r is not None for r in self.rects)

    @property
    def n_placed(self) -> int:
        return sum(1 for r in self.rects if r is not None)

    def placements(self):
        """Yield ``(island, rect)`` for every placed island."""
        for island, rect in zip(self.islands, self.rects):
            if rect is not None:
                yield island, rect


def sort_islands(islands: Sequence[UvIsland]) -> list[UvIsland]:
    """Descending area, original order on ties."""
    return sorted(islands, key=lambda island: island.area, reverse=True)


def pack_islands(
    islands: Sequence[UvIsland],
    spacing: float,
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    initial_empiric_scale: float = DEFAULT_EMPIRIC_SCALE,
    empiric_growth: float = DEFAULT_EMPIRIC_GROWTH,
    packer: Optional[RectPacker] = None,
) -> AtlasLayout:
    """
    Pack islands into the unit square.

    Args:
        islands: islands from :func:`find_islands`
        spacing: margin around every island, in atlas units
        max_attempts: retry cap for the scale search
        initial_empiric_scale: first shrink factor (> 1 leaves room for packing waste)
        empiric_growth: multiplier applied to the shrink factor after a failure
        packer: packer to reuse (a fresh :class:`RectPacker` by default)

    Returns:
        AtlasLayout. If no attempt places every island, the last attempt's
        partial placements are kept and ``complete`` is False.
    """
    spacing = float(spacing)
    if not math.isfinite(spacing) or spacing < 0.0:
        raise ValueError(f"spacing must be a finite value >= 0, got {spacing}")
    if int(max_attempts) < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    ordered = sort_islands(islands)
    layout = AtlasLayout(islands=ordered)
    if not ordered:
        return layout

    total_area = sum(island.area for island in ordered)
    square_side = math.sqrt(max(total_area, 0.0)) + spacing * len(ordered)
    layout.square_side = square_side

    packer = packer or RectPacker()
    twice_spacing = spacing * 2.0
    empiric_scale = float(initial_empiric_scale)
    scale = 1.0

    for attempt in range(1, int(max_attempts) + 1):
        scale = 1.0 / (square_side * empiric_scale) if square_side > 0.0 else 1.0
        packer.reset(1.0, 1.0)

        rects: list[Optional[PackedRect]] = []
        for island in ordered:
            rect = packer.find_free(
                island.width * scale + twice_spacing,
                island.height * scale + twice_spacing,
            )
            if rect is None:
                break
            rects.append(rect)

        layout.rects = rects + [None] * (len(ordered) - len(rects))
        layout.scale = scale
        layout.attempts = attempt

        if len(rects) == len(ordered):
            _LOGGER.debug(
                "Packed %d islands on attempt %d (scale=%.6g)", len(ordered), attempt, scale
            )
            return layout

        _LOGGER.debug(
            "Attempt %d: placed %d/%d islands at scale %.6g",
            attempt,
            len(rects),
            len(ordered),
            scale,
        )
        empiric_scale *= float(empiric_growth)

    _LOGGER.warning(
        "UV packing incomplete after %d attempts: %d of %d islands placed",
        layout.attempts,
        layout.n_placed,
        len(ordered),
    )
    return layout
