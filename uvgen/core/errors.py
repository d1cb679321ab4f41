"""
Error types raised by the UV generation pipeline.

A malformed index aborts the whole call; there is no partial patch.
"""

from __future__ import annotations

from typing import Optional


class UvGenError(RuntimeError):
    pass


class InvalidIndexError(UvGenError, IndexError):
    """A vertex index falls outside the current vertex buffer."""

    def __init__(self, index: int, limit: int, *, triangle: Optional[int] = None, stage: str = ""):
        self.index = int(index)
        self.limit = int(limit)
        self.triangle = None if triangle is None else int(triangle)
        self.stage = str(stage)

        where = f" (triangle {self.triangle})" if self.triangle is not None else ""
        prefix = f"{self.stage}: " if self.stage else ""
        super().__init__(f"{prefix}vertex index {self.index} out of range [0, {self.limit}){where}")


class PackingError(UvGenError):
    """Raised in strict mode when some islands could not be placed."""

    def __init__(self, placed: int, total: int, attempts: int):
        self.placed = int(placed)
        self.total = int(total)
        self.attempts = int(attempts)
        super().__init__(
            f"Packed only {self.placed} of {self.total} UV islands after {self.attempts} attempts"
        )
