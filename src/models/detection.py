"""
Detection models for sliding-window scan results.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class Rect:
    """
    An axis-aligned rectangle in integer pixel coordinates.

    Attributes:
        x: Left edge x coordinate.
        y: Top edge y coordinate.
        width: Rectangle width in pixels.
        height: Rectangle height in pixels.
    """
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def as_tuple(self) -> Tuple[int, int, int, int]:
        """Return as (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)

    def as_xyxy(self) -> Tuple[int, int, int, int]:
        """Return as (x1, y1, x2, y2) tuple."""
        return (self.x, self.y, self.right, self.bottom)

    def clip(self, width: int, height: int) -> "Rect":
        """Return this rect intersected with the (0, 0, width, height) frame."""
        x1 = min(max(self.x, 0), width)
        y1 = min(max(self.y, 0), height)
        x2 = min(max(self.right, 0), width)
        y2 = min(max(self.bottom, 0), height)
        return Rect(x=x1, y=y1, width=x2 - x1, height=y2 - y1)

    def contained_in(self, width: int, height: int) -> bool:
        return self.x >= 0 and self.y >= 0 and self.right <= width and self.bottom <= height

    @classmethod
    def from_tuple(cls, t: Sequence[int]) -> "Rect":
        """Create from (x, y, width, height) tuple."""
        return cls(x=int(t[0]), y=int(t[1]), width=int(t[2]), height=int(t[3]))


@dataclass(frozen=True)
class Candidate:
    """
    A window the classifier scored positively, before clustering.

    Attributes:
        rect: Window in original-image coordinates.
        score: Classifier score (> 0).
        factor: Scale factor the window was evaluated at.
    """
    rect: Rect
    score: float
    factor: float = 1.0


@dataclass(frozen=True)
class Detection:
    """
    A clustered detection.

    Attributes:
        rect: Representative rectangle in original-image coordinates.
        confidence: Aggregated confidence (sum of member scores).
        neighbors: Number of candidates merged into this detection.
    """
    rect: Rect
    confidence: float = 1.0
    neighbors: int = 1


def rects_to_numpy(rects: Sequence[Rect]) -> np.ndarray:
    """
    Adapter: Convert rects to an (N, 4) int array of [x, y, width, height].
    """
    if not rects:
        return np.zeros((0, 4), dtype=np.int64)
    return np.array([r.as_tuple() for r in rects], dtype=np.int64)
