"""
Sliding-window detection: scale-space scanning and detection clustering.
"""

from .base import Detector
from .grouping import group_rectangles
from .scanner import ResampleBuffer, scan
from .sliding_window import SlidingWindowDetector

__all__ = [
    "Detector",
    "ResampleBuffer",
    "SlidingWindowDetector",
    "group_rectangles",
    "scan",
]
