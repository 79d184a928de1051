"""
Typed models for the sliding-window detector.

Use the adapter functions to convert from raw dicts/arrays.
"""

from .detection import Rect, Candidate, Detection, rects_to_numpy
from .record import ImageRecord, ensure_gray_uint8
from .config import (
    Config,
    DetectorConfig,
    ModelConfig,
    ScanParameters,
    TemplateConfig,
)

__all__ = [
    # Detection
    "Rect",
    "Candidate",
    "Detection",
    "rects_to_numpy",
    # Records
    "ImageRecord",
    "ensure_gray_uint8",
    # Config
    "Config",
    "DetectorConfig",
    "ModelConfig",
    "ScanParameters",
    "TemplateConfig",
]
