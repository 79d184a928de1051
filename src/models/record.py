"""
ImageRecord model: an intensity image plus free-form metadata.

Records are what the detector consumes and emits. Each output record carries
the input image and the metadata of one detection.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import cv2
import numpy as np

from .detection import Rect

ENROLL_ALL_KEY = "enrollAll"
LABEL_KEY = "Label"
CONFIDENCE_KEY = "Confidence"
RECTS_KEY = "Rects"


@dataclass
class ImageRecord:
    """
    An image and the metadata attached to it.

    Attributes:
        image: Image as a numpy array, or None when nothing could be decoded.
        metadata: Arbitrary key/value metadata. Well-known keys are
            ``enrollAll``, ``Label``, ``Confidence`` and ``Rects``.
        source: Identifier for where the image came from (e.g. a file path).
    """
    image: Optional[np.ndarray]
    metadata: Dict[str, Any] = field(default_factory=dict)
    source: Optional[str] = None

    @classmethod
    def from_numpy(
        cls,
        image: np.ndarray,
        source: Optional[str] = None,
        **metadata: Any,
    ) -> "ImageRecord":
        """Create an ImageRecord from a numpy array and keyword metadata."""
        return cls(image=image, metadata=dict(metadata), source=source)

    @property
    def is_empty(self) -> bool:
        """True when there is no image or it has zero area."""
        return self.image is None or self.image.size == 0

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        if self.image is None:
            return (0, 0)
        h, w = self.image.shape[:2]
        return (w, h)

    @property
    def enroll_all(self) -> bool:
        return bool(self.metadata.get(ENROLL_ALL_KEY, False))

    @property
    def label(self) -> float:
        return float(self.metadata.get(LABEL_KEY, -1))

    @property
    def confidence(self) -> Optional[float]:
        return self.metadata.get(CONFIDENCE_KEY)

    @property
    def rects(self) -> List[Rect]:
        return list(self.metadata.get(RECTS_KEY, []))

    def get(self, key: str, default: Any = None) -> Any:
        return self.metadata.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.metadata[key] = value

    def append_rect(self, rect: Rect) -> None:
        self.metadata[RECTS_KEY] = self.rects + [rect]

    def derive(self, image: Optional[np.ndarray] = None) -> "ImageRecord":
        """
        Create a new record sharing this record's image (or ``image`` if
        given) with an independent copy of the metadata.
        """
        return ImageRecord(
            image=self.image if image is None else image,
            metadata=copy.deepcopy(self.metadata),
            source=self.source,
        )


def ensure_gray_uint8(image: np.ndarray) -> np.ndarray:
    """Standardise an image for scanning: HxW, single channel, uint8, contiguous."""
    if image is None:
        raise ValueError("image is None")
    if image.dtype != np.uint8:
        # Min-max rescale so [0, 1] floats and 16-bit input keep their contrast
        image = cv2.normalize(image, None, 0, 255, cv2.NORM_MINMAX, cv2.CV_8U)
    if image.ndim == 3:
        if image.shape[2] == 4:
            image = cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
        elif image.shape[2] == 3:
            image = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        else:
            image = image[:, :, 0]
    return np.ascontiguousarray(image)
