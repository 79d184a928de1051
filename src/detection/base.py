"""
Detection interfaces.

We keep this lightweight so the detector can be driven either per image
(``detect``) or per record (``project``), which also applies the
at-least-one-region fallback and attaches metadata.
"""

from __future__ import annotations

from typing import List

import numpy as np

from models.detection import Detection


class Detector:
    """Detector interface returning detections in pixel-space."""

    def detect(self, image: np.ndarray) -> List[Detection]:
        raise NotImplementedError
