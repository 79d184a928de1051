"""
Scale-space scanner.

Walks a geometric scale pyramid over an intensity image and yields every
native-size window the classifier scores positively, mapped back to the
original image's coordinates.

Instead of growing the window, each level shrinks the image by ``factor`` and
slides the classifier's native window over the shrunken copy. All levels are
resampled into one scratch buffer owned by the scan.
"""

from __future__ import annotations

import logging
from typing import Iterator, Tuple

import cv2
import numpy as np

from classifier.base import Classifier
from models.config import ScanParameters
from models.detection import Candidate, Rect


def _round(value: float) -> int:
    return int(round(value))


def _scale(size: Tuple[int, int], factor: float) -> Tuple[int, int]:
    return (_round(size[0] * factor), _round(size[1] * factor))


class ResampleBuffer:
    """
    Scratch storage for resampled pyramid levels.

    Sized once for the original image; each level only uses the leading
    ``width * height`` bytes, viewed as a contiguous 2-D array.
    """

    def __init__(self, width: int, height: int) -> None:
        self._data = np.empty((width + 1) * (height + 1), dtype=np.uint8)

    @property
    def capacity(self) -> int:
        return self._data.size

    def resample(self, image: np.ndarray, size: Tuple[int, int]) -> np.ndarray:
        """Resize ``image`` to ``size`` (width, height) with linear interpolation."""
        width, height = size
        view = self._data[: width * height].reshape(height, width)
        return cv2.resize(image, (width, height), dst=view, interpolation=cv2.INTER_LINEAR)


def pyramid_factors(scale_factor: float) -> Iterator[float]:
    """Yield 1, s, s^2, ... without end."""
    factor = 1.0
    while True:
        yield factor
        factor *= scale_factor


def scan(image: np.ndarray, classifier: Classifier, params: ScanParameters) -> Iterator[Candidate]:
    """
    Lazily yield candidates for every positively scored window.

    Args:
        image: Single-channel uint8 image, shape (rows, cols).
        classifier: Trained classifier; only ``window_size`` and ``classify``
            are used.
        params: Scan parameters.

    Yields:
        Candidate windows in original-image coordinates, in scan order
        (scale level, then row, then column).
    """
    rows, cols = image.shape[:2]
    if rows == 0 or cols == 0:
        return

    native_w, native_h = classifier.window_size()
    if native_w <= 0 or native_h <= 0:
        raise ValueError(f"Classifier window size must be positive, got {(native_w, native_h)}")

    min_w, min_h = params.min_object_size()
    max_w, max_h = params.max_object_size((cols, rows))
    buffer = ResampleBuffer(cols, rows)

    for factor in pyramid_factors(params.scale_factor):
        window_w, window_h = _scale((native_w, native_h), factor)
        scaled_w, scaled_h = _round(cols / factor), _round(rows / factor)
        proc_w = scaled_w - native_w
        proc_h = scaled_h - native_h

        if proc_w <= 0 or proc_h <= 0:
            break
        if window_w > max_w or window_h > max_h:
            break
        if window_w < min_w or window_h < min_h:
            continue

        scaled = buffer.resample(image, (scaled_w, scaled_h))
        step = 1 if factor > 2.0 else 2
        found = 0

        for y in range(0, proc_h, step):
            x = 0
            while x < proc_w:
                window = scaled[y:y + native_h, x:x + native_w].copy()
                score = float(classifier.classify(window))
                if score > 0:
                    found += 1
                    yield Candidate(
                        rect=Rect(_round(x * factor), _round(y * factor), window_w, window_h),
                        score=score,
                        factor=factor,
                    )
                elif score == 0 and params.zero_score_skip and x < step:
                    # Row fast-forward on an exact-zero score; only ever
                    # applied when it moves the cursor forward.
                    x = step
                x += step

        logging.debug(
            f"Scale {factor:.3f}: window={window_w}x{window_h} "
            f"scaled={scaled_w}x{scaled_h} step={step} candidates={found}"
        )
