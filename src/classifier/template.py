"""
Template-correlation classifier.

A small reference model: the mean of the positive training samples is used as
a template and windows are scored by normalized cross-correlation against it.
This keeps the CLI and training tool usable without a boosted cascade.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

from models.record import ensure_gray_uint8
from .base import Classifier


class TemplateClassifier(Classifier):
    """Score windows by normalized cross-correlation with a mean template."""

    def __init__(self, window_width: int = 20, window_height: int = 20, threshold: float = 0.5) -> None:
        """
        Args:
            window_width: Native window width in pixels.
            window_height: Native window height in pixels.
            threshold: Correlation a window must exceed to score positive.
                Replaced during training when negative samples are given.
        """
        self._size = (int(window_width), int(window_height))
        self.threshold = float(threshold)
        self._template: Optional[np.ndarray] = None
        self._centered: Optional[np.ndarray] = None
        self._norm = 0.0

    @property
    def is_trained(self) -> bool:
        return self._template is not None

    @property
    def template(self) -> Optional[np.ndarray]:
        return self._template

    def window_size(self) -> Tuple[int, int]:
        return self._size

    def train(self, images: Sequence[np.ndarray], labels: Sequence[float]) -> None:
        if len(images) != len(labels):
            raise ValueError(f"Got {len(images)} images but {len(labels)} labels")

        positives = []
        negatives = []
        for image, label in zip(images, labels):
            sample = cv2.resize(ensure_gray_uint8(image), self._size, interpolation=cv2.INTER_AREA)
            (positives if label > 0 else negatives).append(sample.astype(np.float32))

        if not positives:
            raise ValueError("TemplateClassifier needs at least one positive sample")

        self._set_template(np.mean(np.stack(positives), axis=0).astype(np.float32))

        if negatives:
            pos_mean = float(np.mean([self._correlation(p) for p in positives]))
            neg_mean = float(np.mean([self._correlation(n) for n in negatives]))
            self.threshold = (pos_mean + neg_mean) / 2.0

        logging.info(
            f"Template classifier trained: {len(positives)} positive, "
            f"{len(negatives)} negative, threshold={self.threshold:.3f}"
        )

    def classify(self, window: np.ndarray) -> float:
        if not self.is_trained:
            raise RuntimeError("TemplateClassifier is not trained")
        return self._correlation(window) - self.threshold

    def read(self, node: cv2.FileNode) -> None:
        width = int(node.getNode("windowWidth").real())
        height = int(node.getNode("windowHeight").real())
        template = node.getNode("template").mat()
        if template is None or template.shape != (height, width):
            raise ValueError("Stored template does not match the stored window size")
        self._size = (width, height)
        self.threshold = float(node.getNode("threshold").real())
        self._set_template(template.astype(np.float32))

    def write(self, fs: cv2.FileStorage) -> None:
        if not self.is_trained:
            raise RuntimeError("TemplateClassifier is not trained")
        fs.write("windowWidth", self._size[0])
        fs.write("windowHeight", self._size[1])
        fs.write("threshold", self.threshold)
        fs.write("template", self._template)

    def _set_template(self, template: np.ndarray) -> None:
        self._template = template
        self._centered = template.astype(np.float64) - float(template.mean())
        self._norm = float(np.sqrt(np.sum(self._centered * self._centered)))

    def _correlation(self, window: np.ndarray) -> float:
        w = window.astype(np.float64)
        w -= w.mean()
        denom = self._norm * float(np.sqrt(np.sum(w * w)))
        if denom == 0:
            return 0.0
        return float(np.sum(w * self._centered) / denom)
