"""
Classifier interface.

The scanner is written against this contract only. Any trained model
(cascade, linear, neural) can be plugged in as long as it can:
- train on labelled images
- score a single native-size window
- report its native window size
- read/write its parameters through OpenCV FileStorage
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence, Tuple

import cv2
import numpy as np


class Classifier(ABC):
    """
    Binary window classifier.

    ``classify`` must be a pure function of the window and the current model:
    it is called many times per image and may be called concurrently for
    independent windows. ``train`` mutates the model and must never run while
    ``classify`` calls are in flight on the same instance.
    """

    @abstractmethod
    def train(self, images: Sequence[np.ndarray], labels: Sequence[float]) -> None:
        """
        Fit the model to labelled samples.

        Args:
            images: Sample images (single channel, uint8).
            labels: One label per image; > 0 is positive.
        """

    @abstractmethod
    def classify(self, window: np.ndarray) -> float:
        """
        Score a native-size window.

        Returns:
            > 0 for a positive window, <= 0 for a rejection.
        """

    @abstractmethod
    def window_size(self) -> Tuple[int, int]:
        """Native window size as (width, height)."""

    @abstractmethod
    def read(self, node: cv2.FileNode) -> None:
        """Load model parameters from a FileStorage node."""

    @abstractmethod
    def write(self, fs: cv2.FileStorage) -> None:
        """Write model parameters into an open FileStorage struct."""
