"""
Sliding-window detector.

Runs the scale-space scanner and the clusterer over each input record and
turns the surviving detections into output records:

- an empty input is passed through untouched unless ``enrollAll`` is set
- when nothing survives clustering and ``enrollAll`` is not set, one
  full-image region with confidence 1 is emitted instead
- every detection becomes one record carrying the input image, the
  detection's confidence, and its rect (appended to ``Rects`` and stored
  under the primary-region key)
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import List, Optional, Sequence

import numpy as np

from classifier.base import Classifier
from models.config import DetectorConfig, ScanParameters
from models.detection import Candidate, Detection, Rect
from models.record import CONFIDENCE_KEY, ImageRecord, ensure_gray_uint8
from storage.model_store import ModelStore
from .base import Detector
from .grouping import group_rectangles
from .scanner import scan

FALLBACK_CONFIDENCE = 1.0


class SlidingWindowDetector(Detector):
    """
    Apply a window classifier over a scale pyramid and group the hits.

    The classifier is held by reference and never copied. It is only read
    while detecting; ``train`` is the one operation that mutates it.

    Example:
        detector = SlidingWindowDetector(classifier, ScanParameters(min_neighbors=3))
        records = detector.project(ImageRecord.from_numpy(gray))
    """

    def __init__(
        self,
        classifier: Classifier,
        params: Optional[ScanParameters] = None,
        region_name: str = "Face",
        workers: int = 1,
    ) -> None:
        self.classifier = classifier
        self.params = params or ScanParameters()
        self.region_name = region_name
        self.workers = max(1, int(workers))

    @classmethod
    def from_config(cls, classifier: Classifier, cfg: DetectorConfig) -> "SlidingWindowDetector":
        return cls(
            classifier=classifier,
            params=cfg.scan,
            region_name=cfg.region_name,
            workers=cfg.workers,
        )

    def train(self, records: Sequence[ImageRecord]) -> None:
        """Train the classifier on labelled records (``Label`` metadata, default -1)."""
        usable = [r for r in records if not r.is_empty]
        if len(usable) != len(records):
            logging.warning(f"Skipping {len(records) - len(usable)} empty training records")
        images = [ensure_gray_uint8(r.image) for r in usable]
        labels = [r.label for r in usable]
        self.classifier.train(images, labels)

    def candidates(self, image: np.ndarray) -> List[Candidate]:
        """Raw, ungrouped candidates for ``image``."""
        gray = ensure_gray_uint8(image)
        return list(scan(gray, self.classifier, self.params))

    def detect(self, image: np.ndarray) -> List[Detection]:
        """
        Scan and cluster one image.

        Returns:
            Grouped detections clipped to the image bounds; no fallback.
        """
        if image is None or image.size == 0:
            return []
        gray = ensure_gray_uint8(image)

        candidates = list(scan(gray, self.classifier, self.params))
        detections = group_rectangles(candidates, self.params.min_neighbors, self.params.eps)

        rows, cols = gray.shape[:2]
        return [
            d if d.rect.contained_in(cols, rows) else replace(d, rect=d.rect.clip(cols, rows))
            for d in detections
        ]

    def project(self, record: ImageRecord) -> List[ImageRecord]:
        """
        Produce output records for one input record.

        Returns:
            Zero or more records, one per detection.
        """
        enroll_all = record.enroll_all

        # Skip empty inputs unless every region is explicitly requested
        if record.is_empty:
            return [] if enroll_all else [record]

        detections = self.detect(record.image)

        if not detections and not enroll_all:
            width, height = record.size
            detections = [Detection(rect=Rect(0, 0, width, height), confidence=FALLBACK_CONFIDENCE, neighbors=0)]

        out: List[ImageRecord] = []
        for det in detections:
            u = record.derive()
            u.set(CONFIDENCE_KEY, det.confidence)
            u.append_rect(det.rect)
            u.set(self.region_name, det.rect)
            out.append(u)

        logging.debug(f"{record.source or 'image'}: {len(out)} regions")
        return out

    def project_many(self, records: Sequence[ImageRecord]) -> List[ImageRecord]:
        """Project each record, concatenating the outputs in input order."""
        if self.workers > 1 and len(records) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                batches = list(pool.map(self.project, records))
        else:
            batches = [self.project(r) for r in records]
        return [u for batch in batches for u in batch]

    def load(self, store: ModelStore) -> None:
        store.load(self.classifier)

    def store(self, store: ModelStore) -> None:
        store.store(self.classifier)
