"""
Detection clustering.

Near-duplicate windows found at neighbouring positions and scales are merged
into one representative detection. Two windows are similar when their overlap
covers more than ``1 - eps`` of the smaller window's width and of its height.
Clusters are the connected components of that relation, so membership does
not depend on the order candidates arrive in.
"""

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

import numpy as np

from models.detection import Candidate, Detection, Rect, rects_to_numpy


def similarity_matrix(rects: np.ndarray, eps: float) -> np.ndarray:
    """
    Pairwise similarity of (N, 4) [x, y, width, height] rects.

    Returns:
        (N, N) boolean matrix, symmetric.
    """
    r = rects.astype(np.float64)
    x, y, w, h = r[:, 0], r[:, 1], r[:, 2], r[:, 3]

    overlap_w = np.minimum((x + w)[:, None], (x + w)[None, :]) - np.maximum(x[:, None], x[None, :])
    overlap_h = np.minimum((y + h)[:, None], (y + h)[None, :]) - np.maximum(y[:, None], y[None, :])
    min_w = np.minimum(w[:, None], w[None, :])
    min_h = np.minimum(h[:, None], h[None, :])

    keep = 1.0 - eps
    return (overlap_w > keep * min_w) & (overlap_h > keep * min_h)


def partition(similar: np.ndarray) -> Tuple[np.ndarray, int]:
    """
    Label the connected components of a similarity matrix.

    Labels are numbered in order of each component's first member.

    Returns:
        (labels, number_of_classes)
    """
    n = similar.shape[0]
    parent = list(range(n))

    def find(i: int) -> int:
        while parent[i] != i:
            parent[i] = parent[parent[i]]
            i = parent[i]
        return i

    rows, cols = np.nonzero(np.triu(similar, k=1))
    for i, j in zip(rows.tolist(), cols.tolist()):
        ri, rj = find(i), find(j)
        if ri != rj:
            parent[max(ri, rj)] = min(ri, rj)

    labels = np.empty(n, dtype=np.int64)
    numbering = {}
    for i in range(n):
        root = find(i)
        if root not in numbering:
            numbering[root] = len(numbering)
        labels[i] = numbering[root]
    return labels, len(numbering)


def group_rectangles(
    candidates: Sequence[Candidate],
    min_neighbors: int,
    eps: float,
) -> List[Detection]:
    """
    Cluster candidates into detections.

    Args:
        candidates: Raw positive windows from the scanner.
        min_neighbors: Clusters with fewer members are dropped as noise.
        eps: Overlap tolerance; larger values merge more aggressively.

    Returns:
        One detection per surviving cluster, in discovery order. The rect is
        the rounded mean of the members' rects; the confidence is the sum of
        the members' scores.
    """
    if not candidates:
        return []

    rects = rects_to_numpy([c.rect for c in candidates])
    scores = np.array([c.score for c in candidates], dtype=np.float64)

    labels, n_classes = partition(similarity_matrix(rects, eps))

    counts = np.bincount(labels, minlength=n_classes)
    confidences = np.bincount(labels, weights=scores, minlength=n_classes)
    sums = np.zeros((n_classes, 4), dtype=np.int64)
    np.add.at(sums, labels, rects)

    detections: List[Detection] = []
    for cls in range(n_classes):
        n = int(counts[cls])
        if n < min_neighbors:
            continue
        mean = np.round(sums[cls] / n).astype(np.int64)
        detections.append(
            Detection(
                rect=Rect.from_tuple(mean),
                confidence=float(confidences[cls]),
                neighbors=n,
            )
        )

    logging.debug(
        f"Grouped {len(candidates)} candidates into {n_classes} clusters, "
        f"{len(detections)} with >= {min_neighbors} members"
    )
    return detections
