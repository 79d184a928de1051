#!/usr/bin/env python3
"""
Train the configured window classifier and write it to the model store.

Positive samples are image crops of the object; negatives are crops of
anything else. Every sample is resized to the classifier's native window.

Usage:
  python3 tools/train_classifier.py --config config/config.yaml \
      --positives data/faces --negatives data/background
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List

import cv2

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

from classifier import create_classifier  # noqa: E402
from detection.sliding_window import SlidingWindowDetector  # noqa: E402
from main import load_config, validate_config  # noqa: E402
from models.config import Config  # noqa: E402
from models.record import ImageRecord  # noqa: E402
from ops.logging import setup_logging  # noqa: E402
from storage.model_store import ModelStore, ModelStoreError  # noqa: E402

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".bmp", ".pgm", ".tif", ".tiff")


def load_samples(directory: str, label: float) -> List[ImageRecord]:
    records = []
    for name in sorted(os.listdir(directory)):
        if not name.lower().endswith(IMAGE_EXTENSIONS):
            continue
        path = os.path.join(directory, name)
        image = cv2.imread(path, cv2.IMREAD_GRAYSCALE)
        if image is None:
            logging.warning(f"Skipping unreadable sample: {path}")
            continue
        records.append(ImageRecord.from_numpy(image, source=path, Label=label))
    return records


def main() -> int:
    parser = argparse.ArgumentParser(description="Train a window classifier")
    parser.add_argument("--config", type=str, default="config/config.yaml", help="Config path (layered)")
    parser.add_argument("--positives", type=str, required=True, help="Directory of positive samples")
    parser.add_argument("--negatives", type=str, default=None, help="Directory of negative samples")
    args = parser.parse_args()

    config = load_config(args.config)
    is_valid, error_msg = validate_config(config)
    if not is_valid:
        print(f"Configuration validation failed: {error_msg}", file=sys.stderr)
        return 1

    setup_logging(config["log_path"], config["log_level"])
    cfg = Config.from_dict(config)

    records = load_samples(args.positives, 1)
    if args.negatives:
        records += load_samples(args.negatives, -1)
    if not records:
        logging.error("No training samples found")
        return 1

    detector = SlidingWindowDetector.from_config(create_classifier(cfg.model), cfg.detector)
    detector.train(records)

    store = ModelStore(cfg.model.root, cfg.model.cascade_dir)
    try:
        detector.store(store)
    except ModelStoreError as e:
        logging.error(str(e))
        return 1

    print(f"Model written to {store.path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
