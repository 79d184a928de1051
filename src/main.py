"""
Sliding-window detector command line.

Loads a trained classifier from the model store, scans each input image over a
scale pyramid, and writes one JSON line per detected region.

Usage:
    python src/main.py --config config/config.yaml --image a.png b.png

Arguments:
    --config: Path to configuration file
    --image: One or more image files to scan
    --output: Write JSON lines to this file instead of stdout
    --annotate-dir: Write copies of the images with the regions drawn
    --enroll-all: Do not fall back to a full-image region when nothing is found
"""

import os
import sys
import argparse
import json
import logging
from typing import Any, Dict, List, Optional, TextIO, Tuple

import cv2
import numpy as np
import yaml

from classifier import create_classifier
from detection.sliding_window import SlidingWindowDetector
from models.config import Config
from models.record import ImageRecord
from ops.logging import setup_logging
from storage.model_store import ModelLoadError, ModelStore

CLASSIFIER_BACKENDS = ("template",)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        base_path = os.path.join(os.path.dirname(config_path), "default.yaml")
        base_cfg: Dict[str, Any] = {}
        if os.path.exists(base_path):
            with open(base_path, "r") as f:
                base_cfg = yaml.safe_load(f) or {}

        local_overrides_path = os.path.join(os.path.dirname(config_path), "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            with open(local_overrides_path, "r") as f:
                local_cfg = yaml.safe_load(f) or {}

        merged = _deep_merge(base_cfg, local_cfg)

        # Finally apply explicit config_path if it's not the local override file itself
        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            with open(config_path, "r") as f:
                explicit_cfg = yaml.safe_load(f) or {}
            merged = _deep_merge(merged, explicit_cfg)

        return merged
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    # Required top-level sections
    required_sections = ['detector', 'model', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Validate detector settings
    detector = config.get('detector') or {}
    if 'min_size' in detector:
        if not _is_int(detector['min_size']) or detector['min_size'] <= 0:
            return False, "detector.min_size must be a positive integer"
    if 'max_size' in detector and not _is_int(detector['max_size']):
        return False, "detector.max_size must be an integer (<= 0 means full image)"
    if 'scale_factor' in detector:
        sf = detector['scale_factor']
        if not _is_number(sf) or sf <= 1:
            return False, "detector.scale_factor must be a number greater than 1"
    if 'min_neighbors' in detector:
        if not _is_int(detector['min_neighbors']) or detector['min_neighbors'] < 0:
            return False, "detector.min_neighbors must be a non-negative integer"
    if 'eps' in detector:
        eps = detector['eps']
        if not _is_number(eps) or not (0 <= eps <= 1):
            return False, "detector.eps must be between 0 and 1"
    if 'workers' in detector:
        if not _is_int(detector['workers']) or detector['workers'] <= 0:
            return False, "detector.workers must be a positive integer"
    if 'region_name' in detector:
        if not isinstance(detector['region_name'], str) or not detector['region_name']:
            return False, "detector.region_name must be a non-empty string"

    # Validate model settings
    model = config.get('model') or {}
    backend = model.get('backend', 'template')
    if backend not in CLASSIFIER_BACKENDS:
        return False, f"model.backend must be one of: {', '.join(CLASSIFIER_BACKENDS)}"
    if 'root' not in model:
        return False, "Missing model.root"
    if not isinstance(model['root'], str):
        return False, "model.root must be a string"
    if 'cascade_dir' in model and not isinstance(model['cascade_dir'], str):
        return False, "model.cascade_dir must be a string"
    template = model.get('template') or {}
    for key in ('window_width', 'window_height'):
        if key in template and (not _is_int(template[key]) or template[key] <= 0):
            return False, f"model.template.{key} must be a positive integer"

    # Validate log settings
    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if config['log_level'] not in valid_log_levels:
        return False, f"log_level must be one of: {', '.join(valid_log_levels)}"

    return True, None


def read_records(paths: List[str], enroll_all: bool = False) -> List[ImageRecord]:
    """
    Read images as grayscale records.

    Unreadable files become empty records so they follow the skip-empty rule.
    """
    records = []
    for path in paths:
        image = cv2.imread(path, cv2.IMREAD_GRAYSCALE)
        if image is None:
            logging.warning(f"Could not read image: {path}")
            image = np.zeros((0, 0), dtype=np.uint8)
        records.append(ImageRecord.from_numpy(image, source=path, enrollAll=enroll_all))
    return records


def record_to_json(record: ImageRecord, region_name: str) -> Dict[str, Any]:
    rect = record.get(region_name)
    return {
        "file": record.source,
        "confidence": record.confidence,
        "rect": list(rect.as_tuple()) if rect is not None else None,
    }


def write_results(records: List[ImageRecord], region_name: str, out: TextIO) -> None:
    for record in records:
        out.write(json.dumps(record_to_json(record, region_name)) + "\n")


def annotate(records: List[ImageRecord], region_name: str, out_dir: str) -> None:
    """Draw every region onto a copy of its image and save one file per input."""
    os.makedirs(out_dir, exist_ok=True)
    canvases: Dict[str, np.ndarray] = {}
    for record in records:
        if record.is_empty or record.source is None:
            continue
        if record.source not in canvases:
            canvases[record.source] = cv2.cvtColor(record.image, cv2.COLOR_GRAY2BGR)
        rect = record.get(region_name)
        if rect is None:
            continue
        x1, y1, x2, y2 = rect.as_xyxy()
        cv2.rectangle(canvases[record.source], (x1, y1), (x2 - 1, y2 - 1), (0, 255, 0), 2)

    for source, canvas in canvases.items():
        path = os.path.join(out_dir, os.path.basename(source))
        if not cv2.imwrite(path, canvas):
            logging.warning(f"Failed to write annotated image: {path}")


def main() -> int:
    """Main application function."""
    # Parse command-line arguments
    parser = argparse.ArgumentParser(description='Multi-scale sliding-window detector')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--image', type=str, nargs='+', required=True,
                        help='Image file(s) to scan')
    parser.add_argument('--output', type=str, default=None,
                        help='Write JSON lines here instead of stdout')
    parser.add_argument('--annotate-dir', type=str, default=None,
                        help='Write annotated copies of the images here')
    parser.add_argument('--enroll-all', action='store_true',
                        help='Emit only real detections (no full-image fallback)')
    args = parser.parse_args()

    # Load configuration
    config = load_config(args.config)

    # Validate configuration
    is_valid, error_msg = validate_config(config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    # Setup logging
    setup_logging(config['log_path'], config['log_level'])
    cfg = Config.from_dict(config)

    classifier = create_classifier(cfg.model)
    detector = SlidingWindowDetector.from_config(classifier, cfg.detector)
    store = ModelStore(cfg.model.root, cfg.model.cascade_dir)
    try:
        detector.load(store)
    except ModelLoadError as e:
        logging.error(f"Cannot start detector: {e}")
        sys.exit(1)

    records = read_records(args.image, enroll_all=args.enroll_all)
    logging.info(f"Scanning {len(records)} image(s) with {cfg.detector.workers} worker(s)")
    results = detector.project_many(records)

    if args.output:
        with open(args.output, "w") as f:
            write_results(results, cfg.detector.region_name, f)
    else:
        write_results(results, cfg.detector.region_name, sys.stdout)

    if args.annotate_dir:
        annotate(results, cfg.detector.region_name, args.annotate_dir)

    logging.info(f"Done: {len(results)} region(s) from {len(records)} image(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
