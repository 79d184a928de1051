"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from classifier.base import Classifier  # noqa: E402


class ConstantClassifier(Classifier):
    """Returns the same score for every window and records each call."""

    def __init__(self, score: float = -1.0, size=(20, 20)):
        self.score = score
        self.size = size
        self.calls = 0
        self.trained_with = None

    def train(self, images, labels):
        self.trained_with = (list(images), list(labels))

    def classify(self, window):
        self.calls += 1
        return self.score

    def window_size(self):
        return self.size

    def read(self, node):
        self.score = node.getNode("score").real()

    def write(self, fs):
        fs.write("score", self.score)


class PatchClassifier(Classifier):
    """Scores 1 for windows identical to ``patch`` and -1 everywhere else."""

    def __init__(self, patch: np.ndarray):
        self.patch = patch

    def train(self, images, labels):
        pass

    def classify(self, window):
        return 1.0 if np.array_equal(window, self.patch) else -1.0

    def window_size(self):
        h, w = self.patch.shape
        return (w, h)

    def read(self, node):
        pass

    def write(self, fs):
        pass


@pytest.fixture
def patch():
    """A 20x20 textured patch that cannot occur anywhere else by chance."""
    rng = np.random.default_rng(7)
    return rng.integers(1, 256, size=(20, 20), dtype=np.uint8)


@pytest.fixture
def scene(patch):
    """A 100x100 black image with ``patch`` pasted at (10, 10)."""
    image = np.zeros((100, 100), dtype=np.uint8)
    image[10:30, 10:30] = patch
    return image


@pytest.fixture
def patch_classifier(patch):
    return PatchClassifier(patch)


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
detector:
  min_size: 20
  max_size: -1
  scale_factor: 1.2
  min_neighbors: 5
  eps: 0.2

model:
  backend: "template"
  root: "models"
  cascade_dir: "faces"

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "detector": {
            "min_size": 20,
            "max_size": -1,
            "scale_factor": 1.2,
            "min_neighbors": 5,
            "eps": 0.2,
            "region_name": "Face",
            "workers": 1,
        },
        "model": {
            "backend": "template",
            "root": "models",
            "cascade_dir": "faces",
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
