"""
Window classifiers.

The detector only depends on the Classifier interface; concrete models are
selected by backend name from the model config.
"""

from models.config import ModelConfig

from .base import Classifier
from .template import TemplateClassifier


def create_classifier(cfg: ModelConfig) -> Classifier:
    """
    Factory: Create an untrained classifier for the configured backend.

    Raises:
        ValueError: If the backend name is unknown.
    """
    if cfg.backend == "template":
        return TemplateClassifier(
            window_width=cfg.template.window_width,
            window_height=cfg.template.window_height,
            threshold=cfg.template.threshold,
        )
    raise ValueError(f"Unknown classifier backend: {cfg.backend}")


__all__ = ["Classifier", "TemplateClassifier", "create_classifier"]
