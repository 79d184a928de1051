"""
Model storage.
"""

from .model_store import ModelStore, ModelLoadError, ModelStoreError

__all__ = ["ModelStore", "ModelLoadError", "ModelStoreError"]
