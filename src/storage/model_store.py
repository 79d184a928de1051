"""
Model store for classifier parameters.

Models live at ``<root>/<cascade_dir>/cascade.xml`` and are read and written
through OpenCV FileStorage. Both directions fail loudly: a model that cannot
be loaded never leaves behind a half-initialised classifier that silently
rejects everything.
"""

from __future__ import annotations

import logging
import os

import cv2

from classifier.base import Classifier

MODEL_FILENAME = "cascade.xml"
MODEL_NODE_NAME = "cascade"
TMP_MODEL_FILENAME = "cascade.tmp.xml"


class ModelLoadError(RuntimeError):
    """Raised when a stored model is missing or unreadable."""


class ModelStoreError(RuntimeError):
    """Raised when a model cannot be written to its destination."""


class ModelStore:
    """
    Reads and writes classifier models under a root directory.

    Example:
        store = ModelStore("models", "frontalface")
        store.load(classifier)   # raises ModelLoadError if missing
        store.store(classifier)  # creates models/frontalface/ as needed
    """

    def __init__(self, root: str, cascade_dir: str = "") -> None:
        self.root = root
        self.cascade_dir = cascade_dir

    @property
    def directory(self) -> str:
        return os.path.join(self.root, self.cascade_dir) if self.cascade_dir else self.root

    @property
    def path(self) -> str:
        return os.path.join(self.directory, MODEL_FILENAME)

    def exists(self) -> bool:
        return os.path.isfile(self.path)

    def load(self, classifier: Classifier) -> None:
        """
        Load model parameters into ``classifier``.

        Raises:
            ModelLoadError: If the file is missing, cannot be parsed, or
                holds no model.
        """
        filename = self.path
        if not os.path.isfile(filename):
            raise ModelLoadError(f"Model file not found: {filename}")

        try:
            fs = cv2.FileStorage(filename, cv2.FILE_STORAGE_READ)
        except cv2.error as e:
            raise ModelLoadError(f"Unable to parse model file: {filename}") from e

        try:
            if not fs.isOpened():
                raise ModelLoadError(f"Unable to open model file: {filename}")
            node = fs.getFirstTopLevelNode()
            if node is None or node.empty():
                raise ModelLoadError(f"Model file is empty: {filename}")
            try:
                classifier.read(node)
            except Exception as e:
                raise ModelLoadError(f"Invalid model in {filename}: {e}") from e
        finally:
            fs.release()

        logging.info(f"Loaded model from {filename}")

    def store(self, classifier: Classifier) -> None:
        """
        Write ``classifier`` to the store, creating directories as needed.

        The model is written to a temporary file next to the destination and
        only moved over it once complete, so a failed write leaves any
        previously stored model intact.

        Raises:
            ModelStoreError: If the destination cannot be created or opened,
                or the classifier fails to write itself.
        """
        filename = self.path
        try:
            os.makedirs(self.directory, exist_ok=True)
        except OSError as e:
            logging.warning(f"Unable to create model directory: {self.directory}")
            raise ModelStoreError(f"Unable to create model directory: {self.directory}") from e

        tmp_filename = os.path.join(self.directory, TMP_MODEL_FILENAME)
        try:
            fs = cv2.FileStorage(tmp_filename, cv2.FILE_STORAGE_WRITE)
        except cv2.error as e:
            logging.warning(f"Unable to open file: {tmp_filename}")
            raise ModelStoreError(f"Unable to open file: {tmp_filename}") from e

        try:
            try:
                if not fs.isOpened():
                    logging.warning(f"Unable to open file: {tmp_filename}")
                    raise ModelStoreError(f"Unable to open file: {tmp_filename}")
                fs.startWriteStruct(MODEL_NODE_NAME, cv2.FILE_NODE_MAP)
                classifier.write(fs)
                fs.endWriteStruct()
            finally:
                fs.release()
            os.replace(tmp_filename, filename)
        except ModelStoreError:
            _remove_quietly(tmp_filename)
            raise
        except Exception as e:
            _remove_quietly(tmp_filename)
            logging.warning(f"Failed to store model to {filename}: {e}")
            raise ModelStoreError(f"Failed to store model to {filename}: {e}") from e

        logging.info(f"Stored model to {filename}")


def _remove_quietly(path: str) -> None:
    if os.path.exists(path):
        try:
            os.remove(path)
        except OSError as e:
            logging.warning(f"Unable to remove temporary model file {path}: {e}")
