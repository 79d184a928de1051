"""
Tests for the model store.
"""

import numpy as np
import pytest

from classifier.template import TemplateClassifier
from storage.model_store import ModelLoadError, ModelStore, ModelStoreError

from conftest import ConstantClassifier


class TestLoad:
    def test_missing_file_raises(self, tmp_path):
        store = ModelStore(str(tmp_path), "faces")

        with pytest.raises(ModelLoadError):
            store.load(ConstantClassifier())

    def test_garbage_file_raises(self, tmp_path):
        model_dir = tmp_path / "faces"
        model_dir.mkdir()
        (model_dir / "cascade.xml").write_text("not a model")

        with pytest.raises(ModelLoadError):
            ModelStore(str(tmp_path), "faces").load(ConstantClassifier())

    def test_empty_storage_raises(self, tmp_path):
        model_dir = tmp_path / "faces"
        model_dir.mkdir()
        (model_dir / "cascade.xml").write_text(
            '<?xml version="1.0"?>\n<opencv_storage>\n</opencv_storage>\n'
        )

        with pytest.raises(ModelLoadError):
            ModelStore(str(tmp_path), "faces").load(ConstantClassifier())

    def test_failed_load_leaves_classifier_untouched(self, tmp_path):
        classifier = ConstantClassifier(score=0.25)

        with pytest.raises(ModelLoadError):
            ModelStore(str(tmp_path), "nothing").load(classifier)

        assert classifier.score == 0.25

    def test_classifier_read_error_becomes_load_error(self, tmp_path):
        store = ModelStore(str(tmp_path), "const")
        store.store(ConstantClassifier(score=0.75))

        class MissingKeyClassifier(ConstantClassifier):
            def read(self, node):
                raise KeyError("score")

        with pytest.raises(ModelLoadError) as exc:
            store.load(MissingKeyClassifier())

        assert isinstance(exc.value.__cause__, KeyError)


class TestStore:
    def test_creates_directories(self, tmp_path):
        store = ModelStore(str(tmp_path / "models"), "a/b")

        store.store(ConstantClassifier(score=0.75))

        assert store.exists()
        assert store.path == str(tmp_path / "models" / "a/b" / "cascade.xml")

    def test_roundtrip(self, tmp_path):
        store = ModelStore(str(tmp_path), "const")
        store.store(ConstantClassifier(score=0.75))

        loaded = ConstantClassifier(score=-1.0)
        store.load(loaded)

        assert loaded.score == pytest.approx(0.75)

    def test_unwritable_directory_raises(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")

        with pytest.raises(ModelStoreError):
            ModelStore(str(blocker), "sub").store(ConstantClassifier())

    def test_unopenable_file_raises(self, tmp_path):
        (tmp_path / "m" / "cascade.xml").mkdir(parents=True)

        with pytest.raises(ModelStoreError):
            ModelStore(str(tmp_path), "m").store(ConstantClassifier())

    def test_no_cascade_dir(self, tmp_path):
        store = ModelStore(str(tmp_path))

        assert store.directory == str(tmp_path)
        assert store.path == str(tmp_path / "cascade.xml")


def test_template_classifier_survives_store(tmp_path):
    rng = np.random.default_rng(2)
    patch = rng.integers(0, 256, size=(24, 16), dtype=np.uint8)
    classifier = TemplateClassifier(window_width=16, window_height=24, threshold=0.3)
    classifier.train([patch], [1])

    store = ModelStore(str(tmp_path), "template")
    store.store(classifier)

    loaded = TemplateClassifier()
    store.load(loaded)

    assert loaded.window_size() == (16, 24)
    assert loaded.threshold == pytest.approx(0.3)
    np.testing.assert_allclose(loaded.template, classifier.template)
    assert loaded.classify(patch) == pytest.approx(classifier.classify(patch))


def test_failed_store_keeps_previous_model(tmp_path):
    rng = np.random.default_rng(3)
    patch = rng.integers(0, 256, size=(20, 20), dtype=np.uint8)
    trained = TemplateClassifier(threshold=0.4)
    trained.train([patch], [1])

    store = ModelStore(str(tmp_path), "template")
    store.store(trained)

    with pytest.raises(ModelStoreError) as exc:
        store.store(TemplateClassifier())

    assert isinstance(exc.value.__cause__, RuntimeError)
    assert sorted(p.name for p in (tmp_path / "template").iterdir()) == ["cascade.xml"]

    loaded = TemplateClassifier()
    store.load(loaded)
    assert loaded.threshold == pytest.approx(0.4)
    np.testing.assert_allclose(loaded.template, trained.template)
