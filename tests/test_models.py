"""
Smoke tests for typed models and adapters.
"""

import numpy as np
import pytest

from models.detection import Candidate, Detection, Rect, rects_to_numpy
from models.record import ImageRecord, ensure_gray_uint8
from models.config import (
    Config,
    DetectorConfig,
    ModelConfig,
    ScanParameters,
    TemplateConfig,
)


class TestRect:
    def test_properties(self):
        rect = Rect(x=10, y=20, width=30, height=40)
        assert rect.right == 40
        assert rect.bottom == 60
        assert rect.as_tuple() == (10, 20, 30, 40)
        assert rect.as_xyxy() == (10, 20, 40, 60)

    def test_from_tuple(self):
        assert Rect.from_tuple((5, 5, 10, 20)) == Rect(5, 5, 10, 20)

    def test_clip(self):
        assert Rect(-5, 90, 20, 20).clip(100, 100) == Rect(0, 90, 15, 10)
        assert Rect(10, 10, 20, 20).clip(100, 100) == Rect(10, 10, 20, 20)

    def test_contained_in(self):
        assert Rect(0, 0, 100, 100).contained_in(100, 100)
        assert not Rect(1, 0, 100, 100).contained_in(100, 100)


class TestDetection:
    def test_defaults(self):
        det = Detection(rect=Rect(1, 2, 3, 4))
        assert det.confidence == 1.0
        assert det.neighbors == 1

    def test_candidate_defaults(self):
        assert Candidate(rect=Rect(0, 0, 1, 1), score=0.5).factor == 1.0


class TestRectAdapters:
    def test_to_numpy_empty(self):
        assert rects_to_numpy([]).shape == (0, 4)

    def test_to_numpy(self):
        arr = rects_to_numpy([Rect(10, 20, 30, 40), Rect(1, 2, 3, 4)])
        assert arr.tolist() == [[10, 20, 30, 40], [1, 2, 3, 4]]


class TestImageRecord:
    def test_from_numpy(self):
        image = np.zeros((48, 64), dtype=np.uint8)
        record = ImageRecord.from_numpy(image, source="x.png", enrollAll=True, Label=1)

        assert record.size == (64, 48)
        assert record.enroll_all is True
        assert record.label == 1.0
        assert not record.is_empty

    def test_defaults(self):
        record = ImageRecord.from_numpy(np.zeros((2, 2), dtype=np.uint8))
        assert record.enroll_all is False
        assert record.label == -1.0
        assert record.confidence is None
        assert record.rects == []

    def test_empty(self):
        assert ImageRecord(image=None).is_empty
        assert ImageRecord.from_numpy(np.zeros((0, 10), dtype=np.uint8)).is_empty

    def test_derive_copies_metadata(self):
        record = ImageRecord.from_numpy(np.zeros((2, 2), dtype=np.uint8), tags=["a"])
        derived = record.derive()
        derived.append_rect(Rect(0, 0, 1, 1))
        derived.get("tags").append("b")

        assert derived.image is record.image
        assert record.rects == []
        assert record.get("tags") == ["a"]


class TestEnsureGray:
    def test_gray_passthrough(self):
        image = np.arange(12, dtype=np.uint8).reshape(3, 4)
        np.testing.assert_array_equal(ensure_gray_uint8(image), image)

    def test_bgr_to_gray(self):
        image = np.zeros((3, 4, 3), dtype=np.uint8)
        assert ensure_gray_uint8(image).shape == (3, 4)

    def test_float_rescaled_to_full_range(self):
        image = np.array([[0.0, 300.0]], dtype=np.float32)
        assert ensure_gray_uint8(image).tolist() == [[0, 255]]

    def test_unit_float_keeps_contrast(self):
        image = np.array([[0.0, 0.5, 1.0]], dtype=np.float64)
        gray = ensure_gray_uint8(image)

        assert gray.dtype == np.uint8
        assert gray[0, 0] == 0
        assert gray[0, 2] == 255
        assert 127 <= gray[0, 1] <= 128

    def test_uint16_rescaled(self):
        image = np.array([[1000, 2000]], dtype=np.uint16)
        assert ensure_gray_uint8(image).tolist() == [[0, 255]]

    def test_none_raises(self):
        with pytest.raises(ValueError):
            ensure_gray_uint8(None)


class TestScanParameters:
    def test_defaults(self):
        params = ScanParameters()
        assert params.min_size == 20
        assert params.max_size == -1
        assert params.scale_factor == pytest.approx(1.2)
        assert params.min_neighbors == 5
        assert params.eps == pytest.approx(0.2)
        assert params.zero_score_skip is False

    @pytest.mark.parametrize("scale_factor", [1.0, 0.5, -2.0])
    def test_rejects_non_growing_scale(self, scale_factor):
        with pytest.raises(ValueError):
            ScanParameters(scale_factor=scale_factor)

    def test_rejects_bad_eps_and_neighbors(self):
        with pytest.raises(ValueError):
            ScanParameters(eps=1.5)
        with pytest.raises(ValueError):
            ScanParameters(min_neighbors=-1)

    def test_max_object_size(self):
        assert ScanParameters().max_object_size((120, 80)) == (120, 80)
        assert ScanParameters(max_size=0).max_object_size((120, 80)) == (120, 80)
        assert ScanParameters(max_size=50).max_object_size((120, 80)) == (50, 50)


class TestConfig:
    def test_from_dict_defaults(self):
        cfg = Config.from_dict({})
        assert cfg.detector.scan == ScanParameters()
        assert cfg.detector.region_name == "Face"
        assert cfg.model.backend == "template"
        assert cfg.model.template == TemplateConfig()
        assert cfg.log_level == "INFO"

    def test_from_dict_values(self, valid_config):
        valid_config["detector"]["min_neighbors"] = 2
        valid_config["model"]["template"] = {"threshold": 0.7}

        cfg = Config.from_dict(valid_config)

        assert cfg.detector.scan.min_neighbors == 2
        assert cfg.model.cascade_dir == "faces"
        assert cfg.model.template.threshold == 0.7
        assert cfg.log_path == "logs/test.log"

    def test_to_dict_round_trip(self, valid_config):
        cfg = Config.from_dict(valid_config)
        assert Config.from_dict(cfg.to_dict()) == cfg

    def test_detector_config_flat_keys(self):
        d = DetectorConfig(scan=ScanParameters(min_size=30), workers=3).to_dict()
        assert d["min_size"] == 30
        assert d["workers"] == 3

    def test_model_config_defaults(self):
        cfg = ModelConfig.from_dict({"cascade_dir": "eyes"})
        assert cfg.root == "models"
        assert cfg.cascade_dir == "eyes"
