"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class ScanParameters:
    """
    Parameters for one multi-scale scan.

    Attributes:
        min_size: Smallest object size (square) to search for, in pixels.
        max_size: Largest object size; <= 0 means the full image size.
        scale_factor: Ratio between consecutive pyramid levels. Must be > 1.
        min_neighbors: Minimum cluster size for a detection to survive.
        eps: Overlap tolerance for merging near-duplicate windows.
        zero_score_skip: Reproduce the row fast-forward on an exact-zero score.
    """
    min_size: int = 20
    max_size: int = -1
    scale_factor: float = 1.2
    min_neighbors: int = 5
    eps: float = 0.2
    zero_score_skip: bool = False

    def __post_init__(self) -> None:
        if self.scale_factor <= 1:
            raise ValueError(f"scale_factor must be > 1, got {self.scale_factor}")
        if self.min_neighbors < 0:
            raise ValueError(f"min_neighbors must be >= 0, got {self.min_neighbors}")
        if not (0 <= self.eps <= 1):
            raise ValueError(f"eps must be between 0 and 1, got {self.eps}")

    def max_object_size(self, image_size: Tuple[int, int]) -> Tuple[int, int]:
        """Resolve max_size against an image (width, height)."""
        if self.max_size <= 0:
            return image_size
        return (self.max_size, self.max_size)

    def min_object_size(self) -> Tuple[int, int]:
        return (self.min_size, self.min_size)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ScanParameters":
        return cls(
            min_size=d.get("min_size", 20),
            max_size=d.get("max_size", -1),
            scale_factor=d.get("scale_factor", 1.2),
            min_neighbors=d.get("min_neighbors", 5),
            eps=d.get("eps", 0.2),
            zero_score_skip=d.get("zero_score_skip", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min_size": self.min_size,
            "max_size": self.max_size,
            "scale_factor": self.scale_factor,
            "min_neighbors": self.min_neighbors,
            "eps": self.eps,
            "zero_score_skip": self.zero_score_skip,
        }


@dataclass
class DetectorConfig:
    """Sliding-window detector configuration."""
    scan: ScanParameters = field(default_factory=ScanParameters)
    region_name: str = "Face"
    workers: int = 1

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectorConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            scan=ScanParameters.from_dict(d),
            region_name=d.get("region_name", "Face"),
            workers=d.get("workers", 1),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = self.scan.to_dict()
        d["region_name"] = self.region_name
        d["workers"] = self.workers
        return d


@dataclass
class TemplateConfig:
    """Template classifier configuration."""
    window_width: int = 20
    window_height: int = 20
    threshold: float = 0.5

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TemplateConfig":
        return cls(
            window_width=d.get("window_width", 20),
            window_height=d.get("window_height", 20),
            threshold=d.get("threshold", 0.5),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "window_width": self.window_width,
            "window_height": self.window_height,
            "threshold": self.threshold,
        }


@dataclass
class ModelConfig:
    """Classifier backend and model store location."""
    backend: str = "template"
    root: str = "models"
    cascade_dir: str = ""
    template: TemplateConfig = field(default_factory=TemplateConfig)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ModelConfig":
        return cls(
            backend=d.get("backend", "template"),
            root=d.get("root", "models"),
            cascade_dir=d.get("cascade_dir", ""),
            template=TemplateConfig.from_dict(d.get("template", {}) or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "root": self.root,
            "cascade_dir": self.cascade_dir,
            "template": self.template.to_dict(),
        }


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    log_path: str = "logs/slidingwindow.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            detector=DetectorConfig.from_dict(d.get("detector", {}) or {}),
            model=ModelConfig.from_dict(d.get("model", {}) or {}),
            log_path=d.get("log_path", "logs/slidingwindow.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or passing to existing code)."""
        return {
            "detector": self.detector.to_dict(),
            "model": self.model.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
