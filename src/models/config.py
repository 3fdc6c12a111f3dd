"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Union

MIN_CONFIDENCE_RANGE = (0.1, 0.9)
IOU_THRESHOLD_RANGE = (0.1, 0.9)


@dataclass
class DetectionSettings:
    """
    Runtime-adjustable detection settings.

    The scheduler reads these on every tick, so changes apply without a
    restart. Use update() to change values with validation.
    """
    min_confidence: float = 0.5
    max_objects: int = 10
    iou_threshold: float = 0.3
    frame_cap_hz: float = 24.0

    def __post_init__(self) -> None:
        self.validate()

    @property
    def min_frame_interval_ms(self) -> float:
        """Minimum spacing between inference calls, e.g. ~41.7 ms at 24 Hz."""
        return 1000.0 / self.frame_cap_hz

    def validate(self) -> None:
        lo, hi = MIN_CONFIDENCE_RANGE
        if not lo <= self.min_confidence <= hi:
            raise ValueError(f"min_confidence must be between {lo} and {hi}")
        lo, hi = IOU_THRESHOLD_RANGE
        if not lo <= self.iou_threshold <= hi:
            raise ValueError(f"iou_threshold must be between {lo} and {hi}")
        if not isinstance(self.max_objects, int) or self.max_objects < 1:
            raise ValueError("max_objects must be a positive integer")
        if self.frame_cap_hz <= 0:
            raise ValueError("frame_cap_hz must be positive")

    def update(self, **changes: Any) -> None:
        """Apply changes atomically; nothing changes if any value is invalid."""
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise ValueError(f"Unknown detection settings: {', '.join(sorted(unknown))}")
        candidate = DetectionSettings(**{**self.to_dict(), **changes})
        for name in known:
            setattr(self, name, getattr(candidate, name))

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionSettings":
        return cls(
            min_confidence=d.get("min_confidence", 0.5),
            max_objects=d.get("max_objects", 10),
            iou_threshold=d.get("iou_threshold", 0.3),
            frame_cap_hz=d.get("frame_cap_hz", 24.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min_confidence": self.min_confidence,
            "max_objects": self.max_objects,
            "iou_threshold": self.iou_threshold,
            "frame_cap_hz": self.frame_cap_hz,
        }


@dataclass
class DetectionConfig:
    """Detection model configuration."""
    backend: str = "ultralytics"
    model: str = "yolov8n.pt"
    settings: DetectionSettings = field(default_factory=DetectionSettings)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionConfig":
        return cls(
            backend=d.get("backend", "ultralytics"),
            model=d.get("model", "yolov8n.pt"),
            settings=DetectionSettings.from_dict(d),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = {"backend": self.backend, "model": self.model}
        d.update(self.settings.to_dict())
        return d


@dataclass
class ClassifierConfig:
    """Teachable classifier configuration."""
    backend: str = "ultralytics"
    model: str = "yolov8n-cls.pt"
    ready_threshold: int = 10
    display_floor: float = 0.05
    frame_cap_hz: float = 24.0
    classes: List[str] = field(default_factory=lambda: ["Class A", "Class B", "Background"])

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ClassifierConfig":
        return cls(
            backend=d.get("backend", "ultralytics"),
            model=d.get("model", "yolov8n-cls.pt"),
            ready_threshold=d.get("ready_threshold", 10),
            display_floor=d.get("display_floor", 0.05),
            frame_cap_hz=d.get("frame_cap_hz", 24.0),
            classes=list(d.get("classes", ["Class A", "Class B", "Background"])),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "model": self.model,
            "ready_threshold": self.ready_threshold,
            "display_floor": self.display_floor,
            "frame_cap_hz": self.frame_cap_hz,
            "classes": list(self.classes),
        }


@dataclass
class OverlayConfig:
    """Overlay geometry configuration."""
    margin: float = 10.0
    label_threshold: float = 40.0
    container: List[int] = field(default_factory=lambda: [1280, 720])

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "OverlayConfig":
        return cls(
            margin=d.get("margin", 10.0),
            label_threshold=d.get("label_threshold", 40.0),
            container=d.get("container", [1280, 720]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "margin": self.margin,
            "label_threshold": self.label_threshold,
            "container": self.container,
        }


@dataclass
class LiveConfig:
    """Live capture device configuration."""
    device_id: Union[int, str] = 0
    max_retries: int = 3
    max_read_failures: int = 3

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LiveConfig":
        return cls(
            device_id=d.get("device_id", 0),
            max_retries=d.get("max_retries", 3),
            max_read_failures=d.get("max_read_failures", 3),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "device_id": self.device_id,
            "max_retries": self.max_retries,
            "max_read_failures": self.max_read_failures,
        }


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    overlay: OverlayConfig = field(default_factory=OverlayConfig)
    live: LiveConfig = field(default_factory=LiveConfig)
    log_path: str = "logs/visual_inference.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            detection=DetectionConfig.from_dict(d.get("detection", {}) or {}),
            classifier=ClassifierConfig.from_dict(d.get("classifier", {}) or {}),
            overlay=OverlayConfig.from_dict(d.get("overlay", {}) or {}),
            live=LiveConfig.from_dict(d.get("live", {}) or {}),
            log_path=d.get("log_path", "logs/visual_inference.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detection": self.detection.to_dict(),
            "classifier": self.classifier.to_dict(),
            "overlay": self.overlay.to_dict(),
            "live": self.live.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
