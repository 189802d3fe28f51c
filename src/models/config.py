"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

SUPPRESSION_SCOPES = ("global", "per_label")
BOX_UNITS = ("auto", "normalized", "pixels")
CHANNEL_ORDERS = ("rgb", "bgr")

DEFAULT_REFERENCE_HEIGHTS: Dict[str, float] = {
    "person": 1.7,
    "bicycle": 1.0,
    "car": 1.5,
    "motorcycle": 1.1,
    "bus": 2.8,
    "truck": 2.5,
    "dog": 0.6,
    "cat": 0.3,
    "chair": 0.9,
    "traffic light": 0.9,
    "stop sign": 0.75,
}


@dataclass
class CameraConfig:
    """Camera configuration."""
    device_id: Union[int, str] = 0
    resolution: List[int] = field(default_factory=lambda: [640, 480])
    fps: int = 30
    rotate: int = 0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            device_id=d.get("device_id", 0),
            resolution=d.get("resolution", [640, 480]),
            fps=d.get("fps", 30),
            rotate=d.get("rotate", 0) or 0,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "device_id": self.device_id,
            "resolution": self.resolution,
            "fps": self.fps,
            "rotate": self.rotate,
        }


@dataclass
class ModelConfig:
    """Detection model configuration."""
    path: str = ""
    labels_path: Optional[str] = None
    providers: Optional[List[str]] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ModelConfig":
        return cls(
            path=d.get("path", ""),
            labels_path=d.get("labels_path"),
            providers=d.get("providers"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"path": self.path}
        if self.labels_path is not None:
            d["labels_path"] = self.labels_path
        if self.providers is not None:
            d["providers"] = self.providers
        return d


@dataclass
class DetectionConfig:
    """
    Decoding and suppression configuration.

    Attributes:
        input_size: Side length S of the square model input.
        conf_threshold: Minimum objectness x class score to keep a row.
        iou_threshold: Overlap above which the weaker box is suppressed.
        suppression_scope: "per_label" or "global".
        max_detections: Cap on detections kept per frame.
        box_units: How raw box values are interpreted: "auto", "normalized" or "pixels".
        channel_order: Channel order the model expects, "rgb" or "bgr".
        class_thresholds: Optional per-class-index override of conf_threshold.
        classes: Optional allow-list of class indices.
    """
    input_size: int = 640
    conf_threshold: float = 0.35
    iou_threshold: float = 0.45
    suppression_scope: str = "per_label"
    max_detections: int = 10
    box_units: str = "auto"
    channel_order: str = "rgb"
    class_thresholds: Optional[Dict[int, float]] = None
    classes: Optional[List[int]] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionConfig":
        thresholds = d.get("class_thresholds")
        if thresholds is not None:
            thresholds = {int(k): float(v) for k, v in thresholds.items()}
        return cls(
            input_size=d.get("input_size", 640),
            conf_threshold=d.get("conf_threshold", 0.35),
            iou_threshold=d.get("iou_threshold", 0.45),
            suppression_scope=d.get("suppression_scope", "per_label"),
            max_detections=d.get("max_detections", 10),
            box_units=d.get("box_units", "auto"),
            channel_order=d.get("channel_order", "rgb"),
            class_thresholds=thresholds,
            classes=d.get("classes"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "input_size": self.input_size,
            "conf_threshold": self.conf_threshold,
            "iou_threshold": self.iou_threshold,
            "suppression_scope": self.suppression_scope,
            "max_detections": self.max_detections,
            "box_units": self.box_units,
            "channel_order": self.channel_order,
        }
        if self.class_thresholds is not None:
            d["class_thresholds"] = self.class_thresholds
        if self.classes is not None:
            d["classes"] = self.classes
        return d

    def threshold_for(self, class_id: int) -> float:
        """Confidence threshold for a class, falling back to conf_threshold."""
        if self.class_thresholds and class_id in self.class_thresholds:
            return self.class_thresholds[class_id]
        return self.conf_threshold


@dataclass
class DistanceConfig:
    """
    Distance heuristic constants.

    distance_m = reference_height_m * focal_length_px / pixel_height.
    The near/medium/far bands are in metres and only drive proximity labels.
    """
    focal_length_px: float = 700.0
    default_height_m: float = 1.0
    reference_heights: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_REFERENCE_HEIGHTS))
    near_m: float = 1.0
    medium_m: float = 3.0
    far_m: float = 6.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DistanceConfig":
        heights = dict(DEFAULT_REFERENCE_HEIGHTS)
        heights.update(d.get("reference_heights") or {})
        return cls(
            focal_length_px=d.get("focal_length_px", 700.0),
            default_height_m=d.get("default_height_m", 1.0),
            reference_heights=heights,
            near_m=d.get("near_m", 1.0),
            medium_m=d.get("medium_m", 3.0),
            far_m=d.get("far_m", 6.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "focal_length_px": self.focal_length_px,
            "default_height_m": self.default_height_m,
            "reference_heights": self.reference_heights,
            "near_m": self.near_m,
            "medium_m": self.medium_m,
            "far_m": self.far_m,
        }


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    distance: DistanceConfig = field(default_factory=DistanceConfig)
    log_path: str = "logs/detector.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            camera=CameraConfig.from_dict(d.get("camera", {}) or {}),
            model=ModelConfig.from_dict(d.get("model", {}) or {}),
            detection=DetectionConfig.from_dict(d.get("detection", {}) or {}),
            distance=DistanceConfig.from_dict(d.get("distance", {}) or {}),
            log_path=d.get("log_path", "logs/detector.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or dumping)."""
        return {
            "camera": self.camera.to_dict(),
            "model": self.model.to_dict(),
            "detection": self.detection.to_dict(),
            "distance": self.distance.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
