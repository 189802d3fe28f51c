"""
Typed models for the detection pipeline.

Frames, model inputs, detections, configuration and per-frame errors.
"""

from .frame import PlaneData, RawFrame, RasterImage
from .model_input import LetterboxTransform, ModelInput
from .detection import BoundingBox, Detection
from .errors import (
    PipelineError,
    UnsupportedFormat,
    InvalidFrame,
    InferenceError,
    UnsupportedTensorType,
)
from .config import (
    Config,
    CameraConfig,
    ModelConfig,
    DetectionConfig,
    DistanceConfig,
)

__all__ = [
    # Frame
    "PlaneData",
    "RawFrame",
    "RasterImage",
    # Model input
    "LetterboxTransform",
    "ModelInput",
    # Detection
    "BoundingBox",
    "Detection",
    # Errors
    "PipelineError",
    "UnsupportedFormat",
    "InvalidFrame",
    "InferenceError",
    "UnsupportedTensorType",
    # Config
    "Config",
    "CameraConfig",
    "ModelConfig",
    "DetectionConfig",
    "DistanceConfig",
]
