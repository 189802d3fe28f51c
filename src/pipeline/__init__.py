"""
Pipeline module for the detection core.

The pipeline orchestrates the full per-frame flow:
- YUV frame decoding and letterbox preprocessing
- Model inference through an InferenceBackend
- Tensor decoding, non-max suppression and distance estimates
- One-frame-at-a-time scheduling (DetectionSession) fed by an ObservationSource
"""

from .detector import DetectionPipeline, create_pipeline_from_config
from .session import DetectionSession, SessionStats
from .engine import PipelineEngine, EngineConfig, create_engine_from_config

__all__ = [
    "DetectionPipeline",
    "create_pipeline_from_config",
    "DetectionSession",
    "SessionStats",
    "PipelineEngine",
    "EngineConfig",
    "create_engine_from_config",
]
