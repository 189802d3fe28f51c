"""
Observation layer for pluggable camera sources.

This layer abstracts the source of frames (camera, video file, synthetic
generator) from the processing pipeline. Each source implements the
ObservationSource interface and returns RawFrame objects.
"""

from .base import ObservationSource, ObservationConfig
from .opencv_source import OpenCVSource, OpenCVSourceConfig, bgr_to_raw_frame

__all__ = [
    "ObservationSource",
    "ObservationConfig",
    "OpenCVSource",
    "OpenCVSourceConfig",
    "bgr_to_raw_frame",
]
