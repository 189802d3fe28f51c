"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.frame import PlaneData, RawFrame  # noqa: E402


def build_yuv_frame(luma, u, v, rotation=0, frame_index=0):
    """Build a tightly packed I420 RawFrame from 2-D Y, U and V arrays."""
    luma = np.asarray(luma, dtype=np.uint8)
    u = np.asarray(u, dtype=np.uint8)
    v = np.asarray(v, dtype=np.uint8)
    height, width = luma.shape
    return RawFrame(
        width=width,
        height=height,
        planes=(
            PlaneData(data=luma.ravel(), row_stride=width),
            PlaneData(data=u.ravel(), row_stride=u.shape[1]),
            PlaneData(data=v.ravel(), row_stride=v.shape[1]),
        ),
        subsampling=2,
        rotation=rotation,
        frame_index=frame_index,
    )


@pytest.fixture
def build_frame():
    """Factory for I420 frames from explicit Y, U and V planes."""
    return build_yuv_frame


@pytest.fixture
def make_frame():
    """Factory for uniform I420 frames: make_frame(width, height, y=..., u=..., v=...)."""
    def _make(width=64, height=48, y=128, u=128, v=128, rotation=0, frame_index=0):
        cw, ch = (width + 1) // 2, (height + 1) // 2
        return build_yuv_frame(
            np.full((height, width), y),
            np.full((ch, cw), u),
            np.full((ch, cw), v),
            rotation=rotation,
            frame_index=frame_index,
        )
    return _make


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  device_id: 0
  resolution: [640, 480]
  fps: 30

model:
  path: "models/detector.onnx"

detection:
  input_size: 640
  conf_threshold: 0.35
  iou_threshold: 0.45

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "device_id": 0,
            "resolution": [640, 480],
            "fps": 30,
            "rotate": 0,
        },
        "model": {
            "path": "models/detector.onnx",
        },
        "detection": {
            "input_size": 640,
            "conf_threshold": 0.35,
            "iou_threshold": 0.45,
            "suppression_scope": "per_label",
            "max_detections": 10,
        },
        "distance": {
            "focal_length_px": 700.0,
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
