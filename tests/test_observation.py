"""
Tests for observation layer.
"""

import time
from typing import Optional

import numpy as np
import pytest

from models.frame import RawFrame
from observation.base import ObservationSource, ObservationConfig
from observation.opencv_source import OpenCVSource, OpenCVSourceConfig, bgr_to_raw_frame
from preprocessing.decoder import decode_frame


class MockSource(ObservationSource):
    """Mock observation source for testing."""

    def __init__(self, config: ObservationConfig, frames: list = None):
        super().__init__(config)
        self._frames = frames or []
        self._pos = 0

    def open(self) -> None:
        self._is_open = True
        self._pos = 0
        self._frame_index = 0

    def read(self) -> Optional[RawFrame]:
        if not self._is_open or self._pos >= len(self._frames):
            return None

        bgr = self._frames[self._pos]
        self._pos += 1
        self._frame_index += 1

        return bgr_to_raw_frame(
            bgr,
            rotation=self._config.rotation,
            timestamp=time.time(),
            frame_index=self._frame_index,
            source=self.source_id,
        )

    def close(self) -> None:
        self._is_open = False


class TestObservationConfig:
    def test_default_config(self):
        config = ObservationConfig()
        assert config.source_id == "default"
        assert config.resolution is None
        assert config.fps is None
        assert config.rotation == 0

    def test_custom_config(self):
        config = ObservationConfig(
            source_id="rear-lens",
            resolution=(1920, 1080),
            fps=30,
            rotation=90,
            metadata={"facing": "back"},
        )
        assert config.source_id == "rear-lens"
        assert config.resolution == (1920, 1080)
        assert config.rotation == 90
        assert config.metadata["facing"] == "back"


class TestOpenCVSourceConfig:
    def test_from_camera_config(self):
        camera_cfg = {
            "device_id": "rtsp://192.168.1.100/stream",
            "resolution": [1280, 720],
            "fps": 30,
            "rotate": 90,
        }
        config = OpenCVSourceConfig.from_camera_config(camera_cfg, source_id="phone-cam")

        assert config.source_id == "phone-cam"
        assert config.device_id == "rtsp://192.168.1.100/stream"
        assert config.resolution == (1280, 720)
        assert config.fps == 30
        assert config.rotation == 90

    def test_from_minimal_camera_config(self):
        config = OpenCVSourceConfig.from_camera_config({})
        assert config.device_id == 0
        assert config.rotation == 0
        assert config.resolution is None
        assert config.max_retries == 3


class TestBgrToRawFrame:
    def test_produces_three_planes(self):
        frame = bgr_to_raw_frame(np.zeros((48, 64, 3), dtype=np.uint8), frame_index=3, source="cam")

        assert frame.size == (64, 48)
        assert frame.plane_count == 3
        assert frame.subsampling == 2
        assert frame.planes[0].size == 64 * 48
        assert frame.planes[1].size == 32 * 24
        assert frame.frame_index == 3
        assert frame.source == "cam"

    def test_odd_dimensions_are_cropped(self):
        frame = bgr_to_raw_frame(np.zeros((21, 31, 3), dtype=np.uint8))
        assert frame.size == (30, 20)

    def test_gray_survives_round_trip(self):
        bgr = np.full((24, 32, 3), 100, dtype=np.uint8)
        raster = decode_frame(bgr_to_raw_frame(bgr))

        assert raster.size == (32, 24)
        pixels = raster.pixels.astype(int)
        assert np.all(np.abs(pixels[..., 0] - pixels[..., 1]) <= 2)
        assert np.all(np.abs(pixels[..., 1] - pixels[..., 2]) <= 2)
        assert np.all(np.abs(pixels - 100) <= 10)

    def test_rotation_is_carried(self):
        frame = bgr_to_raw_frame(np.zeros((24, 32, 3), dtype=np.uint8), rotation=90)
        assert frame.rotation == 90
        assert decode_frame(frame).size == (24, 32)


class TestMockSource:
    def test_source_lifecycle(self):
        config = ObservationConfig(source_id="test")
        frames = [np.zeros((100, 100, 3), dtype=np.uint8) for _ in range(3)]
        source = MockSource(config, frames)

        assert not source.is_open
        source.open()
        assert source.is_open
        assert source.frame_index == 0

        frame = source.read()
        assert frame is not None
        assert frame.source == "test"
        assert frame.frame_index == 1
        assert source.frame_index == 1

        source.close()
        assert not source.is_open

    def test_context_manager(self):
        config = ObservationConfig(source_id="ctx-test")
        frames = [np.zeros((50, 50, 3), dtype=np.uint8) for _ in range(2)]

        with MockSource(config, frames) as source:
            assert source.is_open
            count = sum(1 for _ in source)
            assert count == 2

        assert not source.is_open

    def test_iteration(self):
        config = ObservationConfig(source_id="iter-test")
        frames = [np.ones((10, 10, 3), dtype=np.uint8) * i for i in range(5)]

        with MockSource(config, frames) as source:
            collected = list(source)

        assert len(collected) == 5
        for i, frame in enumerate(collected):
            assert frame.frame_index == i + 1
            assert frame.source == "iter-test"

    def test_empty_source(self):
        config = ObservationConfig()
        with MockSource(config, []) as source:
            assert source.read() is None

    def test_iteration_requires_open(self):
        source = MockSource(ObservationConfig(), [])

        with pytest.raises(RuntimeError, match="must be open"):
            list(source)


class TestOpenCVSource:
    def test_usb_camera_is_not_file(self):
        source = OpenCVSource(OpenCVSourceConfig(device_id=0))
        assert source.is_file is False

    def test_stream_url_is_not_file(self):
        source = OpenCVSource(OpenCVSourceConfig(device_id="rtsp://192.168.1.1/stream"))
        assert source.is_file is False

    def test_existing_path_is_file(self, tmp_path):
        video = tmp_path / "clip.mp4"
        video.write_bytes(b"")
        source = OpenCVSource(OpenCVSourceConfig(device_id=str(video)))
        assert source.is_file is True

    def test_source_id_property(self):
        config = OpenCVSourceConfig(source_id="my-camera", device_id=0)
        source = OpenCVSource(config)
        assert source.source_id == "my-camera"

    def test_read_before_open(self):
        source = OpenCVSource(OpenCVSourceConfig(device_id=0))
        assert source.read() is None
