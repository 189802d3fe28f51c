"""
OpenCV-based observation source.

Supports:
- USB webcams (device_id as int, e.g., 0)
- Network streams (device_id as str URL)
- Video files (device_id as file path)

Captured BGR frames are converted to planar I420 so downstream stages see
the same YUV 4:2:0 layout a phone camera delivers.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import cv2
import numpy as np

from models.frame import RawFrame
from preprocessing.decoder import frame_from_i420
from .base import ObservationSource, ObservationConfig


@dataclass
class OpenCVSourceConfig(ObservationConfig):
    """
    Configuration for OpenCV-based observation sources.

    Attributes:
        device_id: Camera index (int), stream URL (str), or file path (str).
        buffer_size: OpenCV capture buffer size (reduces latency for live feeds).
        max_retries: Maximum retries for camera initialization.
    """
    device_id: Union[int, str] = 0
    buffer_size: int = 1
    max_retries: int = 3

    @classmethod
    def from_camera_config(cls, camera_cfg: Dict[str, Any], source_id: str = "camera") -> "OpenCVSourceConfig":
        """
        Adapter: Create OpenCVSourceConfig from a camera config dict.

        Args:
            camera_cfg: Camera configuration dict (from config.yaml).
            source_id: Identifier for this source.
        """
        resolution = camera_cfg.get("resolution")
        if resolution:
            resolution = tuple(resolution)

        return cls(
            source_id=source_id,
            resolution=resolution,
            fps=camera_cfg.get("fps"),
            rotation=camera_cfg.get("rotate", 0) or 0,
            device_id=camera_cfg.get("device_id", 0),
            buffer_size=camera_cfg.get("buffer_size", 1),
            max_retries=camera_cfg.get("max_retries", 3),
        )


def bgr_to_raw_frame(
    frame: np.ndarray,
    rotation: int = 0,
    timestamp: float = 0.0,
    frame_index: int = 0,
    source: Optional[str] = None,
) -> RawFrame:
    """
    Convert a BGR image to an I420 RawFrame.

    I420 needs even dimensions, so an odd trailing row/column is cropped.
    """
    h, w = frame.shape[:2]
    even = frame[: h - (h % 2), : w - (w % 2)]
    i420 = cv2.cvtColor(np.ascontiguousarray(even), cv2.COLOR_BGR2YUV_I420)
    return frame_from_i420(
        i420,
        width=even.shape[1],
        height=even.shape[0],
        rotation=rotation,
        timestamp=timestamp,
        frame_index=frame_index,
        source=source,
    )


class OpenCVSource(ObservationSource):
    """
    OpenCV-based observation source for cameras and video files.

    Wraps cv2.VideoCapture to provide frames as RawFrame objects.

    Example:
        config = OpenCVSourceConfig(device_id=0, resolution=(640, 480))
        with OpenCVSource(config) as source:
            for frame in source:
                session.submit(frame)
    """

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self._opencv_config = config
        self._cap: Optional[cv2.VideoCapture] = None
        self._consecutive_failures = 0

    @property
    def device_id(self) -> Union[int, str]:
        return self._opencv_config.device_id

    @property
    def is_file(self) -> bool:
        """Check if this is a video or image file."""
        return isinstance(self.device_id, str) and os.path.exists(self.device_id)

    def open(self) -> None:
        """Open the video source."""
        if self._is_open:
            return

        self._initialize(retry_count=0)
        self._is_open = True
        self._frame_index = 0

        logging.info(
            f"OpenCVSource opened: source_id={self.source_id}, "
            f"device={self.device_id}, resolution={self._opencv_config.resolution}"
        )

    def _initialize(self, retry_count: int = 0) -> None:
        """Initialize or reinitialize the capture device."""
        if self._cap is not None:
            self._cap.release()
            self._cap = None

        if retry_count > 0:
            wait_time = min(2 ** retry_count, 10)
            logging.info(
                f"Retrying initialization (attempt {retry_count + 1}/"
                f"{self._opencv_config.max_retries}) after {wait_time}s"
            )
            time.sleep(wait_time)

        self._cap = cv2.VideoCapture(self.device_id)

        if not self._cap.isOpened():
            if retry_count < self._opencv_config.max_retries - 1:
                logging.warning(f"Failed to open device {self.device_id}, retrying...")
                return self._initialize(retry_count + 1)
            raise RuntimeError(
                f"Failed to open device {self.device_id} after "
                f"{self._opencv_config.max_retries} attempts"
            )

        # Capture properties only apply to USB cameras.
        if isinstance(self.device_id, int) and self._opencv_config.resolution:
            w, h = self._opencv_config.resolution
            self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
            self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
            if self._opencv_config.fps:
                self._cap.set(cv2.CAP_PROP_FPS, self._opencv_config.fps)
            self._cap.set(cv2.CAP_PROP_BUFFERSIZE, self._opencv_config.buffer_size)

        self._consecutive_failures = 0

    def read(self) -> Optional[RawFrame]:
        """Read the next frame from the source."""
        if not self._is_open or self._cap is None:
            return None

        ret, frame = self._cap.read()

        if not ret or frame is None:
            self._consecutive_failures += 1

            if self.is_file:
                logging.info("End of video file reached")
                return None

            if self._consecutive_failures <= 3:
                logging.warning(
                    f"Failed to read frame (failures: {self._consecutive_failures}), reinitializing..."
                )
                try:
                    self._initialize()
                except RuntimeError:
                    logging.error("Reinitialization failed")
            return None

        self._consecutive_failures = 0
        self._frame_index += 1

        return bgr_to_raw_frame(
            frame,
            rotation=self._opencv_config.rotation,
            timestamp=time.time(),
            frame_index=self._frame_index,
            source=self.source_id,
        )

    def close(self) -> None:
        """Close the video source and release resources."""
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        self._is_open = False
        logging.info(f"OpenCVSource closed: source_id={self.source_id}")
