"""
Frame sources for the detection pipeline.

A source hands out RawFrames in planar YUV 4:2:0 with the sensor rotation
attached, which is what a phone camera delivers. Desktop sources (webcams,
video files) convert to that layout before the frame leaves them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional

from models.frame import RawFrame


@dataclass
class ObservationConfig:
    """
    Settings shared by every frame source.

    Attributes:
        source_id: Name stamped on each frame (e.g., "rear-lens").
        resolution: Requested (width, height), or None for the device default.
        fps: Requested frame rate, or None for the device default.
        rotation: Clockwise degrees the sensor is mounted at; copied onto frames.
        metadata: Free-form extras for a specific source.
    """
    source_id: str = "default"
    resolution: Optional[tuple[int, int]] = None
    fps: Optional[int] = None
    rotation: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict)


class ObservationSource(ABC):
    """
    Base class for anything that produces RawFrames.

    Subclasses implement open/read/close. read() returns None once the
    source has nothing more to give (end of file, camera lost).
    """

    def __init__(self, config: ObservationConfig):
        self._config = config
        self._is_open = False
        self._frame_index = 0

    @property
    def source_id(self) -> str:
        return self._config.source_id

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def frame_index(self) -> int:
        """Index of the last frame read; 0 right after open()."""
        return self._frame_index

    @abstractmethod
    def open(self) -> None:
        """Acquire the device or file. Raises RuntimeError when it cannot."""

    @abstractmethod
    def read(self) -> Optional[RawFrame]:
        ...

    @abstractmethod
    def close(self) -> None:
        """Release the device. Calling it twice is harmless."""

    def __enter__(self) -> "ObservationSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[RawFrame]:
        if not self._is_open:
            raise RuntimeError("Source must be open before iterating")
        return iter(self.read, None)
