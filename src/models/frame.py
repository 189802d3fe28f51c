"""
Frame models: raw sensor frames and decoded RGB rasters.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class PlaneData:
    """
    One plane of a planar sensor image.

    Attributes:
        data: Flat uint8 buffer holding the plane bytes.
        row_stride: Bytes between the start of consecutive rows.
        pixel_stride: Bytes between adjacent samples within a row.
    """
    data: np.ndarray
    row_stride: int
    pixel_stride: int = 1

    @classmethod
    def from_bytes(cls, data, row_stride: int, pixel_stride: int = 1) -> "PlaneData":
        """Create a plane from bytes, bytearray or any uint8 array."""
        if isinstance(data, (bytes, bytearray, memoryview)):
            buf = np.frombuffer(data, dtype=np.uint8)
        else:
            buf = np.asarray(data, dtype=np.uint8).ravel()
        return cls(data=buf, row_stride=row_stride, pixel_stride=pixel_stride)

    @property
    def size(self) -> int:
        return int(self.data.size)


@dataclass(frozen=True)
class RawFrame:
    """
    A camera frame in its sensor-native planar layout.

    Attributes:
        width: Luma width in pixels.
        height: Luma height in pixels.
        planes: Y, U and V planes, in that order.
        subsampling: Chroma subsampling factor along each axis.
        rotation: Clockwise sensor orientation in degrees (0, 90, 180, 270).
        timestamp: Unix timestamp when the frame was captured.
        frame_index: Sequential frame number since the source opened.
        source: Identifier of the camera/video source.
    """
    width: int
    height: int
    planes: Tuple[PlaneData, ...]
    subsampling: int = 2
    rotation: int = 0
    timestamp: float = 0.0
    frame_index: int = 0
    source: Optional[str] = None

    @property
    def plane_count(self) -> int:
        return len(self.planes)

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)


@dataclass
class RasterImage:
    """
    Packed RGB image produced by the frame decoder.

    Attributes:
        pixels: uint8 array of shape (height, width, 3), interleaved RGB.
    """
    pixels: np.ndarray

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def channels(self) -> int:
        return int(self.pixels.shape[2]) if self.pixels.ndim == 3 else 1

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)

    @classmethod
    def from_numpy(cls, pixels: np.ndarray) -> "RasterImage":
        """Wrap an (H, W, 3) array, coercing it to contiguous uint8."""
        arr = np.ascontiguousarray(pixels, dtype=np.uint8)
        if arr.ndim != 3 or arr.shape[2] != 3:
            raise ValueError(f"expected an (H, W, 3) array, got shape {arr.shape}")
        return cls(pixels=arr)
