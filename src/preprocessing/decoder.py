"""
Frame decoder: planar YUV 4:2:0 sensor frames to packed RGB rasters.

Conversion uses the full-range BT.601 (JFIF) coefficients:

    R = Y + 1.402 (V - 128)
    G = Y - 0.344136 (U - 128) - 0.714136 (V - 128)
    B = Y + 1.772 (U - 128)

Each output pixel depends only on its own luma sample and the chroma sample
covering its 2x2 block, so the whole map is done with numpy gathers.
"""

from __future__ import annotations

from typing import Optional

import cv2
import numpy as np

from models.errors import InvalidFrame, UnsupportedFormat
from models.frame import PlaneData, RasterImage, RawFrame

CHROMA_SUBSAMPLING = 2

_ROTATIONS = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}


def decode_frame(frame: RawFrame) -> RasterImage:
    """
    Convert a planar YUV 4:2:0 frame into an RGB raster, rotated upright.

    Raises:
        UnsupportedFormat: Not exactly three planes, chroma not 2x2
            subsampled, or a rotation that is not a multiple of 90.
        InvalidFrame: Zero dimensions or planes too small for their strides.
    """
    _check_format(frame)

    width, height = frame.width, frame.height
    y_plane, u_plane, v_plane = frame.planes

    rows = np.arange(height, dtype=np.int64)[:, np.newaxis]
    cols = np.arange(width, dtype=np.int64)[np.newaxis, :]
    chroma_rows = rows // CHROMA_SUBSAMPLING
    chroma_cols = cols // CHROMA_SUBSAMPLING

    luma = _gather(y_plane, rows, cols, "Y")
    u = _gather(u_plane, chroma_rows, chroma_cols, "U") - 128.0
    v = _gather(v_plane, chroma_rows, chroma_cols, "V") - 128.0

    rgb = np.empty((height, width, 3), dtype=np.float32)
    rgb[..., 0] = luma + 1.402 * v
    rgb[..., 1] = luma - 0.344136 * u - 0.714136 * v
    rgb[..., 2] = luma + 1.772 * u
    pixels = np.clip(np.rint(rgb), 0, 255).astype(np.uint8)

    if frame.rotation:
        pixels = cv2.rotate(pixels, _ROTATIONS[frame.rotation])

    return RasterImage(pixels=np.ascontiguousarray(pixels))


def _check_format(frame: RawFrame) -> None:
    if frame.plane_count != 3:
        raise UnsupportedFormat(f"expected 3 planes (Y, U, V), got {frame.plane_count}")
    if frame.subsampling != CHROMA_SUBSAMPLING:
        raise UnsupportedFormat(
            f"only 2x2 chroma subsampling is supported, got {frame.subsampling}x{frame.subsampling}"
        )
    if frame.rotation not in (0, 90, 180, 270):
        raise UnsupportedFormat(f"rotation must be 0, 90, 180 or 270, got {frame.rotation}")
    if frame.width <= 0 or frame.height <= 0:
        raise InvalidFrame(f"frame has zero dimensions: {frame.width}x{frame.height}")
    for name, plane in zip("YUV", frame.planes):
        if plane.size == 0:
            raise InvalidFrame(f"{name} plane is empty")
        if plane.row_stride <= 0 or plane.pixel_stride <= 0:
            raise InvalidFrame(
                f"{name} plane has invalid strides: row={plane.row_stride}, pixel={plane.pixel_stride}"
            )


def _gather(plane: PlaneData, rows: np.ndarray, cols: np.ndarray, name: str) -> np.ndarray:
    """Read one sample per (row, col) pair as float32."""
    last = int(rows[-1, 0]) * plane.row_stride + int(cols[0, -1]) * plane.pixel_stride
    if last >= plane.size:
        raise InvalidFrame(
            f"{name} plane too small: need index {last}, have {plane.size} bytes"
        )
    index = rows * plane.row_stride + cols * plane.pixel_stride
    return plane.data[index].astype(np.float32)


def frame_from_i420(
    buffer,
    width: int,
    height: int,
    rotation: int = 0,
    timestamp: float = 0.0,
    frame_index: int = 0,
    source: Optional[str] = None,
) -> RawFrame:
    """
    Build a RawFrame from a packed I420 buffer (Y plane, then U, then V).

    This is the layout produced by cv2.cvtColor(..., cv2.COLOR_BGR2YUV_I420).
    """
    data = np.asarray(buffer, dtype=np.uint8).ravel()
    chroma_w = (width + 1) // 2
    chroma_h = (height + 1) // 2
    y_size = width * height
    c_size = chroma_w * chroma_h
    if data.size < y_size + 2 * c_size:
        raise InvalidFrame(
            f"I420 buffer too small for {width}x{height}: {data.size} bytes"
        )
    planes = (
        PlaneData(data=data[:y_size], row_stride=width, pixel_stride=1),
        PlaneData(data=data[y_size:y_size + c_size], row_stride=chroma_w, pixel_stride=1),
        PlaneData(data=data[y_size + c_size:y_size + 2 * c_size], row_stride=chroma_w, pixel_stride=1),
    )
    return RawFrame(
        width=width,
        height=height,
        planes=planes,
        subsampling=CHROMA_SUBSAMPLING,
        rotation=rotation,
        timestamp=timestamp,
        frame_index=frame_index,
        source=source,
    )


def frame_from_nv12(buffer, width: int, height: int, rotation: int = 0, vu: bool = False) -> RawFrame:
    """
    Build a RawFrame from a semi-planar NV12 buffer (or NV21 with vu=True).

    The chroma planes share one interleaved buffer, so they are exposed as
    two views with a pixel stride of 2.
    """
    data = np.asarray(buffer, dtype=np.uint8).ravel()
    y_size = width * height
    row = ((width + 1) // 2) * 2
    if data.size < y_size + row * ((height + 1) // 2):
        raise InvalidFrame(
            f"NV12 buffer too small for {width}x{height}: {data.size} bytes"
        )
    first = PlaneData(data=data[y_size:], row_stride=row, pixel_stride=2)
    second = PlaneData(data=data[y_size + 1:], row_stride=row, pixel_stride=2)
    u_plane, v_plane = (second, first) if vu else (first, second)
    return RawFrame(
        width=width,
        height=height,
        planes=(PlaneData(data=data[:y_size], row_stride=width), u_plane, v_plane),
        subsampling=CHROMA_SUBSAMPLING,
        rotation=rotation,
    )
