"""
Letterbox preprocessing: fit a raster into the square model input.
"""

from __future__ import annotations

import cv2
import numpy as np

from models.errors import InvalidFrame
from models.frame import RasterImage
from models.model_input import LetterboxTransform, ModelInput


def compute_transform(width: int, height: int, target_size: int) -> LetterboxTransform:
    """
    Compute the resize scale and centering offsets for a width x height raster.

    Raises:
        InvalidFrame: If width or height is zero.
        ValueError: If target_size is not positive.
    """
    if target_size <= 0:
        raise ValueError(f"target_size must be positive, got {target_size}")
    if width <= 0 or height <= 0:
        raise InvalidFrame(f"cannot letterbox a {width}x{height} image")

    scale = min(target_size / width, target_size / height)
    resized_w, resized_h = _resized_size(width, height, scale, target_size)
    return LetterboxTransform(
        scale=scale,
        pad_x=(target_size - resized_w) // 2,
        pad_y=(target_size - resized_h) // 2,
        source_width=width,
        source_height=height,
        target_size=target_size,
    )


def letterbox(image: RasterImage, target_size: int, channel_order: str = "rgb") -> ModelInput:
    """
    Resize image to fit a target_size square, pad with black, scale to [0, 1].

    Args:
        image: RGB raster from the frame decoder.
        target_size: Side length S of the model input.
        channel_order: "rgb" (default) or "bgr" to match the model.

    Returns:
        ModelInput holding an (S, S, 3) float32 tensor and the transform.
    """
    transform = compute_transform(image.width, image.height, target_size)
    resized_w, resized_h = _resized_size(image.width, image.height, transform.scale, target_size)

    if (resized_w, resized_h) == (image.width, image.height):
        resized = image.pixels
    else:
        resized = cv2.resize(image.pixels, (resized_w, resized_h), interpolation=cv2.INTER_LINEAR)

    canvas = np.zeros((target_size, target_size, 3), dtype=np.uint8)
    x0, y0 = transform.pad_x, transform.pad_y
    canvas[y0:y0 + resized_h, x0:x0 + resized_w] = resized

    if channel_order == "bgr":
        canvas = canvas[..., ::-1]
    elif channel_order != "rgb":
        raise ValueError(f"Unknown channel order: {channel_order}")

    tensor = canvas.astype(np.float32) / 255.0
    return ModelInput(tensor=np.ascontiguousarray(tensor), transform=transform)


def _resized_size(width: int, height: int, scale: float, target_size: int):
    resized_w = min(target_size, max(1, int(round(width * scale))))
    resized_h = min(target_size, max(1, int(round(height * scale))))
    return resized_w, resized_h
