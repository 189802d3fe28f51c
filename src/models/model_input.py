"""
Model input tensor and the letterbox geometry needed to invert it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np


@dataclass(frozen=True)
class LetterboxTransform:
    """
    Mapping between source-raster pixels and model-input pixels.

    model = source * scale + pad, so source = (model - pad) / scale.

    Attributes:
        scale: Uniform resize factor applied to the source raster (> 0).
        pad_x: Horizontal offset of the resized image inside the canvas.
        pad_y: Vertical offset of the resized image inside the canvas.
        source_width: Width of the raster before letterboxing.
        source_height: Height of the raster before letterboxing.
        target_size: Side length S of the square model input.
    """
    scale: float
    pad_x: int
    pad_y: int
    source_width: int
    source_height: int
    target_size: int

    def to_model(self, x: float, y: float) -> Tuple[float, float]:
        """Map a source-raster pixel coordinate into model-input pixels."""
        return (x * self.scale + self.pad_x, y * self.scale + self.pad_y)

    def to_source(self, x: float, y: float) -> Tuple[float, float]:
        """Map a model-input pixel coordinate back onto the source raster, clamped to its bounds."""
        sx = (x - self.pad_x) / self.scale
        sy = (y - self.pad_y) / self.scale
        sx = min(max(sx, 0.0), float(self.source_width))
        sy = min(max(sy, 0.0), float(self.source_height))
        return (sx, sy)


@dataclass
class ModelInput:
    """
    Letterboxed, normalized image ready for inference.

    Attributes:
        tensor: float32 array of shape (S, S, 3) with values in [0, 1].
        transform: Geometry used to produce the tensor.
    """
    tensor: np.ndarray
    transform: LetterboxTransform

    @property
    def size(self) -> int:
        return self.transform.target_size

    def batched(self, layout: str = "nhwc") -> np.ndarray:
        """
        Return the tensor with a leading batch axis.

        Args:
            layout: "nhwc" for [1, S, S, 3] or "nchw" for [1, 3, S, S].
        """
        if layout == "nhwc":
            return np.ascontiguousarray(self.tensor[np.newaxis, ...])
        if layout == "nchw":
            return np.ascontiguousarray(np.transpose(self.tensor, (2, 0, 1))[np.newaxis, ...])
        raise ValueError(f"Unknown tensor layout: {layout}")
