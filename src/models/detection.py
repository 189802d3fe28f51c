"""
Detection models for object detection results.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Optional, Tuple



@dataclass(frozen=True)
class BoundingBox:
    """
    A bounding box normalized to [0, 1] of the original frame.

    Attributes:
        left: Left edge as a fraction of frame width.
        top: Top edge as a fraction of frame height.
        right: Right edge as a fraction of frame width.
        bottom: Bottom edge as a fraction of frame height.
    """
    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.left + self.right) / 2, (self.top + self.bottom) / 2)

    @property
    def area(self) -> float:
        """Area, or 0.0 for degenerate (inverted or empty) boxes."""
        if self.width <= 0 or self.height <= 0:
            return 0.0
        return self.width * self.height

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (left, top, right, bottom) tuple."""
        return (self.left, self.top, self.right, self.bottom)

    def to_pixels(self, width: int, height: int) -> Tuple[float, float, float, float]:
        """Return (x1, y1, x2, y2) in pixels of a width x height frame."""
        return (self.left * width, self.top * height, self.right * width, self.bottom * height)

    @classmethod
    def from_tuple(cls, t: Tuple[float, float, float, float]) -> "BoundingBox":
        """Create from (left, top, right, bottom) tuple."""
        return cls(left=t[0], top=t[1], right=t[2], bottom=t[3])

    @classmethod
    def from_center(cls, cx: float, cy: float, w: float, h: float) -> "BoundingBox":
        """Create from center and extent."""
        return cls(left=cx - w / 2, top=cy - h / 2, right=cx + w / 2, bottom=cy + h / 2)


@dataclass(frozen=True)
class Detection:
    """
    A single detection from the pipeline.

    Attributes:
        bbox: Bounding box normalized to the original frame.
        label: Class name resolved from the class table.
        confidence: Objectness times best class score (0-1).
        class_id: Index of the best class score in the model output.
        distance: Estimated distance in metres, or None when unknown.
    """
    bbox: BoundingBox
    label: str
    confidence: float
    class_id: Optional[int] = None
    distance: Optional[float] = None

    @property
    def center(self) -> Tuple[float, float]:
        return self.bbox.center

    @property
    def has_distance(self) -> bool:
        return self.distance is not None

    def with_distance(self, distance: Optional[float]) -> "Detection":
        """Return a copy carrying the given distance estimate."""
        return dataclasses.replace(self, distance=distance)

    def to_dict(self) -> dict:
        return {
            "bbox": list(self.bbox.as_tuple()),
            "label": self.label,
            "confidence": self.confidence,
            "class_id": self.class_id,
            "distance": self.distance,
        }
