"""
Monocular distance heuristic from box height.

    distance_m = reference_height_m * focal_length_px / (pixel_height + eps)

reference_height_m is an assumed real-world height for the label. The result
is a rough proportional estimate, not a calibrated measurement.
"""

from __future__ import annotations

import math
from typing import List, Optional

from models.config import DistanceConfig
from models.detection import Detection

EPSILON = 1e-6

VERY_CLOSE = "very close"
NEARBY = "nearby"
AHEAD = "ahead"
FAR_AWAY = "far away"
UNKNOWN = "unknown"


class DistanceEstimator:
    def __init__(self, config: Optional[DistanceConfig] = None):
        self.config = config or DistanceConfig()

    def reference_height(self, label: str) -> float:
        return self.config.reference_heights.get(label, self.config.default_height_m)

    def estimate(self, detection: Detection, frame_height: int) -> Optional[float]:
        """
        Estimate distance in metres, or None when it cannot be known.

        Args:
            detection: Detection with a normalized bounding box.
            frame_height: Height in pixels of the frame the box is normalized to.
        """
        pixel_height = detection.bbox.height * frame_height
        if not math.isfinite(pixel_height) or pixel_height <= 0:
            return None
        distance = (self.reference_height(detection.label) * self.config.focal_length_px) / (pixel_height + EPSILON)
        if not math.isfinite(distance) or distance <= 0:
            return None
        return distance

    def annotate(self, detections: List[Detection], frame_height: int) -> List[Detection]:
        """Return copies of detections carrying their distance estimate."""
        return [d.with_distance(self.estimate(d, frame_height)) for d in detections]

    def proximity(self, distance: Optional[float]) -> str:
        """Bucket a distance into a coarse spoken-style band."""
        if distance is None:
            return UNKNOWN
        if distance < self.config.near_m:
            return VERY_CLOSE
        if distance < self.config.medium_m:
            return NEARBY
        if distance < self.config.far_m:
            return AHEAD
        return FAR_AWAY
