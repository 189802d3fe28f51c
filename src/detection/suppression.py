"""
Greedy non-max suppression over decoded detections.
"""

from __future__ import annotations

from typing import Dict, List

from models.config import SUPPRESSION_SCOPES
from models.detection import BoundingBox, Detection


def iou(a: BoundingBox, b: BoundingBox) -> float:
    """
    Intersection over Union of two boxes.

    Degenerate boxes (zero or negative area) and zero unions give 0.0.
    """
    area_a = a.area
    area_b = b.area
    if area_a <= 0 or area_b <= 0:
        return 0.0

    ix1 = max(a.left, b.left)
    iy1 = max(a.top, b.top)
    ix2 = min(a.right, b.right)
    iy2 = min(a.bottom, b.bottom)
    if ix2 <= ix1 or iy2 <= iy1:
        return 0.0

    intersection = (ix2 - ix1) * (iy2 - iy1)
    union = area_a + area_b - intersection
    if union <= 0:
        return 0.0
    return intersection / union


class Suppressor:
    """
    Keeps the most confident detections and drops their overlapping duplicates.

    With scope "per_label" only boxes sharing a label suppress each other, so
    a person standing in front of a car is kept along with the car. Equal
    confidences keep their input order.
    """

    def __init__(self, iou_threshold: float = 0.45, scope: str = "per_label", max_detections: int = 10):
        if scope not in SUPPRESSION_SCOPES:
            raise ValueError(f"scope must be one of {SUPPRESSION_SCOPES}, got {scope!r}")
        if max_detections <= 0:
            raise ValueError(f"max_detections must be positive, got {max_detections}")
        self.iou_threshold = iou_threshold
        self.scope = scope
        self.max_detections = max_detections

    def apply(self, candidates: List[Detection]) -> List[Detection]:
        ranked = sorted(candidates, key=lambda d: -d.confidence)

        kept: List[Detection] = []
        kept_by_group: Dict[str, List[Detection]] = {}
        for det in ranked:
            group = kept_by_group.setdefault(self._group(det), [])
            if all(iou(det.bbox, other.bbox) <= self.iou_threshold for other in group):
                group.append(det)
                kept.append(det)
                if len(kept) >= self.max_detections:
                    break
        return kept

    def _group(self, det: Detection) -> str:
        return det.label if self.scope == "per_label" else ""
