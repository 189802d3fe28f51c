"""
Detection stages: tensor decoding, non-max suppression and distance estimates.
"""

from .decoder import DetectionDecoder
from .distance import DistanceEstimator
from .labels import ClassTable, COCO_LABELS
from .suppression import Suppressor, iou

__all__ = [
    "DetectionDecoder",
    "DistanceEstimator",
    "ClassTable",
    "COCO_LABELS",
    "Suppressor",
    "iou",
]
