"""
Detection decoder: raw output rows to candidate detections.

Each row is (cx, cy, w, h, objectness, class_0 .. class_{N-1}). Boxes come out
normalized to the original raster, with the letterbox undone.
"""

from __future__ import annotations

import logging
from typing import List

import numpy as np

from models.config import BOX_UNITS, DetectionConfig
from models.detection import BoundingBox, Detection
from models.errors import InferenceError
from models.model_input import LetterboxTransform
from inference.backend import OutputTensor
from .labels import ClassTable

MIN_VALUES_PER_BOX = 6


class DetectionDecoder:
    """
    Turns output tensor rows into thresholded Detection candidates.

    Candidates keep tensor row order; ranking is left to the suppressor.
    """

    def __init__(self, config: DetectionConfig, class_table: ClassTable):
        if config.box_units not in BOX_UNITS:
            raise ValueError(f"box_units must be one of {BOX_UNITS}, got {config.box_units!r}")
        self.config = config
        self.class_table = class_table

    def decode(self, tensor: OutputTensor, transform: LetterboxTransform) -> List[Detection]:
        rows = tensor.rows()
        num_boxes, values_per_box = rows.shape
        if values_per_box < MIN_VALUES_PER_BOX:
            raise InferenceError(
                f"expected at least {MIN_VALUES_PER_BOX} values per box, got shape {tensor.shape}"
            )
        if num_boxes == 0:
            return []

        objectness = rows[:, 4]
        scores = rows[:, 5:]
        best_idx = np.argmax(scores, axis=1)
        best_score = scores[np.arange(num_boxes), best_idx]
        confidence = objectness * best_score

        keep = np.isfinite(rows).all(axis=1) & (confidence >= self._thresholds(best_idx))
        if self.config.classes is not None:
            keep &= np.isin(best_idx, list(self.config.classes))

        detections: List[Detection] = []
        for i in np.flatnonzero(keep):
            bbox = self._to_source_box(rows[i, :4], transform)
            class_id = int(best_idx[i])
            detections.append(
                Detection(
                    bbox=bbox,
                    label=self.class_table.label_for(class_id),
                    confidence=float(min(max(confidence[i], 0.0), 1.0)),
                    class_id=class_id,
                )
            )

        logging.debug(f"Decoded {len(detections)}/{num_boxes} rows above threshold")
        return detections

    def _thresholds(self, class_ids: np.ndarray) -> np.ndarray:
        thresholds = np.empty(class_ids.shape, dtype=np.float32)
        for class_id in np.unique(class_ids):
            thresholds[class_ids == class_id] = self.config.threshold_for(int(class_id))
        return thresholds

    def _is_normalized(self, box: np.ndarray) -> bool:
        units = self.config.box_units
        if units == "normalized":
            return True
        if units == "pixels":
            return False
        return bool(np.all(box <= 1.0))

    def _to_source_box(self, box: np.ndarray, transform: LetterboxTransform) -> BoundingBox:
        cx, cy, w, h = (float(v) for v in box)
        if self._is_normalized(box):
            size = transform.target_size
            cx, cy, w, h = cx * size, cy * size, w * size, h * size

        x1, y1 = transform.to_source(cx - w / 2, cy - h / 2)
        x2, y2 = transform.to_source(cx + w / 2, cy + h / 2)
        return BoundingBox(
            left=x1 / transform.source_width,
            top=y1 / transform.source_height,
            right=x2 / transform.source_width,
            bottom=y2 / transform.source_height,
        )
