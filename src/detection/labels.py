"""
Class table: maps class-score positions in the model output to labels.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, Sequence, Tuple

COCO_LABELS: Tuple[str, ...] = (
    "person", "bicycle", "car", "motorcycle", "airplane", "bus", "train", "truck",
    "boat", "traffic light", "fire hydrant", "stop sign", "parking meter", "bench",
    "bird", "cat", "dog", "horse", "sheep", "cow", "elephant", "bear", "zebra",
    "giraffe", "backpack", "umbrella", "handbag", "tie", "suitcase", "frisbee",
    "skis", "snowboard", "sports ball", "kite", "baseball bat", "baseball glove",
    "skateboard", "surfboard", "tennis racket", "bottle", "wine glass", "cup",
    "fork", "knife", "spoon", "bowl", "banana", "apple", "sandwich", "orange",
    "broccoli", "carrot", "hot dog", "pizza", "donut", "cake", "chair", "couch",
    "potted plant", "bed", "dining table", "toilet", "tv", "laptop", "mouse",
    "remote", "keyboard", "cell phone", "microwave", "oven", "toaster", "sink",
    "refrigerator", "book", "clock", "vase", "scissors", "teddy bear", "hair drier",
    "toothbrush",
)


class ClassTable:
    """Ordered, read-only sequence of class names."""

    def __init__(self, labels: Iterable[str]):
        self._labels: Tuple[str, ...] = tuple(labels)

    def __len__(self) -> int:
        return len(self._labels)

    def __iter__(self) -> Iterator[str]:
        return iter(self._labels)

    def __getitem__(self, index: int) -> str:
        return self._labels[index]

    @property
    def labels(self) -> Sequence[str]:
        return self._labels

    def label_for(self, index: int) -> str:
        """Return the label at index, or str(index) when it is out of range."""
        if 0 <= index < len(self._labels):
            return self._labels[index]
        return str(index)

    @classmethod
    def coco(cls) -> "ClassTable":
        return cls(COCO_LABELS)

    @classmethod
    def from_file(cls, path: str) -> "ClassTable":
        """Load one label per line, ignoring blank lines."""
        with open(path, "r", encoding="utf-8") as f:
            labels = [line.strip() for line in f if line.strip()]
        logging.info(f"Loaded {len(labels)} labels from {path}")
        return cls(labels)
