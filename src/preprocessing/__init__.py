"""
Preprocessing stages: sensor frame decoding and letterboxing.
"""

from .decoder import decode_frame, frame_from_i420, frame_from_nv12
from .letterbox import compute_transform, letterbox

__all__ = [
    "decode_frame",
    "frame_from_i420",
    "frame_from_nv12",
    "compute_transform",
    "letterbox",
]
