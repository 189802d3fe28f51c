"""
Error types raised while processing a single frame.

Every error here is local to one frame: the session and engine catch
PipelineError, log it, and publish an empty detection list for that frame.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for per-frame processing failures."""


class UnsupportedFormat(PipelineError):
    """Frame plane layout or chroma subsampling is not YUV 4:2:0."""


class InvalidFrame(PipelineError):
    """Frame has zero dimensions or planes too small for their strides."""


class InferenceError(PipelineError):
    """The model failed or returned a tensor with an unexpected shape."""


class UnsupportedTensorType(PipelineError):
    """Output tensor element type is not float32, int32 or uint8."""
