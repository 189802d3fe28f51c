"""
ONNX Runtime inference backend.

Runs any single-input detection model exported to ONNX. The input size and
tensor layout are read from the model once at load time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from models.errors import InferenceError
from .backend import InferenceBackend, OutputTensor


@dataclass(frozen=True)
class OnnxConfig:
    model: str
    providers: Optional[Sequence[str]] = None
    input_size: Optional[int] = None


def infer_layout(shape: Sequence) -> str:
    """Guess "nchw" or "nhwc" from an input shape such as [1, 3, 640, 640]."""
    if len(shape) == 4 and shape[1] == 3:
        return "nchw"
    return "nhwc"


def infer_input_size(shape: Sequence, fallback: Optional[int] = None) -> int:
    """Read the square spatial size from an input shape, tolerating symbolic dims."""
    spatial = shape[2:4] if infer_layout(shape) == "nchw" else shape[1:3]
    sizes = [d for d in spatial if isinstance(d, int) and d > 0]
    if sizes:
        return int(sizes[0])
    if fallback:
        return int(fallback)
    raise InferenceError(f"cannot determine input size from model shape {list(shape)}")


class OnnxBackend(InferenceBackend):
    def __init__(self, cfg: OnnxConfig):
        self.cfg = cfg
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "ONNX Runtime is not installed. Install with `pip install onnxruntime`."
            ) from e

        providers = list(cfg.providers) if cfg.providers else ["CPUExecutionProvider"]
        try:
            self._session = ort.InferenceSession(cfg.model, providers=providers)
        except Exception as e:
            raise InferenceError(f"failed to load model {cfg.model}: {e}") from e

        model_input = self._session.get_inputs()[0]
        self._input_name = model_input.name
        self.layout = infer_layout(model_input.shape)
        self.input_size = cfg.input_size or infer_input_size(model_input.shape)

        logging.info(
            f"ONNX model loaded: {cfg.model}, input={self._input_name}{list(model_input.shape)}, "
            f"layout={self.layout}, size={self.input_size}, provider={self._session.get_providers()[0]}"
        )

    def infer(self, batch: np.ndarray) -> OutputTensor:
        try:
            outputs = self._session.run(None, {self._input_name: batch})
        except Exception as e:
            raise InferenceError(f"inference failed: {e}") from e
        if not outputs:
            raise InferenceError("model returned no outputs")
        return OutputTensor.from_array(outputs[0])
