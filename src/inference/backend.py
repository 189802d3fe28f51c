"""
Inference backend interface.

Backends take a batched model input and return the raw output tensor. The
tensor element type is checked and widened to float32 once, here, so the
detection decoder only ever sees floats.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Tuple

import numpy as np

from models.errors import InferenceError, UnsupportedTensorType

SUPPORTED_DTYPES = (np.dtype(np.float32), np.dtype(np.int32), np.dtype(np.uint8))


@dataclass(frozen=True)
class OutputTensor:
    """
    Raw model output, widened to float32.

    Attributes:
        values: float32 array with the model's output shape.
        source_dtype: Element type the model actually produced.
    """
    values: np.ndarray
    source_dtype: np.dtype

    @classmethod
    def from_array(cls, array, quantization: Optional[Tuple[float, int]] = None) -> "OutputTensor":
        """
        Wrap a model output array.

        Args:
            array: Output array as returned by the runtime.
            quantization: Optional (scale, zero_point) for quantized integer
                outputs; values become (q - zero_point) * scale.

        Raises:
            UnsupportedTensorType: If the element type is not float32, int32 or uint8.
        """
        arr = np.asarray(array)
        if arr.dtype not in SUPPORTED_DTYPES:
            raise UnsupportedTensorType(f"unsupported output tensor type: {arr.dtype}")
        values = arr.astype(np.float32, copy=False)
        if quantization is not None and arr.dtype != np.float32:
            scale, zero_point = quantization
            values = (values - np.float32(zero_point)) * np.float32(scale)
        return cls(values=values, source_dtype=arr.dtype)

    @property
    def shape(self):
        return self.values.shape

    @property
    def rank(self) -> int:
        return self.values.ndim

    def rows(self) -> np.ndarray:
        """
        Return the detection rows as a [num_boxes, values_per_box] array.

        Accepts [num_boxes, values_per_box] and [1, num_boxes, values_per_box].

        Raises:
            InferenceError: For any other rank or a batch size other than 1.
        """
        if self.rank == 2:
            return self.values
        if self.rank == 3:
            if self.shape[0] != 1:
                raise InferenceError(f"expected batch size 1, got output shape {self.shape}")
            return self.values[0]
        raise InferenceError(f"unexpected output tensor rank {self.rank} (shape {self.shape})")


class InferenceBackend(Protocol):
    input_size: int
    layout: str

    def infer(self, batch: np.ndarray) -> OutputTensor:
        ...


class CallableBackend(InferenceBackend):
    """
    Backend around a plain function mapping the batched input to an output array.

    Useful for custom runtimes and for tests.
    """

    def __init__(
        self,
        fn: Callable[[np.ndarray], np.ndarray],
        input_size: int,
        layout: str = "nhwc",
        quantization: Optional[Tuple[float, int]] = None,
    ):
        self._fn = fn
        self.input_size = input_size
        self.layout = layout
        self.quantization = quantization

    def infer(self, batch: np.ndarray) -> OutputTensor:
        try:
            output = self._fn(batch)
        except Exception as e:
            raise InferenceError(f"model call failed: {e}") from e
        return OutputTensor.from_array(output, quantization=self.quantization)
