"""
Inference backends: the tensor-in/tensor-out contract around the model.
"""

from .backend import CallableBackend, InferenceBackend, OutputTensor

__all__ = [
    "CallableBackend",
    "InferenceBackend",
    "OutputTensor",
]
