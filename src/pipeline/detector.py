"""
Single-frame detection pipeline.

decode -> letterbox -> infer -> decode rows -> suppress -> estimate distance.
Nothing is carried over between frames.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from detection.decoder import DetectionDecoder
from detection.distance import DistanceEstimator
from detection.labels import ClassTable
from detection.suppression import Suppressor
from inference.backend import InferenceBackend, OutputTensor
from models.config import Config, DetectionConfig
from models.detection import Detection
from models.errors import InferenceError, PipelineError
from models.frame import RasterImage, RawFrame
from preprocessing.decoder import decode_frame
from preprocessing.letterbox import letterbox


class DetectionPipeline:
    """
    Synchronous frame-to-detections pipeline.

    Per-frame failures raise PipelineError subclasses; callers that must keep
    running (DetectionSession) turn them into an empty result.

    Example:
        pipeline = DetectionPipeline(backend, DetectionConfig(), ClassTable.coco())
        detections = pipeline.process(raw_frame)
    """

    def __init__(
        self,
        backend: InferenceBackend,
        config: DetectionConfig,
        class_table: ClassTable,
        distance: Optional[DistanceEstimator] = None,
    ):
        self.backend = backend
        self.config = config
        self.class_table = class_table
        self.distance = distance or DistanceEstimator()

        # The model fixes the input size at load time.
        self.input_size = int(backend.input_size)
        if config.input_size and config.input_size != self.input_size:
            logging.warning(
                f"Configured input_size={config.input_size} differs from model input "
                f"{self.input_size}; using the model's"
            )

        self._decoder = DetectionDecoder(config, class_table)
        self._suppressor = Suppressor(
            iou_threshold=config.iou_threshold,
            scope=config.suppression_scope,
            max_detections=config.max_detections,
        )

    def process(self, frame: RawFrame) -> List[Detection]:
        """Run a raw sensor frame through the whole pipeline."""
        return self.process_image(decode_frame(frame))

    def process_image(self, image: RasterImage) -> List[Detection]:
        """Run an already decoded RGB raster through the pipeline."""
        model_input = letterbox(image, self.input_size, self.config.channel_order)
        tensor = self._infer(model_input.batched(getattr(self.backend, "layout", "nhwc")))
        candidates = self._decoder.decode(tensor, model_input.transform)
        kept = self._suppressor.apply(candidates)
        return self.distance.annotate(kept, image.height)

    def _infer(self, batch) -> OutputTensor:
        try:
            return self.backend.infer(batch)
        except PipelineError:
            raise
        except Exception as e:
            raise InferenceError(f"inference failed: {e}") from e


def create_pipeline_from_config(config: Config) -> DetectionPipeline:
    """
    Factory: build a pipeline with an ONNX Runtime backend from the app config.

    Labels come from model.labels_path when set, else the COCO table.
    """
    from inference.onnx_backend import OnnxBackend, OnnxConfig

    backend = OnnxBackend(
        OnnxConfig(
            model=config.model.path,
            providers=config.model.providers,
        )
    )
    if config.model.labels_path:
        class_table = ClassTable.from_file(config.model.labels_path)
    else:
        class_table = ClassTable.coco()

    return DetectionPipeline(
        backend=backend,
        config=config.detection,
        class_table=class_table,
        distance=DistanceEstimator(config.distance),
    )
