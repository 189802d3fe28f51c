"""
Pipeline engine: feeds frames from an observation source into a detection session.

The camera sets the cadence. In live mode frames that arrive while the
session is busy are dropped; in offline mode (video files, tests) the engine
waits for each frame's result so every frame is processed.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from models.config import Config
from models.detection import Detection
from models.frame import RawFrame
from observation.base import ObservationSource
from .detector import DetectionPipeline, create_pipeline_from_config
from .session import DetectionSession


@dataclass
class EngineConfig:
    """
    Configuration for the pipeline engine.

    Attributes:
        max_consecutive_failures: Max frame read failures before stopping.
        stats_log_interval: Seconds between status log messages.
        wait_for_results: Process every frame instead of dropping while busy.
        max_frames: Stop after this many frames were read (None = unlimited).
        retry_delay: Seconds to wait after a failed read.
    """
    max_consecutive_failures: int = 10
    stats_log_interval: float = 60.0
    wait_for_results: bool = False
    max_frames: Optional[int] = None
    retry_delay: float = 0.5


@dataclass
class EngineStats:
    """Runtime statistics for the engine loop."""
    frame_count: int = 0
    detection_count: int = 0
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)
    consecutive_failures: int = 0


class PipelineEngine:
    """
    Main loop reading RawFrames from any ObservationSource.

    Example:
        source = OpenCVSource(OpenCVSourceConfig(device_id=0))
        engine = PipelineEngine(source, DetectionSession(pipeline), EngineConfig())
        engine.run()
    """

    def __init__(
        self,
        source: ObservationSource,
        session: DetectionSession,
        config: Optional[EngineConfig] = None,
    ):
        self.source = source
        self.session = session
        self.config = config or EngineConfig()
        self.stats = EngineStats()
        self._running = False
        self._callbacks: List[Callable[[RawFrame, List[Detection]], None]] = []
        session.add_callback(self._on_result)

    def add_callback(self, callback: Callable[[RawFrame, List[Detection]], None]) -> None:
        """
        Add a callback to be called after each frame is processed.

        Args:
            callback: Function taking (frame, detections) as arguments.
        """
        self._callbacks.append(callback)

    def run(self) -> None:
        """
        Run the main processing loop.

        Opens the source and the session, processes frames until stopped or
        exhausted, then closes both.
        """
        self._running = True
        self.stats = EngineStats()

        try:
            self.source.open()
            self.session.start()
            logging.info(f"Pipeline started: source={self.source.source_id}")

            while self._running:
                if self.config.max_frames is not None and self.stats.frame_count >= self.config.max_frames:
                    logging.info(f"Reached max_frames={self.config.max_frames}")
                    break

                frame = self.source.read()

                if frame is None:
                    self.stats.consecutive_failures += 1
                    if self.stats.consecutive_failures >= self.config.max_consecutive_failures:
                        logging.error(
                            f"Too many consecutive failures ({self.stats.consecutive_failures}), stopping"
                        )
                        break
                    logging.warning(
                        f"Frame read failed ({self.stats.consecutive_failures}/"
                        f"{self.config.max_consecutive_failures})"
                    )
                    time.sleep(self.config.retry_delay)
                    continue

                self.stats.consecutive_failures = 0
                self.stats.frame_count += 1

                future = self.session.submit(frame)
                if future is not None and self.config.wait_for_results:
                    future.result()

                self._handle_periodic_tasks()

        except KeyboardInterrupt:
            logging.info("Pipeline interrupted by user")
        except Exception as e:
            logging.exception(f"Pipeline error: {e}")
        finally:
            self._cleanup()

    def stop(self) -> None:
        """Signal the pipeline to stop after the current frame."""
        self._running = False

    def _on_result(self, frame: RawFrame, detections: List[Detection]) -> None:
        self.stats.detection_count += len(detections)
        for callback in self._callbacks:
            try:
                callback(frame, detections)
            except Exception as e:
                logging.warning(f"Callback error: {e}")

    def _handle_periodic_tasks(self) -> None:
        now = time.time()
        if now - self.stats.last_stats_log_time >= self.config.stats_log_interval:
            s = self.session.stats
            logging.info(
                f"Pipeline stats: frames={self.stats.frame_count}, processed={s.processed}, "
                f"dropped={s.dropped}, errors={s.errors}, detections={self.stats.detection_count}, "
                f"latency_ms={s.last_latency_ms:.1f}"
            )
            self.stats.last_stats_log_time = now

    def _cleanup(self) -> None:
        self._running = False

        self.session.stop(wait=True)

        try:
            self.source.close()
        except Exception as e:
            logging.warning(f"Error closing source: {e}")

        logging.info("Pipeline stopped")


def create_engine_from_config(
    config: Config,
    pipeline: Optional[DetectionPipeline] = None,
    source: Optional[ObservationSource] = None,
    max_frames: Optional[int] = None,
) -> PipelineEngine:
    """
    Factory function to create a PipelineEngine from the typed config.

    Args:
        config: Full application config.
        pipeline: Pre-built pipeline (built from config.model when omitted).
        source: Observation source (an OpenCVSource over config.camera when omitted).
        max_frames: Optional frame limit.
    """
    from observation.opencv_source import OpenCVSource, OpenCVSourceConfig

    if pipeline is None:
        pipeline = create_pipeline_from_config(config)
    if source is None:
        source = OpenCVSource(
            OpenCVSourceConfig.from_camera_config(config.camera.to_dict(), source_id="main-camera")
        )

    is_offline = isinstance(source, OpenCVSource) and source.is_file
    engine_config = EngineConfig(
        wait_for_results=is_offline,
        max_frames=max_frames,
    )
    return PipelineEngine(source, DetectionSession(pipeline), engine_config)
