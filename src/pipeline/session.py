"""
Detection session: runs frames on a worker thread, one at a time.

A frame that arrives while another is still being processed is dropped, not
queued. Results are handed off by swapping in a fresh list, so readers
never observe a partially built result. Stopping the session discards any
result still in flight.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, List, Optional

from models.detection import Detection
from models.errors import PipelineError
from models.frame import RawFrame
from .detector import DetectionPipeline


@dataclass
class SessionStats:
    """Counters for frames seen by a session."""
    submitted: int = 0
    processed: int = 0
    dropped: int = 0
    rejected: int = 0
    errors: int = 0
    discarded: int = 0
    last_error: Optional[str] = None
    last_latency_ms: float = 0.0


class DetectionSession:
    """
    Owns the in-flight guard and the result handoff for one pipeline.

    Lifecycle:
        1. start() spins up the worker
        2. submit(frame) for every camera frame
        3. read `latest` or register callbacks for results
        4. stop() discards in-flight work and refuses new frames
    """

    def __init__(self, pipeline: DetectionPipeline):
        self._pipeline = pipeline
        self._in_flight = threading.Lock()
        self._state_lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._generation = 0
        self._running = False
        self._latest: List[Detection] = []
        self._callbacks: List[Callable[[RawFrame, List[Detection]], None]] = []
        self._worker_ident: Optional[int] = None
        self.stats = SessionStats()

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_busy(self) -> bool:
        """Whether a frame is currently being processed."""
        return self._in_flight.locked()

    @property
    def latest(self) -> List[Detection]:
        """Detections from the most recently completed frame."""
        with self._state_lock:
            return list(self._latest)

    def add_callback(self, callback: Callable[[RawFrame, List[Detection]], None]) -> None:
        """
        Add a callback to be called with (frame, detections) after each frame.

        Callbacks run on the worker thread.
        """
        self._callbacks.append(callback)

    def start(self) -> None:
        with self._state_lock:
            if self._running:
                return
            self._generation += 1
            self._running = True
            self._latest = []
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="detection")
        logging.info("Detection session started")

    def stop(self, wait: bool = True) -> None:
        """Stop accepting frames; any result still in flight is discarded."""
        with self._state_lock:
            if not self._running:
                return
            self._running = False
            self._generation += 1
            self._latest = []
            executor, self._executor = self._executor, None
        if executor is not None:
            # A callback stopping the session runs on the worker and cannot join itself.
            on_worker = threading.get_ident() == self._worker_ident
            executor.shutdown(wait=wait and not on_worker)
        logging.info(
            f"Detection session stopped: processed={self.stats.processed}, "
            f"dropped={self.stats.dropped}, errors={self.stats.errors}"
        )

    def submit(self, frame: RawFrame) -> Optional[Future]:
        """
        Hand a frame to the worker.

        Returns:
            A Future for the frame's detections, or None if the frame was
            dropped (busy) or rejected (session stopped).
        """
        with self._state_lock:
            self.stats.submitted += 1
            if not self._running or self._executor is None:
                self.stats.rejected += 1
                return None
            if not self._in_flight.acquire(blocking=False):
                self.stats.dropped += 1
                return None
            try:
                return self._executor.submit(self._run, frame, self._generation)
            except RuntimeError:
                self._in_flight.release()
                raise

    def _run(self, frame: RawFrame, generation: int) -> List[Detection]:
        self._worker_ident = threading.get_ident()
        try:
            started = time.perf_counter()
            try:
                detections = self._pipeline.process(frame)
            except PipelineError as e:
                logging.warning(f"Frame {frame.frame_index} skipped: {type(e).__name__}: {e}")
                self._record_error(e)
                detections = []
            except Exception as e:
                logging.exception(f"Unexpected error processing frame {frame.frame_index}")
                self._record_error(e)
                detections = []
            latency_ms = (time.perf_counter() - started) * 1000.0

            if not self._publish(detections, generation, latency_ms):
                return []
        finally:
            self._in_flight.release()

        for callback in self._callbacks:
            try:
                callback(frame, detections)
            except Exception as e:
                logging.warning(f"Callback error: {e}")
        return detections

    def _record_error(self, error: Exception) -> None:
        with self._state_lock:
            self.stats.errors += 1
            self.stats.last_error = f"{type(error).__name__}: {error}"

    def _publish(self, detections: List[Detection], generation: int, latency_ms: float) -> bool:
        with self._state_lock:
            if generation != self._generation:
                self.stats.discarded += 1
                logging.debug("Discarded result from a stopped session")
                return False
            self._latest = detections
            self.stats.processed += 1
            self.stats.last_latency_ms = latency_ms
            return True
