"""
Command-line entry point for the on-device detection pipeline.

Reads frames from a camera or video file, runs them through the detection
pipeline and logs the labeled, distance-annotated detections per frame.

Usage:
    python src/main.py --config config/config.yaml --source video.mp4

Arguments:
    --config: Path to configuration file
    --source: Camera index or video path (overrides camera.device_id)
    --model: ONNX model path (overrides model.path)
    --labels: Label file, one class per line (overrides model.labels_path)
    --max-frames: Stop after this many frames
    --json: Print one JSON line per processed frame
"""

import argparse
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional, Tuple

import yaml

from models.config import BOX_UNITS, CHANNEL_ORDERS, SUPPRESSION_SCOPES, Config
from models.detection import Detection
from models.frame import RawFrame
from ops.logging import setup_logging
from pipeline.engine import create_engine_from_config

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        config_dir = os.path.dirname(config_path)
        base_path = os.path.join(config_dir, "default.yaml")
        merged: Dict[str, Any] = _read_yaml(base_path) if os.path.exists(base_path) else {}

        local_overrides_path = os.path.join(config_dir, "config.yaml")
        if os.path.exists(local_overrides_path):
            merged = _deep_merge(merged, _read_yaml(local_overrides_path))

        if os.path.exists(config_path) and os.path.abspath(config_path) not in (
            os.path.abspath(local_overrides_path),
            os.path.abspath(base_path),
        ):
            merged = _deep_merge(merged, _read_yaml(config_path))

        return merged
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    for section in ("camera", "model", "detection", "log_level"):
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    camera = config.get("camera") or {}
    device_id = camera.get("device_id", 0)
    if not isinstance(device_id, (int, str)) or isinstance(device_id, bool):
        return False, "camera.device_id must be an integer (index) or string (URL/path)"
    if isinstance(device_id, int) and device_id < 0:
        return False, "camera.device_id integer must be non-negative"
    if "resolution" in camera:
        res = camera["resolution"]
        if not isinstance(res, list) or len(res) != 2 or not all(isinstance(x, int) and x > 0 for x in res):
            return False, "camera.resolution must be a list of two positive integers"
    if "fps" in camera and (not isinstance(camera["fps"], int) or camera["fps"] <= 0):
        return False, "camera.fps must be a positive integer"
    if camera.get("rotate", 0) not in (0, 90, 180, 270):
        return False, "camera.rotate must be one of: 0, 90, 180, 270"

    model = config.get("model") or {}
    if not isinstance(model.get("path"), str) or not model.get("path"):
        return False, "model.path is required"

    detection = config.get("detection") or {}
    size = detection.get("input_size", 640)
    if not isinstance(size, int) or size <= 0:
        return False, "detection.input_size must be a positive integer"
    for key in ("conf_threshold", "iou_threshold"):
        if key in detection:
            value = detection[key]
            if not _is_number(value) or not (0 <= value <= 1):
                return False, f"detection.{key} must be a number between 0 and 1"
    if detection.get("suppression_scope", "per_label") not in SUPPRESSION_SCOPES:
        return False, f"detection.suppression_scope must be one of: {', '.join(SUPPRESSION_SCOPES)}"
    if detection.get("box_units", "auto") not in BOX_UNITS:
        return False, f"detection.box_units must be one of: {', '.join(BOX_UNITS)}"
    if detection.get("channel_order", "rgb") not in CHANNEL_ORDERS:
        return False, f"detection.channel_order must be one of: {', '.join(CHANNEL_ORDERS)}"
    max_det = detection.get("max_detections", 10)
    if not isinstance(max_det, int) or max_det <= 0:
        return False, "detection.max_detections must be a positive integer"

    distance = config.get("distance") or {}
    for key in ("focal_length_px", "default_height_m"):
        if key in distance and (not _is_number(distance[key]) or distance[key] <= 0):
            return False, f"distance.{key} must be a positive number"

    if config["log_level"] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None


def _parse_source(value: str):
    return int(value) if value.isdigit() else value


def _format_detections(frame: RawFrame, detections: List[Detection]) -> str:
    parts = []
    for d in detections:
        dist = f"{d.distance:.1f}m" if d.distance is not None else "unknown"
        parts.append(f"{d.label} {d.confidence:.2f} @ {dist}")
    return f"frame={frame.frame_index} detections={len(detections)} [" + ", ".join(parts) + "]"


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description="On-device object detection pipeline")
    parser.add_argument("--config", type=str, default="config/config.yaml",
                        help="Path to configuration file")
    parser.add_argument("--source", type=str, default=None,
                        help="Camera index or video path")
    parser.add_argument("--model", type=str, default=None,
                        help="ONNX model path")
    parser.add_argument("--labels", type=str, default=None,
                        help="Label file, one class name per line")
    parser.add_argument("--max-frames", type=int, default=None,
                        help="Stop after this many frames")
    parser.add_argument("--json", action="store_true",
                        help="Print one JSON line per processed frame")
    args = parser.parse_args()

    raw = load_config(args.config)
    if args.source is not None:
        raw.setdefault("camera", {})["device_id"] = _parse_source(args.source)
    if args.model is not None:
        raw.setdefault("model", {})["path"] = args.model
    if args.labels is not None:
        raw.setdefault("model", {})["labels_path"] = args.labels

    is_valid, error_msg = validate_config(raw)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    config = Config.from_dict(raw)
    setup_logging(config.log_path, config.log_level)
    logging.info("Starting detection pipeline")

    engine = create_engine_from_config(config, max_frames=args.max_frames)

    def report(frame: RawFrame, detections: List[Detection]) -> None:
        if args.json:
            print(json.dumps({
                "frame": frame.frame_index,
                "detections": [d.to_dict() for d in detections],
            }), flush=True)
        else:
            logging.info(_format_detections(frame, detections))

    engine.add_callback(report)
    engine.run()


if __name__ == "__main__":
    main()
