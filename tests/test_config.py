"""
Smoke tests for configuration loading and validation.
"""

import pytest

from main import load_config, validate_config
from models.config import Config, DetectionConfig, DistanceConfig


class TestValidateConfig:
    """Tests for validate_config function."""

    def test_valid_config_passes(self, valid_config):
        """A complete valid config passes validation."""
        is_valid, error = validate_config(valid_config)

        assert is_valid is True
        assert error is None

    @pytest.mark.parametrize("section", ["camera", "model", "detection", "log_level"])
    def test_missing_required_section(self, valid_config, section):
        del valid_config[section]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert section in error

    def test_missing_model_path(self, valid_config):
        valid_config["model"] = {"labels_path": "labels.txt"}

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "model.path" in error

    def test_invalid_device_id_type(self, valid_config):
        """device_id with invalid type fails."""
        valid_config["camera"]["device_id"] = [1, 2, 3]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "device_id" in error.lower()

    def test_negative_device_id(self, valid_config):
        """Negative integer device_id fails."""
        valid_config["camera"]["device_id"] = -1

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "device_id" in error.lower()

    def test_string_device_id_valid(self, valid_config):
        """String device_id (stream URL or file) is valid."""
        valid_config["camera"]["device_id"] = "rtsp://192.168.1.1/stream"

        is_valid, _ = validate_config(valid_config)

        assert is_valid is True

    def test_invalid_resolution_format(self, valid_config):
        valid_config["camera"]["resolution"] = 1920

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "resolution" in error.lower()

    def test_invalid_resolution_length(self, valid_config):
        valid_config["camera"]["resolution"] = [1920]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "resolution" in error.lower()

    def test_invalid_fps(self, valid_config):
        valid_config["camera"]["fps"] = 0

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "fps" in error.lower()

    def test_invalid_rotation(self, valid_config):
        valid_config["camera"]["rotate"] = 45

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "rotate" in error

    @pytest.mark.parametrize("key", ["conf_threshold", "iou_threshold"])
    @pytest.mark.parametrize("value", [-0.1, 1.5, "high", True])
    def test_threshold_out_of_range(self, valid_config, key, value):
        valid_config["detection"][key] = value

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert key in error

    def test_invalid_input_size(self, valid_config):
        valid_config["detection"]["input_size"] = 0

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "input_size" in error

    def test_invalid_suppression_scope(self, valid_config):
        valid_config["detection"]["suppression_scope"] = "per_class"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "suppression_scope" in error

    def test_global_scope_valid(self, valid_config):
        valid_config["detection"]["suppression_scope"] = "global"

        is_valid, _ = validate_config(valid_config)

        assert is_valid is True

    def test_invalid_box_units(self, valid_config):
        valid_config["detection"]["box_units"] = "percent"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "box_units" in error

    def test_invalid_channel_order(self, valid_config):
        valid_config["detection"]["channel_order"] = "rgba"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "channel_order" in error

    def test_invalid_max_detections(self, valid_config):
        valid_config["detection"]["max_detections"] = 0

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "max_detections" in error

    def test_invalid_focal_length(self, valid_config):
        valid_config["distance"]["focal_length_px"] = -700

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "focal_length_px" in error

    def test_invalid_log_level(self, valid_config):
        """Invalid log level fails."""
        valid_config["log_level"] = "VERBOSE"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "log_level" in error.lower()


class TestLoadConfig:
    """Tests for load_config function."""

    def test_loads_default_yaml(self, temp_config_dir):
        """Config loads from default.yaml when only it exists."""
        config_path = str(temp_config_dir / "config.yaml")

        config = load_config(config_path)

        assert config["camera"]["device_id"] == 0
        assert config["camera"]["resolution"] == [640, 480]
        assert config["model"]["path"] == "models/detector.onnx"

    def test_local_overrides_merge(self, temp_config_dir):
        """Local config.yaml overrides default.yaml."""
        config_yaml = temp_config_dir / "config.yaml"
        config_yaml.write_text("""
camera:
  resolution: [1920, 1080]
  fps: 60
""")

        config = load_config(str(config_yaml))

        assert config["camera"]["resolution"] == [1920, 1080]
        assert config["camera"]["fps"] == 60
        assert config["camera"]["device_id"] == 0

    def test_deep_merge_preserves_nested(self, temp_config_dir):
        """Deep merge preserves nested keys not overridden."""
        config_yaml = temp_config_dir / "config.yaml"
        config_yaml.write_text("""
detection:
  suppression_scope: "global"
  class_thresholds:
    0: 0.6
""")

        config = load_config(str(config_yaml))

        assert config["detection"]["suppression_scope"] == "global"
        assert config["detection"]["class_thresholds"] == {0: 0.6}
        assert config["detection"]["conf_threshold"] == 0.35
        assert config["detection"]["input_size"] == 640

    def test_explicit_path_applies_last(self, temp_config_dir, tmp_path):
        (temp_config_dir / "config.yaml").write_text("log_level: WARNING\n")
        explicit = temp_config_dir / "phone.yaml"
        explicit.write_text("log_level: DEBUG\n")

        config = load_config(str(explicit))

        assert config["log_level"] == "DEBUG"
        assert config["camera"]["fps"] == 30

    def test_invalid_yaml_exits(self, temp_config_dir):
        config_yaml = temp_config_dir / "config.yaml"
        config_yaml.write_text("camera: [unclosed\n")

        with pytest.raises(SystemExit):
            load_config(str(config_yaml))

    def test_loaded_defaults_validate(self, temp_config_dir):
        config = load_config(str(temp_config_dir / "config.yaml"))

        is_valid, error = validate_config(config)

        assert is_valid is True, error


class TestTypedConfig:
    def test_from_dict(self, valid_config):
        config = Config.from_dict(valid_config)

        assert config.camera.resolution == [640, 480]
        assert config.model.path == "models/detector.onnx"
        assert config.detection.conf_threshold == 0.35
        assert config.detection.suppression_scope == "per_label"
        assert config.distance.focal_length_px == 700.0
        assert config.log_level == "INFO"

    def test_defaults_for_missing_sections(self):
        config = Config.from_dict({})

        assert config.detection.input_size == 640
        assert config.detection.max_detections == 10
        assert config.detection.box_units == "auto"
        assert config.distance.reference_heights["person"] == 1.7

    def test_round_trip(self, valid_config):
        config = Config.from_dict(valid_config)
        again = Config.from_dict(config.to_dict())
        assert again == config

    def test_class_threshold_keys_become_ints(self):
        config = DetectionConfig.from_dict({"class_thresholds": {"2": 0.6}})
        assert config.class_thresholds == {2: 0.6}

    def test_threshold_for(self):
        config = DetectionConfig(conf_threshold=0.35, class_thresholds={0: 0.6})
        assert config.threshold_for(0) == 0.6
        assert config.threshold_for(5) == 0.35

    def test_distance_reference_heights_merge(self):
        config = DistanceConfig.from_dict({"reference_heights": {"person": 1.8, "kite": 0.5}})
        assert config.reference_heights["person"] == 1.8
        assert config.reference_heights["kite"] == 0.5
        assert config.reference_heights["car"] == 1.5
