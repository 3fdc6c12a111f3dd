"""
Smoke tests for configuration loading and validation.
"""

import logging

import pytest

from main import load_config, validate_config
from models.config import Config, DetectionSettings
from ops.logging import setup_logging


class TestValidateConfig:
    """Tests for validate_config function."""

    def test_valid_config_passes(self, valid_config):
        """A complete valid config passes validation."""
        is_valid, error = validate_config(valid_config)

        assert is_valid is True
        assert error is None

    def test_missing_live_section(self, valid_config):
        del valid_config["live"]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "live" in error.lower()

    def test_missing_detection_section(self, valid_config):
        del valid_config["detection"]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "detection" in error.lower()

    def test_missing_log_level(self, valid_config):
        del valid_config["log_level"]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "log_level" in error.lower()

    def test_missing_log_path(self, valid_config):
        del valid_config["log_path"]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "log_path" in error.lower()

    def test_classifier_and_overlay_are_optional(self, valid_config):
        del valid_config["classifier"]
        del valid_config["overlay"]

        is_valid, error = validate_config(valid_config)

        assert is_valid is True

    def test_invalid_device_id_type(self, valid_config):
        valid_config["live"]["device_id"] = [1, 2, 3]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "device_id" in error.lower()

    def test_negative_device_id(self, valid_config):
        valid_config["live"]["device_id"] = -1

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "device_id" in error.lower()

    @pytest.mark.parametrize("key", ["max_retries", "max_read_failures"])
    def test_invalid_live_retry_limits(self, valid_config, key):
        valid_config["live"][key] = 0

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert f"live.{key}" in error

    def test_string_device_id_valid(self, valid_config):
        """String device_id (stream URL) is valid."""
        valid_config["live"]["device_id"] = "rtsp://192.168.1.1/stream"

        is_valid, error = validate_config(valid_config)

        assert is_valid is True

    def test_invalid_detection_backend(self, valid_config):
        valid_config["detection"]["backend"] = "magic"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "backend" in error.lower()

    def test_empty_model_fails(self, valid_config):
        valid_config["detection"]["model"] = ""

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "model" in error.lower()

    @pytest.mark.parametrize("value", [0.05, 0.95, "high"])
    def test_min_confidence_out_of_range(self, valid_config, value):
        valid_config["detection"]["min_confidence"] = value

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "min_confidence" in error

    def test_iou_threshold_out_of_range(self, valid_config):
        valid_config["detection"]["iou_threshold"] = 1.5

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "iou_threshold" in error

    def test_invalid_max_objects(self, valid_config):
        valid_config["detection"]["max_objects"] = 0

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "max_objects" in error

    def test_invalid_frame_cap(self, valid_config):
        valid_config["detection"]["frame_cap_hz"] = 0

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "frame_cap_hz" in error

    @pytest.mark.parametrize("value", [0, -5, "fast", True])
    def test_invalid_classifier_frame_cap(self, valid_config, value):
        valid_config["classifier"]["frame_cap_hz"] = value

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "classifier.frame_cap_hz" in error

    def test_invalid_classes(self, valid_config):
        valid_config["classifier"]["classes"] = "Class A"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "classes" in error

    def test_invalid_container(self, valid_config):
        valid_config["overlay"]["container"] = [1280]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "container" in error

    def test_invalid_log_level(self, valid_config):
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

        assert config["detection"]["model"] == "yolov8n.pt"
        assert config["live"]["device_id"] == 0
        assert config["overlay"]["container"] == [1280, 720]

    def test_local_overrides_merge(self, temp_config_dir):
        """Local config.yaml overrides default.yaml."""
        config_yaml = temp_config_dir / "config.yaml"
        config_yaml.write_text("""
detection:
  min_confidence: 0.7
  frame_cap_hz: 10
""")

        config = load_config(str(config_yaml))

        assert config["detection"]["min_confidence"] == 0.7
        assert config["detection"]["frame_cap_hz"] == 10
        # Untouched nested keys survive the merge
        assert config["detection"]["max_objects"] == 10
        assert config["detection"]["backend"] == "ultralytics"

    def test_explicit_config_applied_last(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("""
live:
  device_id: 1
""")
        explicit = temp_config_dir / "bench.yaml"
        explicit.write_text("""
live:
  device_id: 2
log_level: "DEBUG"
""")

        config = load_config(str(explicit))

        assert config["live"]["device_id"] == 2
        assert config["log_level"] == "DEBUG"
        assert config["classifier"]["classes"] == ["Class A", "Class B", "Background"]

    def test_loaded_config_validates(self, temp_config_dir):
        config = load_config(str(temp_config_dir / "config.yaml"))

        is_valid, error = validate_config(config)

        assert is_valid is True, error


class TestTypedConfig:
    def test_from_dict_defaults(self):
        config = Config.from_dict({})

        assert config.detection.model == "yolov8n.pt"
        assert config.detection.settings.min_confidence == 0.5
        assert config.detection.settings.max_objects == 10
        assert config.classifier.frame_cap_hz == 24.0
        assert config.classifier.classes == ["Class A", "Class B", "Background"]
        assert config.overlay.margin == 10.0
        assert config.log_level == "INFO"

    def test_from_dict_reads_flat_detection_settings(self, valid_config):
        valid_config["detection"]["min_confidence"] = 0.4
        valid_config["detection"]["frame_cap_hz"] = 12

        config = Config.from_dict(valid_config)

        assert config.detection.settings.min_confidence == 0.4
        assert config.detection.settings.min_frame_interval_ms == pytest.approx(1000 / 12)

    def test_to_dict_round_trip(self, valid_config):
        config = Config.from_dict(valid_config)

        again = Config.from_dict(config.to_dict())

        assert again == config


class TestDetectionSettings:
    def test_defaults(self):
        settings = DetectionSettings()

        assert settings.min_confidence == 0.5
        assert settings.max_objects == 10
        assert settings.iou_threshold == 0.3
        assert settings.frame_cap_hz == 24.0
        assert settings.min_frame_interval_ms == pytest.approx(41.6667, abs=1e-3)

    @pytest.mark.parametrize("field,value", [
        ("min_confidence", 0.05),
        ("min_confidence", 0.91),
        ("iou_threshold", 0.0),
        ("max_objects", 0),
        ("frame_cap_hz", -1),
    ])
    def test_rejects_out_of_range(self, field, value):
        with pytest.raises(ValueError):
            DetectionSettings(**{field: value})

    def test_update_applies_changes(self):
        settings = DetectionSettings()

        settings.update(min_confidence=0.8, max_objects=3)

        assert settings.min_confidence == 0.8
        assert settings.max_objects == 3

    def test_update_is_atomic(self):
        settings = DetectionSettings()

        with pytest.raises(ValueError):
            settings.update(max_objects=5, iou_threshold=2.0)

        assert settings.max_objects == 10
        assert settings.iou_threshold == 0.3

    def test_update_rejects_unknown_keys(self):
        settings = DetectionSettings()

        with pytest.raises(ValueError, match="Unknown"):
            settings.update(threshold=0.5)


class TestSetupLogging:
    def test_creates_log_dir_and_quiets_libraries(self, tmp_path):
        log_path = tmp_path / "logs" / "app.log"
        try:
            setup_logging(str(log_path), "INFO", quiet=("test.chatty",))

            assert log_path.parent.is_dir()
            assert logging.getLogger("test.chatty").level == logging.WARNING

            setup_logging(str(log_path), "DEBUG", quiet=("test.chatty",))

            assert logging.getLogger("test.chatty").level == logging.DEBUG
        finally:
            root = logging.getLogger()
            for handler in list(root.handlers):
                if isinstance(handler, logging.FileHandler) and handler.baseFilename == str(log_path):
                    root.removeHandler(handler)
                    handler.close()
