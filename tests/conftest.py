"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
live:
  device_id: 0

detection:
  backend: "ultralytics"
  model: "yolov8n.pt"
  min_confidence: 0.5
  max_objects: 10
  iou_threshold: 0.3
  frame_cap_hz: 24

classifier:
  classes: ["Class A", "Class B", "Background"]

overlay:
  margin: 10
  label_threshold: 40
  container: [1280, 720]

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "live": {
            "device_id": 0,
        },
        "detection": {
            "backend": "ultralytics",
            "model": "yolov8n.pt",
            "min_confidence": 0.5,
            "max_objects": 10,
            "iou_threshold": 0.3,
            "frame_cap_hz": 24,
        },
        "classifier": {
            "backend": "ultralytics",
            "model": "yolov8n-cls.pt",
            "ready_threshold": 10,
            "classes": ["Class A", "Class B", "Background"],
        },
        "overlay": {
            "margin": 10,
            "label_threshold": 40,
            "container": [1280, 720],
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
