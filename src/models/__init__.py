"""
Typed models for the visual inference application.
"""

from .frame import FrameData
from .detection import Detection, BoundingBox
from .display import DisplayBox
from .features import FeatureVector, ClassExample, VectorState
from .prediction import Prediction
from .errors import (
    VisionError,
    ModelUnavailable,
    InferenceFailure,
    GeometryUnavailable,
    VectorReleasedError,
)
from .config import (
    Config,
    DetectionConfig,
    DetectionSettings,
    ClassifierConfig,
    OverlayConfig,
    LiveConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "Detection",
    "BoundingBox",
    "DisplayBox",
    # Classifier
    "FeatureVector",
    "ClassExample",
    "VectorState",
    "Prediction",
    # Errors
    "VisionError",
    "ModelUnavailable",
    "InferenceFailure",
    "GeometryUnavailable",
    "VectorReleasedError",
    # Config
    "Config",
    "DetectionConfig",
    "DetectionSettings",
    "ClassifierConfig",
    "OverlayConfig",
    "LiveConfig",
]
