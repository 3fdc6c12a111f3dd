"""
Model adapters: detection and embedding backends.
"""

from .backend import Detector, Embedder, call_model
from .cpu_backend import CpuYoloConfig, UltralyticsDetector, UltralyticsEmbedder

__all__ = [
    "Detector",
    "Embedder",
    "call_model",
    "CpuYoloConfig",
    "UltralyticsDetector",
    "UltralyticsEmbedder",
]
