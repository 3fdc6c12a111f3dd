"""
Observation layer for live and uploaded visual sources.

This layer abstracts where frames come from (live device, uploaded video,
uploaded image) from the scheduler. Each source implements the InputSource
interface and returns FrameData objects.
"""

from .base import InputSource, InputKind, ObservationConfig
from .live import LiveSource, LiveSourceConfig
from .upload import UploadConfig, UploadImageSource, UploadVideoSource, create_upload_source

__all__ = [
    "InputSource",
    "InputKind",
    "ObservationConfig",
    "LiveSource",
    "LiveSourceConfig",
    "UploadConfig",
    "UploadImageSource",
    "UploadVideoSource",
    "create_upload_source",
]
