"""
Pipeline module for the visual inference application.

The pipeline orchestrates the processing flow:
- Paced frame acquisition from the active input source
- Detection or classification via an inference task
- Delivery of results and throughput to a results sink
"""

from .state import Mode, SchedulerState
from .ticks import AsyncioTickDriver, TickDriver, TickHandle
from .tasks import ClassificationTask, DetectionTask, InferenceTask
from .sinks import LatestResults, PreviewWindow, ResultsSink
from .scheduler import FrameScheduler

__all__ = [
    "Mode",
    "SchedulerState",
    "AsyncioTickDriver",
    "TickDriver",
    "TickHandle",
    "ClassificationTask",
    "DetectionTask",
    "InferenceTask",
    "LatestResults",
    "PreviewWindow",
    "ResultsSink",
    "FrameScheduler",
]
