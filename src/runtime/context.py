from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from classifier import ClassRegistry, ExemplarStore, OnlineClassifier, TeachingSession
from inference.backend import Detector, Embedder
from inference.cpu_backend import CpuYoloConfig, UltralyticsDetector, UltralyticsEmbedder
from models.config import Config, DetectionSettings
from models.errors import ModelUnavailable
from observation import InputSource, LiveSource, LiveSourceConfig


@dataclass
class RuntimeContext:
    """Holds runtime services for one session; avoids global singletons."""

    config: Config
    live_source: InputSource
    detector: Optional[Detector] = None
    embedder: Optional[Embedder] = None
    classifier: Optional[OnlineClassifier] = None
    teaching: Optional[TeachingSession] = None

    # Feature name -> load error, surfaced to the user instead of retrying
    unavailable: Dict[str, str] = field(default_factory=dict)

    # Serializes live-device reads and model calls between the scheduler
    # and user-triggered captures
    inference_lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def detection_settings(self) -> DetectionSettings:
        return DetectionSettings.from_dict(self.config.detection.settings.to_dict())

    def classification_settings(self) -> DetectionSettings:
        return DetectionSettings(frame_cap_hz=self.config.classifier.frame_cap_hz)


def create_detector(config: Config) -> Detector:
    det = config.detection
    if det.backend != "ultralytics":
        raise ModelUnavailable(f"Unknown detection backend: {det.backend}")
    return UltralyticsDetector(CpuYoloConfig(model=det.model, iou_threshold=det.settings.iou_threshold))


def create_embedder(config: Config) -> Embedder:
    cls_cfg = config.classifier
    if cls_cfg.backend != "ultralytics":
        raise ModelUnavailable(f"Unknown classifier backend: {cls_cfg.backend}")
    return UltralyticsEmbedder(cls_cfg.model)


def create_context(config: Config, detect: bool = True, teach: bool = False) -> RuntimeContext:
    """
    Build the runtime context for the requested features.

    A model that fails to load disables only its own feature; the error is
    recorded in ``unavailable``.
    """
    live = LiveSource(LiveSourceConfig.from_dict(config.live.to_dict()))
    ctx = RuntimeContext(config=config, live_source=live)

    if detect:
        try:
            ctx.detector = create_detector(config)
        except ModelUnavailable as e:
            logging.error(f"Detection unavailable: {e}")
            ctx.unavailable["detect"] = str(e)

    if teach:
        try:
            ctx.embedder = create_embedder(config)
        except ModelUnavailable as e:
            logging.error(f"Teachable classifier unavailable: {e}")
            ctx.unavailable["teach"] = str(e)
        else:
            registry = ClassRegistry(config.classifier.classes, config.classifier.ready_threshold)
            ctx.classifier = OnlineClassifier(ExemplarStore(registry))
            ctx.teaching = TeachingSession(live, ctx.embedder, ctx.classifier, lock=ctx.inference_lock)

    return ctx
