"""
Visual inference application: live object detection and a teachable classifier.

Detect mode runs the detection model on the live device (or an uploaded
image/video) and overlays boxes. Teach mode captures labeled examples from
the live device and shows live predictions of the nearest-exemplar classifier.

Usage:
    python src/main.py --config config/config.yaml --mode detect --display
    python src/main.py --mode detect --media samples/street.mp4 --display
    python src/main.py --mode teach --display

Preview window keys:
    p: pause/resume    q: quit    u: toggle live/upload    c: clear upload
    teach mode: 0-9 capture an example for that class, a: add class, r: reset
"""

import argparse
import asyncio
import logging
import os
import sys
import time
from typing import Any, Dict, Optional, Tuple

import yaml

from models.config import Config, IOU_THRESHOLD_RANGE, MIN_CONFIDENCE_RANGE
from observation import create_upload_source
from ops.logging import setup_logging
from pipeline import (
    AsyncioTickDriver,
    ClassificationTask,
    DetectionTask,
    FrameScheduler,
    LatestResults,
    Mode,
    PreviewWindow,
)
from runtime.context import RuntimeContext, create_context

STATS_LOG_INTERVAL = 60.0
UI_REFRESH_S = 1 / 30


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        base_path = os.path.join(os.path.dirname(config_path), "default.yaml")
        base_cfg: Dict[str, Any] = {}
        if os.path.exists(base_path):
            with open(base_path, "r") as f:
                base_cfg = yaml.safe_load(f) or {}

        local_overrides_path = os.path.join(os.path.dirname(config_path), "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            with open(local_overrides_path, "r") as f:
                local_cfg = yaml.safe_load(f) or {}

        merged = _deep_merge(base_cfg, local_cfg)

        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            with open(config_path, "r") as f:
                explicit_cfg = yaml.safe_load(f) or {}
            merged = _deep_merge(merged, explicit_cfg)

        return merged
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _in_range(value: Any, bounds: Tuple[float, float]) -> bool:
    return isinstance(value, (int, float)) and bounds[0] <= value <= bounds[1]


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['detection', 'live', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Live device
    live = config.get('live', {}) or {}
    device_id = live.get('device_id', 0)
    if not isinstance(device_id, (int, str)) or isinstance(device_id, bool):
        return False, "live.device_id must be an integer (index) or string (URL)"
    if isinstance(device_id, int) and device_id < 0:
        return False, "live.device_id integer must be non-negative"
    for key in ('max_retries', 'max_read_failures'):
        if key in live:
            value = live[key]
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                return False, f"live.{key} must be a positive integer"

    # Detection model and runtime settings
    detection = config.get('detection', {}) or {}
    if detection.get('backend', 'ultralytics') != 'ultralytics':
        return False, "detection.backend must be: ultralytics"
    if not isinstance(detection.get('model', 'yolov8n.pt'), str) or not detection.get('model', 'yolov8n.pt'):
        return False, "detection.model must be a non-empty string"
    if 'min_confidence' in detection and not _in_range(detection['min_confidence'], MIN_CONFIDENCE_RANGE):
        return False, "detection.min_confidence must be between 0.1 and 0.9"
    if 'iou_threshold' in detection and not _in_range(detection['iou_threshold'], IOU_THRESHOLD_RANGE):
        return False, "detection.iou_threshold must be between 0.1 and 0.9"
    if 'max_objects' in detection:
        mo = detection['max_objects']
        if not isinstance(mo, int) or isinstance(mo, bool) or mo <= 0:
            return False, "detection.max_objects must be a positive integer"
    if 'frame_cap_hz' in detection:
        cap = detection['frame_cap_hz']
        if not isinstance(cap, (int, float)) or cap <= 0:
            return False, "detection.frame_cap_hz must be a positive number"

    # Optional classifier settings
    classifier = config.get('classifier', {}) or {}
    if classifier:
        if 'frame_cap_hz' in classifier:
            cap = classifier['frame_cap_hz']
            if not isinstance(cap, (int, float)) or isinstance(cap, bool) or cap <= 0:
                return False, "classifier.frame_cap_hz must be a positive number"
        if 'ready_threshold' in classifier:
            rt = classifier['ready_threshold']
            if not isinstance(rt, int) or rt <= 0:
                return False, "classifier.ready_threshold must be a positive integer"
        if 'classes' in classifier:
            classes = classifier['classes']
            if not isinstance(classes, list) or not all(isinstance(c, str) for c in classes):
                return False, "classifier.classes must be a list of names"

    # Optional overlay settings
    overlay = config.get('overlay', {}) or {}
    if overlay:
        container = overlay.get('container', [1280, 720])
        if not isinstance(container, list) or len(container) != 2:
            return False, "overlay.container must be a list of [width, height]"
        if not all(isinstance(x, int) and x > 0 for x in container):
            return False, "overlay.container values must be positive integers"
        if 'margin' in overlay and (not isinstance(overlay['margin'], (int, float)) or overlay['margin'] < 0):
            return False, "overlay.margin must be a non-negative number"

    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if config['log_level'] not in valid_log_levels:
        return False, f"log_level must be one of: {', '.join(valid_log_levels)}"

    return True, None


def build_scheduler(ctx: RuntimeContext, mode: str, display: bool, ticks: AsyncioTickDriver) -> FrameScheduler:
    """Wire the inference task, settings and sink for the requested mode."""
    cfg = ctx.config
    if mode == "teach":
        registry = ctx.classifier.store.registry
        sink = PreviewWindow(
            "Teachable Classifier",
            cfg.overlay.container,
            class_names=registry.names(),
            display_floor=cfg.classifier.display_floor,
        )
        task = ClassificationTask(ctx.embedder, ctx.classifier)
        settings = ctx.classification_settings()
    else:
        if display:
            sink = PreviewWindow(
                "Object Detection",
                cfg.overlay.container,
                margin=cfg.overlay.margin,
                label_threshold=cfg.overlay.label_threshold,
            )
        else:
            sink = LatestResults()
        task = DetectionTask(ctx.detector)
        settings = ctx.detection_settings()
    return FrameScheduler(
        task, ticks, settings, live_source=ctx.live_source, sink=sink, lock=ctx.inference_lock
    )


async def handle_key(key: int, scheduler: FrameScheduler, ctx: RuntimeContext, media: Optional[str]) -> bool:
    """Apply a preview-window key press. Returns False to quit."""
    if key == ord('q'):
        return False
    if key == ord('p'):
        scheduler.toggle_pause()
    elif key == ord('u'):
        if scheduler.state.mode is Mode.LIVE and scheduler.upload_source is None and media:
            scheduler.mount_upload(create_upload_source(media))
        else:
            scheduler.set_mode(Mode.UPLOAD if scheduler.state.mode is Mode.LIVE else Mode.LIVE)
    elif key == ord('c'):
        scheduler.clear_upload()
    elif ctx.teaching is not None:
        if ord('0') <= key <= ord('9'):
            class_id = key - ord('0')
            if class_id in ctx.teaching.registry:
                await ctx.teaching.capture_example(class_id)
        elif key == ord('a'):
            ctx.teaching.add_class()
            scheduler.sink.class_names = ctx.teaching.registry.names()
        elif key == ord('r'):
            ctx.teaching.reset()
    return True


async def run_session(ctx: RuntimeContext, mode: str, display: bool, media: Optional[str] = None) -> None:
    """Run the scheduler until the user quits or the task is cancelled."""
    ticks = AsyncioTickDriver()
    scheduler = build_scheduler(ctx, mode, display, ticks)
    if media:
        scheduler.mount_upload(create_upload_source(media))
    scheduler.start()

    last_stats_log = time.time()
    try:
        while True:
            await asyncio.sleep(UI_REFRESH_S)
            sink = scheduler.sink
            if isinstance(sink, PreviewWindow):
                sink.render(paused=scheduler.state.paused)
                if not await handle_key(sink.poll_key(), scheduler, ctx, media):
                    break

            now = time.time()
            if now - last_stats_log >= STATS_LOG_INTERVAL:
                logging.info(
                    f"Scheduler stats: fps={sink.fps}, inferences={scheduler.inference_calls}, "
                    f"discarded={scheduler.discarded_results}"
                )
                if ctx.teaching is not None:
                    for info in ctx.teaching.class_status():
                        logging.info(f"  {info.name}: {info.count} samples ({info.readiness.value})")
                last_stats_log = now
    finally:
        scheduler.shutdown()
        await ticks.drain()
        if isinstance(scheduler.sink, PreviewWindow):
            scheduler.sink.close()


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='On-device visual inference')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--mode', choices=['detect', 'teach'], default='detect',
                        help='Object detection or teachable classifier')
    parser.add_argument('--media', type=str, default=None,
                        help='Uploaded image or video to run on instead of the live device')
    parser.add_argument('--display', action='store_true',
                        help='Enable preview window')
    args = parser.parse_args()

    config = load_config(args.config)

    is_valid, error_msg = validate_config(config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    setup_logging(config['log_path'], config['log_level'])

    if args.mode == 'teach' and not args.display:
        logging.error("Teach mode needs --display to capture examples")
        sys.exit(1)

    logging.info(f"Starting visual inference ({args.mode} mode)")
    ctx = create_context(
        Config.from_dict(config),
        detect=args.mode == 'detect',
        teach=args.mode == 'teach',
    )
    if args.mode in ctx.unavailable:
        logging.error(f"Cannot start {args.mode} mode: {ctx.unavailable[args.mode]}")
        sys.exit(1)

    try:
        asyncio.run(run_session(ctx, args.mode, args.display, args.media))
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
    finally:
        logging.info("Visual inference stopped")


if __name__ == "__main__":
    main()
