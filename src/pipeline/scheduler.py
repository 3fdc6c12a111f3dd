"""
Frame scheduler: paces inference against a frame-rate cap.

The scheduler is driven by an injected tick driver. Every tick either
does no work (too early, nothing to read, or an inference is still
outstanding) and re-arms, or captures one frame, awaits the inference task
and only then re-arms. At most one inference is outstanding at any time.

Pause, source switches and shutdown start a new epoch. A result whose
inference was issued in an older epoch is discarded when it arrives, so a
box computed against the previous source's geometry is never shown.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any, Optional

from models.config import DetectionSettings
from observation.base import InputKind, InputSource
from .sinks import LatestResults, ResultsSink
from .state import (
    Mode,
    SchedulerState,
    is_due,
    mark_frame,
    next_epoch,
    record_inference,
    reset_window,
    roll_window,
)
from .tasks import InferenceTask
from .ticks import TickDriver, TickHandle


class FrameScheduler:
    """
    Cooperative inference loop over a live source and an optional upload.

    Example:
        scheduler = FrameScheduler(DetectionTask(detector), AsyncioTickDriver(),
                                   DetectionSettings(), live_source=live)
        scheduler.start()
        ...
        scheduler.shutdown()
    """

    def __init__(
        self,
        task: InferenceTask,
        ticks: TickDriver,
        settings: Optional[DetectionSettings] = None,
        live_source: Optional[InputSource] = None,
        sink: Optional[ResultsSink] = None,
        lock: Optional[asyncio.Lock] = None,
    ):
        self.task = task
        self.ticks = ticks
        self.settings = settings or DetectionSettings()
        self.live_source = live_source
        self.upload_source: Optional[InputSource] = None
        self.sink: ResultsSink = sink if sink is not None else LatestResults()
        # Held across capture and inference; shared with anything else that
        # reads the live device or runs the model
        self.lock = lock if lock is not None else asyncio.Lock()
        self.state = SchedulerState()
        self.inference_calls = 0
        self.discarded_results = 0
        self._pending: Optional[TickHandle] = None
        self._in_flight = False
        self._started = False
        self._closed = False

    @property
    def epoch(self) -> int:
        return self.state.epoch

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def is_armed(self) -> bool:
        return self._pending is not None

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def active_source(self) -> Optional[InputSource]:
        if self.state.mode is Mode.LIVE:
            return self.live_source
        return self.upload_source

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Open the live source and request the first tick."""
        if self._closed:
            raise RuntimeError("Scheduler has been shut down")
        if self._started:
            return
        if self.live_source is not None and not self.live_source.is_open:
            self.live_source.open()
        self._started = True
        logging.info(
            f"Scheduler started: mode={self.state.mode.value}, "
            f"cap={self.settings.frame_cap_hz}Hz"
        )
        self._rearm()

    def shutdown(self) -> None:
        """Cancel pending work, discard in-flight results and close sources."""
        if self._closed:
            return
        self._closed = True
        self._new_epoch()
        for source in (self.upload_source, self.live_source):
            if source is None:
                continue
            try:
                source.close()
            except Exception as e:
                logging.warning(f"Error closing source {source.source_id}: {e}")
        self.sink.clear()
        logging.info(
            f"Scheduler stopped: inferences={self.inference_calls}, "
            f"discarded={self.discarded_results}"
        )

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def pause(self) -> None:
        """Stop re-arming. A result still in flight is discarded on arrival."""
        if self.state.paused:
            return
        self._new_epoch(paused=True)
        self._reset_throughput()
        logging.info("Scheduler paused")

    def resume(self) -> None:
        if not self.state.paused:
            return
        self.state = replace(self.state, paused=False, one_shot_done=False)
        logging.info("Scheduler resumed")
        self._rearm()

    def toggle_pause(self) -> bool:
        """Flip pause state. Returns the new paused flag."""
        if self.state.paused:
            self.resume()
        else:
            self.pause()
        return self.state.paused

    def set_mode(self, mode: Mode) -> None:
        """Switch between the live source and the mounted upload."""
        if mode is self.state.mode:
            return
        self._switch(mode=mode)
        logging.info(f"Switched to {mode.value} mode")

    def mount_upload(self, source: InputSource) -> None:
        """Replace the uploaded media and switch to upload mode."""
        if source.kind is InputKind.LIVE:
            raise ValueError("Upload source must be a video or image")
        previous = self.upload_source
        if not source.is_open:
            source.open()
        self.upload_source = source
        self._switch(mode=Mode.UPLOAD, source_kind=source.kind)
        if previous is not None and previous is not source:
            previous.close()
        logging.info(f"Mounted upload {source.source_id} ({source.kind.value})")

    def clear_upload(self) -> None:
        """Drop the uploaded media and return to the live source."""
        previous = self.upload_source
        self.upload_source = None
        self._switch(mode=Mode.LIVE, source_kind=None)
        if previous is not None:
            previous.close()
        logging.info("Upload cleared, back to live mode")

    def update_settings(self, **changes: Any) -> None:
        """
        Change detection settings at runtime.

        Raises:
            ValueError: If a value is out of range; nothing changes then.
        """
        self.settings.update(**changes)
        logging.info(f"Settings updated: {changes}")
        if self.state.is_still_image:
            # Re-run the still image with the new settings
            self.state = replace(self.state, one_shot_done=False)
        self._rearm()

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    async def step(self, now: float) -> None:
        """
        Handle one tick.

        Args:
            now: Tick timestamp in milliseconds.
        """
        if self._closed or self.state.paused:
            return

        self.state, rate = roll_window(self.state, now)
        if rate is not None:
            self.sink.on_throughput(rate)

        if self._in_flight:
            self._rearm()
            return

        if not is_due(self.state, now, self.settings.min_frame_interval_ms):
            self._rearm()
            return

        self.state = mark_frame(self.state, now)
        source = self._select_source()
        if source is None:
            self._rearm()
            return

        epoch = self.state.epoch
        self._in_flight = True
        try:
            async with self.lock:
                # Device reads block, so they run off the loop like the model calls
                frame = await asyncio.to_thread(source.capture)
                if frame is None or epoch != self.state.epoch:
                    frame = None
                else:
                    if self.state.is_still_image:
                        self.state = replace(self.state, one_shot_done=True)
                    self.inference_calls += 1
                    try:
                        result = await self.task.run(frame, self.settings)
                    except Exception as e:
                        logging.warning(f"Inference failed, skipping cycle: {e}")
                        result = self.task.empty_result()
        finally:
            self._in_flight = False

        if frame is None:
            self._rearm()
            return

        if epoch != self.state.epoch:
            # The newer epoch armed its own ticks
            self.discarded_results += 1
            logging.debug(f"Discarding result from epoch {epoch} (current {self.state.epoch})")
            return

        self.state = record_inference(self.state)
        self.sink.on_result(result, frame)
        if self.state.is_still_image:
            # Nothing more runs until the image is re-triggered
            self._reset_throughput()
        self._rearm()

    def _on_tick(self, now: float):
        self._pending = None
        return self.step(now)

    def _select_source(self) -> Optional[InputSource]:
        state = self.state
        if state.mode is Mode.LIVE:
            source = self.live_source
        else:
            source = self.upload_source
            if state.source_kind is None:
                return None
            if state.source_kind is InputKind.IMAGE and state.one_shot_done:
                return None
        if source is None or not source.is_ready():
            return None
        return source

    def _rearm(self) -> None:
        if not self._started or self._closed or self._pending is not None:
            return
        if not self.state.keeps_ticking:
            return
        self._pending = self.ticks.request(self._on_tick)

    def _disarm(self) -> None:
        if self._pending is not None:
            self.ticks.cancel(self._pending)
            self._pending = None

    def _new_epoch(self, **changes: Any) -> None:
        self._disarm()
        self.state = next_epoch(self.state, **changes)

    def _switch(self, **changes: Any) -> None:
        self._new_epoch(**changes)
        self.sink.clear()
        self._reset_throughput()
        self._rearm()

    def _reset_throughput(self) -> None:
        self.state = reset_window(self.state)
        self.sink.on_throughput(0)
