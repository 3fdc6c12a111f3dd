"""
Scheduler state and the pure pacing functions that advance it.

SchedulerState is immutable; every transition returns a new value so the
scheduler's decisions can be tested without an event loop.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional, Tuple

from observation.base import InputKind

THROUGHPUT_WINDOW_MS = 1000.0


class Mode(str, Enum):
    LIVE = "live"
    UPLOAD = "upload"


@dataclass(frozen=True)
class SchedulerState:
    """
    Attributes:
        mode: Which input the scheduler reads from.
        source_kind: Kind of the mounted upload (VIDEO, IMAGE) or None.
        paused: User pause flag.
        last_frame_timestamp: Tick time (ms) of the last due frame, None before the first.
        frame_counter: Completed inferences in the current throughput window.
        window_start_timestamp: Start (ms) of the current throughput window.
        epoch: Incremented on every pause, source switch and teardown.
        one_shot_done: The still image of the current epoch has been processed.
    """
    mode: Mode = Mode.LIVE
    source_kind: Optional[InputKind] = None
    paused: bool = False
    last_frame_timestamp: Optional[float] = None
    frame_counter: int = 0
    window_start_timestamp: Optional[float] = None
    epoch: int = 0
    one_shot_done: bool = False

    @property
    def is_still_image(self) -> bool:
        return self.mode is Mode.UPLOAD and self.source_kind is InputKind.IMAGE

    @property
    def keeps_ticking(self) -> bool:
        """Whether the loop should keep re-arming in this state."""
        if self.paused:
            return False
        if self.mode is Mode.LIVE:
            return True
        if self.source_kind is InputKind.VIDEO:
            return True
        if self.source_kind is InputKind.IMAGE:
            return not self.one_shot_done
        return False


def is_due(state: SchedulerState, now: float, min_interval_ms: float) -> bool:
    """True when enough time passed since the last frame to run inference."""
    if state.last_frame_timestamp is None:
        return True
    return now - state.last_frame_timestamp >= min_interval_ms


def mark_frame(state: SchedulerState, now: float) -> SchedulerState:
    return replace(state, last_frame_timestamp=now)


def record_inference(state: SchedulerState) -> SchedulerState:
    return replace(state, frame_counter=state.frame_counter + 1)


def roll_window(state: SchedulerState, now: float) -> Tuple[SchedulerState, Optional[int]]:
    """
    Advance the tumbling throughput window.

    Returns:
        (new state, completed-inference count of the window that just closed,
        or None if the window is still open). When more than one window went
        by without a tick the most recent one saw no inference, so 0 is
        reported.
    """
    if state.window_start_timestamp is None:
        return replace(state, window_start_timestamp=now, frame_counter=0), None
    elapsed = now - state.window_start_timestamp
    if elapsed >= 2 * THROUGHPUT_WINDOW_MS:
        return replace(state, window_start_timestamp=now, frame_counter=0), 0
    if elapsed >= THROUGHPUT_WINDOW_MS:
        return replace(state, window_start_timestamp=now, frame_counter=0), state.frame_counter
    return state, None


def reset_window(state: SchedulerState) -> SchedulerState:
    """Forget the current throughput window; the next tick opens a new one."""
    return replace(state, window_start_timestamp=None, frame_counter=0)


def next_epoch(state: SchedulerState, **changes: Any) -> SchedulerState:
    """Start a new epoch. In-flight results from older epochs get discarded."""
    return replace(state, epoch=state.epoch + 1, one_shot_done=False, **changes)
