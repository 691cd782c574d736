"""Drivers that step the animation core through its phases.

:class:`RealtimeDriver` follows a wall clock for on-screen preview.
:class:`FrameExactDriver` follows an integer frame index for export and is
fully deterministic: rendering frames ``0..n`` always yields the same state,
whether or not each frame was captured.
"""
from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Callable, List, NamedTuple, Optional, Sequence

from .core import render
from .logging import get_logger
from .state import AnimationState, Phase, RenderResult, RenderSettings, RouteLeg, SmoothingProfile
from .surface import MapSurface, OverlaySink

logger = get_logger(__name__)


PREVIEW_SMOOTHING = SmoothingProfile(position=0.08, zoom=0.03, animate=True)
EXPORT_SMOOTHING = SmoothingProfile(position=0.12, zoom=0.06, animate=False)


class PhasePoint(NamedTuple):
    phase: Phase
    progress: float


@dataclass(frozen=True)
class PhaseTimeline:
    """Base phase durations in seconds, excluding pauses between legs."""

    title: float = 3.0
    pan: float = 2.5
    route: float = 25.0
    end: float = 2.0
    final_hold: float = 0.0

    @staticmethod
    def for_route(legs: Sequence[RouteLeg], route_seconds: float = 25.0) -> "PhaseTimeline":
        return PhaseTimeline(route=route_seconds, final_hold=legs[-1].pause if legs else 0.0)

    @property
    def active_seconds(self) -> float:
        return self.title + self.pan + self.route + self.final_hold + self.end

    def phase_at(self, elapsed: float) -> PhasePoint:
        """Phase and progress after ``elapsed`` seconds of unpaused playback."""

        if elapsed < self.title:
            return PhasePoint(Phase.TITLE, elapsed / self.title)
        elapsed -= self.title
        if elapsed < self.pan:
            return PhasePoint(Phase.PAN, elapsed / self.pan)
        elapsed -= self.pan
        if elapsed < self.route + self.final_hold:
            return PhasePoint(Phase.ROUTE, min(1.0, elapsed / self.route) if self.route > 0 else 1.0)
        elapsed -= self.route + self.final_hold
        return PhasePoint(Phase.END, min(1.0, elapsed / self.end))


class _Run:
    """Per-run bundle handed to the core on every call."""

    def __init__(
        self,
        legs: Sequence[RouteLeg],
        settings: RenderSettings,
        surface: MapSurface,
        overlays: OverlaySink,
        smoothing: SmoothingProfile,
        state: Optional[AnimationState] = None,
    ) -> None:
        self.legs = legs
        self.settings = settings
        self.surface = surface
        self.overlays = overlays
        self.smoothing = smoothing
        self.state = state if state is not None else AnimationState()

    def render(self, point: PhasePoint) -> RenderResult:
        return render(
            point.phase,
            point.progress,
            self.state,
            self.settings,
            self.surface,
            self.legs,
            self.overlays,
            self.smoothing,
        )


class RealtimeDriver(_Run):
    """Drive the animation from wall-clock timestamps (seconds)."""

    def __init__(
        self,
        legs: Sequence[RouteLeg],
        settings: RenderSettings,
        surface: MapSurface,
        overlays: OverlaySink,
        timeline: Optional[PhaseTimeline] = None,
        smoothing: SmoothingProfile = PREVIEW_SMOOTHING,
        on_complete: Optional[Callable[[], None]] = None,
    ) -> None:
        super().__init__(legs, settings, surface, overlays, smoothing)
        self.timeline = timeline or PhaseTimeline.for_route(legs)
        self.on_complete = on_complete
        self.completed = False
        self.paused_seconds = 0.0
        self._start: Optional[float] = None
        self._pause_until: Optional[float] = None
        self._pause_length = 0.0

    def tick(self, now: float) -> bool:
        """Render the frame for ``now``. Returns ``False`` once playback has finished."""

        if self.completed:
            return False
        if self._start is None:
            self._start = now

        if self._pause_until is not None:
            if now < self._pause_until:
                self.state.pause_remaining = self._pause_until - now
                return True
            self.paused_seconds += self._pause_length
            self._pause_until = None
            self.state.release_pause()

        elapsed = now - self._start - self.paused_seconds
        if elapsed >= self.timeline.active_seconds:
            self._finish()
            return False

        point = self.timeline.phase_at(elapsed)
        result = self.render(point)
        while result.should_pause:
            seconds = result.pause_seconds or 0.0
            if seconds > 0:
                self._pause_until = now + seconds
                self._pause_length = seconds
                break
            result = self.render(point)
        return True

    def _finish(self) -> None:
        self.completed = True
        logger.info("Preview finished", paused_seconds=round(self.paused_seconds, 3))
        if self.on_complete is not None:
            self.on_complete()

    def run(
        self,
        clock: Callable[[], float] = time.perf_counter,
        sleep: Callable[[float], None] = time.sleep,
        frame_interval: float = 1.0 / 60.0,
    ) -> None:
        """Block until playback completes, ticking once per ``frame_interval``."""

        while self.tick(clock()):
            sleep(frame_interval)


class FrameOutcome(NamedTuple):
    index: int
    phase: Phase
    frozen: bool


class FrameExactDriver(_Run):
    """Drive the animation frame by frame at a fixed frame rate."""

    def __init__(
        self,
        legs: Sequence[RouteLeg],
        settings: RenderSettings,
        surface: MapSurface,
        overlays: OverlaySink,
        fps: int = 30,
        timeline: Optional[PhaseTimeline] = None,
        smoothing: SmoothingProfile = EXPORT_SMOOTHING,
    ) -> None:
        super().__init__(legs, settings, surface, overlays, smoothing)
        if fps <= 0:
            raise ValueError(f"Frame rate must be positive, got {fps}")
        self.fps = fps
        self.timeline = timeline or PhaseTimeline.for_route(legs)

        timeline = self.timeline
        self.pause_frames: List[int] = [self.seconds_to_frames(leg.pause) for leg in legs]
        self.title_end = math.floor(timeline.title * fps)
        self.pan_end = math.floor((timeline.title + timeline.pan) * fps)
        self.route_frames = max(1, self.seconds_to_frames(timeline.route))
        # The final hold always includes the arrival frame at progress 1.
        final_hold = max(1, self.pause_frames[-1])
        self.route_end = self.pan_end + self.route_frames + sum(self.pause_frames[:-1]) + final_hold
        self.total_frames = self.route_end + max(1, self.seconds_to_frames(timeline.end))

        self.next_index = 0
        self.frozen_frames = 0
        self._hold = 0

    def seconds_to_frames(self, seconds: float) -> int:
        return int(round(seconds * self.fps))

    def phase_for(self, index: int) -> PhasePoint:
        if index < self.title_end:
            return PhasePoint(Phase.TITLE, index / self.title_end)
        if index < self.pan_end:
            return PhasePoint(Phase.PAN, (index - self.title_end) / (self.pan_end - self.title_end))
        if index < self.route_end:
            moving = index - self.pan_end - self.frozen_frames
            return PhasePoint(Phase.ROUTE, max(0.0, min(1.0, moving / self.route_frames)))
        return PhasePoint(Phase.END, (index - self.route_end) / (self.total_frames - self.route_end))

    def render_frame(self, index: int) -> FrameOutcome:
        """Advance the animation to frame ``index``.

        Frames must be requested in order. Requesting a later frame replays the
        skipped ones first, so a resumed export reaches the same state as an
        uninterrupted one.
        """

        if index < self.next_index:
            raise ValueError(f"Frame {index} already rendered; next frame is {self.next_index}")
        if index >= self.total_frames:
            raise ValueError(f"Frame {index} is past the last frame {self.total_frames - 1}")

        outcome = None
        while self.next_index <= index:
            outcome = self._step(self.next_index)
            self.next_index += 1
        return outcome

    def _step(self, index: int) -> FrameOutcome:
        if self._hold > 0:
            self._hold -= 1
            self.frozen_frames += 1
            self.state.pause_remaining = self._hold / self.fps
            if self._hold == 0:
                self.state.release_pause()
            return FrameOutcome(index, Phase.ROUTE, frozen=True)

        point = self.phase_for(index)
        result = self.render(point)
        while result.should_pause:
            frames = self.seconds_to_frames(result.pause_seconds or 0.0)
            if frames > 0:
                # This frame is the first of the pause.
                self._hold = frames - 1
                self.frozen_frames += 1
                if self._hold == 0:
                    self.state.release_pause()
                logger.debug("Holding frames", frame=index, frames=frames, leg=result.paused_after_leg)
                return FrameOutcome(index, point.phase, frozen=True)
            result = self.render(point)
        return FrameOutcome(index, point.phase, frozen=False)
