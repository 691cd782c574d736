"""Journey map animation package."""

from .canvas import MatplotlibCanvas
from .config import AnimationConfig, JourneyConfig, StopConfig, build_legs, load_config, render_settings
from .core import render
from .errors import RouteError, SurfaceError
from .sequencer import FrameExactDriver, PhaseTimeline, RealtimeDriver
from .state import AnimationState, Phase, RenderSettings, RouteLeg, build_settings

__all__ = [
    "AnimationConfig",
    "AnimationState",
    "FrameExactDriver",
    "JourneyConfig",
    "MatplotlibCanvas",
    "Phase",
    "PhaseTimeline",
    "RealtimeDriver",
    "RenderSettings",
    "RouteError",
    "RouteLeg",
    "StopConfig",
    "SurfaceError",
    "build_legs",
    "build_settings",
    "load_config",
    "render",
    "render_settings",
]
