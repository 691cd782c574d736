"""Route, per-run configuration and mutable animation state."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from .errors import RouteError
from .geometry import Bounds, Coordinate, Size, bounds_zoom
from .icons import ICON_CONFIG
from .progress import Keyframe, keyframes, thresholds, zoom_levels


DEFAULT_PAUSE_SECONDS = 0.5
DEFAULT_MAX_ZOOM = 15.0
DEFAULT_CLOSE_ZOOM = 13.0
# Pixels kept clear on each side when the whole route is framed.
FIT_PADDING: Size = (50.0, 50.0)


class Phase(str, Enum):
    TITLE = "title"
    PAN = "pan"
    ROUTE = "route"
    END = "end"


@dataclass(frozen=True)
class RouteLeg:
    """One travel segment between two consecutive stops."""

    coordinates: Tuple[Coordinate, ...]
    icon: str = "car"
    from_label: str = ""
    to_label: Optional[str] = None
    travel_mode: str = "driving"
    zoom_level: Optional[float] = None
    pause: float = DEFAULT_PAUSE_SECONDS

    def __post_init__(self) -> None:
        coords = tuple((float(lat), float(lon)) for lat, lon in self.coordinates)
        if not coords:
            raise RouteError(f"Leg to {self.to_label or 'destination'!r} has no coordinates.")
        for lat, lon in coords:
            if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
                raise RouteError(f"Coordinate out of range: ({lat}, {lon})")
        if self.pause < 0:
            raise RouteError(f"Pause must not be negative, got {self.pause}")
        object.__setattr__(self, "coordinates", coords)


def full_path(legs: Sequence[RouteLeg]) -> List[Coordinate]:
    return [coord for leg in legs for coord in leg.coordinates]


@dataclass(frozen=True)
class SmoothingProfile:
    """Exponential smoothing weights applied to the camera each render call."""

    position: float
    zoom: float
    animate: bool = False


@dataclass(frozen=True)
class RenderResult:
    should_pause: bool = False
    pause_seconds: Optional[float] = None
    paused_after_leg: Optional[int] = None


NO_PAUSE = RenderResult()


@dataclass(frozen=True)
class RenderSettings:
    """Immutable per-run configuration derived once from the route and viewport."""

    all_coordinates: Tuple[Coordinate, ...]
    bounds: Bounds
    thresholds: Tuple[float, ...]
    zoom_levels: Tuple[float, ...]
    keyframes: Tuple[Keyframe, ...]
    close_zoom: float
    overview_zoom: float
    overview_center: Coordinate
    leg_pauses: Tuple[float, ...]
    line_color: str = "#8B4513"
    line_width: float = 4.0
    title: str = "ADVENTURE"
    date: str = ""
    final_destination: str = "DESTINATION"
    start_label: str = "START"


def build_settings(
    legs: Sequence[RouteLeg],
    viewport: Size,
    *,
    max_zoom: float = DEFAULT_MAX_ZOOM,
    default_close_zoom: float = DEFAULT_CLOSE_ZOOM,
    start_zoom: Optional[float] = None,
    line_color: str = "#8B4513",
    line_width: float = 4.0,
    title: str = "ADVENTURE",
    date: str = "",
    final_destination: Optional[str] = None,
) -> RenderSettings:
    """Precompute thresholds, zoom keyframes and framing for one run."""

    if not legs:
        raise RouteError("A route needs at least one leg.")

    path = full_path(legs)
    bounds = Bounds.from_points(path)
    leg_thresholds = thresholds(legs)
    levels = zoom_levels(legs, path, viewport, max_zoom=max_zoom, default_close_zoom=default_close_zoom)

    if final_destination is None:
        final_destination = legs[-1].to_label or "DESTINATION"

    return RenderSettings(
        all_coordinates=tuple(path),
        bounds=bounds,
        thresholds=tuple(leg_thresholds),
        zoom_levels=tuple(levels),
        keyframes=tuple(keyframes(levels, leg_thresholds)),
        close_zoom=start_zoom if start_zoom is not None else levels[0],
        overview_zoom=bounds_zoom(bounds, viewport, (2.0 * FIT_PADDING[0], 2.0 * FIT_PADDING[1])),
        overview_center=bounds.center,
        leg_pauses=tuple(leg.pause for leg in legs),
        line_color=line_color,
        line_width=line_width,
        title=title,
        date=date,
        final_destination=final_destination,
        start_label=legs[0].from_label or "START",
    )


@dataclass
class AnimationState:
    """Mutable state of one animation run. Never shared between runs."""

    camera_lat: Optional[float] = None
    camera_lng: Optional[float] = None
    camera_zoom: Optional[float] = None

    last_angles: Dict[str, float] = field(default_factory=lambda: {kind: 0.0 for kind in ICON_CONFIG})
    last_mirror: Dict[str, bool] = field(default_factory=dict)

    path_layer: Optional[str] = None
    start_marker: Optional[str] = None
    start_label: Optional[str] = None
    end_marker: Optional[str] = None
    end_label: Optional[str] = None
    waypoint_markers: List[str] = field(default_factory=list)
    waypoint_labels: List[str] = field(default_factory=list)
    waypoint_legs: List[int] = field(default_factory=list)
    waypoint_shown: List[bool] = field(default_factory=list)
    waypoint_faded_out: List[bool] = field(default_factory=list)

    title_shown: bool = False
    stamp_shown: bool = False
    start_marker_placed: bool = False
    route_furniture_placed: bool = False
    icons_ready: bool = False

    last_paused_after: int = -1
    pause_active: bool = False
    pause_remaining: float = 0.0

    hiking_distance_km: Optional[float] = None

    def begin_pause(self, leg_index: int, seconds: float) -> None:
        self.last_paused_after = leg_index
        self.pause_active = True
        self.pause_remaining = seconds

    def release_pause(self) -> None:
        self.pause_active = False
        self.pause_remaining = 0.0
