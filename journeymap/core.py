"""Animation core shared by the real-time preview and the frame-exact export.

:func:`render` draws one moment of the animation for a phase and a progress
within that phase. It mutates only the :class:`AnimationState` it is given and
reports pause requests in its return value; time keeping belongs to the
drivers in :mod:`journeymap.sequencer`.
"""
from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from .errors import SurfaceError
from .geometry import Coordinate, lerp_coordinate, path_length_km
from .icons import ICON_CONFIG, NO_ICON, icon_config, icon_transform
from .logging import get_logger
from .progress import SegmentInfo, interpolated_zoom, segment_info
from .state import (
    FIT_PADDING,
    NO_PAUSE,
    AnimationState,
    Phase,
    RenderResult,
    RenderSettings,
    RouteLeg,
    SmoothingProfile,
)
from .surface import MapSurface, OverlaySink

logger = get_logger(__name__)


CARD_FADE = 0.15

PATH_LAYER = "route-path"
START_MARKER, START_LABEL = "start-marker", "start-label"
END_MARKER, END_LABEL = "end-marker", "end-label"

START_COLOUR = "#8B0000"
END_COLOUR = "#006400"
WAYPOINT_COLOUR = "#FF8C00"
MARKER_OPACITY = 0.9

WAYPOINT_SHOW_AT = 0.33
WAYPOINT_FADE_AFTER = 0.2
ICON_SWAP_FADE_AT = 0.95
END_MARKER_REVEAL_AT = 0.98

CAMERA_LOOKAHEAD_POINTS = 30
HEADING_LOOKAHEAD_POINTS = 300
HEADING_MIN_PIXELS = 5.0

END_LABEL_AT = 0.2
DESTINATION_FADE_START = 0.3
DESTINATION_FADE_LENGTH = 0.3

HIKING_MODE = "hike"


def ease_out_cubic(t: float) -> float:
    return 1.0 - (1.0 - t) ** 3


def hiking_distance_km(legs: Sequence[RouteLeg]) -> float:
    """Total great-circle length of the legs travelled on foot as a hike."""

    return sum(path_length_km(leg.coordinates) for leg in legs if leg.travel_mode == HIKING_MODE)


def render(
    phase: Phase,
    phase_progress: float,
    state: AnimationState,
    settings: RenderSettings,
    surface: MapSurface,
    legs: Sequence[RouteLeg],
    overlays: OverlaySink,
    smoothing: SmoothingProfile,
) -> RenderResult:
    """Draw the animation at ``phase_progress`` (``0..1``) through ``phase``.

    A transient :class:`SurfaceError` drops this call's visual update but
    leaves camera and pause bookkeeping consistent for the next call.
    """

    phase = Phase(phase)
    progress = max(0.0, min(1.0, phase_progress))
    try:
        return _render_phase(phase, progress, state, settings, surface, legs, overlays, smoothing)
    except SurfaceError as exc:
        logger.warning(
            "Skipping frame visuals after surface error",
            phase=phase.value,
            progress=round(progress, 4),
            error=str(exc),
        )
        return NO_PAUSE


def _render_phase(
    phase: Phase,
    progress: float,
    state: AnimationState,
    settings: RenderSettings,
    surface: MapSurface,
    legs: Sequence[RouteLeg],
    overlays: OverlaySink,
    smoothing: SmoothingProfile,
) -> RenderResult:
    if phase is Phase.TITLE:
        _render_title(progress, state, settings, surface, overlays)
        return NO_PAUSE

    overlays.show_card("title", _title_text(settings), 0.0)
    if not state.stamp_shown:
        overlays.show_card("stamp", settings.title.upper(), 1.0)
        state.stamp_shown = True

    if phase is Phase.PAN:
        _render_pan(progress, state, settings, surface, smoothing)
        return NO_PAUSE

    if not state.route_furniture_placed:
        _place_route_furniture(state, settings, surface, legs)
    if not state.icons_ready:
        for kind in ICON_CONFIG:
            overlays.hide_icon(kind)
        state.icons_ready = True

    if phase is Phase.ROUTE:
        return _render_route(progress, state, settings, surface, legs, overlays, smoothing)

    _render_end(progress, state, settings, surface, legs, overlays)
    return NO_PAUSE


def _title_text(settings: RenderSettings) -> str:
    return f"{settings.title}\n{settings.date}" if settings.date else settings.title


def _render_title(
    progress: float,
    state: AnimationState,
    settings: RenderSettings,
    surface: MapSurface,
    overlays: OverlaySink,
) -> None:
    if progress < CARD_FADE:
        opacity = progress / CARD_FADE
    elif progress > 1.0 - CARD_FADE:
        opacity = (1.0 - progress) / CARD_FADE
    else:
        opacity = 1.0
    overlays.show_card("title", _title_text(settings), opacity)

    if not state.title_shown:
        surface.fit_bounds(settings.bounds, FIT_PADDING)
        state.title_shown = True


def _track_camera(state: AnimationState, target: Coordinate, zoom: float, smoothing: SmoothingProfile) -> None:
    if state.camera_lat is None or state.camera_lng is None or state.camera_zoom is None:
        state.camera_lat, state.camera_lng = target
        state.camera_zoom = zoom
    state.camera_lat += (target[0] - state.camera_lat) * smoothing.position
    state.camera_lng += (target[1] - state.camera_lng) * smoothing.position
    state.camera_zoom += (zoom - state.camera_zoom) * smoothing.zoom


def _apply_camera(state: AnimationState, surface: MapSurface, smoothing: SmoothingProfile) -> None:
    surface.set_view((state.camera_lat, state.camera_lng), state.camera_zoom, animate=smoothing.animate)


def _render_pan(
    progress: float,
    state: AnimationState,
    settings: RenderSettings,
    surface: MapSurface,
    smoothing: SmoothingProfile,
) -> None:
    start = settings.all_coordinates[0]
    if state.camera_lat is None:
        state.camera_lat, state.camera_lng = settings.overview_center
        state.camera_zoom = settings.overview_zoom

    if not state.start_marker_placed:
        surface.place_marker(START_MARKER, start, START_COLOUR, MARKER_OPACITY)
        surface.place_label(START_LABEL, start, settings.start_label, 1.0)
        state.start_marker, state.start_label = START_MARKER, START_LABEL
        state.start_marker_placed = True

    eased = ease_out_cubic(progress)
    target = lerp_coordinate(settings.overview_center, start, eased)
    zoom = settings.overview_zoom + (settings.close_zoom - settings.overview_zoom) * eased
    _track_camera(state, target, zoom, smoothing)
    _apply_camera(state, surface, smoothing)


def _place_route_furniture(
    state: AnimationState,
    settings: RenderSettings,
    surface: MapSurface,
    legs: Sequence[RouteLeg],
) -> None:
    end = settings.all_coordinates[-1]
    surface.place_marker(END_MARKER, end, END_COLOUR, 0.0)
    surface.place_label(END_LABEL, end, settings.final_destination, 0.0)

    markers: List[str] = []
    labels: List[str] = []
    waypoint_legs: List[int] = []
    for index, leg in enumerate(legs[:-1]):
        if not leg.to_label:
            continue
        stop = leg.coordinates[-1]
        marker_id, label_id = f"waypoint-{index}-marker", f"waypoint-{index}-label"
        surface.place_marker(marker_id, stop, WAYPOINT_COLOUR, 0.0)
        surface.place_label(label_id, stop, leg.to_label, 0.0)
        markers.append(marker_id)
        labels.append(label_id)
        waypoint_legs.append(index)

    state.end_marker, state.end_label = END_MARKER, END_LABEL
    state.waypoint_markers = markers
    state.waypoint_labels = labels
    state.waypoint_legs = waypoint_legs
    state.waypoint_shown = [False] * len(markers)
    state.waypoint_faded_out = [False] * len(markers)
    state.route_furniture_placed = True


def _update_waypoints(
    progress: float,
    segment: SegmentInfo,
    state: AnimationState,
    settings: RenderSettings,
    surface: MapSurface,
    legs: Sequence[RouteLeg],
) -> None:
    for index, leg_index in enumerate(state.waypoint_legs):
        stop = legs[leg_index].coordinates[-1]
        if not state.waypoint_shown[index]:
            leg_start = settings.thresholds[leg_index - 1] if leg_index > 0 else 0.0
            show_at = leg_start + (settings.thresholds[leg_index] - leg_start) * WAYPOINT_SHOW_AT
            if progress >= show_at:
                surface.place_marker(state.waypoint_markers[index], stop, WAYPOINT_COLOUR, MARKER_OPACITY)
                surface.place_label(state.waypoint_labels[index], stop, legs[leg_index].to_label or "", 1.0)
                state.waypoint_shown[index] = True

        if (
            state.waypoint_shown[index]
            and not state.waypoint_faded_out[index]
            and segment.leg > leg_index
            and segment.local_progress > WAYPOINT_FADE_AFTER
        ):
            surface.place_marker(state.waypoint_markers[index], stop, WAYPOINT_COLOUR, 0.0)
            surface.place_label(state.waypoint_labels[index], stop, legs[leg_index].to_label or "", 0.0)
            state.waypoint_faded_out[index] = True


def _visible_icon(legs: Sequence[RouteLeg], segment: SegmentInfo) -> Optional[str]:
    """Icon kind to draw for this moment, or ``None`` while hidden."""

    current = legs[segment.leg].icon
    upcoming = legs[segment.leg + 1].icon if segment.leg + 1 < len(legs) else None
    swapping = upcoming is not None and upcoming != current
    if current == NO_ICON or (swapping and segment.local_progress > ICON_SWAP_FADE_AT):
        return None
    return current if current in ICON_CONFIG else "person"


def _position_on_leg(coordinates: Sequence[Coordinate], local_progress: float) -> Tuple[int, Coordinate, bool]:
    """Return ``(index of last passed point, traveller position, between points)``."""

    last = len(coordinates) - 1
    exact = local_progress * last
    index = min(int(exact), last)
    fraction = exact - index
    if index < last and fraction > 0:
        return index, lerp_coordinate(coordinates[index], coordinates[index + 1], fraction), True
    return index, coordinates[index], False


def _render_route(
    progress: float,
    state: AnimationState,
    settings: RenderSettings,
    surface: MapSurface,
    legs: Sequence[RouteLeg],
    overlays: OverlaySink,
    smoothing: SmoothingProfile,
) -> RenderResult:
    segment = segment_info(progress, settings.thresholds)

    # One boundary per call so every leg's pause is honoured even when a
    # single step jumps across several short legs.
    if segment.leg > 0 and state.last_paused_after < segment.leg - 1:
        paused_leg = state.last_paused_after + 1
        seconds = settings.leg_pauses[paused_leg]
        state.begin_pause(paused_leg, seconds)
        logger.debug("Pausing after leg", leg=paused_leg, seconds=seconds)
        return RenderResult(should_pause=True, pause_seconds=seconds, paused_after_leg=paused_leg)
    if state.pause_active:
        state.release_pause()

    _update_waypoints(progress, segment, state, settings, surface, legs)

    kind = _visible_icon(legs, segment)
    for other in ICON_CONFIG:
        if other != kind:
            overlays.hide_icon(other)

    coordinates = legs[segment.leg].coordinates
    last = len(coordinates) - 1
    index, traveller, between = _position_on_leg(coordinates, segment.local_progress)

    target_zoom = interpolated_zoom(progress, settings.keyframes)
    ahead = coordinates[min(index + CAMERA_LOOKAHEAD_POINTS, last)]
    # Lead the camera towards upcoming turns, more so when zoomed out.
    zoom_out = max(0.0, (14.0 - target_zoom) / 4.0)
    target = lerp_coordinate(traveller, ahead, 0.1 * zoom_out)
    _track_camera(state, target, target_zoom, smoothing)
    _apply_camera(state, surface, smoothing)

    visible: List[Coordinate] = [coord for leg in legs[: segment.leg] for coord in leg.coordinates]
    visible.extend(coordinates[: index + 1])
    if between:
        visible.append(traveller)
    if len(visible) > 1:
        surface.draw_path(PATH_LAYER, visible, settings.line_color, settings.line_width)
        state.path_layer = PATH_LAYER

    if kind is not None:
        _place_icon(kind, traveller, coordinates, index, state, surface, overlays)

    if progress >= END_MARKER_REVEAL_AT:
        surface.place_marker(END_MARKER, settings.all_coordinates[-1], END_COLOUR, MARKER_OPACITY)

    return NO_PAUSE


def _place_icon(
    kind: str,
    traveller: Coordinate,
    coordinates: Sequence[Coordinate],
    index: int,
    state: AnimationState,
    surface: MapSurface,
    overlays: OverlaySink,
) -> None:
    x, y = surface.to_screen(traveller)

    # Sample the heading far ahead so small wiggles in the path don't jitter the icon.
    heading_to = coordinates[min(len(coordinates) - 1, index + HEADING_LOOKAHEAD_POINTS)]
    from_x, from_y = surface.to_screen(coordinates[index])
    to_x, to_y = surface.to_screen(heading_to)
    dx, dy = to_x - from_x, to_y - from_y

    config = icon_config(kind)
    if abs(dx) > HEADING_MIN_PIXELS or abs(dy) > HEADING_MIN_PIXELS:
        transform = icon_transform(kind, dx, dy, state.last_angles.get(kind, 0.0))
        state.last_angles[kind] = transform.last_angle
        state.last_mirror[kind] = transform.mirror
        angle, mirror = transform.angle, transform.mirror
    else:
        angle = state.last_angles.get(kind, 0.0) if config.rotates else 0.0
        mirror = state.last_mirror.get(kind, False)

    overlays.place_icon(kind, x, y, config.size, angle, mirror)


def _render_end(
    progress: float,
    state: AnimationState,
    settings: RenderSettings,
    surface: MapSurface,
    legs: Sequence[RouteLeg],
    overlays: OverlaySink,
) -> None:
    for kind in ICON_CONFIG:
        overlays.hide_icon(kind)

    end = settings.all_coordinates[-1]
    surface.place_marker(END_MARKER, end, END_COLOUR, MARKER_OPACITY)
    if progress > END_LABEL_AT:
        surface.place_label(END_LABEL, end, settings.final_destination, 1.0)

    if progress > DESTINATION_FADE_START:
        fade = min(1.0, (progress - DESTINATION_FADE_START) / DESTINATION_FADE_LENGTH)
        if state.hiking_distance_km is None:
            state.hiking_distance_km = hiking_distance_km(legs)
            logger.info("Computed hiking distance", km=round(state.hiking_distance_km, 2))
        text = settings.final_destination
        if state.hiking_distance_km > 0:
            text = f"{text}\nhiking distance: {state.hiking_distance_km:.2f} km"
        overlays.show_card("destination", text, fade)
