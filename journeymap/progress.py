"""Progress and zoom utilities shared by the preview and export drivers.

Progress through the Route phase is a single fraction in ``[0, 1]``. Each leg
owns a share of it proportional to its number of coordinates, so densely
sampled legs (curvy trails) take proportionally longer to animate.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, List, NamedTuple, Sequence

from .errors import RouteError
from .geometry import Bounds, Coordinate, Size, bounds_zoom

if TYPE_CHECKING:  # pragma: no cover
    from .state import RouteLeg


LEG_PADDING: Size = (100.0, 100.0)
OVERVIEW_ZOOM_PADDING: Size = (80.0, 80.0)


class Keyframe(NamedTuple):
    progress: float
    zoom: float


class SegmentInfo(NamedTuple):
    leg: int
    start: float
    local_progress: float


def thresholds(legs: Sequence["RouteLeg"]) -> List[float]:
    """Return the cumulative share of coordinates consumed through each leg."""

    if not legs:
        raise RouteError("Cannot compute progress thresholds for an empty route.")

    counts = [len(leg.coordinates) for leg in legs]
    total = sum(counts)
    result: List[float] = []
    consumed = 0
    for count in counts:
        consumed += count
        result.append(consumed / total)
    return result


def zoom_levels(
    legs: Sequence["RouteLeg"],
    path: Sequence[Coordinate],
    viewport: Size,
    max_zoom: float = 15.0,
    default_close_zoom: float = 13.0,
) -> List[float]:
    """Return the target zoom for each leg.

    Explicit leg zooms are used as given; otherwise the zoom that fits the
    leg's padded bounding box is used, never wider than the whole-route
    overview or ``default_close_zoom``. Every level is capped at ``max_zoom``
    since the map imagery cannot serve deeper tiles.
    """

    default_close_zoom = min(default_close_zoom, max_zoom)
    overview = bounds_zoom(Bounds.from_points(path), viewport, OVERVIEW_ZOOM_PADDING)

    levels: List[float] = []
    for leg in legs:
        if leg.zoom_level is not None:
            zoom = float(leg.zoom_level)
        else:
            auto = bounds_zoom(Bounds.from_points(leg.coordinates), viewport, LEG_PADDING)
            zoom = max(auto, overview, default_close_zoom)
        levels.append(min(zoom, max_zoom))
    return levels


def keyframes(levels: Sequence[float], leg_thresholds: Sequence[float]) -> List[Keyframe]:
    frames = [Keyframe(0.0, levels[0])]
    frames.extend(Keyframe(threshold, zoom) for threshold, zoom in zip(leg_thresholds, levels))
    return frames


def smoothstep(t: float) -> float:
    return t * t * (3.0 - 2.0 * t)


def interpolated_zoom(progress: float, frames: Sequence[Keyframe]) -> float:
    """Blend between the keyframes bracketing ``progress`` along a smoothstep curve."""

    first, last = frames[0], frames[-1]
    if progress <= first.progress:
        return first.zoom
    if progress >= last.progress:
        return last.zoom

    previous, following = first, last
    for current, upcoming in zip(frames[:-1], frames[1:]):
        if current.progress <= progress <= upcoming.progress:
            previous, following = current, upcoming
            break

    span = following.progress - previous.progress
    t = (progress - previous.progress) / span if span > 0 else 1.0
    return previous.zoom + (following.zoom - previous.zoom) * smoothstep(t)


def segment_info(progress: float, leg_thresholds: Sequence[float]) -> SegmentInfo:
    """Map global progress to ``(leg index, leg start, progress within the leg)``."""

    leg = len(leg_thresholds) - 1
    for index, threshold in enumerate(leg_thresholds):
        if progress < threshold:
            leg = index
            break

    start = leg_thresholds[leg - 1] if leg > 0 else 0.0
    width = leg_thresholds[leg] - start
    if width <= 0:
        return SegmentInfo(leg, start, 1.0)
    local = (progress - start) / width
    return SegmentInfo(leg, start, max(0.0, min(1.0, local)))
