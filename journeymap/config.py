"""Configuration loading utilities for journey animations."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional
import json

from .geometry import Coordinate
from .logging import get_logger
from .routing import Router
from .state import (
    DEFAULT_CLOSE_ZOOM,
    DEFAULT_MAX_ZOOM,
    DEFAULT_PAUSE_SECONDS,
    RenderSettings,
    RouteLeg,
    build_settings,
)

logger = get_logger(__name__)


TILE_MAX_ZOOM: Dict[str, float] = {
    "osm": 19,
    "watercolor": 15,
    "terrain": 17,
    "toner": 20,
    "dark": 20,
    "voyager": 20,
    "humanitarian": 19,
}

TRAVEL_MODES = ("driving", "cycling", "walking", "hike", "direct")


def _get(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _coordinate(value: Any) -> Coordinate:
    if isinstance(value, dict):
        lat = value["lat"] if "lat" in value else value["latitude"]
        lon = value["lon"] if "lon" in value else value.get("lng", value.get("longitude"))
        return float(lat), float(lon)
    lat, lon = value
    return float(lat), float(lon)


def _coordinates(values: Optional[Iterable[Any]]) -> List[Coordinate]:
    return [_coordinate(item) for item in values or []]


def _optional_float(value: Any) -> Optional[float]:
    return float(value) if value is not None else None


@dataclass
class StopConfig:
    """A place on the journey: the start or one of the stops."""

    label: Optional[str] = None
    address: Optional[str] = None
    coordinates: Optional[Coordinate] = None
    icon: str = "car"
    travel_mode: str = "driving"
    zoom_level: Optional[float] = None
    pause: float = DEFAULT_PAUSE_SECONDS
    via_points: List[Coordinate] = field(default_factory=list)
    path: Optional[List[Coordinate]] = None

    @staticmethod
    def from_mapping(data: Dict[str, Any]) -> "StopConfig":
        if not isinstance(data, dict):
            raise ValueError("Each stop must be a mapping.")

        try:
            coordinates = _coordinate(data["coordinates"]) if data.get("coordinates") is not None else None
            path = _coordinates(data["path"]) if data.get("path") else None
            via_points = _coordinates(_get(data, "viaPoints", "via_points"))
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Invalid coordinates in stop {data.get('label')!r}: {exc}") from exc

        if coordinates is None and path:
            coordinates = path[-1]
        address = data.get("address")
        if coordinates is None and not address:
            raise ValueError(f"Stop {data.get('label')!r} needs an address, coordinates or a path.")

        travel_mode = str(_get(data, "travelMode", "travel_mode", default="driving"))
        if travel_mode not in TRAVEL_MODES:
            raise ValueError(f"Unknown travel mode {travel_mode!r}; expected one of {', '.join(TRAVEL_MODES)}.")

        return StopConfig(
            label=data.get("label"),
            address=address,
            coordinates=coordinates,
            icon=str(data.get("icon", "car")),
            travel_mode=travel_mode,
            zoom_level=_optional_float(_get(data, "zoomLevel", "zoom_level")),
            pause=float(_get(data, "pause", default=DEFAULT_PAUSE_SECONDS)),
            via_points=via_points,
            path=path,
        )


@dataclass
class AnimationConfig:
    """How the route is drawn and how long it takes."""

    line_color: str = "#8B4513"
    line_width: float = 4.0
    route_seconds: float = 25.0
    frame_rate: int = 30
    width: int = 1280
    height: int = 720
    max_zoom: float = DEFAULT_MAX_ZOOM
    default_close_zoom: float = DEFAULT_CLOSE_ZOOM

    @staticmethod
    def from_mapping(data: Optional[Dict[str, Any]]) -> "AnimationConfig":
        if not data:
            return AnimationConfig()
        return AnimationConfig(
            line_color=str(_get(data, "lineColor", "line_color", default="#8B4513")),
            line_width=float(_get(data, "lineWidth", "line_width", default=4.0)),
            route_seconds=float(_get(data, "duration", "route_seconds", default=25.0)),
            frame_rate=int(_get(data, "fps", "frame_rate", default=30)),
            width=int(data.get("width", 1280)),
            height=int(data.get("height", 720)),
            max_zoom=float(_get(data, "maxZoom", "max_zoom", default=DEFAULT_MAX_ZOOM)),
            default_close_zoom=float(_get(data, "defaultCloseZoom", "default_close_zoom", default=DEFAULT_CLOSE_ZOOM)),
        )


@dataclass
class JourneyConfig:
    """Top-level configuration for a journey animation."""

    start: StopConfig
    stops: List[StopConfig]
    title: str = "ADVENTURE"
    date: str = ""
    tile_layer: str = "osm"
    output_path: Path = Path("journey.mp4")
    animation: AnimationConfig = field(default_factory=AnimationConfig)

    @staticmethod
    def from_mapping(data: Dict[str, Any]) -> "JourneyConfig":
        if "start" not in data or not isinstance(data["start"], dict):
            raise ValueError("Configuration must define a 'start' mapping.")

        stops_data = data.get("stops") or []
        if not isinstance(stops_data, Iterable) or isinstance(stops_data, (str, bytes)):
            raise ValueError("Stops must be provided as a list of mappings.")

        stops = [StopConfig.from_mapping(item) for item in stops_data]
        if not stops:
            raise ValueError("At least one stop is required to build a journey.")

        tile_layer = str(_get(data, "tileLayer", "tile_layer", default="osm"))
        if tile_layer not in TILE_MAX_ZOOM:
            raise ValueError(f"Unknown tile layer {tile_layer!r}; available: {', '.join(TILE_MAX_ZOOM)}.")

        output_path = data.get("output") or data.get("output_path") or "journey.mp4"

        return JourneyConfig(
            start=StopConfig.from_mapping(data["start"]),
            stops=stops,
            title=str(data.get("title") or "ADVENTURE"),
            date=str(data.get("date") or ""),
            tile_layer=tile_layer,
            output_path=Path(output_path),
            animation=AnimationConfig.from_mapping(data.get("animation")),
        )

    @property
    def max_zoom(self) -> float:
        return min(self.animation.max_zoom, TILE_MAX_ZOOM[self.tile_layer])

    @property
    def final_destination(self) -> str:
        return self.stops[-1].label or "DESTINATION"


def _resolve(stop: StopConfig, router: Router) -> Coordinate:
    if stop.coordinates is not None:
        return stop.coordinates
    return router.geocode(stop.address or "")


def build_legs(config: JourneyConfig, router: Optional[Router] = None) -> List[RouteLeg]:
    """Resolve every stop and fetch the coordinates of each leg."""

    router = router or Router()
    current = _resolve(config.start, router)
    previous_label = config.start.label or "START"

    legs: List[RouteLeg] = []
    for stop in config.stops:
        target = _resolve(stop, router)
        if stop.path:
            coordinates = list(stop.path)
        else:
            coordinates = router.route(current, target, stop.travel_mode, stop.via_points)

        legs.append(
            RouteLeg(
                coordinates=tuple(coordinates),
                icon=stop.icon,
                from_label=previous_label,
                to_label=stop.label,
                travel_mode=stop.travel_mode,
                zoom_level=stop.zoom_level,
                pause=stop.pause,
            )
        )
        logger.info(
            "Built leg",
            leg=len(legs) - 1,
            from_label=previous_label,
            to_label=stop.label,
            travel_mode=stop.travel_mode,
            points=len(coordinates),
        )

        current = target
        if stop.label:
            previous_label = stop.label
    return legs


def render_settings(config: JourneyConfig, legs: List[RouteLeg]) -> RenderSettings:
    """Per-run render settings for ``legs`` at the configured frame size."""

    animation = config.animation
    return build_settings(
        legs,
        (animation.width, animation.height),
        max_zoom=config.max_zoom,
        default_close_zoom=animation.default_close_zoom,
        start_zoom=config.start.zoom_level,
        line_color=animation.line_color,
        line_width=animation.line_width,
        title=config.title,
        date=config.date,
        final_destination=config.final_destination,
    )


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:  # pragma: no cover - optional dependency
        import yaml  # type: ignore
    except Exception as exc:  # pragma: no cover - optional dependency
        raise RuntimeError(
            "YAML configuration requested but PyYAML is not available. Install with 'pip install pyyaml'."
        ) from exc
    with path.open("r", encoding="utf8") as handle:
        return yaml.safe_load(handle)  # type: ignore[no-any-return]


def load_config(path: Path) -> JourneyConfig:
    """Load a :class:`JourneyConfig` from a JSON or YAML file."""

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)

    if path.suffix.lower() in {".yaml", ".yml"}:
        raw = _load_yaml(path)
    else:
        with path.open("r", encoding="utf8") as handle:
            raw = json.load(handle)

    if not isinstance(raw, dict):
        raise ValueError("Configuration file must contain a mapping at the top level.")

    return JourneyConfig.from_mapping(raw)
