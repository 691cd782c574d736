"""Geospatial helpers: great-circle distance, bounds and Web Mercator zoom fitting."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

Coordinate = Tuple[float, float]
Size = Tuple[float, float]


EARTH_RADIUS_KM = 6371.0088
TILE_SIZE = 256.0
MAX_LATITUDE = 85.0511287798
SURFACE_MIN_ZOOM = 0.0
SURFACE_MAX_ZOOM = 20.0


def haversine_km(a: Coordinate, b: Coordinate) -> float:
    """Compute the great-circle distance between two lat/lon points in kilometres."""

    lat1, lon1 = map(math.radians, a)
    lat2, lon2 = map(math.radians, b)
    delta_lat = lat2 - lat1
    delta_lon = lon2 - lon1
    sin_lat = math.sin(delta_lat / 2.0)
    sin_lon = math.sin(delta_lon / 2.0)
    h = sin_lat**2 + math.cos(lat1) * math.cos(lat2) * sin_lon**2
    central_angle = 2.0 * math.asin(min(1.0, math.sqrt(h)))
    return EARTH_RADIUS_KM * central_angle


def path_length_km(points: Sequence[Coordinate]) -> float:
    """Sum of the great-circle distances between consecutive points."""

    return sum(haversine_km(start, end) for start, end in zip(points[:-1], points[1:]))


def lerp_coordinate(a: Coordinate, b: Coordinate, fraction: float) -> Coordinate:
    return a[0] + (b[0] - a[0]) * fraction, a[1] + (b[1] - a[1]) * fraction


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned lat/lon bounding box."""

    south: float
    west: float
    north: float
    east: float

    @staticmethod
    def from_points(points: Iterable[Coordinate]) -> "Bounds":
        points = list(points)
        if not points:
            raise ValueError("Cannot compute bounds of an empty point list.")
        lats = [lat for lat, _ in points]
        lons = [lon for _, lon in points]
        return Bounds(south=min(lats), west=min(lons), north=max(lats), east=max(lons))

    @property
    def center(self) -> Coordinate:
        return (self.south + self.north) / 2.0, (self.west + self.east) / 2.0


def project(coordinate: Coordinate, zoom: float) -> Tuple[float, float]:
    """Project a lat/lon coordinate to Web Mercator world pixels at ``zoom``."""

    lat = max(-MAX_LATITUDE, min(MAX_LATITUDE, coordinate[0]))
    scale = TILE_SIZE * 2.0**zoom
    x = scale * (coordinate[1] + 180.0) / 360.0
    sin_lat = math.sin(math.radians(lat))
    y = scale * (0.5 - math.log((1.0 + sin_lat) / (1.0 - sin_lat)) / (4.0 * math.pi))
    return x, y


def unproject(point: Tuple[float, float], zoom: float) -> Coordinate:
    """Inverse of :func:`project`."""

    scale = TILE_SIZE * 2.0**zoom
    lon = point[0] / scale * 360.0 - 180.0
    n = math.pi - 2.0 * math.pi * point[1] / scale
    lat = math.degrees(math.atan(math.sinh(n)))
    return lat, lon


def bounds_zoom(
    bounds: Bounds,
    viewport: Size,
    padding: Size = (0.0, 0.0),
    min_zoom: float = SURFACE_MIN_ZOOM,
    max_zoom: float = SURFACE_MAX_ZOOM,
) -> float:
    """Return the largest whole zoom at which ``bounds`` fits the padded viewport."""

    width = max(1.0, viewport[0] - padding[0])
    height = max(1.0, viewport[1] - padding[1])
    x_min, y_max = project((bounds.south, bounds.west), 0.0)
    x_max, y_min = project((bounds.north, bounds.east), 0.0)
    span_x = x_max - x_min
    span_y = y_max - y_min
    if span_x <= 0.0 and span_y <= 0.0:
        return max_zoom

    scales = []
    if span_x > 0.0:
        scales.append(width / span_x)
    if span_y > 0.0:
        scales.append(height / span_y)
    zoom = math.floor(math.log2(min(scales)))
    return float(max(min_zoom, min(max_zoom, zoom)))
