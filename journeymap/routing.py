"""Routing and geocoding over public web services.

OSRM serves driving, cycling and walking routes, GraphHopper serves hiking
routes (``GRAPHHOPPER_API_KEY``), and Nominatim resolves addresses. Routing
failures fall back to a straight line between the two endpoints.
"""
from __future__ import annotations

import os
from typing import Any, Dict, List, Optional, Sequence

import httpx

from .geometry import Coordinate, lerp_coordinate
from .logging import get_logger

logger = get_logger(__name__)


NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
OSRM_URL = "https://router.project-osrm.org/route/v1/{profile}/{coordinates}"
GRAPHHOPPER_URL = "https://graphhopper.com/api/1/route"
USER_AGENT = "journeymap/0.1.0"

DIRECT_STEPS = 50
OSRM_PROFILES: Dict[str, str] = {"walking": "foot", "cycling": "bike"}

DIRECT_MODE = "direct"
HIKE_MODE = "hike"


def fetch_json(url: str, params: Optional[Dict[str, Any]] = None, timeout: float = 30.0) -> Any:
    """Fetch and decode a JSON document.

    Raises:
        httpx.RequestError: For network errors
        httpx.HTTPStatusError: For HTTP errors
        ValueError: When the body is not JSON
    """
    headers: Dict[str, str] = {}

    # Nominatim's usage policy requires an identifying User-Agent
    if "nominatim.openstreetmap.org" in url:
        headers["User-Agent"] = USER_AGENT

    with httpx.Client() as client:
        response = client.get(url, params=params, timeout=timeout, headers=headers)
        response.raise_for_status()
        return response.json()


def direct_line(start: Coordinate, end: Coordinate, steps: int = DIRECT_STEPS) -> List[Coordinate]:
    """Evenly spaced points from ``start`` to ``end`` inclusive."""

    return [lerp_coordinate(start, end, step / steps) for step in range(steps + 1)]


class Router:
    """Resolve addresses and build leg coordinates for a travel mode."""

    def __init__(self, graphhopper_key: Optional[str] = None, timeout: float = 30.0) -> None:
        self.graphhopper_key = graphhopper_key if graphhopper_key is not None else os.environ.get("GRAPHHOPPER_API_KEY", "")
        self.timeout = timeout

    def geocode(self, address: str) -> Coordinate:
        """Return ``(lat, lon)`` for ``address``; raise ``ValueError`` if it can't be found."""

        try:
            results = fetch_json(
                NOMINATIM_URL,
                params={"q": address, "format": "json", "limit": 1},
                timeout=self.timeout,
            )
        except (httpx.RequestError, httpx.HTTPStatusError, ValueError) as exc:
            logger.exception("Geocoding request failed", address=address, error=str(exc), error_type=type(exc).__name__)
            raise ValueError(f"Could not geocode address: {address}") from exc

        if not results:
            raise ValueError(f"Could not geocode address: {address}")
        match = results[0]
        logger.info("Geocoded address", address=address, found=match.get("display_name"))
        return float(match["lat"]), float(match["lon"])

    def route(
        self,
        start: Coordinate,
        end: Coordinate,
        travel_mode: str = "driving",
        via_points: Sequence[Coordinate] = (),
    ) -> List[Coordinate]:
        if travel_mode == DIRECT_MODE:
            return direct_line(start, end)

        points = [start, *via_points, end]
        if travel_mode == HIKE_MODE:
            coordinates = self._graphhopper(points)
            if coordinates:
                return coordinates
            travel_mode = "foot"

        coordinates = self._osrm(points, OSRM_PROFILES.get(travel_mode, travel_mode))
        if coordinates:
            return coordinates
        logger.warning("Routing failed, using straight line", travel_mode=travel_mode, start=start, end=end)
        return [start, end]

    def _osrm(self, points: Sequence[Coordinate], profile: str) -> Optional[List[Coordinate]]:
        url = OSRM_URL.format(
            profile=profile,
            coordinates=";".join(f"{lon},{lat}" for lat, lon in points),
        )
        data = self._request(url, {"overview": "full", "geometries": "geojson"}, service="osrm")
        try:
            coordinates = data["routes"][0]["geometry"]["coordinates"] if data else None
        except (KeyError, IndexError, TypeError):
            logger.exception("Unexpected OSRM response", profile=profile)
            return None
        if not coordinates:
            return None
        logger.info("Built route", service="osrm", profile=profile, points=len(coordinates))
        return [(float(lat), float(lon)) for lon, lat in coordinates]

    def _graphhopper(self, points: Sequence[Coordinate]) -> Optional[List[Coordinate]]:
        params = {
            "point": [f"{lat},{lon}" for lat, lon in points],
            "profile": "foot",
            "points_encoded": "false",
            "key": self.graphhopper_key,
        }
        data = self._request(GRAPHHOPPER_URL, params, service="graphhopper")
        try:
            coordinates = data["paths"][0]["points"]["coordinates"] if data else None
        except (KeyError, IndexError, TypeError):
            logger.exception("Unexpected GraphHopper response")
            return None
        if not coordinates:
            return None
        logger.info("Built route", service="graphhopper", profile="foot", points=len(coordinates))
        return [(float(point[1]), float(point[0])) for point in coordinates]

    def _request(self, url: str, params: Dict[str, Any], service: str) -> Any:
        try:
            return fetch_json(url, params=params, timeout=self.timeout)
        except httpx.RequestError as e:
            logger.exception("Network error fetching route", service=service, error=str(e), error_type=type(e).__name__)
        except httpx.HTTPStatusError as e:
            logger.exception(
                "HTTP error fetching route",
                service=service,
                status_code=e.response.status_code,
                error=str(e),
                error_type=type(e).__name__,
            )
        except ValueError as e:
            logger.exception("Invalid routing response", service=service, error=str(e), error_type=type(e).__name__)
        return None
