"""Interfaces the animation core draws through.

The core only ever issues idempotent "make this layer look like X" calls and
reads back nothing but the geo-to-screen projection.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence, Tuple

from .errors import SurfaceError
from .geometry import Bounds, Coordinate, Size

__all__ = ["MapSurface", "OverlaySink", "SurfaceError"]


class MapSurface(ABC):
    """A slippy-map style surface addressed in lat/lon and Web Mercator zoom."""

    @abstractmethod
    def set_view(self, center: Coordinate, zoom: float, animate: bool = False) -> None:
        """Move the camera. ``animate`` lets the surface apply its own easing."""

    @abstractmethod
    def fit_bounds(self, bounds: Bounds, padding: Size) -> None:
        """Frame ``bounds`` with ``padding`` pixels around it, without animation."""

    @abstractmethod
    def draw_path(self, layer_id: str, coordinates: Sequence[Coordinate], color: str, width: float) -> None:
        """Create or replace the polyline ``layer_id``."""

    @abstractmethod
    def place_marker(self, layer_id: str, coordinate: Coordinate, color: str, opacity: float) -> None:
        """Create or update the circular marker ``layer_id``."""

    @abstractmethod
    def place_label(self, layer_id: str, coordinate: Coordinate, text: str, opacity: float) -> None:
        """Create or update the text label ``layer_id`` anchored under ``coordinate``."""

    @abstractmethod
    def to_screen(self, coordinate: Coordinate) -> Tuple[float, float]:
        """Project ``coordinate`` to container pixels (origin top-left).

        Raises :class:`SurfaceError` when the projection is unavailable.
        """


class OverlaySink(ABC):
    """Screen-space overlays drawn above the map: cards and the travel icon."""

    @abstractmethod
    def show_card(self, card: str, text: str, opacity: float) -> None:
        """Set the text and opacity of the ``title``, ``stamp`` or ``destination`` card."""

    @abstractmethod
    def place_icon(self, kind: str, x: float, y: float, size: float, angle: float, mirror: bool) -> None:
        """Show icon ``kind`` centred at ``(x, y)``, mirrored first then rotated by ``angle``."""

    @abstractmethod
    def hide_icon(self, kind: str) -> None:
        """Hide icon ``kind``."""
