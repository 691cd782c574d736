"""Exceptions shared across the animation engine."""
from __future__ import annotations


class RouteError(ValueError):
    """Raised when a route is malformed (no legs, empty legs, invalid coordinates)."""


class SurfaceError(RuntimeError):
    """Raised by a rendering surface when a single draw or projection call fails."""
