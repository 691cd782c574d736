"""matplotlib drawing surface for journey animations.

The axes are laid out in Web Mercator world pixels at zoom 0 so that a view
(centre and zoom) maps onto plain axis limits. Overlays (cards and the travel
icon) are figure-level artists drawn above the map.
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.colors import to_rgba
from matplotlib.figure import Figure
from matplotlib.offsetbox import AnnotationBbox, OffsetImage
import numpy as np

from .errors import SurfaceError
from .geometry import (
    Bounds,
    Coordinate,
    Size,
    SURFACE_MAX_ZOOM,
    SURFACE_MIN_ZOOM,
    bounds_zoom,
    project,
)
from .icons import ICON_CONFIG, load_icon, transform_icon
from .surface import MapSurface, OverlaySink

DPI = 100
# Share of the remaining distance covered per call when the surface animates itself.
NATIVE_EASING = 0.5

MARKER_RADIUS_PX = 10
MARKER_EDGE = "#3d2817"
LABEL_OFFSET_PT = -14

CARD_STYLES: Dict[str, dict] = {
    "title": dict(x=0.5, y=0.5, fontsize=40, fontweight="bold", ha="center", va="center"),
    "stamp": dict(x=0.02, y=0.97, fontsize=14, fontweight="bold", ha="left", va="top"),
    "destination": dict(x=0.5, y=0.12, fontsize=22, fontweight="bold", ha="center", va="bottom"),
}
CARD_BOX_ALPHA = 0.7


class MatplotlibCanvas(MapSurface, OverlaySink):
    """Render the map, its layers and overlays into a matplotlib figure."""

    def __init__(
        self,
        width: int = 1280,
        height: int = 720,
        interactive: bool = False,
        icon_paths: Optional[Dict[str, Path]] = None,
    ) -> None:
        self.width = width
        self.height = height
        figsize = (width / DPI, height / DPI)
        if interactive:
            self.figure = plt.figure(figsize=figsize, dpi=DPI)
        else:
            self.figure = Figure(figsize=figsize, dpi=DPI)
            FigureCanvasAgg(self.figure)
        self.figure.patch.set_facecolor("#f2efe6")

        self.ax = self.figure.add_axes([0.0, 0.0, 1.0, 1.0])
        self.ax.set_facecolor("#e8e4d8")
        self.ax.set_xticks([])
        self.ax.set_yticks([])
        for spine in self.ax.spines.values():
            spine.set_visible(False)

        self.center: Optional[Coordinate] = None
        self.zoom: Optional[float] = None

        self._paths: Dict[str, object] = {}
        self._markers: Dict[str, object] = {}
        self._labels: Dict[str, object] = {}
        self._cards: Dict[str, object] = {}
        self._icons: Dict[str, Tuple[OffsetImage, AnnotationBbox]] = {}
        icon_paths = icon_paths or {}
        self._sprites = {kind: load_icon(kind, icon_paths.get(kind)) for kind in ICON_CONFIG}

    # ------------------------------------------------------------------
    # Camera
    # ------------------------------------------------------------------

    def set_view(self, center: Coordinate, zoom: float, animate: bool = False) -> None:
        zoom = max(SURFACE_MIN_ZOOM, min(SURFACE_MAX_ZOOM, zoom))
        if animate and self.center is not None and self.zoom is not None:
            center = (
                self.center[0] + (center[0] - self.center[0]) * NATIVE_EASING,
                self.center[1] + (center[1] - self.center[1]) * NATIVE_EASING,
            )
            zoom = self.zoom + (zoom - self.zoom) * NATIVE_EASING
        self.center = center
        self.zoom = zoom

        x, y = project(center, 0.0)
        half_width = self.width / 2.0 / 2.0**zoom
        half_height = self.height / 2.0 / 2.0**zoom
        self.ax.set_xlim(x - half_width, x + half_width)
        # World y grows southwards, so the axis is inverted.
        self.ax.set_ylim(y + half_height, y - half_height)

    def fit_bounds(self, bounds: Bounds, padding: Size) -> None:
        zoom = bounds_zoom(bounds, (self.width, self.height), (2.0 * padding[0], 2.0 * padding[1]))
        self.set_view(bounds.center, zoom)

    def to_screen(self, coordinate: Coordinate) -> Tuple[float, float]:
        if self.center is None or self.zoom is None:
            raise SurfaceError("The map view has not been set yet.")
        left, _ = self.ax.get_xlim()
        _, top = self.ax.get_ylim()
        x, y = project(coordinate, 0.0)
        scale = 2.0**self.zoom
        return (x - left) * scale, (y - top) * scale

    def _from_screen(self, x: float, y: float) -> Tuple[float, float]:
        left, _ = self.ax.get_xlim()
        _, top = self.ax.get_ylim()
        scale = 2.0**self.zoom
        return left + x / scale, top + y / scale

    # ------------------------------------------------------------------
    # Map layers
    # ------------------------------------------------------------------

    def draw_path(self, layer_id: str, coordinates: Sequence[Coordinate], color: str, width: float) -> None:
        points = [project(coord, 0.0) for coord in coordinates]
        xs = [x for x, _ in points]
        ys = [y for _, y in points]
        line = self._paths.get(layer_id)
        if line is None:
            line, = self.ax.plot(
                xs,
                ys,
                color=color,
                linewidth=width,
                linestyle=(0, (2.5, 2.0)),
                solid_capstyle="round",
                dash_capstyle="round",
                zorder=2,
            )
            self._paths[layer_id] = line
        else:
            line.set_data(xs, ys)
            line.set_color(color)
            line.set_linewidth(width)

    def place_marker(self, layer_id: str, coordinate: Coordinate, color: str, opacity: float) -> None:
        x, y = project(coordinate, 0.0)
        marker = self._markers.get(layer_id)
        if marker is None:
            marker, = self.ax.plot(
                [x],
                [y],
                marker="o",
                markersize=2 * MARKER_RADIUS_PX * 72.0 / DPI,
                markeredgewidth=2,
                linestyle="none",
                zorder=3,
            )
            self._markers[layer_id] = marker
        marker.set_data([x], [y])
        marker.set_markerfacecolor(to_rgba(color, opacity))
        marker.set_markeredgecolor(to_rgba(MARKER_EDGE, opacity))
        marker.set_visible(opacity > 0)

    def place_label(self, layer_id: str, coordinate: Coordinate, text: str, opacity: float) -> None:
        xy = project(coordinate, 0.0)
        label = self._labels.get(layer_id)
        if label is None:
            label = self.ax.annotate(
                text,
                xy=xy,
                xytext=(0, LABEL_OFFSET_PT),
                textcoords="offset points",
                fontsize=10,
                fontweight="bold",
                color="#3d2817",
                ha="center",
                va="top",
                annotation_clip=False,
                zorder=4,
            )
            self._labels[layer_id] = label
        label.xy = xy
        label.set_text(text)
        label.set_alpha(opacity)
        label.set_visible(opacity > 0)

    # ------------------------------------------------------------------
    # Overlays
    # ------------------------------------------------------------------

    def show_card(self, card: str, text: str, opacity: float) -> None:
        artist = self._cards.get(card)
        if artist is None:
            style = dict(CARD_STYLES.get(card, CARD_STYLES["destination"]))
            x, y = style.pop("x"), style.pop("y")
            artist = self.figure.text(
                x,
                y,
                text,
                color="#ffffff",
                multialignment="center",
                bbox=dict(facecolor="#3d2817", alpha=CARD_BOX_ALPHA, boxstyle="round,pad=0.6"),
                zorder=10,
                **style,
            )
            self._cards[card] = artist
        artist.set_text(text)
        artist.set_alpha(opacity)
        artist.get_bbox_patch().set_alpha(CARD_BOX_ALPHA * opacity)
        artist.set_visible(opacity > 0)

    def place_icon(self, kind: str, x: float, y: float, size: float, angle: float, mirror: bool) -> None:
        sprite = self._sprites[kind]
        image = transform_icon(sprite, angle, mirror)
        # OffsetImage sizes images in points; scale so the sprite spans ``size`` screen pixels.
        scale = 72.0 / DPI * size / sprite.width
        xy = self._from_screen(x, y)
        entry = self._icons.get(kind)
        if entry is None:
            box = OffsetImage(image, zoom=scale)
            artist = AnnotationBbox(box, xy, frameon=False, zorder=5, annotation_clip=False)
            self.ax.add_artist(artist)
            self._icons[kind] = (box, artist)
        else:
            box, artist = entry
            box.set_data(image)
            box.set_zoom(scale)
            artist.xybox = xy
            artist.xy = xy
        artist.set_visible(True)

    def hide_icon(self, kind: str) -> None:
        entry = self._icons.get(kind)
        if entry is not None:
            entry[1].set_visible(False)

    # ------------------------------------------------------------------
    # Capture
    # ------------------------------------------------------------------

    def capture(self) -> np.ndarray:
        """Draw the figure and return it as an ``(height, width, 3)`` RGB array."""

        self.figure.canvas.draw()
        image = np.asarray(self.figure.canvas.buffer_rgba())
        return image[:, :, :3].copy()

    def close(self) -> None:
        plt.close(self.figure)
