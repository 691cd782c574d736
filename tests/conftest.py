from typing import Callable, Dict, List, Optional, Sequence, Tuple

import matplotlib
import pytest
import structlog

matplotlib.use("Agg")

from journeymap.errors import SurfaceError  # noqa: E402
from journeymap.geometry import Bounds, Coordinate, Size, bounds_zoom, project  # noqa: E402
from journeymap.logging import configure_logging  # noqa: E402
from journeymap.state import RouteLeg  # noqa: E402
from journeymap.surface import MapSurface, OverlaySink  # noqa: E402

VIEWPORT = (1280, 720)


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with our structured logging."""
    configure_logging(level="INFO", format_json=False)


def pytest_runtest_logreport(report: pytest.TestReport) -> None:
    """Hook to format test reports with structlog."""
    if report.when == "call" and report.outcome != "failed":
        logger = structlog.get_logger("pytest")
        logger.debug("Test completed", test_name=report.nodeid, outcome=report.outcome)


class RecordingSurface(MapSurface, OverlaySink):
    """In-memory surface and overlay sink that remembers the latest visual state."""

    def __init__(self, width: int = VIEWPORT[0], height: int = VIEWPORT[1]) -> None:
        self.width = width
        self.height = height
        self.center: Optional[Coordinate] = None
        self.zoom: Optional[float] = None
        self.fail_to_screen = False

        self.views: List[Tuple[Coordinate, float, bool]] = []
        self.fitted: List[Tuple[Bounds, Size]] = []
        self.paths: Dict[str, List[Coordinate]] = {}
        self.markers: Dict[str, Tuple[Coordinate, str, float]] = {}
        self.labels: Dict[str, Tuple[Coordinate, str, float]] = {}
        self.cards: Dict[str, Tuple[str, float]] = {}
        self.icons: Dict[str, Optional[Tuple[float, float, float, float, bool]]] = {}
        self.marker_history: List[Tuple[str, float]] = []

    def set_view(self, center: Coordinate, zoom: float, animate: bool = False) -> None:
        self.center, self.zoom = center, zoom
        self.views.append((center, zoom, animate))

    def fit_bounds(self, bounds: Bounds, padding: Size) -> None:
        self.fitted.append((bounds, padding))
        self.center = bounds.center
        self.zoom = bounds_zoom(bounds, (self.width, self.height), (2 * padding[0], 2 * padding[1]))

    def draw_path(self, layer_id: str, coordinates: Sequence[Coordinate], color: str, width: float) -> None:
        self.paths[layer_id] = list(coordinates)

    def place_marker(self, layer_id: str, coordinate: Coordinate, color: str, opacity: float) -> None:
        self.markers[layer_id] = (coordinate, color, opacity)
        self.marker_history.append((layer_id, opacity))

    def place_label(self, layer_id: str, coordinate: Coordinate, text: str, opacity: float) -> None:
        self.labels[layer_id] = (coordinate, text, opacity)

    def to_screen(self, coordinate: Coordinate) -> Tuple[float, float]:
        if self.fail_to_screen or self.center is None or self.zoom is None:
            raise SurfaceError("projection unavailable")
        x, y = project(coordinate, self.zoom)
        center_x, center_y = project(self.center, self.zoom)
        return x - center_x + self.width / 2.0, y - center_y + self.height / 2.0

    def show_card(self, card: str, text: str, opacity: float) -> None:
        self.cards[card] = (text, opacity)

    def place_icon(self, kind: str, x: float, y: float, size: float, angle: float, mirror: bool) -> None:
        self.icons[kind] = (x, y, size, angle, mirror)

    def hide_icon(self, kind: str) -> None:
        self.icons[kind] = None

    def visible_icons(self) -> List[str]:
        return [kind for kind, placed in self.icons.items() if placed is not None]


def straight_leg(start: Coordinate, end: Coordinate, points: int = 10, **kwargs) -> RouteLeg:
    """Leg of ``points`` evenly spaced coordinates from ``start`` to ``end``."""
    steps = max(points - 1, 1)
    coordinates = [
        (start[0] + (end[0] - start[0]) * i / steps, start[1] + (end[1] - start[1]) * i / steps)
        for i in range(points)
    ]
    return RouteLeg(coordinates=tuple(coordinates), **kwargs)


@pytest.fixture
def surface() -> RecordingSurface:
    return RecordingSurface()


@pytest.fixture
def make_leg() -> Callable[..., RouteLeg]:
    return straight_leg


@pytest.fixture
def three_legs() -> List[RouteLeg]:
    """Three equal legs heading east, north, then east again."""
    return [
        straight_leg((48.0, 11.0), (48.0, 11.2), 20, icon="car", from_label="A", to_label="B", pause=0.5),
        straight_leg((48.0, 11.2), (48.2, 11.2), 20, icon="car", from_label="B", to_label="C", pause=1.0),
        straight_leg((48.2, 11.2), (48.2, 11.4), 20, icon="bike", from_label="C", to_label="D", pause=0.5),
    ]
