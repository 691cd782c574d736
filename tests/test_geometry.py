"""Tests for distances, bounds and Web Mercator zoom fitting."""

import pytest

from journeymap.geometry import (
    Bounds,
    bounds_zoom,
    haversine_km,
    path_length_km,
    project,
    unproject,
)


class TestDistances:
    """Test great-circle distance helpers."""

    def test_one_degree_of_longitude_at_equator(self):
        """Should measure about 111.2 km per degree along the equator."""
        assert haversine_km((0.0, 0.0), (0.0, 1.0)) == pytest.approx(111.195, abs=0.01)

    def test_path_length_sums_segments(self):
        """Should add up consecutive segment lengths."""
        points = [(0.0, 0.0), (0.0, 1.0), (0.0, 2.0)]

        assert path_length_km(points) == pytest.approx(2 * haversine_km(points[0], points[1]))

    def test_single_point_path_has_no_length(self):
        """Should return zero for a path with one point."""
        assert path_length_km([(10.0, 10.0)]) == 0.0


class TestBounds:
    """Test bounding box construction."""

    def test_builds_box_around_points(self):
        """Should span the extreme latitudes and longitudes."""
        bounds = Bounds.from_points([(48.0, 11.5), (47.5, 12.0), (48.2, 11.0)])

        assert bounds == Bounds(south=47.5, west=11.0, north=48.2, east=12.0)
        assert bounds.center == pytest.approx((47.85, 11.5))

    def test_rejects_empty_points(self):
        """Should refuse to build bounds from nothing."""
        with pytest.raises(ValueError):
            Bounds.from_points([])


class TestProjection:
    """Test Web Mercator projection."""

    def test_origin_projects_to_world_centre(self):
        """Should place (0, 0) at the centre of the zoom 0 world tile."""
        assert project((0.0, 0.0), 0.0) == pytest.approx((128.0, 128.0))

    def test_each_zoom_doubles_pixel_coordinates(self):
        """Should scale world pixels by two per zoom level."""
        x0, y0 = project((48.1, 11.5), 0.0)
        x3, y3 = project((48.1, 11.5), 3.0)

        assert (x3, y3) == pytest.approx((8 * x0, 8 * y0))

    def test_unproject_inverts_project(self):
        """Should recover the original coordinate."""
        assert unproject(project((48.1, 11.5), 12.0), 12.0) == pytest.approx((48.1, 11.5))


class TestBoundsZoom:
    """Test the zoom that fits a bounding box into a viewport."""

    def test_floors_to_whole_zoom(self):
        """Should pick the deepest whole zoom at which the box still fits."""
        bounds = Bounds(south=0.0, west=0.0, north=0.0, east=0.1)

        assert bounds_zoom(bounds, (1280, 720)) == 14.0

    def test_padding_reduces_zoom(self):
        """Should zoom out when padding leaves too little room."""
        bounds = Bounds(south=0.0, west=0.0, north=0.0, east=0.1)

        assert bounds_zoom(bounds, (1280, 720), (400, 0)) == 13.0

    def test_clamps_to_zoom_range(self):
        """Should stay within the surface's zoom range."""
        bounds = Bounds(south=0.0, west=0.0, north=0.0, east=0.1)

        assert bounds_zoom(bounds, (1280, 720), max_zoom=12.0) == 12.0

    def test_single_point_uses_max_zoom(self):
        """Should zoom fully in on a box with no extent."""
        bounds = Bounds.from_points([(48.0, 11.0)])

        assert bounds_zoom(bounds, (1280, 720), max_zoom=18.0) == 18.0
