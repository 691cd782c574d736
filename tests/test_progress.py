"""Tests for progress thresholds, zoom keyframes and segment lookup."""

import pytest

from journeymap.errors import RouteError
from journeymap.progress import (
    Keyframe,
    interpolated_zoom,
    keyframes,
    segment_info,
    smoothstep,
    thresholds,
    zoom_levels,
)
from journeymap.state import full_path

from conftest import VIEWPORT, straight_leg


class TestThresholds:
    """Test conversion of legs into cumulative progress shares."""

    def test_weights_legs_by_coordinate_count(self):
        """Should give each leg a share proportional to its number of points."""
        legs = [straight_leg((0.0, 0.0), (0.0, 1.0), 30), straight_leg((0.0, 1.0), (0.0, 2.0), 10)]

        assert thresholds(legs) == [0.75, 1.0]

    def test_last_threshold_is_exactly_one(self):
        """Should end at exactly 1 so progress 1 always lands in the final leg."""
        legs = [straight_leg((0.0, 0.0), (0.0, 1.0), n) for n in (3, 7, 11)]

        assert thresholds(legs)[-1] == 1.0

    def test_rejects_empty_route(self):
        """Should refuse to compute thresholds without legs."""
        with pytest.raises(RouteError):
            thresholds([])


class TestSegmentInfo:
    """Test mapping of global progress to a leg and local progress."""

    def test_boundary_belongs_to_next_leg(self):
        """Should switch legs at the first threshold strictly above progress."""
        info = segment_info(0.5, [0.5, 1.0])

        assert info.leg == 1
        assert info.start == 0.5
        assert info.local_progress == 0.0

    def test_progress_past_end_clamps_to_last_leg(self):
        """Should stay on the final leg with local progress 1."""
        info = segment_info(1.2, [0.25, 1.0])

        assert info.leg == 1
        assert info.local_progress == 1.0

    def test_zero_width_leg_reports_complete(self):
        """Should treat a leg with no share of progress as already finished."""
        info = segment_info(1.0, [0.5, 1.0, 1.0])

        assert info.leg == 2
        assert info.start == 1.0
        assert info.local_progress == 1.0

    def test_skips_leading_zero_width_leg(self):
        """Should move straight past a leg whose share ends at 0."""
        info = segment_info(0.4, [0.0, 0.5])

        assert info.leg == 1
        assert info.local_progress == pytest.approx(0.8)

    def test_sweep_visits_every_leg_in_order(self):
        """Should cover each leg exactly once as progress sweeps from 0 to 1."""
        legs = [straight_leg((0.0, 0.0), (0.0, 1.0), n) for n in (5, 12, 3, 20)]
        leg_thresholds = thresholds(legs)

        visited = []
        for step in range(1001):
            info = segment_info(step / 1000, leg_thresholds)
            assert 0.0 <= info.local_progress <= 1.0
            if not visited or visited[-1] != info.leg:
                visited.append(info.leg)

        assert visited == [0, 1, 2, 3]


class TestZoomLevels:
    """Test per-leg target zoom computation."""

    def test_explicit_zoom_kept_and_auto_zoom_clamped(self):
        """Should keep an explicit zoom of 10 and clamp a tiny leg's auto zoom to the maximum."""
        legs = [
            straight_leg((48.0, 11.0), (48.5, 11.5), 10, zoom_level=10),
            straight_leg((48.5, 11.5), (48.5, 11.5005), 5),
        ]

        levels = zoom_levels(legs, full_path(legs), VIEWPORT, max_zoom=15)

        assert levels == [10.0, 15.0]

    def test_auto_zoom_never_wider_than_default_close_zoom(self):
        """Should use the close zoom for a leg too long to fit at that zoom."""
        legs = [straight_leg((40.0, 0.0), (50.0, 10.0), 10)]

        levels = zoom_levels(legs, full_path(legs), VIEWPORT, max_zoom=15, default_close_zoom=13)

        assert levels == [13.0]

    def test_explicit_zoom_capped_at_max_zoom(self):
        """Should never request a zoom deeper than the imagery supports."""
        legs = [straight_leg((48.0, 11.0), (48.1, 11.1), 10, zoom_level=18)]

        assert zoom_levels(legs, full_path(legs), VIEWPORT, max_zoom=15) == [15.0]


class TestInterpolatedZoom:
    """Test smooth zoom blending between keyframes."""

    def test_keyframes_start_with_first_leg_zoom(self):
        """Should prepend a keyframe at progress 0 using the first leg's zoom."""
        frames = keyframes([12.0, 14.0], [0.4, 1.0])

        assert frames == [Keyframe(0.0, 12.0), Keyframe(0.4, 12.0), Keyframe(1.0, 14.0)]

    def test_equals_keyframe_zoom_at_each_threshold(self):
        """Should be continuous at every keyframe boundary."""
        frames = keyframes([12.0, 14.0, 10.0], [0.3, 0.6, 1.0])

        for frame in frames:
            assert interpolated_zoom(frame.progress, frames) == frame.zoom

    def test_midpoint_uses_smoothstep(self):
        """Should blend halfway at the midpoint of a keyframe pair."""
        frames = [Keyframe(0.0, 10.0), Keyframe(0.5, 10.0), Keyframe(1.0, 14.0)]

        assert interpolated_zoom(0.75, frames) == pytest.approx(12.0)
        assert interpolated_zoom(0.6, frames) == pytest.approx(10.0 + 4.0 * smoothstep(0.2))

    def test_monotonic_between_keyframes(self):
        """Should change in one direction only between two differing keyframes."""
        frames = [Keyframe(0.0, 14.0), Keyframe(0.2, 14.0), Keyframe(1.0, 9.0)]

        values = [interpolated_zoom(0.2 + 0.8 * step / 200, frames) for step in range(201)]

        assert all(later <= earlier for earlier, later in zip(values, values[1:]))
        assert values[0] == 14.0
        assert values[-1] == 9.0

    def test_outside_keyframes_holds_end_values(self):
        """Should hold the first and last zooms outside the keyframe range."""
        frames = [Keyframe(0.0, 11.0), Keyframe(1.0, 13.0)]

        assert interpolated_zoom(-0.5, frames) == 11.0
        assert interpolated_zoom(1.5, frames) == 13.0
