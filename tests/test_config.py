"""Tests for journey configuration loading and leg construction."""

import json
from unittest.mock import Mock

import pytest

from journeymap.config import (
    AnimationConfig,
    JourneyConfig,
    StopConfig,
    build_legs,
    load_config,
    render_settings,
)
from journeymap.routing import Router

JOURNEY = {
    "title": "Alpine Loop",
    "date": "June 2024",
    "tileLayer": "terrain",
    "animation": {"lineColor": "#123456", "lineWidth": 3, "duration": 12, "fps": 24, "maxZoom": 18},
    "start": {"coordinates": [48.137, 11.575], "label": "Munich", "zoomLevel": 12},
    "stops": [
        {"address": "Garmisch-Partenkirchen", "label": "Garmisch", "icon": "car", "travelMode": "driving", "pause": 0},
        {
            "coordinates": [47.421, 10.985],
            "label": "Zugspitze",
            "icon": "backpacker",
            "travelMode": "hike",
            "viaPoints": [[47.45, 11.02]],
        },
    ],
}


class TestStopConfig:
    """Test parsing of a single stop."""

    def test_reads_camel_case_keys(self):
        """Should accept the camelCase keys used in journey files."""
        stop = StopConfig.from_mapping(JOURNEY["stops"][1])

        assert stop.coordinates == (47.421, 10.985)
        assert stop.travel_mode == "hike"
        assert stop.via_points == [(47.45, 11.02)]
        assert stop.pause == 0.5

    def test_reads_snake_case_keys(self):
        """Should accept snake_case spellings too."""
        stop = StopConfig.from_mapping({"coordinates": {"lat": 1, "lng": 2}, "travel_mode": "walking", "zoom_level": 9})

        assert stop.coordinates == (1.0, 2.0)
        assert stop.travel_mode == "walking"
        assert stop.zoom_level == 9.0

    def test_keeps_zero_pause(self):
        """Should honour an explicit zero pause instead of the default."""
        assert StopConfig.from_mapping(JOURNEY["stops"][0]).pause == 0.0

    def test_path_supplies_coordinates(self):
        """Should use the last point of a precomputed path as the stop's location."""
        stop = StopConfig.from_mapping({"label": "Hut", "path": [[47.0, 11.0], [47.1, 11.1]]})

        assert stop.coordinates == (47.1, 11.1)
        assert stop.path == [(47.0, 11.0), (47.1, 11.1)]

    def test_requires_a_location(self):
        """Should reject a stop without address, coordinates or path."""
        with pytest.raises(ValueError, match="needs an address"):
            StopConfig.from_mapping({"label": "Nowhere"})

    def test_rejects_unknown_travel_mode(self):
        """Should reject travel modes the router does not know."""
        with pytest.raises(ValueError, match="Unknown travel mode"):
            StopConfig.from_mapping({"coordinates": [1, 2], "travelMode": "teleport"})


class TestJourneyConfig:
    """Test parsing of a whole journey."""

    def test_parses_journey(self):
        """Should read titles, animation settings and stops."""
        config = JourneyConfig.from_mapping(JOURNEY)

        assert config.title == "Alpine Loop"
        assert config.animation.line_color == "#123456"
        assert config.animation.route_seconds == 12.0
        assert config.animation.frame_rate == 24
        assert config.start.zoom_level == 12.0
        assert config.final_destination == "Zugspitze"

    def test_tile_layer_caps_max_zoom(self):
        """Should not zoom deeper than the tile layer serves."""
        config = JourneyConfig.from_mapping(JOURNEY)

        assert config.max_zoom == 17

    def test_defaults(self):
        """Should fall back to the standard look and timing."""
        config = JourneyConfig.from_mapping({"start": {"coordinates": [0, 0]}, "stops": [{"coordinates": [0, 1]}]})

        assert config.title == "ADVENTURE"
        assert config.animation == AnimationConfig()
        assert config.animation.width == 1280
        assert config.max_zoom == 15.0
        assert config.final_destination == "DESTINATION"

    def test_requires_stops(self):
        """Should reject a journey without stops."""
        with pytest.raises(ValueError, match="At least one stop"):
            JourneyConfig.from_mapping({"start": {"coordinates": [0, 0]}, "stops": []})

    def test_rejects_unknown_tile_layer(self):
        """Should name the available tile layers."""
        with pytest.raises(ValueError, match="Unknown tile layer"):
            JourneyConfig.from_mapping({**JOURNEY, "tileLayer": "satellite"})


class TestLoadConfig:
    """Test loading journey files from disk."""

    def test_loads_json(self, tmp_path):
        """Should parse a JSON journey file."""
        path = tmp_path / "journey.json"
        path.write_text(json.dumps(JOURNEY), encoding="utf8")

        assert load_config(path).title == "Alpine Loop"

    def test_loads_yaml(self, tmp_path):
        """Should parse a YAML journey file."""
        path = tmp_path / "journey.yaml"
        path.write_text(
            "title: Lakes\n"
            "start:\n  coordinates: [47.0, 11.0]\n  label: Home\n"
            "stops:\n  - coordinates: [47.1, 11.2]\n    label: Lake\n    travelMode: direct\n",
            encoding="utf8",
        )

        config = load_config(path)

        assert config.title == "Lakes"
        assert config.stops[0].travel_mode == "direct"

    def test_missing_file(self, tmp_path):
        """Should raise FileNotFoundError for a missing file."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.json")

    def test_top_level_must_be_mapping(self, tmp_path):
        """Should reject a file whose top level is not a mapping."""
        path = tmp_path / "journey.json"
        path.write_text("[1, 2, 3]", encoding="utf8")

        with pytest.raises(ValueError, match="mapping"):
            load_config(path)


class TestBuildLegs:
    """Test turning stops into route legs through the router."""

    def test_builds_legs_through_router(self):
        """Should geocode addresses, route each leg and chain the labels."""
        router = Mock(spec=Router)
        router.geocode.return_value = (47.49, 11.09)
        router.route.side_effect = [
            [(48.137, 11.575), (47.8, 11.3), (47.49, 11.09)],
            [(47.49, 11.09), (47.45, 11.02), (47.421, 10.985)],
        ]
        config = JourneyConfig.from_mapping(JOURNEY)

        legs = build_legs(config, router)

        router.geocode.assert_called_once_with("Garmisch-Partenkirchen")
        assert router.route.call_args_list[0].args == ((48.137, 11.575), (47.49, 11.09), "driving", [])
        assert router.route.call_args_list[1].args == ((47.49, 11.09), (47.421, 10.985), "hike", [(47.45, 11.02)])
        assert [(leg.from_label, leg.to_label) for leg in legs] == [("Munich", "Garmisch"), ("Garmisch", "Zugspitze")]
        assert legs[0].pause == 0.0
        assert legs[1].icon == "backpacker"
        assert legs[1].travel_mode == "hike"

    def test_precomputed_path_skips_router(self):
        """Should use a stop's path as is without routing."""
        router = Mock(spec=Router)
        config = JourneyConfig.from_mapping(
            {
                "start": {"coordinates": [47.0, 11.0]},
                "stops": [{"label": "Hut", "path": [[47.0, 11.0], [47.05, 11.05], [47.1, 11.1]]}],
            }
        )

        legs = build_legs(config, router)

        router.route.assert_not_called()
        assert len(legs[0].coordinates) == 3
        assert legs[0].from_label == "START"

    def test_render_settings_use_configured_look(self):
        """Should carry title, colours and the capped zoom into the render settings."""
        router = Mock(spec=Router)
        router.geocode.return_value = (47.49, 11.09)
        router.route.side_effect = [
            [(48.137, 11.575), (47.49, 11.09)],
            [(47.49, 11.09), (47.421, 10.985)],
        ]
        config = JourneyConfig.from_mapping(JOURNEY)
        legs = build_legs(config, router)

        settings = render_settings(config, legs)

        assert settings.title == "Alpine Loop"
        assert settings.line_color == "#123456"
        assert settings.close_zoom == 12.0
        assert settings.final_destination == "Zugspitze"
        assert max(settings.zoom_levels) <= 17
