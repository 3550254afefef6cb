"""Tests for map session initialisation, guards and layer helpers."""

from __future__ import annotations

import logging

import pytest

from osm_map import config
from osm_map.layers import NOT_INITIALIZED_MESSAGE
from osm_map.models import BoundingBox, MapConfig
from osm_map.session import MapSession


def test_initialize_uses_config_defaults(engine):
    session = MapSession(engine).initialize()

    surface = engine.surfaces[0]
    assert session.is_initialized
    assert surface.container_id == config.DEFAULT_CONTAINER_ID
    assert surface.center == (config.DEFAULT_LAT, config.DEFAULT_LNG)
    assert surface.zoom == config.DEFAULT_ZOOM
    assert surface.tile_layers[0].url == config.TILE_URL
    assert surface.tile_layers[0].attribution == config.ATTRIBUTION


def test_overrides_merge_over_defaults(engine):
    session = MapSession(engine, container_id="routes", selector_icon="X")
    assert session.config.container_id == "routes"
    assert session.config.selector_icon == "X"
    assert session.config.lat == config.DEFAULT_LAT
    assert MapConfig().container_id == config.DEFAULT_CONTAINER_ID


def test_initialize_parses_numbers_and_falls_back(engine):
    session = MapSession(engine).initialize(lat="10.5", lng="bogus", zoom="12")

    assert session.config.lat == 10.5
    assert session.config.lng == config.DEFAULT_LNG
    assert session.config.zoom == 12
    assert engine.surfaces[0].center == (10.5, config.DEFAULT_LNG)


def test_zero_latitude_is_a_valid_value(engine):
    session = MapSession(engine).initialize(lat=0, lng=0)
    assert engine.surfaces[0].center == (0.0, 0.0)
    assert session.config.lat == 0.0


def test_initialize_creates_surface_once(engine):
    session = MapSession(engine).initialize(container_id="first")
    session.initialize(lat=1.0, lng=2.0, zoom=9, container_id="second")

    assert len(engine.surfaces) == 1
    surface = engine.surfaces[0]
    assert surface.container_id == "first"
    assert surface.views == [((1.0, 2.0), 9)]


@pytest.mark.parametrize("zoom", [3, 7, 15])
def test_recenter_keeps_zoom_when_omitted(engine, zoom):
    session = MapSession(engine).initialize(lat=5.0, lng=5.0, zoom=zoom)

    session.recenter(10.48, -66.9)

    surface = engine.surfaces[0]
    assert surface.get_center() == (10.48, -66.9)
    assert surface.get_zoom() == zoom


def test_recenter_with_zoom_and_invalid_values(engine, caplog):
    session = MapSession(engine).initialize()
    session.recenter(1.0, 2.0, zoom=14)
    assert engine.surfaces[0].get_zoom() == 14

    with caplog.at_level(logging.WARNING):
        session.recenter(None, 2.0)
    assert engine.surfaces[0].get_center() == (1.0, 2.0)
    assert "recenter requires numeric" in caplog.text


def test_operations_before_initialize_are_guarded(engine, caplog):
    session = MapSession(engine)
    with caplog.at_level(logging.WARNING):
        assert session.recenter(1.0, 1.0) is session
        assert session.setup_search() is session
        assert session.setup_selector() is session
        assert session.add_marker(1.0, 1.0) is None
        assert session.add_markers([{"lat": 1.0, "lng": 1.0}]) == []
        assert session.add_circle(1.0, 1.0) is None
        assert session.add_circles([{"lat": 1.0, "lng": 1.0}]) == []
        assert session.clear_markers() is session
        assert session.clear_circles() is session
        assert session.clear_routes() is session
        assert session.get_selected_coordinates() is None
        assert session.confirm_selection() is None
    assert engine.surfaces == []
    assert NOT_INITIALIZED_MESSAGE in caplog.text


def test_add_markers_with_fit_bounds_and_empty_list(engine):
    session = MapSession(engine).initialize()
    surface = engine.surfaces[0]

    assert session.add_markers([], fit_bounds=True) == []
    assert surface.fitted == []
    assert surface.views == []

    created = session.add_markers(
        [{"lat": 10.0, "lng": -66.0}, {"lat": 11.0, "lng": -67.0, "icon": "🚚"}],
        fit_bounds=True,
    )
    assert len(created) == 2
    assert created[1].icon == "🚚"
    assert len(surface.fitted) == 1


def test_add_marker_defaults_to_center_and_opens_popup(engine):
    session = MapSession(engine).initialize(lat=4.0, lng=5.0)
    marker = session.add_marker(popup="Hola")
    assert marker.location == (4.0, 5.0)
    assert marker.open_popup is True
    assert session.markers.handles == (marker,)


def test_circles_fit_and_clear(engine):
    session = MapSession(engine).initialize()
    surface = engine.surfaces[0]

    created = session.add_circles(
        [{"lat": 10.0, "lng": -66.0, "radius": 1000}, {"lat": 10.5, "lng": -66.5}],
        fit_bounds=True,
    )
    assert len(created) == 2
    bounds, _ = surface.fitted[0]
    assert bounds.north > 10.5
    assert bounds.south < 10.0

    session.clear_circles()
    assert surface.of_kind("circle") == []
    assert len(session.circles) == 0


def test_setup_search_attaches_geocoder_and_fits_results(engine):
    session = MapSession(engine).initialize()
    surface = engine.surfaces[0]

    session.setup_search(position="topleft")

    options, on_resolved = surface.geocoders[0]
    assert options["placeholder"] == config.SEARCH_PLACEHOLDER
    assert options["error_message"] == config.SEARCH_ERROR_MESSAGE
    assert options["add_marker"] is False
    assert options["collapsed"] is False
    assert options["position"] == "topleft"

    box = BoundingBox(10.0, -67.0, 11.0, -66.0)
    on_resolved(box)
    assert surface.fitted == [(box, (0, 0))]


def test_fluent_chaining(engine):
    session = MapSession(engine)
    chained = (
        session.initialize()
        .setup_search()
        .setup_selector()
        .clear_markers()
        .clear_circles()
        .clear_routes()
    )
    assert chained is session
