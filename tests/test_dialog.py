"""Tests for opening a map session inside a modal window."""

from __future__ import annotations

from osm_map import config
from osm_map.dialog import DialogMapSession, HeadlessWindowHost, MapDialog


def test_create_map_prepares_window_before_initializing(engine):
    host = HeadlessWindowHost()
    session = MapDialog(engine, window_host=host).create_map(
        "picker", title="Seleccionar"
    )

    window = session.get_window()
    assert isinstance(session, DialogMapSession)
    assert host.windows["mapWindow"] is window
    assert window.title == "Seleccionar"
    assert window.modal and window.maximized and window.centered
    assert 'id="picker"' in window.html
    surface = engine.surfaces[0]
    assert surface.container_id == "picker"
    assert surface.center == (config.DEFAULT_LAT, config.DEFAULT_LNG)
    assert surface.zoom == config.DEFAULT_ZOOM


def test_create_map_centres_on_given_point_with_dialog_zoom(engine):
    session = MapDialog(engine).create_map("picker", lat=10.48, lng=-66.9)
    surface = engine.surfaces[0]
    assert surface.center == (10.48, -66.9)
    assert surface.zoom == config.DIALOG_ZOOM
    assert session.config.zoom == config.DIALOG_ZOOM


def test_create_map_ignores_partial_coordinates(engine):
    MapDialog(engine).create_map("picker", lat=10.48)
    assert engine.surfaces[0].center == (config.DEFAULT_LAT, config.DEFAULT_LNG)


def test_instructions_banner(engine):
    session = MapDialog(engine).create_map("picker", instructions=True)
    surface = engine.surfaces[0]
    assert surface.banners == [
        (config.DIALOG_INSTRUCTIONS, config.DIALOG_INSTRUCTIONS_CLASS)
    ]

    session.show_instructions("Otro texto")
    assert len(surface.banners) == 1


def test_custom_instruction_text(engine):
    MapDialog(engine).create_map("picker", instructions="Haz clic en el mapa")
    assert engine.surfaces[0].banners[0][0] == "Haz clic en el mapa"


def test_window_progress_and_close_are_pass_through(engine):
    session = MapDialog(engine).create_map("picker")
    window = session.get_window()
    closed = []
    window.on_close(lambda: closed.append(True))

    window.progress_on()
    assert window.progress is True
    window.close()
    window.close()

    assert window.progress is False
    assert closed == [True]


def test_dialog_session_supports_the_selector(engine):
    picked = []
    session = MapDialog(engine).create_map("picker", lat=1.0, lng=2.0)
    session.setup_selector(picked.append)
    session.confirm_selection()
    assert [(p.lat, p.lng) for p in picked] == [(1.0, 2.0)]
