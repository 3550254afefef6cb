"""Open a map session inside a modal window.

:class:`MapDialog` asks a window host for a modal, maximised window, places the
map container in it and only then initialises the session, so the container
always exists when the surface is created. The returned
:class:`DialogMapSession` is a regular :class:`~osm_map.session.MapSession`
that also exposes the window and an instructions banner.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Protocol

from . import config
from .engine.base import RenderingEngine
from .routing.client import RoutingClient
from .session import MapSession

LOGGER = logging.getLogger(__name__)


class MapWindow:
    """Headless modal window exposing the controls hosts usually offer."""

    def __init__(self, window_id: str, title: str = config.DIALOG_TITLE) -> None:
        self.window_id = window_id
        self.title = title
        self.modal = False
        self.maximized = False
        self.centered = False
        self.inner_scroll = False
        self.progress = False
        self.closed = False
        self.html = ""
        self._close_listeners: List[Callable[[], None]] = []

    def set_text(self, title: str) -> None:
        self.title = title

    def set_modal(self, modal: bool) -> None:
        self.modal = modal

    def maximize(self) -> None:
        self.maximized = True

    def center(self) -> None:
        self.centered = True

    def show_inner_scroll(self) -> None:
        self.inner_scroll = True

    def attach_html(self, html: str) -> None:
        self.html = html

    def progress_on(self) -> None:
        self.progress = True

    def progress_off(self) -> None:
        self.progress = False

    def on_close(self, listener: Callable[[], None]) -> None:
        self._close_listeners.append(listener)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.progress = False
        for listener in list(self._close_listeners):
            listener()


class WindowHost(Protocol):
    def create_window(self, window_id: str, title: str) -> MapWindow:
        ...


class HeadlessWindowHost:
    """Window host keeping windows in memory; used when no GUI host is given."""

    def __init__(self) -> None:
        self.windows: dict[str, MapWindow] = {}

    def create_window(self, window_id: str, title: str) -> MapWindow:
        window = MapWindow(window_id, title)
        self.windows[window_id] = window
        return window


class DialogMapSession(MapSession):
    """Map session bound to a modal window."""

    def __init__(self, engine: RenderingEngine, window: MapWindow, **kwargs: Any):
        super().__init__(engine, **kwargs)
        self._window = window

    def get_window(self) -> MapWindow:
        """Return the hosting window (progress indicator, close, title)."""

        return self._window

    def show_instructions(
        self, text: str = config.DIALOG_INSTRUCTIONS
    ) -> "DialogMapSession":
        """Show an instruction banner above the map; shown at most once."""

        surface = self._require_surface()
        if surface is None:
            return self
        surface.add_banner(text, config.DIALOG_INSTRUCTIONS_CLASS)
        return self


class MapDialog:
    def __init__(
        self,
        engine: RenderingEngine,
        *,
        window_host: Optional[WindowHost] = None,
        routing_client: Optional[RoutingClient] = None,
    ) -> None:
        self._engine = engine
        self._window_host = window_host or HeadlessWindowHost()
        self._routing_client = routing_client

    def create_map(
        self,
        container_id: str,
        lat: Any = None,
        lng: Any = None,
        *,
        title: str = config.DIALOG_TITLE,
        zoom: int = config.DIALOG_ZOOM,
        instructions: Any = False,
    ) -> DialogMapSession:
        """Create the modal window and return an initialised session inside it.

        Args:
            container_id: Identifier of the map container placed in the window.
            lat: Optional latitude to centre on.
            lng: Optional longitude to centre on.
            title: Window title.
            zoom: Zoom applied when both ``lat`` and ``lng`` are given.
            instructions: Banner text to show right away, or ``False`` for none.
        """

        window = self._window_host.create_window("mapWindow", title)
        window.set_text(title)
        window.set_modal(True)
        window.maximize()
        window.center()
        window.show_inner_scroll()
        window.attach_html(
            f"""
            <div class="map-container">
                <div class="map-view" id="{container_id}"></div>
            </div>
        """
        )

        session = DialogMapSession(
            self._engine,
            window,
            routing_client=self._routing_client,
            container_id=container_id,
        )
        if lat is not None and lng is not None:
            session.initialize(lat=lat, lng=lng, zoom=zoom)
        else:
            session.initialize()
        LOGGER.debug("Opened map dialog '%s' in container '%s'", title, container_id)

        if instructions:
            if isinstance(instructions, str):
                session.show_instructions(instructions)
            else:
                session.show_instructions()
        return session


__all__ = [
    "DialogMapSession",
    "HeadlessWindowHost",
    "MapDialog",
    "MapWindow",
    "WindowHost",
]
