"""Click-driven coordinate selection with confirm/cancel semantics.

States move ``DISABLED -> ENABLED -> POINT_PENDING <-> CONFIRMED``. A confirmed
point stays selected; the next click replaces it and the workflow is pending
again. At most one selector marker exists at any time.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional

from . import config
from .geo import coerce_float, round_coordinate
from .layers import NOT_INITIALIZED_MESSAGE, MarkerRegistry, SurfaceProvider
from .models import Coordinate, MapConfig, MarkerSpec, SelectedPoint

SelectHandler = Callable[[SelectedPoint], None]
Clock = Callable[[], datetime]


class SelectorState(str, Enum):
    DISABLED = "disabled"
    ENABLED = "enabled"
    POINT_PENDING = "point_pending"
    CONFIRMED = "confirmed"


def google_maps_url(lat: Any, lng: Any) -> str:
    return config.GOOGLE_MAPS_URL.format(lat=lat, lng=lng)


def openstreetmap_url(lat: Any, lng: Any) -> str:
    return config.OPENSTREETMAP_URL.format(lat=lat, lng=lng)


def build_selector_popup(lat: Any, lng: Any) -> str:
    """Return the popup HTML shown above the selector marker."""

    return f"""
        <div class="map-selector-popup">
            <h3>🏁📦 Punto seleccionado</h3>
            <p>Latitud: {lat}<br>Longitud: {lng}</p>
            <a href="{google_maps_url(lat, lng)}"
               target="_blank">🔗 Ver en Google Maps</a><br>
            <a href="{openstreetmap_url(lat, lng)}"
               target="_blank">🗺️ Ver en OpenStreetMap</a>
            <button class="{config.CONFIRM_TRIGGER_CLASS}">
                🏁 Seleccionar Coordenadas
            </button>
        </div>"""


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso_timestamp(moment: datetime) -> str:
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class SelectionWorkflow:
    """Coordinate picker driving a single selector marker.

    The confirmation handler is a single subscriber: :meth:`set_handler`
    replaces any previous handler and :meth:`clear_handler` unsets it.
    """

    def __init__(
        self,
        surface_provider: SurfaceProvider,
        markers: MarkerRegistry,
        map_config: MapConfig,
        *,
        clock: Clock = utc_now,
        logger: logging.Logger | None = None,
    ) -> None:
        self._surface_provider = surface_provider
        self._markers = markers
        self._config = map_config
        self._clock = clock
        self._log = logger or logging.getLogger(self.__class__.__name__)
        self._state = SelectorState.DISABLED
        self._handler: Optional[SelectHandler] = None
        self._marker: Any = None
        self._point: Optional[Coordinate] = None
        self._listeners_attached = False

    @property
    def state(self) -> SelectorState:
        return self._state

    @property
    def enabled(self) -> bool:
        return self._state is not SelectorState.DISABLED

    @property
    def marker(self) -> Any:
        return self._marker

    @property
    def handler(self) -> Optional[SelectHandler]:
        return self._handler

    def set_handler(self, handler: Optional[SelectHandler]) -> None:
        """Register the confirmation handler, replacing any previous one."""

        self._handler = handler

    def clear_handler(self) -> None:
        self._handler = None

    def enable(self, on_select: Optional[SelectHandler] = None) -> bool:
        """Start listening for clicks and place a default point once ready.

        Enabling again only replaces the handler; listeners are attached once.
        """

        surface = self._surface_provider()
        if surface is None:
            self._log.warning(NOT_INITIALIZED_MESSAGE)
            return False
        self.set_handler(on_select)
        if self._state is SelectorState.DISABLED:
            self._state = SelectorState.ENABLED
        if not self._listeners_attached:
            surface.on_click(self._handle_click)
            surface.on_element_click(
                config.CONFIRM_TRIGGER_CLASS, self._handle_confirm_trigger
            )
            self._listeners_attached = True
            surface.when_ready(self._place_default_point)
        return True

    def place_point(self, lat: Any, lng: Any, icon: Optional[str] = None) -> Any:
        """Replace the selector marker with one at ``(lat, lng)``."""

        surface = self._surface_provider()
        if surface is None:
            self._log.warning(NOT_INITIALIZED_MESSAGE)
            return None
        if not self.enabled:
            self._log.warning("Selector is not enabled. Call setup_selector() first.")
            return None
        lat_value = coerce_float(lat)
        lng_value = coerce_float(lng)
        if lat_value is None or lng_value is None:
            self._log.warning(
                "Ignoring selector point with non-numeric lat=%r lng=%r", lat, lng
            )
            return None

        self.clear_point()
        self._point = Coordinate(lat=lat_value, lng=lng_value)
        self._marker = self._markers.create(
            MarkerSpec(
                lat=lat_value,
                lng=lng_value,
                icon=icon or self._config.selector_icon,
                popup=build_selector_popup(lat_value, lng_value),
                open_popup=True,
            )
        )
        self._state = SelectorState.POINT_PENDING
        self._log.debug("Selector placed at %s, %s", lat_value, lng_value)
        return self._marker

    def clear_point(self) -> None:
        """Remove the selector marker and forget the point."""

        if self._marker is None:
            return
        surface = self._surface_provider()
        if surface is not None:
            surface.remove_layer(self._marker)
        self._marker = None
        self._point = None
        if self.enabled:
            self._state = SelectorState.ENABLED

    def selected_point(self) -> Optional[SelectedPoint]:
        """Return the current point; derived fields are computed on every call."""

        if self._point is None:
            return None
        lat, lng = self._point.lat, self._point.lng
        return SelectedPoint(
            lat=lat,
            lng=lng,
            timestamp=_iso_timestamp(self._clock()),
            formatted=f"{lat}, {lng}",
            google_maps_url=google_maps_url(lat, lng),
            openstreetmap_url=openstreetmap_url(lat, lng),
        )

    def confirm(self) -> Optional[SelectedPoint]:
        """Hand the selected point to the handler; the selection is kept."""

        point = self.selected_point()
        if point is None:
            surface = self._surface_provider()
            if surface is not None:
                surface.alert(config.NO_SELECTION_NOTICE)
            else:
                self._log.warning(NOT_INITIALIZED_MESSAGE)
            return None
        if self._handler is not None:
            self._handler(point)
        self._state = SelectorState.CONFIRMED
        return point

    def _handle_click(self, coordinate: Coordinate) -> None:
        if not self.enabled:
            return
        lat = coerce_float(coordinate.lat)
        lng = coerce_float(coordinate.lng)
        if lat is None or lng is None:
            return
        precision = config.COORDINATE_PRECISION
        self.place_point(
            round_coordinate(lat, precision), round_coordinate(lng, precision)
        )

    def _handle_confirm_trigger(self) -> None:
        self.confirm()

    def _place_default_point(self) -> None:
        self.place_point(self._config.lat, self._config.lng)


__all__ = [
    "SelectHandler",
    "SelectionWorkflow",
    "SelectorState",
    "build_selector_popup",
    "google_maps_url",
    "openstreetmap_url",
]
