"""Map session facade: configuration, initialisation and the public API.

Example::

    session = MapSession(FoliumEngine(), container_id="my-map")
    (
        session.initialize(lat=10.48, lng=-66.90, zoom=12)
        .setup_search()
        .setup_selector(lambda point: print(point.formatted))
    )
    session.add_markers(customers, fit_bounds=True)

Every public operation other than :meth:`MapSession.initialize` is guarded: on
an uninitialised session it logs a warning and returns ``None``, ``[]`` or the
session itself instead of raising.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from . import config
from .engine.base import MapSurface, RenderingEngine
from .geo import coerce_float, coerce_int
from .layers import NOT_INITIALIZED_MESSAGE, CircleRegistry, MarkerRegistry
from .models import (
    BoundingBox,
    CircleSpec,
    LatLng,
    MapConfig,
    MarkerSpec,
    RouteLayerEntry,
    RouteOptions,
    RouteResult,
    SelectedPoint,
)
from .routing.client import RoutingClient
from .routing.planner import FallbackListener, RoutePlanner
from .selection import Clock, SelectHandler, SelectionWorkflow, utc_now

MarkerInput = Union[MarkerSpec, Mapping[str, Any]]
CircleInput = Union[CircleSpec, Mapping[str, Any]]


class MapSession:
    """One interactive map plus its marker, circle, route and selector state."""

    def __init__(
        self,
        engine: RenderingEngine,
        map_config: Optional[MapConfig] = None,
        *,
        routing_client: Optional[RoutingClient] = None,
        clock: Clock = utc_now,
        logger: logging.Logger | None = None,
        **overrides: Any,
    ) -> None:
        self.config = dataclasses.replace(map_config or MapConfig(), **overrides)
        self._engine = engine
        self._surface: Optional[MapSurface] = None
        self._log = logger or logging.getLogger(self.__class__.__name__)
        self._markers = MarkerRegistry(self._get_surface, self._default_center)
        self._circles = CircleRegistry(self._get_surface)
        # Route endpoints and the selector marker are rendered through the
        # marker registry but never tracked by it.
        self._planner = RoutePlanner(
            self._get_surface, self._markers, client=routing_client
        )
        self._selector = SelectionWorkflow(
            self._get_surface, self._markers, self.config, clock=clock
        )

    # -- state ----------------------------------------------------------------
    @property
    def is_initialized(self) -> bool:
        return self._surface is not None

    @property
    def surface(self) -> Optional[MapSurface]:
        return self._surface

    @property
    def markers(self) -> MarkerRegistry:
        return self._markers

    @property
    def circles(self) -> CircleRegistry:
        return self._circles

    @property
    def selector(self) -> SelectionWorkflow:
        return self._selector

    @property
    def planner(self) -> RoutePlanner:
        return self._planner

    @property
    def routes(self) -> Tuple[RouteResult, ...]:
        return self._planner.routes

    @property
    def last_route(self) -> Optional[RouteResult]:
        routes = self._planner.routes
        return routes[-1] if routes else None

    @property
    def route_layers(self) -> Tuple[RouteLayerEntry, ...]:
        return self._planner.route_layers

    @property
    def fallback_count(self) -> int:
        return self._planner.fallback_count

    def _get_surface(self) -> Optional[MapSurface]:
        return self._surface

    def _default_center(self) -> LatLng:
        return (self.config.lat, self.config.lng)

    def _require_surface(self) -> Optional[MapSurface]:
        if self._surface is None:
            self._log.warning(NOT_INITIALIZED_MESSAGE)
        return self._surface

    # -- setup ----------------------------------------------------------------
    def initialize(
        self,
        lat: Any = None,
        lng: Any = None,
        container_id: Optional[str] = None,
        zoom: Any = None,
    ) -> "MapSession":
        """Create the map surface centred on the resolved view.

        Values that are missing or not numeric fall back to the current
        configuration. Calling again on an initialised session re-centres the
        existing surface instead of creating a second one.
        """

        lat_value = coerce_float(lat)
        lng_value = coerce_float(lng)
        zoom_value = coerce_int(zoom)
        self.config.lat = lat_value if lat_value is not None else self.config.lat
        self.config.lng = lng_value if lng_value is not None else self.config.lng
        self.config.zoom = zoom_value if zoom_value is not None else self.config.zoom
        center = (self.config.lat, self.config.lng)

        if self._surface is not None:
            self._log.debug("Map already initialized; moving view to %s", center)
            self._surface.set_view(center, self.config.zoom)
            return self

        target = container_id or self.config.container_id
        surface = self._engine.create_map(target, center, self.config.zoom)
        surface.add_tile_layer(self.config.tile_url, self.config.attribution)
        self._surface = surface
        self._log.info(
            "Map initialized in '%s' at %.6f, %.6f zoom=%d",
            target,
            center[0],
            center[1],
            self.config.zoom,
        )
        return self

    def recenter(self, lat: Any, lng: Any, zoom: Any = None) -> "MapSession":
        """Move the view without re-initialising; omitted zoom keeps the current one."""

        surface = self._require_surface()
        if surface is None:
            return self
        lat_value = coerce_float(lat)
        lng_value = coerce_float(lng)
        if lat_value is None or lng_value is None:
            self._log.warning(
                "recenter requires numeric lat/lng (got %r, %r)", lat, lng
            )
            return self
        zoom_value = coerce_int(zoom)
        if zoom_value is None:
            zoom_value = surface.get_zoom()
        surface.set_view((lat_value, lng_value), zoom_value)
        return self

    def setup_search(
        self,
        placeholder: str = config.SEARCH_PLACEHOLDER,
        error_message: str = config.SEARCH_ERROR_MESSAGE,
        **options: Any,
    ) -> "MapSession":
        """Attach an address-search control that frames the resolved location."""

        surface = self._require_surface()
        if surface is None:
            return self
        control_options = {
            "add_marker": False,
            "placeholder": placeholder,
            "error_message": error_message,
            "show_result_icons": False,
            "collapsed": False,
            "expand": "click",
        }
        control_options.update(options)
        surface.add_geocoder(control_options, self._on_location_resolved)
        return self

    def _on_location_resolved(self, bounds: BoundingBox) -> None:
        if self._surface is not None:
            self._surface.fit_bounds(bounds, (0, 0))

    # -- selector -------------------------------------------------------------
    def setup_selector(self, on_select: Optional[SelectHandler] = None) -> "MapSession":
        """Enable click-to-select; ``on_select`` becomes the confirmation handler."""

        self._selector.enable(on_select)
        return self

    def place_selector(
        self, lat: Any, lng: Any, icon: Optional[str] = None
    ) -> "MapSession":
        self._selector.place_point(lat, lng, icon)
        return self

    def clear_selector(self) -> "MapSession":
        self._selector.clear_point()
        return self

    def get_selected_coordinates(self) -> Optional[SelectedPoint]:
        return self._selector.selected_point()

    def confirm_selection(self) -> Optional[SelectedPoint]:
        return self._selector.confirm()

    # -- routes ---------------------------------------------------------------
    def draw_route(
        self,
        origin: Any,
        destination: Any,
        options: Union[RouteOptions, Mapping[str, Any], None] = None,
        **overrides: Any,
    ) -> Optional[RouteResult]:
        return self._planner.draw_route(origin, destination, options, **overrides)

    def clear_routes(self) -> "MapSession":
        self._planner.clear_routes()
        return self

    def add_fallback_listener(self, listener: FallbackListener) -> "MapSession":
        self._planner.add_fallback_listener(listener)
        return self

    # -- markers and circles --------------------------------------------------
    def add_marker(
        self,
        lat: Any = None,
        lng: Any = None,
        icon: str = config.MARKER_ICON,
        popup: Optional[str] = None,
    ) -> Any:
        return self._markers.add(MarkerSpec(lat=lat, lng=lng, icon=icon, popup=popup))

    def add_markers(
        self, markers: Iterable[MarkerInput] = (), *, fit_bounds: bool = False
    ) -> List[Any]:
        return self._markers.add_many(markers, fit_bounds=fit_bounds)

    def clear_markers(self) -> "MapSession":
        self._markers.clear()
        return self

    def add_circle(
        self,
        lat: Any,
        lng: Any,
        radius: float = config.CIRCLE_RADIUS_M,
        *,
        color: str = config.CIRCLE_COLOR,
        fill_color: str = config.CIRCLE_COLOR,
        fill_opacity: float = config.CIRCLE_FILL_OPACITY,
        weight: int = config.CIRCLE_WEIGHT,
        popup: Optional[str] = None,
    ) -> Any:
        return self._circles.add(
            CircleSpec(
                lat=lat,
                lng=lng,
                radius=radius,
                color=color,
                fill_color=fill_color,
                fill_opacity=fill_opacity,
                weight=weight,
                popup=popup,
            )
        )

    def add_circles(
        self, circles: Iterable[CircleInput] = (), *, fit_bounds: bool = False
    ) -> List[Any]:
        return self._circles.add_many(circles, fit_bounds=fit_bounds)

    def clear_circles(self) -> "MapSession":
        self._circles.clear()
        return self


__all__ = ["MapSession"]
