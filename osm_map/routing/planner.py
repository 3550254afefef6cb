"""Route planning between two points: straight lines or road routes.

Road routes come from :class:`~osm_map.routing.client.RoutingClient`. Any
routing failure falls back to a straight line with a warning; callers always
get a result for valid input. Fallbacks are counted and announced to
registered listeners so hosts can monitor how often the service fails.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from .. import config
from ..engine.base import MapSurface
from ..errors import RoutingServiceError
from ..geo import coerce_float, haversine_distance
from ..layers import NOT_INITIALIZED_MESSAGE, MarkerRegistry, SurfaceProvider
from ..models import (
    Coordinate,
    MarkerSpec,
    RouteEndpoint,
    RouteLayerEntry,
    RouteOptions,
    RouteResult,
)
from .client import RoutingClient

FallbackListener = Callable[[Coordinate, Coordinate, RoutingServiceError], None]

_ROUTE_OPTION_FIELDS = {f.name for f in dataclasses.fields(RouteOptions)}


def _coerce_endpoint(value: Any) -> Optional[RouteEndpoint]:
    """Return a normalised endpoint, or ``None`` when lat/lng are not numeric."""

    if value is None:
        return None
    if isinstance(value, Mapping):
        raw = RouteEndpoint(
            lat=value.get("lat"),
            lng=value.get("lng"),
            icon=value.get("icon"),
            popup=value.get("popup"),
        )
    else:
        raw = RouteEndpoint(
            lat=getattr(value, "lat", None),
            lng=getattr(value, "lng", None),
            icon=getattr(value, "icon", None),
            popup=getattr(value, "popup", None),
        )
    lat = coerce_float(raw.lat)
    lng = coerce_float(raw.lng)
    if lat is None or lng is None:
        return None
    return RouteEndpoint(lat=lat, lng=lng, icon=raw.icon, popup=raw.popup)


def _option_items(
    options: Union[RouteOptions, Mapping[str, Any], None], overrides: Mapping[str, Any]
) -> Dict[str, Any]:
    items = dict(options) if isinstance(options, Mapping) else {}
    items.update(overrides)
    return items


def _unknown_options(
    options: Union[RouteOptions, Mapping[str, Any], None], overrides: Mapping[str, Any]
) -> set:
    return set(_option_items(options, overrides)) - _ROUTE_OPTION_FIELDS


def _resolve_options(
    options: Union[RouteOptions, Mapping[str, Any], None], overrides: Mapping[str, Any]
) -> Optional[RouteOptions]:
    """Merge ``options`` and ``overrides``; ``None`` when a name is unknown."""

    if _unknown_options(options, overrides):
        return None
    base = options if isinstance(options, RouteOptions) else RouteOptions()
    items = _option_items(options, overrides)
    return dataclasses.replace(base, **items) if items else base


def _format_metrics(
    distance_m: float, duration_s: Optional[float]
) -> Tuple[str, Optional[str]]:
    distance_km = f"{distance_m / 1000:.2f}"
    duration_min = f"{duration_s / 60:.1f}" if duration_s is not None else None
    return distance_km, duration_min


class RoutePlanner:
    def __init__(
        self,
        surface_provider: SurfaceProvider,
        markers: MarkerRegistry,
        *,
        client: Optional[RoutingClient] = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._surface_provider = surface_provider
        self._markers = markers
        self._client = client
        self._log = logger or logging.getLogger(self.__class__.__name__)
        self._layers: List[RouteLayerEntry] = []
        self._routes: List[RouteResult] = []
        self._fallback_listeners: List[FallbackListener] = []
        self.fallback_count = 0

    @property
    def client(self) -> RoutingClient:
        if self._client is None:
            self._client = RoutingClient()
        return self._client

    @property
    def route_layers(self) -> Tuple[RouteLayerEntry, ...]:
        return tuple(self._layers)

    @property
    def routes(self) -> Tuple[RouteResult, ...]:
        return tuple(self._routes)

    def add_fallback_listener(self, listener: FallbackListener) -> None:
        """Call ``listener(origin, destination, error)`` on every fallback."""

        if listener not in self._fallback_listeners:
            self._fallback_listeners.append(listener)

    def remove_fallback_listener(self, listener: FallbackListener) -> None:
        if listener in self._fallback_listeners:
            self._fallback_listeners.remove(listener)

    def draw_route(
        self,
        origin: Any,
        destination: Any,
        options: Union[RouteOptions, Mapping[str, Any], None] = None,
        **overrides: Any,
    ) -> Optional[RouteResult]:
        """Draw a route and its endpoint markers.

        Args:
            origin: Mapping or object with ``lat``/``lng`` and optional
                ``icon``/``popup``.
            destination: Same shape as ``origin``.
            options: Drawing options as :class:`RouteOptions` or a mapping of
                its fields; keyword ``overrides`` replace fields.

        Returns:
            The :class:`RouteResult`, or ``None`` when the map is not
            initialised, an endpoint lacks numeric coordinates or an option
            name is unknown.
        """

        surface = self._surface_provider()
        if surface is None:
            self._log.warning(NOT_INITIALIZED_MESSAGE)
            return None
        start = _coerce_endpoint(origin)
        end = _coerce_endpoint(destination)
        if start is None or end is None:
            self._log.warning(
                "draw_route requires origin and destination with numeric lat/lng"
            )
            return None

        opts = _resolve_options(options, overrides)
        if opts is None:
            self._log.warning(
                "draw_route ignored: unknown route options %s",
                sorted(_unknown_options(options, overrides)),
            )
            return None
        line_style = opts.line_style()

        origin_marker = self._markers.create(
            MarkerSpec(
                lat=start.lat,
                lng=start.lng,
                icon=start.icon or config.ORIGIN_ICON,
                popup=start.popup,
            )
        )
        destination_marker = self._markers.create(
            MarkerSpec(
                lat=end.lat,
                lng=end.lng,
                icon=end.icon or config.DESTINATION_ICON,
                popup=end.popup,
            )
        )

        a = Coordinate(lat=start.lat, lng=start.lng)
        b = Coordinate(lat=end.lat, lng=end.lng)
        result: Optional[RouteResult] = None
        if opts.use_road_route:
            if config.ROAD_ROUTING_ENABLED:
                result = self._road_route(surface, a, b, line_style)
            else:
                self._log.debug("Road routing disabled; drawing a straight line")
        if result is None:
            result = self._straight_route(surface, a, b, line_style)

        result.origin_marker = origin_marker
        result.destination_marker = destination_marker
        self._layers.append(
            RouteLayerEntry(
                path=result.path,
                origin_marker=origin_marker,
                destination_marker=destination_marker,
            )
        )
        self._routes.append(result)

        if opts.fit_bounds:
            bounds = surface.layer_bounds([result.path])
            if bounds is not None:
                surface.fit_bounds(bounds, config.FIT_BOUNDS_PADDING)
        self._log.info(
            "Drew %s route %.0f m (%s km)",
            result.kind,
            result.distance_m,
            result.distance_km,
        )
        return result

    def clear_routes(self) -> None:
        """Remove every drawn path together with its endpoint markers."""

        surface = self._surface_provider()
        if surface is not None:
            for entry in self._layers:
                surface.remove_layer(entry.path)
                if entry.origin_marker is not None:
                    surface.remove_layer(entry.origin_marker)
                if entry.destination_marker is not None:
                    surface.remove_layer(entry.destination_marker)
        self._layers = []
        self._routes = []

    def _straight_route(
        self,
        surface: MapSurface,
        origin: Coordinate,
        destination: Coordinate,
        line_style: Mapping[str, Any],
    ) -> RouteResult:
        style = dict(line_style)
        if not style.get("dash_array"):
            style["dash_array"] = config.STRAIGHT_DASH_ARRAY
        path = surface.add_path([origin.as_tuple(), destination.as_tuple()], style)
        distance = haversine_distance(origin, destination)
        distance_km, duration_min = _format_metrics(distance, None)
        return RouteResult(
            distance_m=distance,
            distance_km=distance_km,
            duration_s=None,
            duration_min=duration_min,
            kind="straight",
            path=path,
        )

    def _road_route(
        self,
        surface: MapSurface,
        origin: Coordinate,
        destination: Coordinate,
        line_style: Mapping[str, Any],
    ) -> Optional[RouteResult]:
        try:
            road = self.client.fetch_route(origin, destination)
        except RoutingServiceError as exc:
            self._record_fallback(origin, destination, exc)
            return None
        path = surface.add_path(road.points, line_style)
        distance_km, duration_min = _format_metrics(road.distance_m, road.duration_s)
        return RouteResult(
            distance_m=road.distance_m,
            distance_km=distance_km,
            duration_s=road.duration_s,
            duration_min=duration_min,
            kind="road",
            path=path,
        )

    def _record_fallback(
        self, origin: Coordinate, destination: Coordinate, error: RoutingServiceError
    ) -> None:
        self.fallback_count += 1
        self._log.warning(
            "Road routing failed (%s); falling back to a straight line", error
        )
        for listener in list(self._fallback_listeners):
            try:
                listener(origin, destination, error)
            except Exception as exc:  # noqa: BLE001
                self._log.error("Fallback listener failed: %s", exc, exc_info=True)


__all__ = ["FallbackListener", "RoutePlanner"]
