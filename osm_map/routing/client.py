"""Client for OSRM-compatible road routing services."""

from __future__ import annotations

import logging
import math
from threading import RLock
from typing import Any, Dict, List, Optional, Tuple, Type

import requests
from cachetools import TTLCache
from polyline import decode as polyline_decode

from ..config import (
    REQUEST_TIMEOUT,
    ROUTE_CACHE_SIZE,
    ROUTE_CACHE_TTL,
    ROUTING_BASE_URL,
    ROUTING_PROFILE,
)
from ..errors import (
    MalformedRouteResponseError,
    RouteNotFoundError,
    RoutingTransportError,
)
from ..models import Coordinate, LatLng, RoadRoute
from .session import get_default_session

RequestsJSONDecodeError: Type[Exception]
if hasattr(requests.exceptions, "JSONDecodeError"):
    RequestsJSONDecodeError = requests.exceptions.JSONDecodeError
else:  # pragma: no cover - fallback for old requests versions
    RequestsJSONDecodeError = ValueError

LOGGER = logging.getLogger(__name__)

# Service codes meaning "valid request, but the points are not connected".
_NO_ROUTE_CODES = {"NoRoute", "NoSegment"}

# Encoded polyline precision per ``geometries`` value.
_POLYLINE_PRECISION = {"polyline": 5, "polyline6": 6}

_CacheKey = Tuple[str, float, float, float, float]


class RoutingClient:
    """Fetch driving routes as ``(lat, lng)`` paths with distance and duration.

    Successful routes are kept in a small TTL cache keyed by profile and
    endpoints, so redrawing the same pair does not hit the service again.
    """

    def __init__(
        self,
        base_url: str = ROUTING_BASE_URL,
        *,
        profile: str = ROUTING_PROFILE,
        geometries: str = "geojson",
        session: Optional[requests.Session] = None,
        timeout: float = REQUEST_TIMEOUT,
        cache_size: int = ROUTE_CACHE_SIZE,
        cache_ttl: int = ROUTE_CACHE_TTL,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.profile = profile
        self.geometries = geometries
        self.timeout = timeout
        self._session = session
        self._cache: Optional[TTLCache[_CacheKey, RoadRoute]] = None
        if cache_size > 0:
            self._cache = TTLCache(maxsize=cache_size, ttl=max(1, cache_ttl))
        self._cache_lock = RLock()

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = get_default_session()
        return self._session

    def build_url(self, origin: Coordinate, destination: Coordinate) -> str:
        """Return the route endpoint; the service expects ``lng,lat`` order."""

        return (
            f"{self.base_url}/{self.profile}/"
            f"{origin.lng},{origin.lat};{destination.lng},{destination.lat}"
        )

    def clear_cache(self) -> None:
        if self._cache is not None:
            with self._cache_lock:
                self._cache.clear()

    def fetch_route(self, origin: Coordinate, destination: Coordinate) -> RoadRoute:
        """Return the first route from ``origin`` to ``destination``.

        Raises:
            RoutingTransportError: On network errors, timeouts or HTTP failures.
            RouteNotFoundError: When the service finds no route between the points.
            MalformedRouteResponseError: When the body is not a usable route.
        """

        key: _CacheKey = (
            self.profile,
            origin.lat,
            origin.lng,
            destination.lat,
            destination.lng,
        )
        if self._cache is not None:
            with self._cache_lock:
                cached = self._cache.get(key)
            if cached is not None:
                LOGGER.debug("Route cache hit for %s", key)
                return cached

        route = self._request_route(origin, destination)
        if self._cache is not None:
            with self._cache_lock:
                self._cache[key] = route
        return route

    def _request_route(self, origin: Coordinate, destination: Coordinate) -> RoadRoute:
        url = self.build_url(origin, destination)
        params = {"overview": "full", "geometries": self.geometries}
        LOGGER.debug("GET %s params=%s", url, params)
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise RoutingTransportError(f"Routing request failed: {exc}") from exc

        payload = _safe_json(response)
        code = payload.get("code") if isinstance(payload, dict) else None
        if isinstance(code, str) and code in _NO_ROUTE_CODES:
            raise RouteNotFoundError(_with_detail("No route between points", payload))
        if response.status_code >= 400:
            raise RoutingTransportError(
                _with_detail(
                    f"Routing request failed (status {response.status_code})", payload
                )
            )
        if not isinstance(payload, dict):
            raise MalformedRouteResponseError("Routing response is not a JSON object")
        if code is not None and code != "Ok":
            raise MalformedRouteResponseError(
                _with_detail(f"Routing service answered code {code}", payload)
            )
        return _parse_route(payload, self.geometries)


def _safe_json(response: requests.Response) -> Optional[Any]:
    """Safely parse JSON; return None if parsing fails."""

    try:
        return response.json()
    except (ValueError, RequestsJSONDecodeError) as exc:
        LOGGER.debug(
            "Failed to decode JSON from %s: %s", getattr(response, "url", "?"), exc
        )
        return None


def _with_detail(message: str, payload: Any) -> str:
    detail = payload.get("message") if isinstance(payload, dict) else None
    return f"{message} | {detail}" if detail else message


def _decode_geometry(geometry: Any, geometries: str) -> List[LatLng]:
    """Return ``(lat, lng)`` points from GeoJSON or an encoded polyline."""

    if isinstance(geometry, str):
        precision = _POLYLINE_PRECISION.get(geometries, 5)
        return [
            (float(lat), float(lng))
            for lat, lng in polyline_decode(geometry, precision)
        ]
    # GeoJSON positions are [lng, lat, ...].
    return [(float(lat), float(lng)) for lng, lat, *_ in geometry["coordinates"]]


def _parse_route(payload: Dict[str, Any], geometries: str = "geojson") -> RoadRoute:
    routes = payload.get("routes")
    if not isinstance(routes, list) or not routes:
        raise RouteNotFoundError("Routing response contains no routes")
    route = routes[0]
    try:
        distance = float(route["distance"])
        duration = float(route["duration"])
        points = _decode_geometry(route["geometry"], geometries)
    except (KeyError, TypeError, ValueError, IndexError, OverflowError) as exc:
        raise MalformedRouteResponseError(
            f"Routing response has an unusable route: {exc}"
        ) from exc
    if not (math.isfinite(distance) and math.isfinite(duration)):
        raise MalformedRouteResponseError("Routing response metrics are not finite")
    if len(points) < 2:
        raise MalformedRouteResponseError("Routing response geometry is too short")
    return RoadRoute(distance_m=distance, duration_s=duration, points=points)


__all__ = ["RoutingClient"]
