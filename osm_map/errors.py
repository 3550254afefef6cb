"""Central error types used across the package."""

from __future__ import annotations


class RoutingServiceError(RuntimeError):
    """Base error for routing service failures."""


class RoutingTransportError(RoutingServiceError):
    """Raised when the routing request fails at the network or HTTP level."""


class RouteNotFoundError(RoutingServiceError):
    """Raised when the service answers but reports no route between the points."""


class MalformedRouteResponseError(RoutingServiceError):
    """Raised when the routing payload cannot be decoded into a path."""


__all__ = [
    "RoutingServiceError",
    "RoutingTransportError",
    "RouteNotFoundError",
    "MalformedRouteResponseError",
]
