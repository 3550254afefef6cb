"""OpenStreetMap map sessions: markers, zones, routes and point selection."""

from .dialog import DialogMapSession, MapDialog
from .engine import FoliumEngine
from .errors import (
    MalformedRouteResponseError,
    RouteNotFoundError,
    RoutingServiceError,
    RoutingTransportError,
)
from .main import main
from .models import MapConfig, RouteOptions, RouteResult, SelectedPoint
from .session import MapSession

__all__ = [
    "main",
    "MapSession",
    "MapConfig",
    "MapDialog",
    "DialogMapSession",
    "FoliumEngine",
    "RouteOptions",
    "RouteResult",
    "SelectedPoint",
    "RoutingServiceError",
    "RoutingTransportError",
    "RouteNotFoundError",
    "MalformedRouteResponseError",
]
