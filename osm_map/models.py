"""Dataclasses describing map configuration, coordinates and route results."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from . import config

LatLng = Tuple[float, float]


@dataclass
class MapConfig:
    """Session configuration; lat/lng/zoom follow the last initialised view."""

    lat: float = config.DEFAULT_LAT
    lng: float = config.DEFAULT_LNG
    zoom: int = config.DEFAULT_ZOOM
    container_id: str = config.DEFAULT_CONTAINER_ID
    tile_url: str = config.TILE_URL
    attribution: str = config.ATTRIBUTION
    selector_icon: str = config.SELECTOR_ICON


@dataclass(frozen=True, slots=True)
class Coordinate:
    lat: float
    lng: float

    def as_tuple(self) -> LatLng:
        return (self.lat, self.lng)


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """South-west / north-east corners of a rectangular area."""

    south: float
    west: float
    north: float
    east: float

    def as_corners(self) -> List[List[float]]:
        return [[self.south, self.west], [self.north, self.east]]


@dataclass(slots=True)
class SelectedPoint:
    """A selected coordinate with fields derived when it is read."""

    lat: float
    lng: float
    timestamp: str
    formatted: str
    google_maps_url: str
    openstreetmap_url: str

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class MarkerSpec:
    """Input for a single marker; missing coordinates default to the map center."""

    lat: Optional[float] = None
    lng: Optional[float] = None
    icon: str = config.MARKER_ICON
    popup: Optional[str] = None
    open_popup: bool = True


@dataclass(slots=True)
class CircleSpec:
    """Input for a zone circle of ``radius`` metres."""

    lat: float
    lng: float
    radius: float = config.CIRCLE_RADIUS_M
    color: str = config.CIRCLE_COLOR
    fill_color: str = config.CIRCLE_COLOR
    fill_opacity: float = config.CIRCLE_FILL_OPACITY
    weight: int = config.CIRCLE_WEIGHT
    popup: Optional[str] = None


@dataclass(slots=True)
class RouteEndpoint:
    lat: Any
    lng: Any
    icon: Optional[str] = None
    popup: Optional[str] = None


@dataclass(slots=True)
class RouteOptions:
    """Drawing options for :meth:`RoutePlanner.draw_route`."""

    use_road_route: bool = False
    color: str = config.ROUTE_COLOR
    weight: int = config.ROUTE_WEIGHT
    opacity: float = config.ROUTE_OPACITY
    fit_bounds: bool = True
    dash_array: Optional[str] = None

    def line_style(self) -> Dict[str, Any]:
        style: Dict[str, Any] = {
            "color": self.color,
            "weight": self.weight,
            "opacity": self.opacity,
        }
        if self.dash_array:
            style["dash_array"] = self.dash_array
        return style


@dataclass(slots=True)
class RoadRoute:
    """Path returned by the routing service, already in ``(lat, lng)`` order."""

    distance_m: float
    duration_s: float
    points: List[LatLng] = field(default_factory=list)


@dataclass(slots=True)
class RouteLayerEntry:
    """Layers drawn for one route, removed together by ``clear_routes``."""

    path: Any
    origin_marker: Any
    destination_marker: Any


@dataclass(slots=True)
class RouteResult:
    distance_m: float
    distance_km: str
    duration_s: Optional[float]
    duration_min: Optional[str]
    kind: str
    origin_marker: Any = None
    destination_marker: Any = None
    path: Any = None

    @property
    def markers(self) -> Dict[str, Any]:
        return {"origin": self.origin_marker, "destination": self.destination_marker}

    def metrics(self) -> Dict[str, Any]:
        """Return the JSON-friendly distance/duration fields."""

        return {
            "distance_m": self.distance_m,
            "distance_km": self.distance_km,
            "duration_s": self.duration_s,
            "duration_min": self.duration_min,
            "kind": self.kind,
        }


__all__ = [
    "BoundingBox",
    "CircleSpec",
    "Coordinate",
    "LatLng",
    "MapConfig",
    "MarkerSpec",
    "RoadRoute",
    "RouteEndpoint",
    "RouteLayerEntry",
    "RouteOptions",
    "RouteResult",
    "SelectedPoint",
]
