"""Rendering engine backed by folium (Leaflet maps rendered to HTML)."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

import folium  # Using folium to build an interactive Leaflet map.
from folium.map import FitBounds
from folium.plugins import Geocoder

from .. import config
from ..geo import bounds_of, circle_bounds, merge_bounds
from ..models import BoundingBox, Coordinate, LatLng
from .base import BoundsHandler, ClickHandler, ElementHandler, ReadyHandler

PathLike = Union[str, Path]
Notifier = Callable[[str], None]

LOGGER = logging.getLogger(__name__)


def _stderr_notice(message: str) -> None:
    print(message, file=sys.stderr)


class FoliumMapSurface:
    """A folium map plus the event plumbing a static HTML map lacks.

    folium renders to HTML and has no Python-side event loop, so user events
    are fed in by the host through :meth:`dispatch_click`,
    :meth:`dispatch_element_click` and :meth:`resolve_location`.
    """

    def __init__(
        self,
        container_id: str,
        center: LatLng,
        zoom: int,
        *,
        notifier: Notifier | None = None,
        **map_options: Any,
    ) -> None:
        self.container_id = container_id
        self._map = folium.Map(
            location=list(center), zoom_start=zoom, tiles=None, **map_options
        )
        self._center: LatLng = (float(center[0]), float(center[1]))
        self._zoom = int(zoom)
        self._geometry: Dict[str, Optional[BoundingBox]] = {}
        self._click_handlers: List[ClickHandler] = []
        self._element_handlers: Dict[str, List[ElementHandler]] = {}
        self._resolved_handlers: List[BoundsHandler] = []
        self._banners: set[str] = set()
        self._notifier = notifier or _stderr_notice
        self.notices: List[str] = []
        self.fitted_bounds: List[BoundingBox] = []

    @property
    def folium_map(self) -> folium.Map:
        return self._map

    # -- layers ---------------------------------------------------------------
    def add_tile_layer(self, url: str, attribution: str) -> folium.TileLayer:
        layer = folium.TileLayer(tiles=url, attr=attribution)
        layer.add_to(self._map)
        return layer

    def add_marker(
        self,
        location: LatLng,
        icon_html: str,
        *,
        popup_html: Optional[str] = None,
        open_popup: bool = False,
    ) -> folium.Marker:
        icon = folium.DivIcon(
            html=icon_html,
            icon_size=config.MARKER_ICON_SIZE,
            popup_anchor=config.MARKER_POPUP_ANCHOR,
            class_name=config.MARKER_CLASS_NAME,
        )
        marker = folium.Marker(location=list(location), icon=icon)
        if popup_html:
            folium.Popup(popup_html, show=open_popup).add_to(marker)
        marker.add_to(self._map)
        self._geometry[marker.get_name()] = bounds_of([location])
        return marker

    def add_path(
        self, points: Sequence[LatLng], style: Mapping[str, Any]
    ) -> folium.PolyLine:
        locations = [list(point) for point in points]
        path = folium.PolyLine(locations, **dict(style))
        path.add_to(self._map)
        self._geometry[path.get_name()] = bounds_of(list(points))
        return path

    def add_circle(
        self,
        center: LatLng,
        radius_m: float,
        style: Mapping[str, Any],
        *,
        popup_html: Optional[str] = None,
    ) -> folium.Circle:
        circle = folium.Circle(
            location=list(center),
            radius=radius_m,
            fill=True,
            popup=folium.Popup(popup_html) if popup_html else None,
            **dict(style),
        )
        circle.add_to(self._map)
        self._geometry[circle.get_name()] = circle_bounds(center, radius_m)
        return circle

    def remove_layer(self, handle: Any) -> None:
        name = handle.get_name()
        self._map._children.pop(name, None)
        self._geometry.pop(name, None)

    def has_layer(self, handle: Any) -> bool:
        return handle.get_name() in self._map._children

    def layer_bounds(self, handles: Sequence[Any]) -> Optional[BoundingBox]:
        return merge_bounds(self._geometry.get(h.get_name()) for h in handles)

    # -- view -----------------------------------------------------------------
    def fit_bounds(self, bounds: BoundingBox, padding: tuple[int, int]) -> None:
        self._drop_fit_bounds()
        self._map.fit_bounds(bounds.as_corners(), padding=padding)
        self.fitted_bounds.append(bounds)

    def set_view(self, center: LatLng, zoom: int) -> None:
        self._center = (float(center[0]), float(center[1]))
        self._zoom = int(zoom)
        self._drop_fit_bounds()
        self._map.location = list(self._center)
        self._map.options["zoom"] = self._zoom

    def _drop_fit_bounds(self) -> None:
        # Only the latest view command may reach the rendered page.
        stale = [
            name
            for name, child in self._map._children.items()
            if isinstance(child, FitBounds)
        ]
        for name in stale:
            del self._map._children[name]

    def get_center(self) -> LatLng:
        return self._center

    def get_zoom(self) -> int:
        return self._zoom

    # -- events ---------------------------------------------------------------
    def when_ready(self, handler: ReadyHandler) -> None:
        # The folium map is fully built once constructed.
        handler()

    def on_click(self, handler: ClickHandler) -> None:
        self._click_handlers.append(handler)

    def on_element_click(self, css_class: str, handler: ElementHandler) -> None:
        self._element_handlers.setdefault(css_class, []).append(handler)

    def dispatch_click(self, lat: float, lng: float) -> None:
        """Feed a map click from the host into the registered listeners."""

        coordinate = Coordinate(lat=lat, lng=lng)
        for handler in list(self._click_handlers):
            handler(coordinate)

    def dispatch_element_click(self, css_class: str) -> None:
        for handler in list(self._element_handlers.get(css_class, [])):
            handler()

    def add_geocoder(
        self, options: Dict[str, Any], on_resolved: BoundsHandler
    ) -> Geocoder:
        control = Geocoder(**options)
        control.add_to(self._map)
        self._resolved_handlers.append(on_resolved)
        return control

    def resolve_location(self, bounds: BoundingBox) -> None:
        """Deliver a geocoder result box to the registered listeners."""

        for handler in list(self._resolved_handlers):
            handler(bounds)

    # -- host -----------------------------------------------------------------
    def add_banner(self, html: str, css_class: str) -> bool:
        if css_class in self._banners:
            return False
        banner = folium.Element(f'<div class="{css_class}">{html}</div>')
        self._map.get_root().html.add_child(banner)
        self._banners.add(css_class)
        return True

    def alert(self, message: str) -> None:
        self.notices.append(message)
        self._notifier(message)

    def save(self, output_html_path: PathLike) -> Path:
        output_path = Path(output_html_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        self._map.save(str(output_path))
        LOGGER.debug("Map %s written to %s", self.container_id, output_path)
        return output_path


class FoliumEngine:
    """Creates :class:`FoliumMapSurface` instances.

    Extra keyword arguments are forwarded to :class:`folium.Map`.
    """

    def __init__(self, *, notifier: Notifier | None = None, **map_options: Any):
        self._notifier = notifier
        self._map_options = map_options or {"control_scale": True}

    def create_map(
        self, container_id: str, center: LatLng, zoom: int
    ) -> FoliumMapSurface:
        return FoliumMapSurface(
            container_id,
            center,
            zoom,
            notifier=self._notifier,
            **self._map_options,
        )


__all__ = ["FoliumEngine", "FoliumMapSurface"]
