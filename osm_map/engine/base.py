"""Rendering engine contract consumed by :class:`osm_map.session.MapSession`.

The session never talks to a drawing library directly. It asks an injected
:class:`RenderingEngine` for a :class:`MapSurface` and then issues add/remove
commands against that surface. Layer handles returned by the surface are
opaque to the rest of the package.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Sequence

from ..models import BoundingBox, Coordinate, LatLng

ClickHandler = Callable[[Coordinate], None]
BoundsHandler = Callable[[BoundingBox], None]
ReadyHandler = Callable[[], None]
ElementHandler = Callable[[], None]


class MapSurface(Protocol):
    """A single interactive map bound to a host container."""

    container_id: str

    def add_tile_layer(self, url: str, attribution: str) -> Any:
        """Attach a tile source with its attribution text."""
        ...

    def add_marker(
        self,
        location: LatLng,
        icon_html: str,
        *,
        popup_html: Optional[str] = None,
        open_popup: bool = False,
    ) -> Any:
        """Create an emoji/HTML marker and return its handle."""
        ...

    def add_path(self, points: Sequence[LatLng], style: Mapping[str, Any]) -> Any:
        """Draw a polyline through ``points`` and return its handle."""
        ...

    def add_circle(
        self,
        center: LatLng,
        radius_m: float,
        style: Mapping[str, Any],
        *,
        popup_html: Optional[str] = None,
    ) -> Any:
        """Draw a circle of ``radius_m`` metres and return its handle."""
        ...

    def remove_layer(self, handle: Any) -> None:
        """Detach a previously added layer. Unknown handles are ignored."""
        ...

    def layer_bounds(self, handles: Sequence[Any]) -> Optional[BoundingBox]:
        """Return the box enclosing every layer in ``handles``."""
        ...

    def fit_bounds(self, bounds: BoundingBox, padding: tuple[int, int]) -> None:
        ...

    def set_view(self, center: LatLng, zoom: int) -> None:
        ...

    def get_center(self) -> LatLng:
        ...

    def get_zoom(self) -> int:
        ...

    def when_ready(self, handler: ReadyHandler) -> None:
        """Run ``handler`` once the surface is ready (immediately if it already is)."""
        ...

    def on_click(self, handler: ClickHandler) -> None:
        ...

    def on_element_click(self, css_class: str, handler: ElementHandler) -> None:
        """Register a delegated listener for clicks on elements with ``css_class``."""
        ...

    def add_geocoder(
        self, options: Dict[str, Any], on_resolved: BoundsHandler
    ) -> Any:
        """Attach an address-search control; ``on_resolved`` receives result boxes."""
        ...

    def add_banner(self, html: str, css_class: str) -> bool:
        """Insert a banner above the map once; return False if one already exists."""
        ...

    def alert(self, message: str) -> None:
        """Show a blocking notice to the end user."""
        ...


class RenderingEngine(Protocol):
    """Factory for map surfaces."""

    def create_map(self, container_id: str, center: LatLng, zoom: int) -> MapSurface:
        ...


__all__ = [
    "BoundsHandler",
    "ClickHandler",
    "ElementHandler",
    "MapSurface",
    "ReadyHandler",
    "RenderingEngine",
]
