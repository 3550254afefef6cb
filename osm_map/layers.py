"""Registries tracking the markers and zone circles added to a map surface.

Each registry exclusively owns its list of layer handles; the surface owns the
visual resource and is only asked to add or remove it. A handle lives in at
most one registry, so clearing a registry never touches layers tracked
elsewhere (route endpoints, the selector marker).
"""

from __future__ import annotations

import dataclasses
import logging
from typing import (
    Any,
    Callable,
    Generic,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Tuple,
    TypeVar,
    Union,
)

from . import config
from .engine.base import MapSurface
from .geo import coerce_float
from .models import CircleSpec, LatLng, MarkerSpec

SurfaceProvider = Callable[[], Optional[MapSurface]]
SpecT = TypeVar("SpecT", MarkerSpec, CircleSpec)

NOT_INITIALIZED_MESSAGE = "Map has not been initialized. Call initialize() first."


class LayerRegistry(Generic[SpecT]):
    """Append/remove/clear bookkeeping for one kind of layer."""

    kind = "layer"
    spec_type: type

    def __init__(
        self,
        surface_provider: SurfaceProvider,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._surface_provider = surface_provider
        self._handles: List[Any] = []
        self._log = logger or logging.getLogger(self.__class__.__name__)

    def __len__(self) -> int:
        return len(self._handles)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._handles))

    def __contains__(self, handle: object) -> bool:
        return any(existing is handle for existing in self._handles)

    @property
    def handles(self) -> Tuple[Any, ...]:
        return tuple(self._handles)

    def _require_surface(self) -> Optional[MapSurface]:
        surface = self._surface_provider()
        if surface is None:
            self._log.warning(NOT_INITIALIZED_MESSAGE)
        return surface

    def _coerce_spec(
        self, item: Union[SpecT, Mapping[str, Any]]
    ) -> Optional[SpecT]:
        if isinstance(item, self.spec_type):
            return item
        if isinstance(item, Mapping):
            known = {f.name for f in dataclasses.fields(self.spec_type)}
            try:
                return self.spec_type(
                    **{k: v for k, v in item.items() if k in known}
                )
            except TypeError as exc:
                self._log.warning("Ignoring incomplete %s %r: %s", self.kind, item, exc)
                return None
        self._log.warning("Ignoring unsupported %s input %r", self.kind, item)
        return None

    def _render(self, surface: MapSurface, spec: SpecT) -> Any:
        raise NotImplementedError

    def create(self, spec: Union[SpecT, Mapping[str, Any]]) -> Any:
        """Render a layer without tracking it; the caller owns the handle."""

        surface = self._require_surface()
        if surface is None:
            return None
        coerced = self._coerce_spec(spec)
        if coerced is None:
            return None
        return self._render(surface, coerced)

    def add(self, spec: Union[SpecT, Mapping[str, Any]]) -> Any:
        """Render a layer and track it. Returns ``None`` on failure."""

        handle = self.create(spec)
        if handle is not None and handle not in self:
            self._handles.append(handle)
        return handle

    def add_many(
        self,
        specs: Iterable[Union[SpecT, Mapping[str, Any]]],
        *,
        fit_bounds: bool = False,
    ) -> List[Any]:
        """Add every spec, dropping failures; optionally frame the created layers."""

        surface = self._require_surface()
        if surface is None:
            return []
        created: List[Any] = []
        for spec in specs:
            handle = self.add(spec)
            if handle is not None:
                created.append(handle)
        if fit_bounds and created:
            bounds = surface.layer_bounds(created)
            if bounds is not None:
                surface.fit_bounds(bounds, config.FIT_BOUNDS_PADDING)
        self._log.debug(
            "Added %d %ss (%d tracked)", len(created), self.kind, len(self._handles)
        )
        return created

    def remove(self, handle: Any) -> bool:
        """Remove a single tracked handle; returns False for untracked handles."""

        for index, existing in enumerate(self._handles):
            if existing is handle:
                surface = self._surface_provider()
                if surface is not None:
                    surface.remove_layer(handle)
                del self._handles[index]
                return True
        return False

    def clear(self) -> None:
        """Remove every tracked layer from the surface. Safe to call repeatedly."""

        if not self._handles:
            return
        surface = self._surface_provider()
        if surface is not None:
            for handle in self._handles:
                surface.remove_layer(handle)
        self._log.debug("Cleared %d %ss", len(self._handles), self.kind)
        self._handles = []


class MarkerRegistry(LayerRegistry[MarkerSpec]):
    kind = "marker"
    spec_type = MarkerSpec

    def __init__(
        self,
        surface_provider: SurfaceProvider,
        default_center: Callable[[], LatLng],
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(surface_provider, logger=logger)
        self._default_center = default_center

    def _render(self, surface: MapSurface, spec: MarkerSpec) -> Any:
        default_lat, default_lng = self._default_center()
        lat = coerce_float(spec.lat if spec.lat is not None else default_lat)
        lng = coerce_float(spec.lng if spec.lng is not None else default_lng)
        if lat is None or lng is None:
            self._log.warning(
                "Ignoring marker with non-numeric coordinates lat=%r lng=%r",
                spec.lat,
                spec.lng,
            )
            return None
        return surface.add_marker(
            (lat, lng),
            spec.icon or config.MARKER_ICON,
            popup_html=spec.popup,
            open_popup=spec.open_popup and bool(spec.popup),
        )


class CircleRegistry(LayerRegistry[CircleSpec]):
    kind = "circle"
    spec_type = CircleSpec

    def _render(self, surface: MapSurface, spec: CircleSpec) -> Any:
        lat = coerce_float(spec.lat)
        lng = coerce_float(spec.lng)
        radius = coerce_float(spec.radius)
        if lat is None or lng is None or radius is None:
            self._log.warning(
                "Ignoring circle with non-numeric geometry lat=%r lng=%r radius=%r",
                spec.lat,
                spec.lng,
                spec.radius,
            )
            return None
        style = {
            "color": spec.color,
            "fill_color": spec.fill_color,
            "fill_opacity": spec.fill_opacity,
            "weight": spec.weight,
        }
        return surface.add_circle((lat, lng), radius, style, popup_html=spec.popup)


__all__ = [
    "CircleRegistry",
    "LayerRegistry",
    "MarkerRegistry",
    "NOT_INITIALIZED_MESSAGE",
    "SurfaceProvider",
]
