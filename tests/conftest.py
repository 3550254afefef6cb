"""Global pytest fixtures & helpers.

Adds project root to path and provides a recording rendering engine plus fake
HTTP plumbing so session, routing and selection tests run without a browser
or network access.
"""
from __future__ import annotations

import json
import os
import sys
from datetime import datetime, timedelta, timezone

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from osm_map.geo import bounds_of, circle_bounds, merge_bounds
from osm_map.models import Coordinate
from osm_map.routing.client import RoutingClient


# --- Rendering doubles -----------------------------------------------
class FakeLayer:
    """Handle returned by :class:`FakeSurface`; records what was drawn."""

    def __init__(self, kind, bounds, **attrs):
        self.kind = kind
        self.bounds = bounds
        for key, value in attrs.items():
            setattr(self, key, value)

    def __repr__(self):
        return f"FakeLayer({self.kind})"


class FakeSurface:
    """In-memory map surface recording every command it receives."""

    def __init__(self, container_id, center, zoom, *, auto_ready=True):
        self.container_id = container_id
        self.center = tuple(center)
        self.zoom = zoom
        self.auto_ready = auto_ready
        self.tile_layers = []
        self.layers = []
        self.removed = []
        self.fitted = []
        self.views = []
        self.alerts = []
        self.banners = []
        self.geocoders = []
        self.click_handlers = []
        self.element_handlers = {}
        self.ready_handlers = []

    # layers
    def add_tile_layer(self, url, attribution):
        layer = FakeLayer("tiles", None, url=url, attribution=attribution)
        self.tile_layers.append(layer)
        return layer

    def add_marker(self, location, icon_html, *, popup_html=None, open_popup=False):
        layer = FakeLayer(
            "marker",
            bounds_of([location]),
            location=tuple(location),
            icon=icon_html,
            popup=popup_html,
            open_popup=open_popup,
        )
        self.layers.append(layer)
        return layer

    def add_path(self, points, style):
        layer = FakeLayer(
            "path", bounds_of(list(points)), points=list(points), style=dict(style)
        )
        self.layers.append(layer)
        return layer

    def add_circle(self, center, radius_m, style, *, popup_html=None):
        layer = FakeLayer(
            "circle",
            circle_bounds(center, radius_m),
            center=tuple(center),
            radius=radius_m,
            style=dict(style),
            popup=popup_html,
        )
        self.layers.append(layer)
        return layer

    def remove_layer(self, handle):
        if handle in self.layers:
            self.layers.remove(handle)
            self.removed.append(handle)

    def layer_bounds(self, handles):
        return merge_bounds(handle.bounds for handle in handles)

    def of_kind(self, kind):
        return [layer for layer in self.layers if layer.kind == kind]

    # view
    def fit_bounds(self, bounds, padding):
        self.fitted.append((bounds, padding))

    def set_view(self, center, zoom):
        self.center = tuple(center)
        self.zoom = zoom
        self.views.append((self.center, zoom))

    def get_center(self):
        return self.center

    def get_zoom(self):
        return self.zoom

    # events
    def when_ready(self, handler):
        if self.auto_ready:
            handler()
        else:
            self.ready_handlers.append(handler)

    def fire_ready(self):
        handlers, self.ready_handlers = self.ready_handlers, []
        for handler in handlers:
            handler()

    def on_click(self, handler):
        self.click_handlers.append(handler)

    def click(self, lat, lng):
        for handler in list(self.click_handlers):
            handler(Coordinate(lat=lat, lng=lng))

    def on_element_click(self, css_class, handler):
        self.element_handlers.setdefault(css_class, []).append(handler)

    def click_element(self, css_class):
        for handler in list(self.element_handlers.get(css_class, [])):
            handler()

    def add_geocoder(self, options, on_resolved):
        self.geocoders.append((dict(options), on_resolved))
        return FakeLayer("geocoder", None, options=dict(options))

    def add_banner(self, html, css_class):
        if any(existing == css_class for _, existing in self.banners):
            return False
        self.banners.append((html, css_class))
        return True

    def alert(self, message):
        self.alerts.append(message)


class FakeEngine:
    """Rendering engine handing out :class:`FakeSurface` instances."""

    def __init__(self, *, auto_ready=True):
        self.auto_ready = auto_ready
        self.surfaces = []

    def create_map(self, container_id, center, zoom):
        surface = FakeSurface(container_id, center, zoom, auto_ready=self.auto_ready)
        self.surfaces.append(surface)
        return surface


# --- HTTP doubles ----------------------------------------------------
class FakeResp:
    """Minimal fake response matching needed parts of requests.Response."""

    def __init__(self, status_code=200, data=None, raw_text=None):
        self.status_code = status_code
        self._data = data
        self._raw_text = raw_text
        self.url = "https://routing.test/route"

    def json(self):
        if self._raw_text is not None:
            return json.loads(self._raw_text)
        return self._data

    @property
    def text(self):
        if self._raw_text is not None:
            return self._raw_text
        return json.dumps(self._data)


class FakeSession:
    """Records GET calls and replays queued responses or exceptions."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        result = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(result, Exception):
            raise result
        return result


def make_route_payload(points, distance=12345.6, duration=900.0):
    """Build a service body whose geometry holds ``(lat, lng)`` ``points``."""

    return {
        "code": "Ok",
        "routes": [
            {
                "distance": distance,
                "duration": duration,
                "geometry": {
                    "type": "LineString",
                    "coordinates": [[lng, lat] for lat, lng in points],
                },
            }
        ],
    }


UNUSABLE_ROUTE_BODIES = [
    {"code": [], "routes": []},
    {"code": {"nested": True}},
    make_route_payload([(10.0, -66.0), (10.1, -66.1)], distance=10**400),
    make_route_payload([(10**400, -66.0), (10.1, -66.1)]),
    make_route_payload([(10.0, -66.0), (10.1, -66.1)], duration=float("inf")),
]


class FixedClock:
    """Clock advancing one second on every read."""

    def __init__(self, start=None):
        self.current = start or datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        value = self.current
        self.current = value + timedelta(seconds=1)
        return value


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def deferred_engine():
    """Engine whose surfaces only report readiness when ``fire_ready`` is called."""

    return FakeEngine(auto_ready=False)


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def route_payload():
    return make_route_payload([(10.0, -66.0), (10.05, -66.04), (10.1, -66.1)])


@pytest.fixture
def routing_client_factory():
    def _factory(*responses, **kwargs):
        session = FakeSession(*responses)
        kwargs.setdefault("cache_size", 0)
        client = RoutingClient(
            "https://routing.test/route/v1", session=session, **kwargs
        )
        return client, session

    return _factory
