"""Central configuration for the OpenStreetMap session toolkit.

All values are constants imported by the rest of the package. Adjust as needed
for your environment. Most values can be overridden through environment
variables (optionally via a local `.env`).
"""

from __future__ import annotations

import os

from dotenv import load_dotenv


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


# Load .env from the current directory or any parent folder.
load_dotenv()


# ---------------------------------------------------------------------------
# Map defaults
# ---------------------------------------------------------------------------
# Initial view used when a session is initialised without coordinates.
DEFAULT_LAT = _env_float("OSM_MAP_DEFAULT_LAT", 8.240773)
DEFAULT_LNG = _env_float("OSM_MAP_DEFAULT_LNG", -65.546409)
DEFAULT_ZOOM = _env_int("OSM_MAP_DEFAULT_ZOOM", 7)

# Identifier of the host element the map is bound to.
DEFAULT_CONTAINER_ID = os.getenv("OSM_MAP_CONTAINER_ID", "map")

# Tile source and the attribution text rendered in the corner of the map.
TILE_URL = os.getenv(
    "OSM_MAP_TILE_URL", "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
)
ATTRIBUTION = os.getenv(
    "OSM_MAP_ATTRIBUTION", "© OpenStreetMap | Strix Technologies | aceroraas"
)


# ---------------------------------------------------------------------------
# Markers, circles and selector
# ---------------------------------------------------------------------------
SELECTOR_ICON = "📦"
MARKER_ICON = "📦"
ORIGIN_ICON = "🏠"
DESTINATION_ICON = "📦"

# Size (px) of the emoji marker box and the offset of its popup tip.
MARKER_ICON_SIZE = (30, 30)
MARKER_POPUP_ANCHOR = (0, -30)
MARKER_CLASS_NAME = "map-custom-icon"

CIRCLE_RADIUS_M = 5000.0
CIRCLE_COLOR = "#2C6B94"
CIRCLE_FILL_OPACITY = 0.15
CIRCLE_WEIGHT = 2

# Decimal places kept for coordinates picked by clicking on the map.
COORDINATE_PRECISION = 8

# CSS class of the popup button that confirms the selected point.
CONFIRM_TRIGGER_CLASS = "map-selector-confirm-btn"

# Message shown to the user when confirming without a selected point.
NO_SELECTION_NOTICE = "❌ Primero selecciona un punto en el mapa"

# External viewers linked from the selector popup.
GOOGLE_MAPS_URL = "https://www.google.com/maps?q={lat},{lng}"
OPENSTREETMAP_URL = "https://www.openstreetmap.org/?mlat={lat}&mlon={lng}&zoom=15"


# ---------------------------------------------------------------------------
# Geocoder control
# ---------------------------------------------------------------------------
SEARCH_PLACEHOLDER = "Buscar ciudad"
SEARCH_ERROR_MESSAGE = "No se encontró la ciudad"


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
# Base URL of the OSRM-compatible routing service and the profile requested.
ROUTING_BASE_URL = os.getenv(
    "OSM_MAP_ROUTING_URL", "https://router.project-osrm.org/route/v1"
)
ROUTING_PROFILE = os.getenv("OSM_MAP_ROUTING_PROFILE", "driving")

ROUTE_COLOR = "#2C6B94"
ROUTE_WEIGHT = 5
ROUTE_OPACITY = 0.7

# Dash pattern applied to straight-line routes when none is given.
STRAIGHT_DASH_ARRAY = "10, 8"

# Padding (px) applied whenever the view is fitted to a set of layers.
FIT_BOUNDS_PADDING = (30, 30)


# ---------------------------------------------------------------------------
# HTTP settings
# ---------------------------------------------------------------------------
# Request timeout in seconds. A timed out routing request falls back to a
# straight line, so keep this short enough for interactive use.
REQUEST_TIMEOUT = _env_float("OSM_MAP_REQUEST_TIMEOUT", 10.0)

# Retries applied by the HTTP adapter on 5xx answers from the routing service.
ROUTING_MAX_RETRIES = _env_int("OSM_MAP_ROUTING_MAX_RETRIES", 2)
ROUTING_BACKOFF_FACTOR = _env_float("OSM_MAP_ROUTING_BACKOFF_FACTOR", 0.5)

HTTP_POOL_CONNECTIONS = 4
HTTP_POOL_MAXSIZE = 4

# Public routing servers ask clients to identify themselves.
ROUTING_USER_AGENT = os.getenv("OSM_MAP_USER_AGENT", "osm-map-session/0.1")

# Disable to keep every route straight, e.g. for offline demos.
ROAD_ROUTING_ENABLED = _env_bool("OSM_MAP_ROAD_ROUTING_ENABLED", True)

# Road routes for the same endpoint pair are reused for this long (seconds).
# Set the size to 0 to disable the cache.
ROUTE_CACHE_SIZE = _env_int("OSM_MAP_ROUTE_CACHE_SIZE", 128)
ROUTE_CACHE_TTL = _env_int("OSM_MAP_ROUTE_CACHE_TTL", 900)


# ---------------------------------------------------------------------------
# Dialog host
# ---------------------------------------------------------------------------
DIALOG_TITLE = "Map"
DIALOG_ZOOM = 20
DIALOG_INSTRUCTIONS = "Click anywhere on the map to place a coordinate marker."
DIALOG_INSTRUCTIONS_CLASS = "map-instructions"
