"""Rendering engine contract and the folium-backed implementation."""

from .base import MapSurface, RenderingEngine  # noqa: F401
from .folium_engine import FoliumEngine, FoliumMapSurface  # noqa: F401
