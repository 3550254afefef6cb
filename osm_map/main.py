"""Command-line entry point: render routes, markers or a picked point to HTML."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from . import config
from .engine.folium_engine import FoliumEngine, FoliumMapSurface
from .models import MarkerSpec
from .session import MapSession


def _setup_logging(verbose: bool = False) -> None:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )


def parse_point(value: str) -> MarkerSpec:
    """Parse ``"LAT,LNG"`` or ``"LAT,LNG,ICON"`` into a marker spec."""

    parts = [part.strip() for part in value.split(",", 2)]
    if len(parts) < 2:
        raise ValueError(f"Expected LAT,LNG but got '{value}'")
    try:
        lat = float(parts[0])
        lng = float(parts[1])
    except ValueError as exc:
        raise ValueError(f"Coordinates must be numeric in '{value}'") from exc
    spec = MarkerSpec(lat=lat, lng=lng)
    if len(parts) == 3 and parts[2]:
        spec.icon = parts[2]
    return spec


def _default_output_path(name: str) -> Path:
    return Path("maps") / f"{name}.html"


def _folium_surface(session: MapSession) -> Optional[FoliumMapSurface]:
    surface = session.surface
    if not isinstance(surface, FoliumMapSurface):
        logging.error("Map surface is not a folium surface: %r", surface)
        return None
    return surface


def _save(session: MapSession, output: Optional[Path], name: str) -> Optional[Path]:
    surface = _folium_surface(session)
    if surface is None:
        return None
    output_path = output or _default_output_path(name)
    surface.save(output_path)
    logging.info("Map written to %s", output_path)
    return output_path


def _run_route(args: argparse.Namespace) -> int:
    try:
        origin = parse_point(args.origin)
        destination = parse_point(args.destination)
    except ValueError as exc:
        logging.error("%s", exc)
        return 1
    session = MapSession(FoliumEngine()).initialize()
    result = session.draw_route(
        {"lat": origin.lat, "lng": origin.lng},
        {"lat": destination.lat, "lng": destination.lng},
        use_road_route=args.road,
        color=args.color,
        fit_bounds=not args.no_fit,
    )
    if result is None:
        logging.error("Route could not be drawn")
        return 1
    logging.info("Route kind=%s distance=%s km", result.kind, result.distance_km)
    if result.duration_min is not None:
        logging.info("Estimated duration %s min", result.duration_min)
    if session.fallback_count:
        logging.info("Road routing unavailable; straight line used instead")
    print(json.dumps(result.metrics()))
    return 0 if _save(session, args.output, "route") else 1


def _run_markers(args: argparse.Namespace) -> int:
    try:
        specs: List[MarkerSpec] = [parse_point(point) for point in args.point]
    except ValueError as exc:
        logging.error("%s", exc)
        return 1
    session = MapSession(FoliumEngine()).initialize()
    created = session.add_markers(specs, fit_bounds=args.fit)
    logging.info("Placed %d markers", len(created))
    return 0 if _save(session, args.output, "markers") else 1


def _run_pick(args: argparse.Namespace) -> int:
    session = MapSession(FoliumEngine()).initialize(
        lat=args.lat, lng=args.lng, zoom=args.zoom
    )
    confirmed: List[dict] = []
    session.setup_selector(lambda point: confirmed.append(point.as_dict()))
    surface = _folium_surface(session)
    if surface is None:
        return 1
    # The selector starts at the map center; confirm it through the popup button.
    surface.dispatch_element_click(config.CONFIRM_TRIGGER_CLASS)
    if not confirmed:
        logging.error("No point was selected")
        return 1
    print(json.dumps(confirmed[-1]))
    if args.output is not None and _save(session, args.output, "pick") is None:
        return 1
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="osm_map",
        description="Render OpenStreetMap routes, markers and selections to HTML.",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command", required=True)

    route = subparsers.add_parser("route", help="Draw a route between two points")
    route.add_argument("--origin", required=True, help="LAT,LNG")
    route.add_argument("--destination", required=True, help="LAT,LNG")
    route.add_argument(
        "--road",
        action="store_true",
        help="Ask the routing service for a road route (falls back to a line)",
    )
    route.add_argument("--color", default=config.ROUTE_COLOR)
    route.add_argument("--no-fit", action="store_true")
    route.add_argument("--output", type=Path)
    route.set_defaults(handler=_run_route)

    markers = subparsers.add_parser("markers", help="Plot a set of markers")
    markers.add_argument(
        "--point",
        action="append",
        required=True,
        help="LAT,LNG[,ICON]; repeat for several markers",
    )
    markers.add_argument("--fit", action="store_true")
    markers.add_argument("--output", type=Path)
    markers.set_defaults(handler=_run_markers)

    pick = subparsers.add_parser("pick", help="Select and confirm a coordinate")
    pick.add_argument("--lat", type=float, default=config.DEFAULT_LAT)
    pick.add_argument("--lng", type=float, default=config.DEFAULT_LNG)
    pick.add_argument("--zoom", type=int, default=config.DEFAULT_ZOOM)
    pick.add_argument("--output", type=Path)
    pick.set_defaults(handler=_run_pick)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point used via ``python -m osm_map``."""

    parser = _build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)
    return args.handler(args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
