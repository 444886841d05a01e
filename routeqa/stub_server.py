"""Local stand-in for the route-planning map and its routing API.

Implements just enough of the real site's contract for the suite to run
offline and deterministically:
- a full-viewport clickable map surface mapped linearly onto a fixed
  bounding box, which loads one tile and shows a dismissible cookie banner
- route mode: the second click POSTs to /v2/directions/{profile}/geojson
- address mode (?mode=address): the second click GETs /geocode/reverse
- before the real request, a decoy GET /v2/directions/status answers 200
  with an empty features list, which capture logic must ignore

Usage:
    python -m routeqa.stub_server [--port 8090]
    # Or via make:
    make serve-stub
"""

import argparse
import base64
import logging
import math
from typing import Any

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, Response
from starlette.routing import Route

from routeqa.api_client import Profile

logger = logging.getLogger(__name__)

# Average speeds per profile, meters per second
PROFILE_SPEEDS = {
    Profile.DRIVING_CAR: 13.9,
    Profile.DRIVING_HGV: 11.1,
    Profile.CYCLING_REGULAR: 4.2,
    Profile.FOOT_WALKING: 1.4,
}
# Roads are longer than the great-circle distance
ROAD_FACTOR = 1.3
EARTH_RADIUS_M = 6_371_008.8
ROUTE_POINTS = 10

TRANSPARENT_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)

MAP_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>Route planner (stub)</title>
<style>
  html, body { margin: 0; height: 100%; overflow: hidden; font-family: sans-serif; }
  #map { position: fixed; inset: 0; background: #dfe9d8; cursor: crosshair; }
  #map img { width: 1px; height: 1px; }
  #banner { position: fixed; top: 0; left: 0; right: 0; padding: 8px; background: #333;
            color: #fff; z-index: 10; display: flex; gap: 8px; align-items: center; }
  #status { position: fixed; bottom: 0; left: 0; padding: 4px; background: #fff; }
</style>
</head>
<body>
<div id="map" data-testid="map"><img src="/tiles/0/0/0.png" alt=""></div>
<div id="banner" role="dialog">
  <span>This map uses cookies.</span>
  <button type="button" onclick="document.getElementById('banner').remove()">Got it</button>
</div>
<div id="status" data-testid="status">Pick a start point</div>
<script>
  const params = new URLSearchParams(location.search);
  const mode = params.get("mode") || "route";
  const profile = params.get("profile") || "driving-car";
  const BBOX = { west: -74.10, east: -73.90, north: 40.80, south: 40.65 };
  const status = document.getElementById("status");
  let start = null;

  function toLonLat(ev) {
    const fx = ev.clientX / window.innerWidth;
    const fy = ev.clientY / window.innerHeight;
    const lon = BBOX.west + fx * (BBOX.east - BBOX.west);
    const lat = BBOX.north - fy * (BBOX.north - BBOX.south);
    return [Number(lon.toFixed(6)), Number(lat.toFixed(6))];
  }

  document.getElementById("map").addEventListener("click", async (ev) => {
    const point = toLonLat(ev);
    if (start === null) {
      start = point;
      status.textContent = "Start: " + point.join(", ");
      return;
    }
    const from = start;
    start = null;
    await fetch("/v2/directions/status");
    let response;
    if (mode === "address") {
      response = await fetch(`/geocode/reverse?point.lon=${point[0]}&point.lat=${point[1]}`);
    } else {
      response = await fetch(`/v2/directions/${profile}/geojson`, {
        method: "POST",
        headers: { "Content-Type": "application/json" },
        body: JSON.stringify({ coordinates: [from, point] }),
      });
    }
    const body = await response.json();
    status.textContent = body.features && body.features.length
      ? "Result ready" : "No result";
  });
</script>
</body>
</html>
"""


def haversine_m(a: list[float], b: list[float]) -> float:
    """Great-circle distance in meters between two [lon, lat] points."""
    lon1, lat1 = map(math.radians, a)
    lon2, lat2 = map(math.radians, b)
    h = (
        math.sin((lat2 - lat1) / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin((lon2 - lon1) / 2) ** 2
    )
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(h))


def build_route(start: list[float], end: list[float], profile: Profile) -> dict[str, Any]:
    """Build a route FeatureCollection between two points.

    Identical points give a zero-length route with a two-point geometry.
    """
    distance = round(haversine_m(start, end) * ROAD_FACTOR, 1)
    duration = round(distance / PROFILE_SPEEDS[profile], 1)

    if start == end:
        coordinates = [list(start), list(end)]
    else:
        steps = ROUTE_POINTS - 1
        coordinates = [
            [
                round(start[0] + (end[0] - start[0]) * i / steps, 6),
                round(start[1] + (end[1] - start[1]) * i / steps, 6),
            ]
            for i in range(ROUTE_POINTS)
        ]

    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {
                    "summary": {"distance": distance, "duration": duration},
                    "segments": [],
                    "way_points": [0, len(coordinates) - 1],
                },
                "geometry": {"type": "LineString", "coordinates": coordinates},
            }
        ],
        "metadata": {"query": {"coordinates": [start, end], "profile": str(profile)}},
    }


def build_address(lon: float, lat: float) -> dict[str, Any]:
    """Build a reverse-geocoding FeatureCollection for one point."""
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"label": f"Stub Street, New York ({lat:.4f}, {lon:.4f})"},
                "geometry": {"type": "Point", "coordinates": [lon, lat]},
            }
        ],
    }


def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse({"error": {"message": message}}, status_code=status)


def _parse_coordinates(payload: Any) -> list[list[float]] | None:
    if not isinstance(payload, dict):
        return None
    coordinates = payload.get("coordinates")
    if not isinstance(coordinates, list) or len(coordinates) != 2:
        return None
    try:
        pairs = [
            [float(c[0]), float(c[1])] for c in coordinates if isinstance(c, list) and len(c) == 2
        ]
    except (TypeError, ValueError):
        return None
    if len(pairs) != 2:
        return None
    if not all(-180 <= lon <= 180 and -90 <= lat <= 90 for lon, lat in pairs):
        return None
    return pairs


async def index(request: Request) -> HTMLResponse:
    return HTMLResponse(MAP_HTML)


async def health(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


async def tile(request: Request) -> Response:
    return Response(TRANSPARENT_PNG, media_type="image/png")


async def directions_status(request: Request) -> JSONResponse:
    return JSONResponse({"features": []})


async def directions(request: Request) -> JSONResponse:
    """POST /v2/directions/{profile}/geojson"""
    try:
        profile = Profile(request.path_params["profile"])
    except ValueError:
        return _error(400, f"Unknown profile: {request.path_params['profile']}")

    try:
        payload = await request.json()
    except ValueError:
        return _error(400, "Request body must be JSON")

    coordinates = _parse_coordinates(payload)
    if coordinates is None:
        return _error(400, "Body must contain exactly two [lon, lat] coordinates")

    logger.info(f"Route {profile}: {coordinates[0]} -> {coordinates[1]}")
    return JSONResponse(build_route(coordinates[0], coordinates[1], profile))


async def reverse_geocode(request: Request) -> JSONResponse:
    """GET /geocode/reverse?point.lon=..&point.lat=.."""
    try:
        lon = float(request.query_params["point.lon"])
        lat = float(request.query_params["point.lat"])
    except (KeyError, ValueError):
        return _error(400, "point.lon and point.lat are required numbers")

    return JSONResponse(build_address(lon, lat))


def create_app() -> Starlette:
    """Create the stub map application.

    Returns:
        Configured Starlette application
    """
    return Starlette(
        routes=[
            Route("/", index),
            Route("/health", health),
            Route("/tiles/{z:int}/{x:int}/{y:int}.png", tile),
            Route("/v2/directions/status", directions_status),
            Route("/v2/directions/{profile}/geojson", directions, methods=["POST"]),
            Route("/geocode/reverse", reverse_geocode),
        ]
    )


def main() -> None:
    """Run the stub server."""
    parser = argparse.ArgumentParser(description="routeqa stub map server")
    parser.add_argument(
        "--port", "-p", type=int, default=8090, help="Port to serve on (default: 8090)"
    )
    parser.add_argument(
        "--host", "-H", type=str, default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)"
    )
    args = parser.parse_args()

    print("Starting routeqa stub map server...")
    print(f"View at: http://{args.host}:{args.port}/  (address mode: /?mode=address)")
    print("Press Ctrl+C to stop\n")

    uvicorn.run(create_app(), host=args.host, port=args.port, log_level="info")


if __name__ == "__main__":
    main()
