"""Routing and geocoding response models.

The map issues two kinds of requests that both answer with a GeoJSON-like
``features`` list:

- Route: ``features[0].properties.summary.{distance,duration}`` (meters,
  seconds) and ``features[0].geometry.coordinates`` as ``[lon, lat]`` pairs
- Address (reverse geocoding): ``features[0].properties.label`` and a single
  ``[lon, lat]`` point

Captured bodies are classified once, at the capture boundary, into
RouteResult, AddressResult or UnrecognizedResult.
"""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

Point = tuple[float, float]


class Summary(BaseModel):
    """Distance/duration pair attached to a route feature."""

    model_config = ConfigDict(extra="allow")

    # The routing service omits zero-valued fields
    distance: float = Field(default=0.0, description="Route length in meters")
    duration: float = Field(default=0.0, description="Travel time in seconds")


class Geometry(BaseModel):
    """Point or polyline geometry."""

    model_config = ConfigDict(extra="allow")

    type: str | None = Field(default=None, description="GeoJSON geometry type")
    coordinates: list[float] | list[list[float]] = Field(
        description="Single [lon, lat] point or list of [lon, lat] pairs"
    )

    def points(self) -> list[Point]:
        """Return coordinates as (lon, lat) tuples, dropping elevation if present."""
        if not self.coordinates:
            return []
        first = self.coordinates[0]
        if isinstance(first, list):
            return [(float(c[0]), float(c[1])) for c in self.coordinates if len(c) >= 2]  # type: ignore[index,arg-type]
        if len(self.coordinates) >= 2:
            return [(float(self.coordinates[0]), float(self.coordinates[1]))]  # type: ignore[arg-type]
        return []


class FeatureProperties(BaseModel):
    """Feature properties; only the fields we read are modelled."""

    model_config = ConfigDict(extra="allow")

    summary: Summary | None = None
    label: str | None = None


class Feature(BaseModel):
    """One routing/geocoding result record."""

    model_config = ConfigDict(extra="allow")

    properties: FeatureProperties = Field(default_factory=FeatureProperties)
    geometry: Geometry | None = None


class FeatureCollection(BaseModel):
    """Top-level response body."""

    model_config = ConfigDict(extra="allow")

    features: list[Feature]


@dataclass(frozen=True)
class RouteResult:
    """A calculated route."""

    distance: float
    duration: float
    coordinates: tuple[Point, ...]


@dataclass(frozen=True)
class AddressResult:
    """A reverse-geocoded address for a single clicked point."""

    label: str | None
    point: Point


@dataclass(frozen=True)
class UnrecognizedResult:
    """Response that is neither a route nor an address."""

    reason: str


CapturedResponse = RouteResult | AddressResult | UnrecognizedResult


def is_capture_candidate(url: str, status: int, fragments: list[str]) -> bool:
    """Check URL and status of a response against the capture rule.

    Args:
        url: Response URL
        status: HTTP status code
        fragments: Path fragments identifying route/geocoding endpoints

    Returns:
        True if the URL contains any fragment and status is 200
    """
    return status == 200 and any(fragment in url for fragment in fragments)


def has_features(body: Any) -> bool:
    """Check that a parsed JSON body holds a non-empty features list."""
    if not isinstance(body, dict):
        return False
    features = body.get("features")
    return isinstance(features, list) and len(features) > 0


def classify(body: Any) -> CapturedResponse:
    """Classify a parsed response body.

    Args:
        body: Parsed JSON body

    Returns:
        RouteResult if the first feature carries a summary, AddressResult if it
        carries geometry only, UnrecognizedResult otherwise

    Example:
        >>> classify({"features": [{"properties": {"label": "Main St"},
        ...     "geometry": {"type": "Point", "coordinates": [8.68, 49.41]}}]})
        AddressResult(label='Main St', point=(8.68, 49.41))
    """
    try:
        collection = FeatureCollection.model_validate(body)
    except ValidationError as e:
        return UnrecognizedResult(
            reason=f"body does not match the feature contract ({e.error_count()} errors)"
        )

    if not collection.features:
        return UnrecognizedResult(reason="response holds no features")

    feature = collection.features[0]
    points = feature.geometry.points() if feature.geometry else []

    if feature.properties.summary is not None:
        summary = feature.properties.summary
        return RouteResult(
            distance=summary.distance,
            duration=summary.duration,
            coordinates=tuple(points),
        )

    if points:
        return AddressResult(label=feature.properties.label, point=points[0])

    return UnrecognizedResult(reason="first feature carries neither a summary nor a geometry")


def normalize_coordinates(points: list[Point] | tuple[Point, ...]) -> list[Point]:
    """Represent a single point as a degenerate two-point segment.

    Polylines (two or more points) are returned unchanged, so applying this
    twice gives the same result as applying it once.

    Example:
        >>> normalize_coordinates([(8.68, 49.41)])
        [(8.68, 49.41), (8.68, 49.41)]
    """
    points = list(points)
    if len(points) == 1:
        return [points[0], points[0]]
    return points
