"""Direct routing API client.

UI-free validation path: posts two-point route requests to the directions
endpoint and checks the same response contract the map relies on. Faster and
more stable than driving the browser, so most route coverage lives here.
"""

import logging
import time
from dataclasses import dataclass
from enum import StrEnum
from types import TracebackType
from typing import Self

import requests
from pydantic import BaseModel, Field

from routeqa.config import ApiConfig
from routeqa.errors import RouteApiError
from routeqa.responses import FeatureCollection

logger = logging.getLogger(__name__)


class Profile(StrEnum):
    """Travel profiles supported by the directions endpoint."""

    DRIVING_CAR = "driving-car"
    DRIVING_HGV = "driving-hgv"
    CYCLING_REGULAR = "cycling-regular"
    FOOT_WALKING = "foot-walking"


class Coordinates(BaseModel):
    """WGS84 position."""

    longitude: float = Field(ge=-180, le=180)
    latitude: float = Field(ge=-90, le=90)

    @classmethod
    def parse(cls, text: str) -> "Coordinates":
        """Parse a "lon,lat" string.

        Raises:
            ValueError: If the string is not two comma-separated numbers
                or the values are out of range
        """
        parts = [p.strip() for p in text.split(",")]
        if len(parts) != 2:
            raise ValueError(f"Expected 'lon,lat', got {text!r}")
        return cls(longitude=float(parts[0]), latitude=float(parts[1]))

    def as_pair(self) -> list[float]:
        """Return [lon, lat] as sent on the wire."""
        return [self.longitude, self.latitude]


class RouteRequest(BaseModel):
    """Two-point route request."""

    start: Coordinates
    end: Coordinates
    profile: Profile = Profile.DRIVING_CAR


@dataclass(frozen=True)
class RouteApiResponse:
    """Parsed directions response with request metadata."""

    status_code: int
    elapsed_seconds: float
    body: FeatureCollection


class RouteApiClient:
    """HTTP client for the directions endpoint."""

    def __init__(self, config: ApiConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Content-Type": "application/json",
                "Accept": "application/json, application/geo+json",
            }
        )
        if config.api_key:
            self.session.headers["Authorization"] = config.api_key

    def route_url(self, profile: Profile | str) -> str:
        """Directions URL for a profile."""
        return f"{self.config.base_url.rstrip('/')}/v2/directions/{Profile(profile)}/geojson"

    def get_route(self, request: RouteRequest) -> RouteApiResponse:
        """Request a route between two points.

        Args:
            request: Start, end and travel profile

        Returns:
            RouteApiResponse with status, timing and parsed body

        Raises:
            RouteApiError: If the API returns a non-success status
            requests.RequestException: On connection errors or timeouts
        """
        url = self.route_url(request.profile)
        payload = {"coordinates": [request.start.as_pair(), request.end.as_pair()]}

        logger.info(f"POST {url} ({request.profile})")
        started = time.perf_counter()
        response = self.session.post(url, json=payload, timeout=self.config.timeout_s)
        elapsed = time.perf_counter() - started

        if not response.ok:
            raise RouteApiError(response.status_code, response.text)

        logger.info(f"Routing API responded {response.status_code} in {elapsed * 1000:.0f}ms")
        return RouteApiResponse(
            status_code=response.status_code,
            elapsed_seconds=elapsed,
            body=FeatureCollection.model_validate(response.json()),
        )

    @staticmethod
    def validate_route_response(response: RouteApiResponse) -> bool:
        """Check the route contract: summary distance/duration and geometry present."""
        features = response.body.features
        if not features:
            return False

        feature = features[0]
        summary = feature.properties.summary
        if summary is None or "distance" not in summary.model_fields_set:
            return False
        if "duration" not in summary.model_fields_set:
            return False
        return feature.geometry is not None and len(feature.geometry.points()) > 0

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
