"""Page object for the route-planning map.

Translates the two logical gestures of route planning ("pick a start point",
"pick a destination") into viewport-relative mouse clicks, captures the
routing or geocoding response triggered by the second click, and exposes
normalized readouts (distance, duration, coordinates).

Wait Strategy: every wait is bounded by a configured timeout and surfaces
Playwright's TimeoutError on expiry. The only fixed delays are the short
settle pauses after each click, which let the map register the gesture.
"""

import logging
import time

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page, Response
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from routeqa.config import Config
from routeqa.errors import NoRouteCapturedError, ResponseShapeMismatchError, UnrecognizedResponseError
from routeqa.responses import (
    AddressResult,
    CapturedResponse,
    Point,
    RouteResult,
    classify,
    has_features,
    is_capture_candidate,
    normalize_coordinates,
)
from routeqa.units import format_duration, meters_to_miles
from routeqa.viewport import relative_point

logger = logging.getLogger(__name__)

MISMATCH_HINTS = [
    "The click was resolved as an address lookup instead of a route request; "
    "check interaction.start_point/end_point land on routable map area.",
    "The map may need the start point registered first; "
    "raise interaction.start_settle_ms if the first click is dropped.",
    "Set ROUTEQA_DEMO_MODE=1 (demo.fallback_enabled) to accept placeholder readouts.",
]


class MapPage:
    """Adaptive map interaction and response classifier.

    Holds at most one captured response, replaced on every completed
    interaction. Each test gets its own instance.
    """

    def __init__(self, page: Page, config: Config) -> None:
        self.page = page
        self.config = config
        self._captured: CapturedResponse | None = None
        self.capture_seconds: float | None = None

    @property
    def map_url(self) -> str:
        """Absolute URL of the map page."""
        target = self.config.target
        return target.base_url.rstrip("/") + "/" + target.map_path.lstrip("/")

    @property
    def captured(self) -> CapturedResponse | None:
        """The classified response of the last completed interaction."""
        return self._captured

    # --- Navigation ---

    def navigate(self) -> None:
        """Open the map and wait for it to become interactive.

        Waits (best-effort) for a background tile to load, then dismisses any
        known banner or modal.

        Raises:
            TimeoutError: If the page itself does not load in time
        """
        timeouts = self.config.timeouts
        fragment = self.config.target.tile_url_fragment
        self.page.set_default_timeout(timeouts.action)

        logger.info(f"Opening map at {self.map_url}")
        navigated = False
        try:
            with self.page.expect_response(
                lambda r: fragment in r.url and r.status == 200,
                timeout=timeouts.tile_wait,
            ):
                self.page.goto(
                    self.map_url, wait_until="domcontentloaded", timeout=timeouts.navigation
                )
                navigated = True
        except PlaywrightTimeoutError:
            if not navigated:
                raise
            logger.warning(
                f"No tile response matching '{fragment}' within {timeouts.tile_wait}ms, "
                "continuing"
            )

        self.dismiss_overlays()

    def dismiss_overlays(self) -> None:
        """Click away cookie banners and modals that would swallow map clicks."""
        interaction = self.config.interaction
        for selector in interaction.dismiss_selectors:
            button = self.page.locator(selector).first
            try:
                button.wait_for(state="visible", timeout=self.config.timeouts.overlay_check)
            except PlaywrightTimeoutError:
                continue

            logger.info(f"Dismissing overlay: {selector}")
            button.click()
            self.page.wait_for_timeout(interaction.overlay_settle_ms)

    # --- Gestures ---

    def select_start(self) -> Point:
        """Click the start point and let the map register it.

        Returns:
            The clicked (x, y) position
        """
        x, y = self._point(self.config.interaction.start_point)
        logger.info(f"Selecting start point at ({x:.0f}, {y:.0f})")
        self.page.mouse.click(x, y)
        self.page.wait_for_timeout(self.config.interaction.start_settle_ms)
        return x, y

    def select_end(self, same_as_start: bool = False) -> Point:
        """Click the destination and capture the resulting response.

        Args:
            same_as_start: Click the start point again (identical-point edge case)

        Returns:
            The clicked (x, y) position
        """
        interaction = self.config.interaction
        fraction = interaction.start_point if same_as_start else interaction.end_point
        return self.complete_interaction(fraction)

    def draw_route(self) -> None:
        """Select start and destination in one go."""
        self.select_start()
        self.select_end()

    def complete_interaction(self, fraction: tuple[float, float]) -> Point:
        """Fire the second click and store the first qualifying response.

        The response listener is registered before the click so a fast
        response cannot be missed. A response qualifies when its URL contains
        one of the capture fragments, its status is 200 and its JSON body
        holds a non-empty features list. Other responses are ignored.

        Args:
            fraction: Viewport fraction to click

        Returns:
            The clicked (x, y) position

        Raises:
            TimeoutError: If no qualifying response arrives in time. The
                previously captured response (if any) is kept.
        """
        interaction = self.config.interaction
        x, y = self._point(fraction)
        candidates: list[Response] = []

        def collect(response: Response) -> None:
            if is_capture_candidate(response.url, response.status, interaction.capture_url_fragments):
                candidates.append(response)

        self.page.on("response", collect)
        try:
            logger.info(f"Selecting end point at ({x:.0f}, {y:.0f})")
            started = time.monotonic()
            self.page.mouse.click(x, y)
            self.page.wait_for_timeout(interaction.end_settle_ms)
            body = self._await_capture(candidates, started)
        finally:
            self.page.remove_listener("response", collect)

        captured = classify(body)
        self._captured = captured
        self.capture_seconds = time.monotonic() - started
        logger.info(f"Captured {type(captured).__name__} in {self.capture_seconds:.2f}s")
        return x, y

    def _await_capture(self, candidates: list[Response], started: float) -> dict:
        timeout_ms = self.config.timeouts.network_capture
        deadline = started + timeout_ms / 1000
        checked = 0

        while True:
            while checked < len(candidates):
                response = candidates[checked]
                checked += 1
                body = self._read_json(response)
                if has_features(body):
                    return body
                logger.debug(f"Ignoring {response.url}: body has no features")

            if time.monotonic() >= deadline:
                raise PlaywrightTimeoutError(
                    f"No route or address response with features within {timeout_ms}ms "
                    f"(watched: {', '.join(self.config.interaction.capture_url_fragments)})"
                )
            self.page.wait_for_timeout(self.config.interaction.poll_interval_ms)

    @staticmethod
    def _read_json(response: Response) -> object:
        try:
            return response.json()
        except (ValueError, PlaywrightError):
            return None

    def _point(self, fraction: tuple[float, float]) -> Point:
        return relative_point(self.page.viewport_size, fraction)

    # --- Readouts ---

    def has_route(self) -> bool:
        """True if an interaction captured a response."""
        return self._captured is not None

    def distance(self) -> float:
        """Route distance in meters."""
        return self._metric("distance")

    def duration(self) -> float:
        """Route duration in seconds."""
        return self._metric("duration")

    def coordinates(self) -> list[Point]:
        """Route coordinates as (lon, lat) tuples, always at least two points.

        An address capture yields its point repeated, so callers can treat
        both response kinds alike.
        """
        captured = self._require_capture("coordinates")

        if isinstance(captured, RouteResult):
            if not captured.coordinates:
                raise UnrecognizedResponseError("route feature carries no geometry")
            return normalize_coordinates(captured.coordinates)
        if isinstance(captured, AddressResult):
            return normalize_coordinates([captured.point])
        raise UnrecognizedResponseError(captured.reason)

    def is_route_displayed(self) -> bool:
        """True if a route with positive distance and duration was captured."""
        return self.has_route() and self.distance() > 0 and self.duration() > 0

    def distance_in_miles(self) -> float:
        """Route distance in miles (two decimals)."""
        return meters_to_miles(self.distance())

    def duration_formatted(self) -> str:
        """Route duration for display, e.g. '1h 5m'."""
        return format_duration(self.duration())

    def _require_capture(self, accessor: str) -> CapturedResponse:
        if self._captured is None:
            raise NoRouteCapturedError(accessor)
        return self._captured

    def _metric(self, name: str) -> float:
        captured = self._require_capture(name)

        if isinstance(captured, RouteResult):
            return float(getattr(captured, name))
        if isinstance(captured, AddressResult):
            return self._placeholder(name, captured)
        raise UnrecognizedResponseError(captured.reason)

    def _placeholder(self, name: str, captured: AddressResult) -> float:
        demo = self.config.demo
        if not demo.fallback_enabled:
            raise ResponseShapeMismatchError(
                expected="route", observed="address", hints=MISMATCH_HINTS
            )

        value = demo.placeholder_distance if name == "distance" else demo.placeholder_duration
        logger.warning(
            f"Address response captured ({captured.label or 'unlabelled'}) instead of a route; "
            f"demo fallback returns placeholder {name} {value}"
        )
        return value
