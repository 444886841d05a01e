"""Per-scenario state shared between BDD steps.

One ScenarioContext is created for every scenario, so parallel workers never
see each other's coordinates or responses.
"""

from dataclasses import dataclass

from playwright.sync_api import Page

from routeqa.api_client import Coordinates, Profile, RouteApiResponse
from routeqa.config import Config
from routeqa.errors import ScenarioStateError
from routeqa.map_page import MapPage


@dataclass
class ScenarioContext:
    """Mutable state for a single scenario."""

    start: Coordinates | None = None
    end: Coordinates | None = None
    profile: Profile = Profile.DRIVING_CAR
    api_response: RouteApiResponse | None = None
    map_page: MapPage | None = None
    # None keeps whatever the loaded config says (ROUTEQA_DEMO_MODE)
    demo_fallback: bool | None = None

    def open_map(self, page: Page, config: Config, mode: str = "route") -> MapPage:
        """Create the scenario's MapPage on a copy of config and navigate to it.

        Args:
            page: Playwright page to drive
            config: Loaded configuration, left unmodified
            mode: "route" for the default map, anything else is passed as ?mode=

        Returns:
            The navigated MapPage, also stored on the context
        """
        config = config.model_copy(deep=True)
        if self.demo_fallback is not None:
            config.demo.fallback_enabled = self.demo_fallback
        if mode != "route":
            config.target.map_path = f"/?mode={mode}"

        self.map_page = MapPage(page, config)
        self.map_page.navigate()
        return self.map_page

    def require_api_response(self) -> RouteApiResponse:
        """Return the last API response, failing if no request was made."""
        if self.api_response is None:
            raise ScenarioStateError("No API request made in this scenario")
        return self.api_response

    def require_map_page(self) -> MapPage:
        """Return the map page, failing if the map was never opened."""
        if self.map_page is None:
            raise ScenarioStateError("Map was not opened in this scenario")
        return self.map_page
