"""Shared pytest fixtures for routeqa tests."""

import os
import socket
import subprocess
import sys
import time
from collections.abc import Generator
from pathlib import Path

import pytest
import requests

from routeqa.api_client import RouteApiClient
from routeqa.config import Config, apply_env_overrides
from routeqa.scenario import ScenarioContext
from routeqa.viewport import with_desktop_viewport

ROOT = Path(__file__).parent.parent
SERVER_START_ATTEMPTS = 50
SERVER_RETRY_DELAY = 0.2


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add custom command line options."""
    parser.addoption(
        "--target",
        choices=("stub", "live"),
        default="stub",
        help="Run e2e/api tests against the local stub (default) or the live site",
    )


@pytest.fixture
def test_config() -> Config:
    """Create test configuration with no settle delays.

    Returns:
        Config object with test-specific settings
    """
    config = Config()
    # Override for tests
    config.interaction.start_settle_ms = 0
    config.interaction.end_settle_ms = 0
    config.interaction.overlay_settle_ms = 0
    config.interaction.poll_interval_ms = 5
    config.timeouts.network_capture = 200
    config.target.base_url = "http://map.test"
    return config


@pytest.fixture(scope="session")
def browser_context_args(browser_context_args: dict, device: str | None) -> dict:
    """Run browser scenarios at 1920x1080 unless a device is emulated."""
    return with_desktop_viewport(browser_context_args, device)


@pytest.fixture(scope="session")
def target(request: pytest.FixtureRequest) -> str:
    """Selected target: 'stub' or 'live'."""
    return str(request.config.getoption("--target"))


@pytest.fixture(scope="session")
def live_server(tmp_path_factory: pytest.TempPathFactory) -> Generator[str]:
    """Start the stub map server on a free port (session-scoped).

    Yields:
        Base URL of the running server
    """
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]

    base_url = f"http://127.0.0.1:{port}"
    log_path = tmp_path_factory.mktemp("stub_server") / "server.log"

    with open(log_path, "w") as log_file:
        process = subprocess.Popen(
            [sys.executable, "-m", "routeqa.stub_server", "--port", str(port)],
            stdout=log_file,
            stderr=subprocess.STDOUT,
            cwd=str(ROOT),
        )

        # Wait for server to be ready
        for _ in range(SERVER_START_ATTEMPTS):
            try:
                if requests.get(f"{base_url}/health", timeout=1).status_code == 200:
                    break
            except requests.exceptions.RequestException:
                pass

            if process.poll() is not None:
                raise RuntimeError(f"Stub server died: {log_path.read_text()}")
            time.sleep(SERVER_RETRY_DELAY)
        else:
            process.terminate()
            process.wait()
            raise RuntimeError(
                f"Stub server not ready after {SERVER_START_ATTEMPTS} attempts: "
                f"{log_path.read_text()}"
            )

        yield base_url

        # Cleanup
        process.terminate()
        process.wait(timeout=10)


@pytest.fixture(scope="session")
def target_config(request: pytest.FixtureRequest, target: str) -> Config:
    """Configuration for e2e and API tests.

    Loads config.toml and environment overrides. Against the stub, URLs point
    at the local server and waits are shortened.
    """
    config = apply_env_overrides(Config.from_file(ROOT / "config.toml"), os.environ)
    if target == "live":
        return config

    base_url: str = request.getfixturevalue("live_server")
    config.target.base_url = base_url
    config.target.tile_url_fragment = "/tiles/"
    config.api.base_url = base_url
    config.api.api_key = None
    config.timeouts.overlay_check = 500
    config.interaction.start_settle_ms = 200
    config.interaction.end_settle_ms = 100
    return config


@pytest.fixture
def scenario_context() -> ScenarioContext:
    """Fresh per-scenario state for BDD steps."""
    return ScenarioContext()


@pytest.fixture
def api_client(target_config: Config) -> Generator[RouteApiClient]:
    """Routing API client, closed after the test."""
    with RouteApiClient(target_config.api) as client:
        yield client


@pytest.fixture
def route_body() -> dict:
    """Route-shaped response body (5.42 km, 380 s)."""
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {
                    "summary": {"distance": 5420, "duration": 380},
                    "segments": [],
                },
                "geometry": {
                    "type": "LineString",
                    "coordinates": [[8.681495, 49.41461], [8.686507, 49.41943], [8.687872, 49.420318]],
                },
            }
        ],
        "metadata": {"query": {"profile": "driving-car"}},
    }


@pytest.fixture
def address_body() -> dict:
    """Reverse-geocoding response body for a single point."""
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"label": "Bergheimer Straße 12, Heidelberg, Germany"},
                "geometry": {"type": "Point", "coordinates": [8.681495, 49.41461]},
            }
        ],
    }
