"""Tests for the stub map server."""

import pytest
from starlette.testclient import TestClient

from routeqa.api_client import Profile
from routeqa.responses import AddressResult, RouteResult, classify, has_features
from routeqa.stub_server import build_route, create_app, haversine_m


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app())


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_map_page_has_surface_banner_and_tile(client: TestClient) -> None:
    response = client.get("/")
    assert response.status_code == 200
    assert 'id="map"' in response.text
    assert "Got it" in response.text
    assert "/tiles/0/0/0.png" in response.text


def test_tile_is_png(client: TestClient) -> None:
    response = client.get("/tiles/3/4/5.png")
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert response.content.startswith(b"\x89PNG")


def test_decoy_has_no_features(client: TestClient) -> None:
    response = client.get("/v2/directions/status")
    assert response.status_code == 200
    assert not has_features(response.json())


def test_route_endpoint(client: TestClient) -> None:
    response = client.post(
        "/v2/directions/driving-car/geojson",
        json={"coordinates": [[-74.0060, 40.7128], [-73.9855, 40.7580]]},
    )
    assert response.status_code == 200

    result = classify(response.json())
    assert isinstance(result, RouteResult)
    assert 1000 < result.distance < 50000
    assert result.duration > 0
    assert len(result.coordinates) == 10
    assert result.coordinates[0] == (-74.006, 40.7128)
    assert result.coordinates[-1] == (-73.9855, 40.758)


def test_route_endpoint_rejects_unknown_profile(client: TestClient) -> None:
    response = client.post(
        "/v2/directions/hovercraft/geojson", json={"coordinates": [[0, 0], [1, 1]]}
    )
    assert response.status_code == 400
    assert "Unknown profile" in response.json()["error"]["message"]


@pytest.mark.parametrize(
    "payload",
    [
        {"coordinates": [[0, 0]]},
        {"coordinates": [[0, 0], [1, 1], [2, 2]]},
        {"coordinates": [[0, 0], [200, 1]]},
        {"coordinates": [[0, 0], "x"]},
        {"coordinates": [{"a": 1, "b": 2}, {"a": 1, "b": 2}]},
        {"coordinates": ["xy", "zw"]},
        {"points": []},
        [],
    ],
)
def test_route_endpoint_rejects_bad_body(client: TestClient, payload: object) -> None:
    response = client.post("/v2/directions/driving-car/geojson", json=payload)
    assert response.status_code == 400


def test_route_endpoint_rejects_non_json(client: TestClient) -> None:
    response = client.post("/v2/directions/driving-car/geojson", content=b"not json")
    assert response.status_code == 400


def test_reverse_geocode(client: TestClient) -> None:
    response = client.get("/geocode/reverse", params={"point.lon": "-74.0", "point.lat": "40.7"})
    result = classify(response.json())
    assert isinstance(result, AddressResult)
    assert result.point == (-74.0, 40.7)
    assert result.label is not None and "New York" in result.label


def test_reverse_geocode_requires_point(client: TestClient) -> None:
    assert client.get("/geocode/reverse").status_code == 400


def test_identical_points_give_zero_route() -> None:
    body = build_route([-74.0, 40.7], [-74.0, 40.7], Profile.DRIVING_CAR)
    result = classify(body)
    assert isinstance(result, RouteResult)
    assert result.distance == 0
    assert result.coordinates == ((-74.0, 40.7), (-74.0, 40.7))


def test_slower_profiles_take_longer() -> None:
    start, end = [-74.0060, 40.7128], [-73.9855, 40.7580]
    car = build_route(start, end, Profile.DRIVING_CAR)["features"][0]["properties"]["summary"]
    walk = build_route(start, end, Profile.FOOT_WALKING)["features"][0]["properties"]["summary"]
    assert car["distance"] == walk["distance"]
    assert walk["duration"] > car["duration"]


def test_haversine_one_degree_latitude() -> None:
    assert haversine_m([0.0, 0.0], [0.0, 1.0]) == pytest.approx(111_195, rel=1e-3)
