"""HTTP surface smoke tests using FastAPI's TestClient."""

import pytest
from fastapi.testclient import TestClient

from conftest import PIXEL, FakeClock, FakeStylistService
from memory.backing_store import InMemoryBackend
from models.outfit import Viewpoint
from server.api import create_app
from wardrobe_app.app import WardrobeApp
from wardrobe_app.config import WardrobeConfig
from wardrobe_app.errors import TerminalServiceError


@pytest.fixture()
def service(clock: FakeClock) -> FakeStylistService:
    return FakeStylistService(clock)


@pytest.fixture()
def client(service: FakeStylistService, clock: FakeClock) -> TestClient:
    wardrobe = WardrobeApp(
        WardrobeConfig(api_key="test-key", storage_backend="memory"),
        backend=InMemoryBackend(),
        service=service,
        sleep=clock.sleep,
    )
    return TestClient(create_app(wardrobe))


def _sign_in(client: TestClient) -> None:
    assert client.post("/session", json={"id": "alice-1", "display_name": "Alice"}).status_code == 200


def test_healthcheck_reports_scope(client: TestClient) -> None:
    body = client.get("/healthz").json()

    assert body["status"] == "ok"
    assert body["ai_configured"] is True
    assert body["scope"] == "guest"


def test_upload_then_snapshot(client: TestClient) -> None:
    _sign_in(client)

    uploaded = client.post("/clothes", json={"image": PIXEL}).json()
    snapshot = client.get("/wardrobe").json()

    assert uploaded["persisted"] is True
    assert snapshot["scope"] == "alice-1"
    assert [item["id"] for item in snapshot["clothes"]] == [uploaded["item"]["id"]]


def test_invalid_upload_is_bad_request(client: TestClient) -> None:
    _sign_in(client)

    response = client.post("/clothes", json={"image": "not base64!"})

    assert response.status_code == 400


def test_turnaround_failure_is_bad_gateway(client: TestClient, service: FakeStylistService) -> None:
    _sign_in(client)
    client.put(
        "/profile",
        json={
            "name": "Alice",
            "height_cm": 168,
            "weight_kg": 60,
            "skin_tone": "Warm",
            "skin_tone_hex": "#c68642",
            "body_photo": PIXEL,
        },
    )
    item_id = client.post("/clothes", json={"image": PIXEL}).json()["item"]["id"]
    service.view_failures[Viewpoint.FRONT.prompt_label] = [TerminalServiceError("No image generated")]

    response = client.post("/outfits", json={"item_ids": [item_id], "with_turnaround": True})

    assert response.status_code == 502
    assert client.get("/wardrobe").json()["outfits"] == []


def test_share_like_and_comment(client: TestClient) -> None:
    _sign_in(client)
    item_id = client.post("/clothes", json={"image": PIXEL}).json()["item"]["id"]
    outfit_id = client.post("/outfits", json={"item_ids": [item_id]}).json()["outfit"]["id"]

    look = client.post(f"/social/outfits/{outfit_id}").json()["look"]
    client.post(f"/social/looks/{look['id']}/likes")
    client.post(f"/social/looks/{look['id']}/comments", json={"comment": "Great"})

    client.delete("/session")
    social = client.get("/wardrobe").json()["social"]
    assert social[0]["likes"] == 1
    assert social[0]["comments"] == ["Great"]


def test_unknown_resources_are_not_found(client: TestClient) -> None:
    _sign_in(client)

    assert client.delete("/clothes/missing").status_code == 404
    assert client.post("/social/outfits/missing").status_code == 404


def test_turnaround_without_credentials_is_unavailable(clock: FakeClock) -> None:
    service = FakeStylistService(clock, configured=False)
    wardrobe = WardrobeApp(
        WardrobeConfig(storage_backend="memory"),
        backend=InMemoryBackend(),
        service=service,
        sleep=clock.sleep,
    )
    client = TestClient(create_app(wardrobe))
    _sign_in(client)
    client.put(
        "/profile",
        json={
            "name": "Alice",
            "height_cm": 168,
            "weight_kg": 60,
            "skin_tone": "Warm",
            "skin_tone_hex": "#c68642",
            "body_photo": PIXEL,
        },
    )
    item_id = client.post("/clothes", json={"image": PIXEL}).json()["item"]["id"]

    response = client.post("/outfits", json={"item_ids": [item_id], "with_turnaround": True})

    assert response.status_code == 503
    assert service.view_calls() == []
    assert client.get("/wardrobe").json()["outfits"] == []
