import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.config import AuthMode
from app.features.alt_detection.service import AltDetectionService
from app.features.analytics.dependencies import (
    get_alt_repository,
    get_performance_repository,
)
from app.features.analytics.router import router as analytics_router
from app.features.events.schemas import telemetry_event_adapter
from app.features.performance.service import PerformanceMonitorService


@pytest.fixture
def client(alt_repository, performance_repository):
    app = FastAPI()
    app.state.auth_mode = AuthMode.secret("staff-key")
    app.include_router(analytics_router, prefix="/api")
    app.dependency_overrides[get_alt_repository] = lambda: alt_repository
    app.dependency_overrides[get_performance_repository] = (
        lambda: performance_repository
    )
    return TestClient(app, headers={"Authorization": "Bearer staff-key"})


@pytest.fixture
def performance_service(performance_repository, alert_dispatcher):
    return PerformanceMonitorService(performance_repository, alert_dispatcher)


@pytest.fixture
def alt_service(alt_repository, alert_dispatcher):
    return AltDetectionService(alt_repository, alert_dispatcher, hash_key="test-key")


async def feed(service_method, payload):
    return await service_method(telemetry_event_adapter.validate_python(payload))


async def test_latest_tps_per_server(client, performance_service):
    for server, tps in [("lobby", 20), ("survival", 19), ("survival", 14)]:
        await feed(
            performance_service.handle_tick_sample,
            {"type": "tps_update", "server": server, "tps": tps},
        )

    response = client.get("/api/analytics/tps")

    assert response.status_code == 200
    assert {s["server_id"]: s["ticks_per_second"] for s in response.json()} == {
        "lobby": 20.0,
        "survival": 14.0,
    }


def test_unknown_server_tps_is_404(client):
    response = client.get("/api/analytics/tps/creative")

    assert response.status_code == 404


async def test_flagged_chunks_only(client, performance_service):
    await feed(
        performance_service.handle_chunk_scan,
        {
            "type": "chunk_scan",
            "server": "survival",
            "chunks": [
                {"world": "world", "x": 1, "z": 2, "entities": 160},
                {"world": "world", "x": 5, "z": 5, "entities": 3},
            ],
        },
    )

    response = client.get("/api/analytics/chunks")

    assert response.status_code == 200
    chunks = response.json()
    assert len(chunks) == 1
    assert (chunks[0]["block_x"], chunks[0]["block_z"]) == (16, 32)


async def test_lag_findings_filters(
    client, performance_service, performance_repository
):
    for kind, severity in [("hopper_lag", "low"), ("redstone_lag", "high")]:
        await feed(
            performance_service.handle_lag_alert,
            {"type": "lag_alert", "lagType": kind, "severity": severity},
        )
    performance_repository.findings[1].resolved = True

    response = client.get(
        "/api/analytics/lag-findings", params={"unresolved": True, "severity": "high"}
    )

    assert response.status_code == 200
    assert [f["kind"] for f in response.json()] == ["redstone_lag"]


def test_lag_findings_limit_is_bounded(client):
    response = client.get("/api/analytics/lag-findings", params={"limit": 101})

    assert response.status_code == 422


async def test_player_overview_hides_raw_addresses(client, alt_service):
    for account_id, name in [("acc-old", "Steve"), ("acc-new", "Steve2")]:
        await feed(
            alt_service.handle_connection,
            {
                "type": "connection",
                "uuid": account_id,
                "username": name,
                "ip": "10.0.0.9",
            },
        )

    response = client.get("/api/analytics/players/acc-new")

    assert response.status_code == 200
    body = response.json()
    assert body["profile"]["display_name"] == "Steve2"
    assert "10.0.0.9" not in response.text
    assert body["alt_group"]["linked_accounts"] == [
        {"account_id": "acc-old", "name": "Steve"}
    ]

    pending = client.get("/api/analytics/alt-groups/pending").json()
    assert [g["primary_account_id"] for g in pending] == ["acc-new"]


def test_unknown_player_is_404(client):
    assert client.get("/api/analytics/players/nobody").status_code == 404


def test_requires_api_key(client):
    response = client.get(
        "/api/analytics/tps", headers={"Authorization": "Bearer wrong"}
    )

    assert response.status_code == 403
