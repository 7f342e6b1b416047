import pytest
from pydantic import ValidationError

from app.core.enums import ConnectionKind, LagKind, Severity
from app.features.events.router import parse_events
from app.features.events.schemas import (
    ChunkScanEvent,
    ConnectionEvent,
    TickSampleEvent,
    telemetry_event_adapter,
)


def test_plugin_wire_names_are_accepted():
    event = telemetry_event_adapter.validate_python(
        {
            "type": "connection",
            "uuid": "069a79f4-44e9-4726-a5be-fca90e38aaf5",
            "username": "Notch",
            "ip": "10.0.0.1",
            "server": "lobby",
            "kind": "server_switch",
        }
    )

    assert isinstance(event, ConnectionEvent)
    assert event.account_id == "069a79f4-44e9-4726-a5be-fca90e38aaf5"
    assert event.display_name == "Notch"
    assert event.address == "10.0.0.1"
    assert event.server_id == "lobby"
    assert event.kind is ConnectionKind.SWITCH


def test_snake_case_names_are_accepted():
    event = telemetry_event_adapter.validate_python(
        {"type": "tps_update", "server_id": "survival", "ticks_per_second": 17.5}
    )

    assert isinstance(event, TickSampleEvent)
    assert event.ticks_per_second == 17.5
    assert event.millis_per_tick == 50.0


def test_tick_sample_defaults_to_healthy_rate():
    event = telemetry_event_adapter.validate_python({"type": "tps_update"})

    assert event.ticks_per_second == 20.0
    assert event.server_id == "proxy"


def test_chunk_scan_entries_use_short_coordinates():
    event = telemetry_event_adapter.validate_python(
        {
            "type": "chunk_scan",
            "server": "survival",
            "chunks": [{"world": "world", "x": 3, "z": -7, "entities": 12}],
        }
    )

    assert isinstance(event, ChunkScanEvent)
    entry = event.chunks[0]
    assert (entry.chunk_x, entry.chunk_z, entry.entity_count) == (3, -7, 12)
    assert entry.hopper_count == 0


def test_lag_alert_severity_is_normalized():
    event = telemetry_event_adapter.validate_python(
        {"type": "lag_alert", "lagType": "hopper_lag", "severity": "HIGH"}
    )

    assert event.kind is LagKind.HOPPER_LAG
    assert event.severity is Severity.HIGH


@pytest.mark.parametrize(
    "payload",
    [
        {"type": "weather_report"},
        {"uuid": "acc-1"},
        {"type": "connection", "username": "NoId"},
        {"type": "lag_alert", "lagType": "made_up"},
        "not-an-object",
    ],
)
def test_malformed_events_are_rejected(payload):
    with pytest.raises(ValidationError):
        telemetry_event_adapter.validate_python(payload)


def test_parse_events_drops_only_bad_entries():
    events, dropped = parse_events(
        [
            {"type": "tps_update", "server": "survival", "tps": 19.9},
            {"type": "unknown"},
            {"type": "player_impact", "uuid": "acc-1"},
        ]
    )

    assert [e.type for e in events] == ["tps_update", "player_impact"]
    assert dropped == 1


def test_parse_events_accepts_single_object():
    events, dropped = parse_events({"type": "tps_update"})

    assert len(events) == 1
    assert dropped == 0


@pytest.mark.parametrize("payload", ["text", 42, None])
def test_parse_events_rejects_non_container_bodies(payload):
    with pytest.raises(ValueError):
        parse_events(payload)


def test_chunk_scan_keeps_valid_entries_next_to_malformed_ones():
    events, dropped = parse_events(
        {
            "type": "chunk_scan",
            "server": "survival",
            "chunks": [
                {"world": "world", "x": 1, "z": 2, "entities": 160},
                {"x": 4, "z": 4, "entities": 500},
                "garbage",
            ],
        }
    )

    assert dropped == 0
    assert len(events) == 1
    assert [(c.chunk_x, c.chunk_z) for c in events[0].chunks] == [(1, 2)]
