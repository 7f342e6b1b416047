import pytest

from app.core.enums import LagKind, Severity
from app.core.logging import setup_logging
from app.features.events.schemas import (
    ChunkScanEvent,
    LagAlertEvent,
    PlayerImpactEvent,
    TickSampleEvent,
)
from app.features.performance.service import PerformanceMonitorService


@pytest.fixture
def service(performance_repository, alert_dispatcher):
    return PerformanceMonitorService(performance_repository, alert_dispatcher)


def tick(tps, server="survival"):
    return TickSampleEvent(
        type="tps_update", server=server, tps=tps, mspt=80.0, entityCount=1200
    )


def scan(*chunks, server="survival"):
    return ChunkScanEvent(type="chunk_scan", server=server, chunks=list(chunks))


async def test_low_tps_creates_finding_and_notification(
    service, performance_repository, recording_sink
):
    finding = await service.handle_tick_sample(tick(11.9))

    assert len(performance_repository.tick_samples) == 1
    assert finding.kind == LagKind.TPS_DROP.value
    assert finding.severity == Severity.CRITICAL.value
    assert finding.details == "TPS dropped to 11.90"
    assert finding.metrics == {"tps": 11.9, "mspt": 80.0, "entityCount": 1200}

    notification = recording_sink.sent[0]
    assert notification.alert_key == "tps_survival"
    assert notification.actions[0].id == f"lag_resolve_{finding.id}"
    assert notification.actions[0].resolves_finding_id == finding.id


async def test_healthy_tps_is_only_recorded(service, performance_repository, recording_sink):
    assert await service.handle_tick_sample(tick(19.5)) is None

    assert len(performance_repository.tick_samples) == 1
    assert performance_repository.findings == {}
    assert recording_sink.sent == []


async def test_repeated_breach_inside_window_yields_one_finding(
    service, performance_repository, recording_sink, fake_clock
):
    await service.handle_tick_sample(tick(10.0))
    fake_clock.advance(1.0)
    assert await service.handle_tick_sample(tick(9.0)) is None

    assert len(performance_repository.tick_samples) == 2
    assert len(performance_repository.findings) == 1
    assert len(recording_sink.sent) == 1

    fake_clock.advance(2.0)
    assert await service.handle_tick_sample(tick(9.0)) is not None
    assert len(recording_sink.sent) == 2


async def test_cooldown_keys_are_per_server(service, recording_sink):
    await service.handle_tick_sample(tick(10.0, server="survival"))
    await service.handle_tick_sample(tick(10.0, server="creative"))

    assert [n.alert_key for n in recording_sink.sent] == ["tps_survival", "tps_creative"]


async def test_problem_chunk_is_flagged_and_reported(
    service, performance_repository, recording_sink
):
    findings = await service.handle_chunk_scan(
        scan(
            {
                "world": "world",
                "x": 4,
                "z": -2,
                "entities": 300,
                "hoppers": 60,
                "entityBreakdown": {"ZOMBIE": 200, "COW": 90, "ITEM": 10},
            }
        )
    )

    chunk = performance_repository.chunks[("survival", "world", 4, -2)]
    assert chunk.flagged is True
    assert chunk.flag_reason == "Critical entity count: 300"

    assert len(findings) == 1
    finding = findings[0]
    assert finding.kind == LagKind.ENTITY_SPAM.value
    assert finding.severity == Severity.CRITICAL.value
    assert finding.location == {
        "world": "world",
        "chunk_x": 4,
        "chunk_z": -2,
        "block_x": 64,
        "block_z": -32,
    }

    notification = recording_sink.sent[0]
    assert notification.alert_key == "chunk_survival_4_-2"
    top = next(f for f in notification.fields if f.name == "Top Entities")
    assert top.value.splitlines()[0] == "ZOMBIE: 200"


async def test_chunk_upsert_replaces_previous_record(service, performance_repository):
    await service.handle_chunk_scan(
        scan({"world": "world", "x": 1, "z": 1, "entities": 300, "hoppers": 5})
    )
    await service.handle_chunk_scan(
        scan({"world": "world", "x": 1, "z": 1, "entities": 12, "hoppers": 0})
    )

    assert len(performance_repository.chunks) == 1
    chunk = performance_repository.chunks[("survival", "world", 1, 1)]
    assert chunk.entity_count == 12
    assert chunk.hopper_count == 0
    assert chunk.flagged is False
    assert chunk.flag_reason is None


async def test_quiet_chunks_produce_no_findings(service, performance_repository):
    findings = await service.handle_chunk_scan(
        scan(
            {"world": "world", "x": 0, "z": 0, "entities": 10},
            {"world": "world_nether", "x": 0, "z": 0, "entities": 5},
        )
    )

    assert findings == []
    assert len(performance_repository.chunks) == 2


async def test_lag_alert_defaults_to_medium_severity(
    service, performance_repository, recording_sink
):
    finding = await service.handle_lag_alert(
        LagAlertEvent(
            type="lag_alert",
            server="survival",
            lagType="piston_spam",
            details="Piston clock at spawn",
            location={"world": "world", "x": 10, "y": 64, "z": 20},
            playerNearby={"username": "Steve"},
        )
    )

    assert finding.severity == Severity.MEDIUM.value
    assert finding.kind == LagKind.PISTON_SPAM.value

    notification = recording_sink.sent[0]
    assert notification.alert_key == "lag_survival_piston_spam"
    assert notification.title == "Piston Spam - survival"
    fields = {f.name: f.value for f in notification.fields}
    assert fields["Severity"] == "MEDIUM"
    assert fields["Player Nearby"] == "Steve"


async def test_suppressed_lag_alert_writes_nothing(
    service, performance_repository, recording_sink
):
    event = LagAlertEvent(type="lag_alert", server="survival", kind="redstone_lag")

    await service.handle_lag_alert(event)
    assert await service.handle_lag_alert(event) is None

    assert len(performance_repository.findings) == 1
    assert len(recording_sink.sent) == 1


async def test_player_impact_is_stored_without_alerting(
    service, performance_repository, recording_sink
):
    sample = await service.handle_player_impact(
        PlayerImpactEvent(
            type="player_impact",
            uuid="acc-1",
            username="Steve",
            server="survival",
            entities=40,
            metrics={"blocksPlaced": 120},
        )
    )

    assert sample.entity_count == 40
    assert performance_repository.impact_samples == [sample]
    assert recording_sink.sent == []


async def test_malformed_chunk_does_not_hide_critical_neighbour(
    service, performance_repository, recording_sink
):
    findings = await service.handle_chunk_scan(
        scan(
            {"x": 9, "z": 9, "entities": 999},
            {"world": "world", "x": 2, "z": 3, "entities": 300},
        )
    )

    assert list(performance_repository.chunks) == [("survival", "world", 2, 3)]
    assert performance_repository.chunks[("survival", "world", 2, 3)].flagged is True
    assert len(findings) == 1
    assert recording_sink.sent[0].alert_key == "chunk_survival_2_3"


async def test_tick_handling_with_debug_logging_enabled(service, recording_sink):
    setup_logging("DEBUG")

    finding = await service.handle_tick_sample(tick(11.9))

    assert finding is not None
    assert recording_sink.sent[0].alert_key == "tps_survival"
