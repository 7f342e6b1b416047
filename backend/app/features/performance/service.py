"""Performance monitor service.

Stores tick samples, chunk statistics and player impact, and turns threshold
breaches into lag findings. A finding is only written when the alert cooldown
lets its notification through, so repeated breaches inside one window produce
a single finding.
"""

from typing import List, Optional

import structlog

from app.core.decorators import service_error_handler
from app.core.enums import LagKind, Severity
from app.core.models import utc_now
from app.features.alerts.dispatcher import AlertDispatcher
from app.features.alerts.rendering import (
    LAG_KIND_TITLES,
    build_chunk_notification,
    build_lag_notification,
    build_tps_notification,
    chunk_alert_key,
    lag_alert_key,
    tps_alert_key,
)
from app.features.events.schemas import (
    ChunkScanEntry,
    ChunkScanEvent,
    LagAlertEvent,
    PlayerImpactEvent,
    TickSampleEvent,
)

from .orm_models import ImpactSampleORM, LagFindingORM, TickSampleORM
from .repository import PerformanceRepositoryInterface
from .thresholds import classify_chunk, classify_tps

logger = structlog.get_logger(__name__)


class PerformanceMonitorService:
    """Thin orchestration over the performance repository and alert dispatch."""

    def __init__(
        self, repository: PerformanceRepositoryInterface, alerts: AlertDispatcher
    ):
        self.repository = repository
        self.alerts = alerts

    @service_error_handler("PerformanceMonitorService")
    async def handle_tick_sample(
        self, event: TickSampleEvent
    ) -> Optional[LagFindingORM]:
        """Store a tick sample and raise a TPS finding when it is unhealthy.

        :returns: The finding created, if the cooldown permitted one
        """
        now = utc_now()
        await self.repository.add_tick_sample(
            TickSampleORM(
                server_id=event.server_id,
                ticks_per_second=event.ticks_per_second,
                millis_per_tick=event.millis_per_tick,
                loaded_chunks=event.loaded_chunks,
                entity_count=event.entity_count,
                player_count=event.player_count,
                memory_used=event.memory_used,
                memory_max=event.memory_max,
                timestamp=now,
            )
        )

        severity = classify_tps(event.ticks_per_second)
        if severity is None:
            return None
        if not self.alerts.acquire(tps_alert_key(event.server_id)):
            return None

        finding = await self.repository.add_lag_finding(
            LagFindingORM(
                server_id=event.server_id,
                kind=LagKind.TPS_DROP.value,
                severity=severity.value,
                details=f"TPS dropped to {event.ticks_per_second:.2f}",
                metrics={
                    "tps": event.ticks_per_second,
                    "mspt": event.millis_per_tick,
                    "entityCount": event.entity_count,
                },
                timestamp=now,
            )
        )
        await self.alerts.send(
            build_tps_notification(
                server_id=event.server_id,
                finding_id=finding.id,
                severity=severity,
                ticks_per_second=event.ticks_per_second,
                millis_per_tick=event.millis_per_tick,
                entity_count=event.entity_count,
                loaded_chunks=event.loaded_chunks,
                player_count=event.player_count,
            )
        )
        return finding

    @service_error_handler("PerformanceMonitorService")
    async def handle_chunk_scan(self, event: ChunkScanEvent) -> List[LagFindingORM]:
        """Upsert every scanned chunk and raise findings for problem chunks.

        :returns: Findings created during this scan
        """
        findings = []
        for chunk in event.chunks:
            finding = await self._process_chunk(event.server_id, chunk)
            if finding is not None:
                findings.append(finding)

        logger.debug(
            "Chunk scan processed",
            server_id=event.server_id,
            chunks=len(event.chunks),
            findings=len(findings),
        )
        return findings

    async def _process_chunk(
        self, server_id: str, chunk: ChunkScanEntry
    ) -> Optional[LagFindingORM]:
        now = utc_now()
        classification = classify_chunk(
            chunk.entity_count, chunk.hopper_count, chunk.redstone_count
        )

        await self.repository.upsert_chunk(
            dict(
                server_id=server_id,
                world=chunk.world,
                chunk_x=chunk.chunk_x,
                chunk_z=chunk.chunk_z,
                entity_count=chunk.entity_count,
                entity_breakdown=chunk.entity_breakdown,
                tile_entity_count=chunk.tile_entity_count,
                hopper_count=chunk.hopper_count,
                redstone_count=chunk.redstone_count,
                players_nearby=chunk.players_nearby,
                flagged=classification is not None,
                flag_reason=classification.reason if classification else None,
                last_updated=now,
            )
        )

        if classification is None:
            return None
        if not self.alerts.acquire(
            chunk_alert_key(server_id, chunk.chunk_x, chunk.chunk_z)
        ):
            return None

        finding = await self.repository.add_lag_finding(
            LagFindingORM(
                server_id=server_id,
                kind=classification.kind.value,
                severity=classification.severity.value,
                location={
                    "world": chunk.world,
                    "chunk_x": chunk.chunk_x,
                    "chunk_z": chunk.chunk_z,
                    "block_x": chunk.chunk_x * 16,
                    "block_z": chunk.chunk_z * 16,
                },
                details=classification.reason,
                metrics={
                    "entities": chunk.entity_count,
                    "hoppers": chunk.hopper_count,
                    "redstone": chunk.redstone_count,
                    "tileEntities": chunk.tile_entity_count,
                },
                player_nearby=chunk.players_nearby[0] if chunk.players_nearby else None,
                timestamp=now,
            )
        )
        await self.alerts.send(
            build_chunk_notification(
                server_id=server_id,
                finding_id=finding.id,
                severity=classification.severity,
                world=chunk.world,
                chunk_x=chunk.chunk_x,
                chunk_z=chunk.chunk_z,
                flag_reason=classification.reason,
                entity_count=chunk.entity_count,
                hopper_count=chunk.hopper_count,
                redstone_count=chunk.redstone_count,
                entity_breakdown=chunk.entity_breakdown,
            )
        )
        return finding

    @service_error_handler("PerformanceMonitorService")
    async def handle_lag_alert(self, event: LagAlertEvent) -> Optional[LagFindingORM]:
        """Record a lag condition the plugin already classified."""
        if not self.alerts.acquire(lag_alert_key(event.server_id, event.kind)):
            return None

        severity = event.severity or Severity.MEDIUM
        details = event.details or (
            f"{LAG_KIND_TITLES.get(event.kind, event.kind.value)} "
            f"reported on {event.server_id}"
        )
        finding = await self.repository.add_lag_finding(
            LagFindingORM(
                server_id=event.server_id,
                kind=event.kind.value,
                severity=severity.value,
                location=event.location,
                details=details,
                metrics=event.metrics,
                player_nearby=event.player_nearby,
                timestamp=utc_now(),
            )
        )
        await self.alerts.send(
            build_lag_notification(
                server_id=event.server_id,
                finding_id=finding.id,
                kind=event.kind,
                severity=severity,
                details=details,
                location=event.location,
                player_nearby=event.player_nearby,
            )
        )
        return finding

    @service_error_handler("PerformanceMonitorService")
    async def handle_player_impact(self, event: PlayerImpactEvent) -> ImpactSampleORM:
        """Store a player impact sample. Never alerts."""
        return await self.repository.add_impact_sample(
            ImpactSampleORM(
                account_id=event.account_id,
                display_name=event.display_name,
                server_id=event.server_id,
                entity_count=event.entity_count,
                loaded_chunks=event.loaded_chunks,
                metrics=event.metrics,
                timestamp=utc_now(),
            )
        )
