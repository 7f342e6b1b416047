"""Production event handlers.

Each handler runs detached from the request that delivered its event, so it
opens its own database session and builds its service per call.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.core.database import SessionScope, db_manager
from app.core.enums import EventType
from app.features.alerts.dispatcher import AlertDispatcher
from app.features.alt_detection.repository import SQLAlchemyAltDetectionRepository
from app.features.alt_detection.service import AltDetectionService
from app.features.performance.repository import SQLAlchemyPerformanceRepository
from app.features.performance.service import PerformanceMonitorService

from .dispatcher import EventDispatcher
from .schemas import (
    AltDetectedEvent,
    ChunkScanEvent,
    ConnectionEvent,
    LagAlertEvent,
    PlayerImpactEvent,
    TickSampleEvent,
)


def build_event_dispatcher(
    alerts: AlertDispatcher,
    settings: Settings,
    session_scope: Optional[SessionScope] = None,
) -> EventDispatcher:
    """Wire every event type to its detection service.

    :param alerts: Shared alert dispatcher (one cooldown map per process)
    :param settings: Application settings
    :param session_scope: Session context factory, defaults to the global
        database manager
    """
    session_scope = session_scope or db_manager.get_session

    def alt_service(session: AsyncSession) -> AltDetectionService:
        return AltDetectionService(
            SQLAlchemyAltDetectionRepository(session),
            alerts,
            hash_key=settings.ip_hash_salt,
            store_raw_addresses=settings.store_raw_addresses,
        )

    def performance_service(session: AsyncSession) -> PerformanceMonitorService:
        return PerformanceMonitorService(
            SQLAlchemyPerformanceRepository(session), alerts
        )

    async def on_connection(event: ConnectionEvent):
        async with session_scope() as session:
            return await alt_service(session).handle_connection(event)

    async def on_alt_detected(event: AltDetectedEvent):
        async with session_scope() as session:
            return await alt_service(session).handle_alt_detected(event)

    async def on_tick_sample(event: TickSampleEvent):
        async with session_scope() as session:
            return await performance_service(session).handle_tick_sample(event)

    async def on_chunk_scan(event: ChunkScanEvent):
        async with session_scope() as session:
            return await performance_service(session).handle_chunk_scan(event)

    async def on_lag_alert(event: LagAlertEvent):
        async with session_scope() as session:
            return await performance_service(session).handle_lag_alert(event)

    async def on_player_impact(event: PlayerImpactEvent):
        async with session_scope() as session:
            return await performance_service(session).handle_player_impact(event)

    return EventDispatcher(
        {
            EventType.CONNECTION: on_connection,
            EventType.ALT_DETECTED: on_alt_detected,
            EventType.TPS_UPDATE: on_tick_sample,
            EventType.CHUNK_SCAN: on_chunk_scan,
            EventType.LAG_ALERT: on_lag_alert,
            EventType.PLAYER_IMPACT: on_player_impact,
        }
    )
