"""Deletes telemetry older than its retention window.

Lag findings age out by creation time whether or not they were resolved.
Account profiles and alt groups are never swept.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Type

import structlog
from sqlalchemy import delete

from app.core.config import Settings
from app.core.database import SessionScope, db_manager
from app.core.models import Base, utc_now
from app.features.alt_detection.orm_models import AddressRecordORM, ConnectionEventORM
from app.features.performance.orm_models import (
    ChunkRecordORM,
    ImpactSampleORM,
    LagFindingORM,
    TickSampleORM,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RetentionRule:
    """Rows of ``model`` whose ``column`` is older than ``days`` are deleted."""

    name: str
    model: Type[Base]
    column: str
    days: int

    def cutoff(self, now: datetime) -> datetime:
        return now - timedelta(days=self.days)

    def delete_statement(self, now: datetime) -> Any:
        return delete(self.model).where(
            getattr(self.model, self.column) < self.cutoff(now)
        )


def build_retention_rules(settings: Settings) -> List[RetentionRule]:
    """Retention rules for every swept table, from configuration."""
    return [
        RetentionRule(
            "connection_events",
            ConnectionEventORM,
            "timestamp",
            settings.connection_retention_days,
        ),
        RetentionRule(
            "address_records",
            AddressRecordORM,
            "last_seen",
            settings.connection_retention_days,
        ),
        RetentionRule(
            "tick_samples",
            TickSampleORM,
            "timestamp",
            settings.tick_sample_retention_days,
        ),
        RetentionRule(
            "impact_samples",
            ImpactSampleORM,
            "timestamp",
            settings.impact_retention_days,
        ),
        RetentionRule(
            "lag_findings",
            LagFindingORM,
            "timestamp",
            settings.lag_finding_retention_days,
        ),
        RetentionRule(
            "chunk_records",
            ChunkRecordORM,
            "last_updated",
            settings.chunk_record_retention_days,
        ),
    ]


class RetentionSweeper:
    """Runs every retention rule in one transaction.

    Sweeping is idempotent and needs no coordination with ingestion: rows
    written while a sweep runs are newer than any cutoff.
    """

    def __init__(
        self,
        rules: List[RetentionRule],
        session_scope: Optional[SessionScope] = None,
    ):
        self.rules = rules
        self.session_scope = session_scope or db_manager.get_session

    async def sweep(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """Delete expired rows.

        :param now: Reference time, defaults to the current UTC time
        :returns: Deleted row count per table
        """
        now = now or utc_now()
        deleted: Dict[str, int] = {}

        async with self.session_scope() as session:
            for rule in self.rules:
                result = await session.execute(rule.delete_statement(now))
                deleted[rule.name] = result.rowcount or 0
            await session.commit()

        logger.info(
            "Retention sweep completed",
            total_deleted=sum(deleted.values()),
            **deleted,
        )
        return deleted
