"""Repository pattern implementation for performance telemetry.

Covers tick samples, chunk records, lag findings and player impact samples.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import Severity

from .orm_models import ChunkRecordORM, ImpactSampleORM, LagFindingORM, TickSampleORM

logger = structlog.get_logger(__name__)

CHUNK_KEY_COLUMNS = ["server_id", "world", "chunk_x", "chunk_z"]


class PerformanceRepositoryInterface(ABC):
    """Interface for performance telemetry data access."""

    @abstractmethod
    async def add_tick_sample(self, sample: TickSampleORM) -> TickSampleORM:
        pass

    @abstractmethod
    async def upsert_chunk(self, values: Dict[str, Any]) -> ChunkRecordORM:
        """Insert or fully replace the record for one chunk.

        :param values: Column values, including the
            ``(server_id, world, chunk_x, chunk_z)`` key
        :returns: The stored record
        """
        pass

    @abstractmethod
    async def add_lag_finding(self, finding: LagFindingORM) -> LagFindingORM:
        pass

    @abstractmethod
    async def add_impact_sample(self, sample: ImpactSampleORM) -> ImpactSampleORM:
        pass

    @abstractmethod
    async def get_lag_finding(self, finding_id: int) -> Optional[LagFindingORM]:
        pass

    @abstractmethod
    async def mark_lag_finding_resolved(
        self, finding_id: int, resolved_by: str, resolved_at: datetime
    ) -> Optional[LagFindingORM]:
        """Resolve an unresolved finding.

        :returns: The updated finding, or None when it was already resolved
            or does not exist
        """
        pass

    @abstractmethod
    async def get_latest_tick_samples(self) -> List[TickSampleORM]:
        """Most recent sample of every server."""
        pass

    @abstractmethod
    async def get_latest_tick_sample(self, server_id: str) -> Optional[TickSampleORM]:
        pass

    @abstractmethod
    async def get_flagged_chunks(
        self, server_id: Optional[str], limit: int
    ) -> List[ChunkRecordORM]:
        """Flagged chunks, most entities first."""
        pass

    @abstractmethod
    async def get_lag_findings(
        self,
        server_id: Optional[str],
        severity: Optional[Severity],
        unresolved_only: bool,
        limit: int,
    ) -> List[LagFindingORM]:
        """Lag findings, newest first."""
        pass


class SQLAlchemyPerformanceRepository(PerformanceRepositoryInterface):
    """SQLAlchemy implementation of the performance repository."""

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session.

        :param db: Async database session
        """
        self.db = db

    async def _add(self, instance):
        self.db.add(instance)
        await self.db.commit()
        await self.db.refresh(instance)
        return instance

    async def add_tick_sample(self, sample: TickSampleORM) -> TickSampleORM:
        return await self._add(sample)

    async def upsert_chunk(self, values: Dict[str, Any]) -> ChunkRecordORM:
        replaced = {k: v for k, v in values.items() if k not in CHUNK_KEY_COLUMNS}
        stmt = (
            insert(ChunkRecordORM)
            .values(**values)
            .on_conflict_do_update(index_elements=CHUNK_KEY_COLUMNS, set_=replaced)
            .returning(ChunkRecordORM)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        await self.db.commit()
        chunk = result.scalar_one()

        logger.debug(
            "chunk_upserted",
            server_id=chunk.server_id,
            world=chunk.world,
            chunk_x=chunk.chunk_x,
            chunk_z=chunk.chunk_z,
            flagged=chunk.flagged,
        )
        return chunk

    async def add_lag_finding(self, finding: LagFindingORM) -> LagFindingORM:
        finding = await self._add(finding)
        logger.info(
            "lag_finding_created",
            finding_id=finding.id,
            server_id=finding.server_id,
            kind=finding.kind,
            severity=finding.severity,
        )
        return finding

    async def add_impact_sample(self, sample: ImpactSampleORM) -> ImpactSampleORM:
        return await self._add(sample)

    async def get_lag_finding(self, finding_id: int) -> Optional[LagFindingORM]:
        stmt = (
            select(LagFindingORM)
            .where(LagFindingORM.id == finding_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def mark_lag_finding_resolved(
        self, finding_id: int, resolved_by: str, resolved_at: datetime
    ) -> Optional[LagFindingORM]:
        stmt = (
            update(LagFindingORM)
            .where(
                LagFindingORM.id == finding_id,
                LagFindingORM.resolved == False,  # noqa: E712
            )
            .values(resolved=True, resolved_by=resolved_by, resolved_at=resolved_at)
            .returning(LagFindingORM.id)
        )
        result = await self.db.execute(stmt)
        updated_id = result.scalar_one_or_none()
        await self.db.commit()

        if updated_id is None:
            return None

        logger.info(
            "lag_finding_resolved", finding_id=finding_id, resolved_by=resolved_by
        )
        return await self.get_lag_finding(finding_id)

    async def get_latest_tick_samples(self) -> List[TickSampleORM]:
        latest = (
            select(
                TickSampleORM.server_id,
                func.max(TickSampleORM.id).label("max_id"),
            )
            .group_by(TickSampleORM.server_id)
            .subquery()
        )
        stmt = (
            select(TickSampleORM)
            .join(latest, TickSampleORM.id == latest.c.max_id)
            .order_by(TickSampleORM.server_id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_latest_tick_sample(self, server_id: str) -> Optional[TickSampleORM]:
        stmt = (
            select(TickSampleORM)
            .where(TickSampleORM.server_id == server_id)
            .order_by(TickSampleORM.timestamp.desc(), TickSampleORM.id.desc())
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_flagged_chunks(
        self, server_id: Optional[str], limit: int
    ) -> List[ChunkRecordORM]:
        stmt = select(ChunkRecordORM).where(
            ChunkRecordORM.flagged == True  # noqa: E712
        )
        if server_id:
            stmt = stmt.where(ChunkRecordORM.server_id == server_id)
        stmt = stmt.order_by(ChunkRecordORM.entity_count.desc()).limit(limit)

        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_lag_findings(
        self,
        server_id: Optional[str],
        severity: Optional[Severity],
        unresolved_only: bool,
        limit: int,
    ) -> List[LagFindingORM]:
        stmt = select(LagFindingORM)
        if server_id:
            stmt = stmt.where(LagFindingORM.server_id == server_id)
        if severity is not None:
            stmt = stmt.where(LagFindingORM.severity == severity.value)
        if unresolved_only:
            stmt = stmt.where(LagFindingORM.resolved == False)  # noqa: E712
        stmt = stmt.order_by(LagFindingORM.timestamp.desc()).limit(limit)

        result = await self.db.execute(stmt)
        return list(result.scalars().all())
