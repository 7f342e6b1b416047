"""SQLAlchemy 2.0 ORM models for server performance telemetry."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    Boolean,
    DateTime as SQLDateTime,
    Float,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.core.enums import Severity
from app.core.models import (
    AccountIdField,
    AutoIncrementPK,
    Base,
    RequiredDateTime,
    ServerIdField,
    utc_now,
)


class TickSampleORM(Base):
    """Periodic tick-rate sample. Append-only."""

    __tablename__ = "tick_samples"
    __table_args__ = (
        Index("idx_tick_samples_server_timestamp", "server_id", "timestamp"),
    )

    id: Mapped[AutoIncrementPK]
    server_id: Mapped[ServerIdField]
    ticks_per_second: Mapped[float] = mapped_column(Float, nullable=False)
    millis_per_tick: Mapped[float] = mapped_column(Float, nullable=False)
    loaded_chunks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    entity_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    player_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    memory_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    memory_max: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    timestamp: Mapped[datetime] = mapped_column(
        SQLDateTime(timezone=True), nullable=False, default=utc_now, index=True
    )


class ChunkRecordORM(Base):
    """Latest statistics for one chunk; replaced wholesale on every scan."""

    __tablename__ = "chunk_records"
    __table_args__ = (
        UniqueConstraint(
            "server_id", "world", "chunk_x", "chunk_z", name="uq_chunk_records_coords"
        ),
        Index("idx_chunk_records_flagged_entities", "flagged", "entity_count"),
    )

    id: Mapped[AutoIncrementPK]
    server_id: Mapped[ServerIdField]
    world: Mapped[str] = mapped_column(String(64), nullable=False)
    chunk_x: Mapped[int] = mapped_column(Integer, nullable=False)
    chunk_z: Mapped[int] = mapped_column(Integer, nullable=False)
    entity_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    entity_breakdown: Mapped[Dict[str, int]] = mapped_column(
        JSON, nullable=False, default=dict
    )
    tile_entity_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    hopper_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    redstone_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    players_nearby: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )
    flagged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    flag_reason: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    last_updated: Mapped[datetime] = mapped_column(
        SQLDateTime(timezone=True), nullable=False, default=utc_now, index=True
    )

    @property
    def block_x(self) -> int:
        return self.chunk_x * 16

    @property
    def block_z(self) -> int:
        return self.chunk_z * 16


class LagFindingORM(Base):
    """A detected lag condition awaiting (or past) staff resolution."""

    __tablename__ = "lag_findings"
    __table_args__ = (
        Index("idx_lag_findings_server_resolved", "server_id", "resolved"),
    )

    id: Mapped[AutoIncrementPK]
    server_id: Mapped[ServerIdField]
    kind: Mapped[str] = mapped_column(String(32), nullable=False)
    severity: Mapped[str] = mapped_column(
        String(16), nullable=False, default=Severity.MEDIUM.value
    )
    location: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    details: Mapped[str] = mapped_column(Text, nullable=False, default="")
    metrics: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    player_nearby: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSON, nullable=True
    )
    resolved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    resolved_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(
        SQLDateTime(timezone=True), nullable=True
    )
    timestamp: Mapped[datetime] = mapped_column(
        SQLDateTime(timezone=True), nullable=False, default=utc_now, index=True
    )


class ImpactSampleORM(Base):
    """Per-player load contribution sample. Append-only."""

    __tablename__ = "impact_samples"

    id: Mapped[AutoIncrementPK]
    account_id: Mapped[AccountIdField]
    display_name: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    server_id: Mapped[ServerIdField]
    entity_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    loaded_chunks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    metrics: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    timestamp: Mapped[RequiredDateTime]
