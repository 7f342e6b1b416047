"""Pydantic response schemas for performance telemetry."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import LagKind, Severity


class TickSampleResponse(BaseModel):
    server_id: str
    ticks_per_second: float
    millis_per_tick: float
    loaded_chunks: int
    entity_count: int
    player_count: int
    memory_used: int
    memory_max: int
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


class ChunkRecordResponse(BaseModel):
    server_id: str
    world: str
    chunk_x: int
    chunk_z: int
    block_x: int
    block_z: int
    entity_count: int
    entity_breakdown: Dict[str, int] = Field(default_factory=dict)
    tile_entity_count: int
    hopper_count: int
    redstone_count: int
    players_nearby: List[Dict[str, Any]] = Field(default_factory=list)
    flagged: bool
    flag_reason: Optional[str] = None
    last_updated: datetime

    model_config = ConfigDict(from_attributes=True)


class LagFindingResponse(BaseModel):
    """Lag finding as returned by the resolution and read APIs."""

    id: int
    server_id: str
    kind: LagKind
    severity: Severity
    location: Optional[Dict[str, Any]] = None
    details: str
    metrics: Dict[str, Any] = Field(default_factory=dict)
    player_nearby: Optional[Dict[str, Any]] = None
    resolved: bool
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)
