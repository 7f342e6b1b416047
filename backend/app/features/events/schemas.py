"""Pydantic schemas for telemetry events posted by the game-server plugins.

Events are discriminated on ``type``. Every field accepts both the snake_case
name and the camelCase/short names the plugins put on the wire.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

import structlog
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
)
from pydantic import ValidationError as PydanticValidationError

from app.core.enums import ConnectionKind, LagKind, Severity

logger = structlog.get_logger(__name__)

DEFAULT_TPS = 20.0
DEFAULT_MSPT = 50.0

_CONNECTION_KIND_ALIASES = {
    "server_switch": ConnectionKind.SWITCH.value,
    "connect": ConnectionKind.JOIN.value,
    "disconnect": ConnectionKind.LEAVE.value,
}


def _aliases(*names: str) -> AliasChoices:
    return AliasChoices(*names)


class TelemetryEventBase(BaseModel):
    """Fields shared by every telemetry event."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    server_id: str = Field(
        default="proxy",
        min_length=1,
        max_length=64,
        validation_alias=_aliases("server_id", "serverId", "server"),
    )


class ConnectionEvent(TelemetryEventBase):
    """A proxy join/leave/switch for one account."""

    type: Literal["connection"]
    account_id: str = Field(
        min_length=1,
        max_length=36,
        validation_alias=_aliases("account_id", "accountId", "uuid"),
    )
    display_name: str = Field(
        default="",
        max_length=32,
        validation_alias=_aliases("display_name", "displayName", "username"),
    )
    address: Optional[str] = Field(
        default=None,
        max_length=64,
        validation_alias=_aliases("address", "ip"),
    )
    kind: ConnectionKind = Field(
        default=ConnectionKind.JOIN,
        validation_alias=_aliases("kind", "connectionType", "action"),
    )
    session_duration: int = Field(
        default=0,
        ge=0,
        validation_alias=_aliases("session_duration", "sessionDuration"),
    )
    ping: int = Field(default=0, ge=0)

    @field_validator("kind", mode="before")
    @classmethod
    def normalize_kind(cls, v: Any) -> Any:
        if isinstance(v, str):
            lowered = v.strip().lower()
            return _CONNECTION_KIND_ALIASES.get(lowered, lowered)
        return v

    @field_validator("address", mode="before")
    @classmethod
    def blank_address_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class AltDetectedEvent(TelemetryEventBase):
    """A proxy that already linked accounts asks for the alert to be re-sent."""

    type: Literal["alt_detected"]
    group_id: int = Field(gt=0, validation_alias=_aliases("group_id", "groupId"))
    account_id: str = Field(
        min_length=1,
        max_length=36,
        validation_alias=_aliases("account_id", "accountId", "uuid"),
    )


class TickSampleEvent(TelemetryEventBase):
    """Periodic tick-rate sample from one game server."""

    type: Literal["tps_update"]
    ticks_per_second: float = Field(
        default=DEFAULT_TPS,
        ge=0,
        validation_alias=_aliases("ticks_per_second", "ticksPerSecond", "tps"),
    )
    millis_per_tick: float = Field(
        default=DEFAULT_MSPT,
        ge=0,
        validation_alias=_aliases("millis_per_tick", "millisPerTick", "mspt"),
    )
    loaded_chunks: int = Field(
        default=0, ge=0, validation_alias=_aliases("loaded_chunks", "loadedChunks")
    )
    entity_count: int = Field(
        default=0,
        ge=0,
        validation_alias=_aliases("entity_count", "entityCount", "entities"),
    )
    player_count: int = Field(
        default=0,
        ge=0,
        validation_alias=_aliases("player_count", "playerCount", "players"),
    )
    memory_used: int = Field(
        default=0, ge=0, validation_alias=_aliases("memory_used", "memoryUsed")
    )
    memory_max: int = Field(
        default=0, ge=0, validation_alias=_aliases("memory_max", "memoryMax")
    )


class ChunkScanEntry(BaseModel):
    """One chunk inside a ``chunk_scan`` event."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    world: str = Field(min_length=1, max_length=64)
    chunk_x: int = Field(validation_alias=_aliases("chunk_x", "chunkX", "x"))
    chunk_z: int = Field(validation_alias=_aliases("chunk_z", "chunkZ", "z"))
    entity_count: int = Field(
        default=0,
        ge=0,
        validation_alias=_aliases("entity_count", "entityCount", "entities"),
    )
    entity_breakdown: Dict[str, int] = Field(
        default_factory=dict,
        validation_alias=_aliases("entity_breakdown", "entityBreakdown"),
    )
    tile_entity_count: int = Field(
        default=0,
        ge=0,
        validation_alias=_aliases(
            "tile_entity_count", "tileEntityCount", "tileEntities"
        ),
    )
    hopper_count: int = Field(
        default=0,
        ge=0,
        validation_alias=_aliases("hopper_count", "hopperCount", "hoppers"),
    )
    redstone_count: int = Field(
        default=0,
        ge=0,
        validation_alias=_aliases("redstone_count", "redstoneCount", "redstone"),
    )
    players_nearby: List[Dict[str, Any]] = Field(
        default_factory=list,
        validation_alias=_aliases("players_nearby", "playersNearby"),
    )


class ChunkScanEvent(TelemetryEventBase):
    """Batch of per-chunk statistics from one game server."""

    type: Literal["chunk_scan"]
    chunks: List[ChunkScanEntry] = Field(default_factory=list)

    @field_validator("chunks", mode="before")
    @classmethod
    def drop_malformed_chunks(cls, v: Any) -> Any:
        if not isinstance(v, list):
            return v
        kept: List[ChunkScanEntry] = []
        for index, raw in enumerate(v):
            try:
                kept.append(ChunkScanEntry.model_validate(raw))
            except PydanticValidationError as e:
                logger.warning(
                    "Dropping malformed chunk entry",
                    index=index,
                    error_count=e.error_count(),
                )
        return kept


class LagAlertEvent(TelemetryEventBase):
    """A lag condition already classified by the plugin."""

    type: Literal["lag_alert"]
    kind: LagKind = Field(
        default=LagKind.SUSPECTED_LAG_MACHINE,
        validation_alias=_aliases("kind", "lagType", "alertType"),
    )
    severity: Severity = Severity.MEDIUM
    details: Optional[str] = Field(default=None, max_length=1024)
    location: Optional[Dict[str, Any]] = None
    metrics: Dict[str, Any] = Field(default_factory=dict)
    player_nearby: Optional[Dict[str, Any]] = Field(
        default=None, validation_alias=_aliases("player_nearby", "playerNearby")
    )

    @field_validator("severity", mode="before")
    @classmethod
    def default_missing_severity(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return Severity.MEDIUM
        return v.lower() if isinstance(v, str) else v


class PlayerImpactEvent(TelemetryEventBase):
    """Per-player load contribution sample."""

    type: Literal["player_impact"]
    account_id: str = Field(
        min_length=1,
        max_length=36,
        validation_alias=_aliases("account_id", "accountId", "uuid"),
    )
    display_name: str = Field(
        default="",
        max_length=32,
        validation_alias=_aliases("display_name", "displayName", "username"),
    )
    entity_count: int = Field(
        default=0,
        ge=0,
        validation_alias=_aliases("entity_count", "entityCount", "entities"),
    )
    loaded_chunks: int = Field(
        default=0,
        ge=0,
        validation_alias=_aliases("loaded_chunks", "loadedChunks", "chunks"),
    )
    metrics: Dict[str, Any] = Field(default_factory=dict)


TelemetryEvent = Annotated[
    Union[
        ConnectionEvent,
        AltDetectedEvent,
        TickSampleEvent,
        ChunkScanEvent,
        LagAlertEvent,
        PlayerImpactEvent,
    ],
    Field(discriminator="type"),
]

telemetry_event_adapter: TypeAdapter[TelemetryEvent] = TypeAdapter(TelemetryEvent)


class IngestResponse(BaseModel):
    """Immediate acknowledgement returned by the ingestion gateway."""

    success: bool = True
    accepted: int = 0
    dropped: int = 0
