"""Telemetry ingestion: event schemas, classification and background execution.

The router and the production handlers are imported from their modules
directly, since they depend on the detection features.
"""

from .dispatcher import EventDispatcher, EventHandler
from .runner import BackgroundRunner
from .schemas import (
    AltDetectedEvent,
    ChunkScanEntry,
    ChunkScanEvent,
    ConnectionEvent,
    IngestResponse,
    LagAlertEvent,
    PlayerImpactEvent,
    TelemetryEvent,
    TickSampleEvent,
    telemetry_event_adapter,
)

__all__ = [
    "EventDispatcher",
    "EventHandler",
    "BackgroundRunner",
    "AltDetectedEvent",
    "ChunkScanEntry",
    "ChunkScanEvent",
    "ConnectionEvent",
    "IngestResponse",
    "LagAlertEvent",
    "PlayerImpactEvent",
    "TelemetryEvent",
    "TickSampleEvent",
    "telemetry_event_adapter",
]
