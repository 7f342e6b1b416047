"""Routes validated telemetry events to exactly one handler by type."""

from typing import Any, Awaitable, Callable, Dict, Mapping

import structlog

from app.core.enums import EventType

from .schemas import TelemetryEvent

logger = structlog.get_logger(__name__)

EventHandler = Callable[[Any], Awaitable[Any]]


class EventDispatcher:
    """Pure routing table; holds no business logic."""

    def __init__(self, handlers: Mapping[EventType, EventHandler]):
        self._handlers: Dict[EventType, EventHandler] = dict(handlers)

    @property
    def event_types(self) -> list[EventType]:
        return list(self._handlers)

    async def dispatch(self, event: TelemetryEvent) -> Any:
        """Await the handler registered for ``event.type``.

        Unknown types are ignored.
        """
        try:
            event_type = EventType(event.type)
        except ValueError:
            logger.debug("No handler for event type", event_type=event.type)
            return None

        handler = self._handlers.get(event_type)
        if handler is None:
            logger.debug("No handler for event type", event_type=event_type.value)
            return None
        return await handler(event)
