"""Fire-and-forget execution of event handlers after the HTTP response."""

import asyncio
from typing import Set

import structlog

from app.core.exceptions import ServiceException

from .dispatcher import EventDispatcher
from .schemas import TelemetryEvent

logger = structlog.get_logger(__name__)


class BackgroundRunner:
    """Runs one detached task per event, bounded by a timeout.

    Every task is wrapped in an error boundary so a failing handler is logged
    and never reaches the event loop's unhandled-exception hook. Live tasks
    are referenced here until they finish, otherwise the loop could collect
    them mid-flight.
    """

    def __init__(self, dispatcher: EventDispatcher, timeout_seconds: float = 15.0):
        self.dispatcher = dispatcher
        self.timeout_seconds = timeout_seconds
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, event: TelemetryEvent) -> asyncio.Task:
        task = asyncio.create_task(
            self._run(event), name=f"telemetry-{event.type}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, event: TelemetryEvent) -> None:
        try:
            await asyncio.wait_for(
                self.dispatcher.dispatch(event), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.error(
                "Event handler timed out",
                event_type=event.type,
                server_id=event.server_id,
                timeout_seconds=self.timeout_seconds,
            )
        except ServiceException as e:
            logger.error(
                "Event handler failed",
                event_type=event.type,
                server_id=event.server_id,
                error_type=type(e).__name__,
                error_message=e.message,
            )
        except asyncio.CancelledError:
            logger.warning("Event handler cancelled", event_type=event.type)
            raise
        except Exception as e:
            logger.error(
                "Unexpected error in event handler",
                event_type=event.type,
                server_id=event.server_id,
                error_type=type(e).__name__,
                error_message=str(e),
                exc_info=True,
            )

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for outstanding tasks; cancel whatever is left after ``timeout``."""
        if not self._tasks:
            return

        tasks = list(self._tasks)
        logger.info("Draining background event tasks", pending=len(tasks))
        _, still_running = await asyncio.wait(tasks, timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            await asyncio.gather(*still_running, return_exceptions=True)
            logger.warning("Cancelled unfinished event tasks", cancelled=len(still_running))
