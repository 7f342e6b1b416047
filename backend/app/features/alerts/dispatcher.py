"""Alert dispatch gated by the per-key cooldown."""

import structlog

from app.core.exceptions import ServiceException

from .cooldown import CooldownController
from .schemas import Notification
from .sinks import NotificationSink

logger = structlog.get_logger(__name__)


class AlertDispatcher:
    """Forwards notifications to a sink at most once per cooldown window per key.

    Sends are never retried: a failed send is logged and dropped, and the key
    stays marked so the next alert for it waits out the window as usual.
    """

    def __init__(self, cooldowns: CooldownController, sink: NotificationSink):
        self.cooldowns = cooldowns
        self.sink = sink

    def acquire(self, key: str) -> bool:
        """Reserve the send slot for ``key`` if the cooldown permits."""
        return self.cooldowns.acquire(key)

    async def send(self, notification: Notification) -> bool:
        """Deliver a notification whose slot was already acquired.

        :returns: True when the sink accepted it
        """
        try:
            await self.sink.send(notification)
        except ServiceException as e:
            logger.warning(
                "Notification dropped",
                alert_key=notification.alert_key,
                error_type=type(e).__name__,
                error_message=e.message,
            )
            return False
        except Exception as e:
            logger.error(
                "Notification sink failed unexpectedly",
                alert_key=notification.alert_key,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return False

        logger.info("Notification sent", alert_key=notification.alert_key)
        return True

    async def dispatch(self, key: str, notification: Notification) -> bool:
        """Acquire the cooldown slot for ``key`` and send.

        :returns: False when suppressed by the cooldown or when the send failed
        """
        if not self.acquire(key):
            return False
        return await self.send(notification)
