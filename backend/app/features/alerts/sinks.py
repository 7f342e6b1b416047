"""Notification sinks: where rendered alerts end up."""

import asyncio
from typing import Optional, Protocol, runtime_checkable

import httpx
import structlog

from app.core.exceptions import DependencyError

from .schemas import Notification

logger = structlog.get_logger(__name__)


@runtime_checkable
class NotificationSink(Protocol):
    """Anything that can deliver a :class:`Notification`."""

    async def send(self, notification: Notification) -> None: ...


class LogNotificationSink:
    """Writes notifications to the structured log.

    Used when no webhook is configured, so alerts are still observable.
    """

    async def send(self, notification: Notification) -> None:
        logger.info(
            "Notification",
            alert_key=notification.alert_key,
            title=notification.title,
            severity_color=f"#{notification.severity_color:06X}",
            description=notification.description,
            fields={f.name: f.value for f in notification.fields},
            actions=[a.id for a in notification.actions],
        )

    async def close(self) -> None:
        return None


class WebhookNotificationSink:
    """Posts notifications as JSON to an HTTP webhook.

    The client is created lazily and shared between sends.
    """

    def __init__(
        self,
        url: str,
        timeout_seconds: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.client = client
        self._client_lock = asyncio.Lock()

    async def _get_client(self) -> httpx.AsyncClient:
        if self.client is None or self.client.is_closed:
            async with self._client_lock:
                if self.client is None or self.client.is_closed:
                    timeout = httpx.Timeout(
                        self.timeout_seconds, connect=min(self.timeout_seconds, 5.0)
                    )
                    self.client = httpx.AsyncClient(
                        timeout=timeout,
                        headers={
                            "Content-Type": "application/json",
                            "User-Agent": "ServerAnalytics/1.0",
                        },
                    )
                    logger.info("Notification webhook client started")
        return self.client

    async def send(self, notification: Notification) -> None:
        """POST the notification.

        :raises DependencyError: On transport errors, timeouts and non-2xx responses
        """
        client = await self._get_client()
        try:
            response = await client.post(
                self.url, json=notification.model_dump(mode="json")
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise DependencyError(
                f"Webhook responded with {e.response.status_code}",
                service="WebhookNotificationSink",
                operation="send",
                context={"alert_key": notification.alert_key},
                original_error=e,
            ) from e
        except httpx.HTTPError as e:
            raise DependencyError(
                f"Webhook request failed: {type(e).__name__}",
                service="WebhookNotificationSink",
                operation="send",
                context={"alert_key": notification.alert_key},
                original_error=e,
            ) from e

    async def close(self) -> None:
        if self.client and not self.client.is_closed:
            await self.client.aclose()
            logger.info("Notification webhook client closed")


def build_notification_sink(
    webhook_url: Optional[str], timeout_seconds: float
) -> NotificationSink:
    """Webhook sink when a URL is configured, log sink otherwise."""
    if webhook_url:
        return WebhookNotificationSink(webhook_url, timeout_seconds=timeout_seconds)
    logger.info("No notification webhook configured, alerts go to the log")
    return LogNotificationSink()
