"""Alert dispatch: cooldowns, notification records and sinks."""

from .cooldown import CooldownController
from .dispatcher import AlertDispatcher
from .schemas import Notification, NotificationField, ResolutionAction
from .sinks import (
    LogNotificationSink,
    NotificationSink,
    WebhookNotificationSink,
    build_notification_sink,
)

__all__ = [
    "CooldownController",
    "AlertDispatcher",
    "Notification",
    "NotificationField",
    "ResolutionAction",
    "NotificationSink",
    "LogNotificationSink",
    "WebhookNotificationSink",
    "build_notification_sink",
]
