"""Notification records handed to a notification sink."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.core.models import utc_now


class NotificationField(BaseModel):
    name: str
    value: str
    inline: bool = True


class ResolutionAction(BaseModel):
    """A button rendered under a notification.

    ``id`` is the action id later submitted to the resolution workflow.
    """

    id: str
    label: str
    resolves_finding_id: Optional[int] = None


class Notification(BaseModel):
    """Structured alert, independent of how a sink renders it."""

    title: str
    severity_color: int = Field(ge=0, le=0xFFFFFF)
    description: Optional[str] = None
    fields: List[NotificationField] = Field(default_factory=list)
    actions: List[ResolutionAction] = Field(default_factory=list)
    alert_key: str
    timestamp: datetime = Field(default_factory=utc_now)
