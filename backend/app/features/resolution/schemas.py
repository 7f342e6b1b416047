"""Request schemas for the resolution endpoints."""

from typing import Union

from pydantic import BaseModel, Field

from app.core.enums import AltDecision
from app.features.alt_detection.schemas import AltGroupResponse
from app.features.performance.schemas import LagFindingResponse


class AltResolutionRequest(BaseModel):
    decision: AltDecision
    actor_id: str = Field(min_length=1, max_length=64)


class LagResolutionRequest(BaseModel):
    actor_id: str = Field(min_length=1, max_length=64)


class ActionRequest(BaseModel):
    """An action id taken from a notification, e.g. ``lag_resolve_42``."""

    action_id: str = Field(min_length=1, max_length=64)
    actor_id: str = Field(min_length=1, max_length=64)


ActionResult = Union[AltGroupResponse, LagFindingResponse]
