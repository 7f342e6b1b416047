"""HTTP intake for staff decisions on alt groups and lag findings."""

from fastapi import APIRouter, HTTPException

from app.core.exceptions import (
    DependencyError,
    NotFoundError,
    ServiceException,
    ValidationError,
)
from app.core.security import ApiKeyDep
from app.features.alt_detection.orm_models import AltGroupORM
from app.features.alt_detection.schemas import AltGroupResponse
from app.features.performance.schemas import LagFindingResponse

from .dependencies import ResolutionServiceDep
from .schemas import (
    ActionRequest,
    ActionResult,
    AltResolutionRequest,
    LagResolutionRequest,
)

router = APIRouter(
    prefix="/resolutions", tags=["resolutions"], dependencies=[ApiKeyDep]
)


def _to_http_error(e: ServiceException) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=e.message)
    if isinstance(e, ValidationError):
        return HTTPException(status_code=422, detail=e.message)
    if isinstance(e, DependencyError):
        return HTTPException(status_code=503, detail="Store unavailable")
    return HTTPException(status_code=500, detail="Internal server error")


@router.post("/alt/{group_id}", response_model=AltGroupResponse)
async def resolve_alt_group(
    group_id: int,
    body: AltResolutionRequest,
    service: ResolutionServiceDep,
) -> AltGroupResponse:
    """Confirm or deny a pending alt group. Repeat calls are no-ops."""
    try:
        group = await service.resolve_alt(group_id, body.decision, body.actor_id)
    except ServiceException as e:
        raise _to_http_error(e) from e
    return AltGroupResponse.model_validate(group)


@router.post("/lag/{finding_id}", response_model=LagFindingResponse)
async def resolve_lag_finding(
    finding_id: int,
    body: LagResolutionRequest,
    service: ResolutionServiceDep,
) -> LagFindingResponse:
    """Mark a lag finding resolved. Repeat calls are no-ops."""
    try:
        finding = await service.resolve_lag(finding_id, body.actor_id)
    except ServiceException as e:
        raise _to_http_error(e) from e
    return LagFindingResponse.model_validate(finding)


@router.post("/actions", response_model=ActionResult)
async def apply_action(body: ActionRequest, service: ResolutionServiceDep) -> ActionResult:
    """Apply an action id taken from a notification."""
    try:
        result = await service.apply_action(body.action_id, body.actor_id)
    except ServiceException as e:
        raise _to_http_error(e) from e

    if isinstance(result, AltGroupORM):
        return AltGroupResponse.model_validate(result)
    return LagFindingResponse.model_validate(result)
