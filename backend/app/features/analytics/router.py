"""Read-only views over collected telemetry, for dashboards and staff tools."""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query

from app.core.enums import Severity
from app.core.security import ApiKeyDep
from app.features.alt_detection.schemas import (
    AccountProfileResponse,
    AltGroupResponse,
    ConnectionResponse,
    PlayerOverviewResponse,
)
from app.features.performance.schemas import (
    ChunkRecordResponse,
    LagFindingResponse,
    TickSampleResponse,
)

from .dependencies import AltRepositoryDep, PerformanceRepositoryDep

router = APIRouter(prefix="/analytics", tags=["analytics"], dependencies=[ApiKeyDep])

FLAGGED_CHUNK_LIMIT = 50
PENDING_GROUP_LIMIT = 10
RECENT_CONNECTION_LIMIT = 10


@router.get("/tps", response_model=List[TickSampleResponse])
async def get_latest_tps(repository: PerformanceRepositoryDep):
    """Latest tick sample of every server."""
    samples = await repository.get_latest_tick_samples()
    return [TickSampleResponse.model_validate(s) for s in samples]


@router.get("/tps/{server_id}", response_model=TickSampleResponse)
async def get_server_tps(server_id: str, repository: PerformanceRepositoryDep):
    sample = await repository.get_latest_tick_sample(server_id)
    if sample is None:
        raise HTTPException(status_code=404, detail=f"No data for server {server_id}")
    return TickSampleResponse.model_validate(sample)


@router.get("/chunks", response_model=List[ChunkRecordResponse])
async def get_flagged_chunks(
    repository: PerformanceRepositoryDep,
    server_id: Optional[str] = Query(default=None, max_length=64),
):
    """Flagged chunks, most entities first."""
    chunks = await repository.get_flagged_chunks(server_id, FLAGGED_CHUNK_LIMIT)
    return [ChunkRecordResponse.model_validate(c) for c in chunks]


@router.get("/lag-findings", response_model=List[LagFindingResponse])
async def get_lag_findings(
    repository: PerformanceRepositoryDep,
    server_id: Optional[str] = Query(default=None, max_length=64),
    severity: Optional[Severity] = None,
    unresolved: bool = False,
    limit: int = Query(default=20, ge=1, le=100),
):
    findings = await repository.get_lag_findings(server_id, severity, unresolved, limit)
    return [LagFindingResponse.model_validate(f) for f in findings]


@router.get("/alt-groups/pending", response_model=List[AltGroupResponse])
async def get_pending_alt_groups(repository: AltRepositoryDep):
    """Pending alt groups, highest risk first."""
    groups = await repository.get_pending_alt_groups(PENDING_GROUP_LIMIT)
    return [AltGroupResponse.model_validate(g) for g in groups]


@router.get("/players/{account_id}", response_model=PlayerOverviewResponse)
async def get_player_overview(account_id: str, repository: AltRepositoryDep):
    """Profile, recent connections (hashed addresses only) and alt group."""
    profile = await repository.get_profile(account_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Player not found")

    connections = await repository.get_recent_connections(
        account_id, RECENT_CONNECTION_LIMIT
    )
    group = await repository.get_group_for_account(account_id)

    return PlayerOverviewResponse(
        profile=AccountProfileResponse.model_validate(profile),
        recent_connections=[ConnectionResponse.model_validate(c) for c in connections],
        alt_group=AltGroupResponse.model_validate(group) if group else None,
    )
