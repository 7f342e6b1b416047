"""Ingestion gateway: accepts telemetry from the game-server plugins."""

import json
from typing import Any, List, Tuple

import structlog
from fastapi import APIRouter, HTTPException, Request
from pydantic import ValidationError as PydanticValidationError

from app.core.config import get_global_settings
from app.core.rate_limiter import limiter
from app.core.security import ApiKeyDep

from .dependencies import EventRunnerDep
from .schemas import IngestResponse, TelemetryEvent, telemetry_event_adapter

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/events", tags=["events"], dependencies=[ApiKeyDep])


def _ingest_rate_limit() -> str:
    return get_global_settings().ingest_rate_limit


def parse_events(payload: Any) -> Tuple[List[TelemetryEvent], int]:
    """Validate a single event or a batch, dropping malformed entries.

    :param payload: Decoded JSON body
    :returns: Valid events and the number of dropped entries
    :raises ValueError: When the body is neither an object nor an array
    """
    if isinstance(payload, dict):
        items = [payload]
    elif isinstance(payload, list):
        items = payload
    else:
        raise ValueError("Body must be an event object or an array of events")

    events: List[TelemetryEvent] = []
    dropped = 0
    for index, item in enumerate(items):
        try:
            events.append(telemetry_event_adapter.validate_python(item))
        except PydanticValidationError as e:
            dropped += 1
            logger.warning(
                "Dropped malformed event",
                index=index,
                event_type=item.get("type") if isinstance(item, dict) else None,
                errors=e.error_count(),
                first_error=e.errors()[0]["msg"] if e.error_count() else None,
            )
    return events, dropped


@router.post("", response_model=IngestResponse)
@limiter.limit(_ingest_rate_limit)
async def ingest_events(request: Request, runner: EventRunnerDep) -> IngestResponse:
    """Accept one event or a batch of events.

    Responds as soon as the events are validated; detection runs afterwards
    in background tasks, so handler failures never reach the sender.
    """
    body = await request.body()
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise HTTPException(status_code=400, detail="Body is not valid JSON") from e

    try:
        events, dropped = parse_events(payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    for event in events:
        runner.submit(event)

    logger.debug("Events accepted", accepted=len(events), dropped=dropped)
    return IngestResponse(success=True, accepted=len(events), dropped=dropped)
