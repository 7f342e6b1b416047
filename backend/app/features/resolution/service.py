"""Resolution workflow for alt groups and lag findings.

Both transitions are one-way: a reviewed group or a resolved finding is
returned unchanged on repeat calls. The state change is a conditional UPDATE,
so two concurrent resolutions cannot both apply.
"""

import re
from dataclasses import dataclass
from typing import Callable, Union

import structlog

from app.core.decorators import input_validation, service_error_handler
from app.core.enums import AltDecision
from app.core.exceptions import NotFoundError, ValidationError
from app.core.models import utc_now
from app.features.alerts.rendering import (
    ALT_CONFIRM_PREFIX,
    ALT_DENY_PREFIX,
    LAG_RESOLVE_PREFIX,
)
from app.features.alt_detection.orm_models import AltGroupORM
from app.features.alt_detection.repository import AltDetectionRepositoryInterface
from app.features.performance.orm_models import LagFindingORM
from app.features.performance.repository import PerformanceRepositoryInterface

logger = structlog.get_logger(__name__)

# Hosts decide who may resolve; the workflow itself only records the actor.
PermissionPredicate = Callable[[str], bool]

_ACTION_PATTERN = re.compile(
    rf"^(?P<prefix>{ALT_CONFIRM_PREFIX}|{ALT_DENY_PREFIX}|{LAG_RESOLVE_PREFIX})"
    r"(?P<target>\d+)$"
)


@dataclass(frozen=True)
class ParsedAction:
    """A notification action id split into its target and intent."""

    target_id: int
    decision: AltDecision | None = None

    @property
    def is_lag(self) -> bool:
        return self.decision is None


def parse_action_id(action_id: str) -> ParsedAction:
    """Parse ``alt_confirm_<id>``, ``alt_deny_<id>`` or ``lag_resolve_<id>``.

    :raises ValidationError: For any other shape
    """
    match = _ACTION_PATTERN.match(action_id or "")
    if match is None:
        raise ValidationError(
            f"Unknown action id: {action_id!r}",
            service="ResolutionService",
            operation="parse_action_id",
        )

    target_id = int(match.group("target"))
    prefix = match.group("prefix")
    if prefix == ALT_CONFIRM_PREFIX:
        return ParsedAction(target_id, AltDecision.CONFIRM)
    if prefix == ALT_DENY_PREFIX:
        return ParsedAction(target_id, AltDecision.DENY)
    return ParsedAction(target_id)


class ResolutionService:
    """Applies staff decisions to alt groups and lag findings."""

    def __init__(
        self,
        alt_repository: AltDetectionRepositoryInterface,
        performance_repository: PerformanceRepositoryInterface,
    ):
        self.alt_repository = alt_repository
        self.performance_repository = performance_repository

    @service_error_handler("ResolutionService")
    @input_validation(validate_non_empty=["actor_id"], validate_positive=["group_id"])
    async def resolve_alt(
        self, group_id: int, decision: AltDecision, actor_id: str
    ) -> AltGroupORM:
        """Confirm or deny a pending alt group.

        :param group_id: Alt group id
        :param decision: Confirm (alt) or deny (false positive)
        :param actor_id: Who made the decision
        :returns: The group after the call; unchanged if it was already reviewed
        :raises NotFoundError: When no such group exists
        """
        decision = AltDecision(decision)
        updated = await self.alt_repository.mark_alt_group_reviewed(
            group_id, decision.resulting_status, actor_id, utc_now()
        )
        if updated is not None:
            return updated

        existing = await self.alt_repository.get_alt_group(group_id)
        if existing is None:
            raise NotFoundError(
                f"Alt group {group_id} not found",
                service="ResolutionService",
                operation="resolve_alt",
                context={"group_id": group_id},
            )

        logger.info(
            "Alt group already reviewed",
            group_id=group_id,
            status=existing.status,
            actor_id=actor_id,
        )
        return existing

    @service_error_handler("ResolutionService")
    @input_validation(
        validate_non_empty=["actor_id"], validate_positive=["finding_id"]
    )
    async def resolve_lag(self, finding_id: int, actor_id: str) -> LagFindingORM:
        """Mark a lag finding resolved.

        :returns: The finding after the call; unchanged if already resolved
        :raises NotFoundError: When no such finding exists
        """
        updated = await self.performance_repository.mark_lag_finding_resolved(
            finding_id, actor_id, utc_now()
        )
        if updated is not None:
            return updated

        existing = await self.performance_repository.get_lag_finding(finding_id)
        if existing is None:
            raise NotFoundError(
                f"Lag finding {finding_id} not found",
                service="ResolutionService",
                operation="resolve_lag",
                context={"finding_id": finding_id},
            )

        logger.info(
            "Lag finding already resolved",
            finding_id=finding_id,
            resolved_by=existing.resolved_by,
            actor_id=actor_id,
        )
        return existing

    async def apply_action(
        self, action_id: str, actor_id: str
    ) -> Union[AltGroupORM, LagFindingORM]:
        """Apply an action id rendered into a notification.

        :raises ValidationError: When the action id is not recognised
        """
        action = parse_action_id(action_id)
        if action.is_lag:
            return await self.resolve_lag(action.target_id, actor_id)
        return await self.resolve_alt(action.target_id, action.decision, actor_id)
