"""Resolution workflow: staff decisions on alt groups and lag findings."""

from .service import (
    ParsedAction,
    PermissionPredicate,
    ResolutionService,
    parse_action_id,
)

__all__ = [
    "ParsedAction",
    "PermissionPredicate",
    "ResolutionService",
    "parse_action_id",
]
