"""Retention sweeping of aged telemetry."""

from .scheduler import (
    get_scheduler,
    shutdown_retention_scheduler,
    start_retention_scheduler,
)
from .sweeper import RetentionRule, RetentionSweeper, build_retention_rules

__all__ = [
    "RetentionRule",
    "RetentionSweeper",
    "build_retention_rules",
    "get_scheduler",
    "start_retention_scheduler",
    "shutdown_retention_scheduler",
]
