"""Shared enums used across features.

This module provides a single source of truth for enums used in both models and schemas.
"""

from enum import Enum


class EventType(str, Enum):
    """Telemetry event discriminator sent by the game-server plugins."""

    CONNECTION = "connection"
    ALT_DETECTED = "alt_detected"
    TPS_UPDATE = "tps_update"
    CHUNK_SCAN = "chunk_scan"
    LAG_ALERT = "lag_alert"
    PLAYER_IMPACT = "player_impact"


class ConnectionKind(str, Enum):
    """Kind of proxy connection event."""

    JOIN = "join"
    LEAVE = "leave"
    SWITCH = "switch"


class AltGroupStatus(str, Enum):
    """Review status of an alt group. Anything but PENDING is terminal."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    FALSE_POSITIVE = "false_positive"


class AltDecision(str, Enum):
    """Staff decision on a pending alt group."""

    CONFIRM = "confirm"
    DENY = "deny"

    @property
    def resulting_status(self) -> AltGroupStatus:
        if self is AltDecision.CONFIRM:
            return AltGroupStatus.CONFIRMED
        return AltGroupStatus.FALSE_POSITIVE


class MemberRole(str, Enum):
    """Role of an account inside an alt group."""

    PRIMARY = "primary"
    LINKED = "linked"


class Severity(str, Enum):
    """Lag finding severity."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class LagKind(str, Enum):
    """Category of a lag finding."""

    TPS_DROP = "tps_drop"
    ENTITY_SPAM = "entity_spam"
    REDSTONE_LAG = "redstone_lag"
    CHUNK_OVERLOAD = "chunk_overload"
    HOPPER_LAG = "hopper_lag"
    PISTON_SPAM = "piston_spam"
    SUSPECTED_LAG_MACHINE = "suspected_lag_machine"
