"""Pure classification rules for tick rate and chunk load."""

from typing import NamedTuple, Optional

from app.core.enums import LagKind, Severity

HEALTHY_TPS = 18.0
HIGH_TPS = 15.0
CRITICAL_TPS = 12.0

CRITICAL_ENTITIES = 250
HIGH_ENTITIES = 100
HIGH_HOPPERS = 50
HIGH_REDSTONE = 100


class ChunkClassification(NamedTuple):
    kind: LagKind
    severity: Severity
    reason: str


def classify_tps(tps: float) -> Optional[Severity]:
    """Severity of a tick-rate sample, None when healthy.

    >>> classify_tps(18.0) is None
    True
    >>> classify_tps(11.9).value
    'critical'
    """
    if tps >= HEALTHY_TPS:
        return None
    if tps < CRITICAL_TPS:
        return Severity.CRITICAL
    if tps < HIGH_TPS:
        return Severity.HIGH
    return Severity.MEDIUM


def classify_chunk(
    entities: int, hoppers: int = 0, redstone: int = 0
) -> Optional[ChunkClassification]:
    """First matching rule wins: entities, then hoppers, then redstone."""
    if entities >= CRITICAL_ENTITIES:
        return ChunkClassification(
            LagKind.ENTITY_SPAM,
            Severity.CRITICAL,
            f"Critical entity count: {entities}",
        )
    if entities >= HIGH_ENTITIES:
        return ChunkClassification(
            LagKind.ENTITY_SPAM, Severity.HIGH, f"High entity count: {entities}"
        )
    if hoppers >= HIGH_HOPPERS:
        return ChunkClassification(
            LagKind.HOPPER_LAG, Severity.HIGH, f"High hopper count: {hoppers}"
        )
    if redstone >= HIGH_REDSTONE:
        return ChunkClassification(
            LagKind.REDSTONE_LAG, Severity.HIGH, f"High redstone count: {redstone}"
        )
    return None
