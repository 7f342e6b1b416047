import pytest

from app.core.enums import LagKind, Severity
from app.features.performance.thresholds import classify_chunk, classify_tps


@pytest.mark.parametrize(
    "tps, expected",
    [
        (11.9, Severity.CRITICAL),
        (12.0, Severity.HIGH),
        (14.9, Severity.HIGH),
        (15.0, Severity.MEDIUM),
        (17.9, Severity.MEDIUM),
        (18.0, None),
        (20.0, None),
    ],
)
def test_classify_tps(tps, expected):
    assert classify_tps(tps) == expected


def test_entities_take_precedence_over_hoppers():
    result = classify_chunk(entities=300, hoppers=60)

    assert result.kind == LagKind.ENTITY_SPAM
    assert result.severity == Severity.CRITICAL
    assert result.reason == "Critical entity count: 300"


@pytest.mark.parametrize(
    "entities, hoppers, redstone, kind, reason",
    [
        (100, 0, 0, LagKind.ENTITY_SPAM, "High entity count: 100"),
        (99, 50, 0, LagKind.HOPPER_LAG, "High hopper count: 50"),
        (99, 49, 100, LagKind.REDSTONE_LAG, "High redstone count: 100"),
    ],
)
def test_classify_chunk_high_rules(entities, hoppers, redstone, kind, reason):
    result = classify_chunk(entities, hoppers, redstone)

    assert result.kind == kind
    assert result.severity == Severity.HIGH
    assert result.reason == reason


def test_quiet_chunk_is_not_flagged():
    assert classify_chunk(entities=99, hoppers=49, redstone=99) is None
