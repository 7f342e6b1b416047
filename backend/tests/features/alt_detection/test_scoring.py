import pytest

from app.features.alt_detection.hashing import hash_address
from app.features.alt_detection.scoring import calculate_risk_score, names_overlap


@pytest.mark.parametrize(
    "siblings, overlap, expected",
    [
        (1, False, 45),
        (3, True, 85),
        (2, False, 60),
        (10, False, 70),
        (10, True, 85),
        (0, False, 30),
    ],
)
def test_calculate_risk_score(siblings, overlap, expected):
    assert calculate_risk_score(siblings, overlap) == expected


def test_risk_score_sibling_contribution_is_capped():
    assert calculate_risk_score(3, False) == calculate_risk_score(50, False) == 70


def test_names_overlap_on_shared_prefix():
    assert names_overlap("Steve_alt", ["xxSTEVExx"])


def test_names_overlap_sibling_prefix_inside_new_name():
    assert names_overlap("TheNotchFan", ["Notch"])


def test_names_without_common_prefix_do_not_overlap():
    assert not names_overlap("Alex", ["Steve", "Herobrine"])


def test_empty_new_name_skips_heuristic():
    assert not names_overlap("", ["anything"])


def test_empty_sibling_names_are_ignored():
    assert not names_overlap("Steve", ["", "Alex"])


def test_hash_address_is_keyed_and_truncated():
    first = hash_address("10.0.0.1", "newlife")

    assert len(first) == 16
    assert first == hash_address("10.0.0.1", "newlife")
    assert first != hash_address("10.0.0.1", "other-key")
    assert first != hash_address("10.0.0.2", "newlife")


def test_missing_address_hashes_as_unknown():
    assert hash_address(None, "k") == hash_address("unknown", "k")
    assert hash_address("", "k") == hash_address("unknown", "k")
