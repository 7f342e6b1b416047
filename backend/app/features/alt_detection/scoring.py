"""Pure risk-scoring rules for alt detection.

The score depends only on how many sibling accounts share the address and on
whether any sibling name overlaps the new name, so identical inputs always
produce identical scores.
"""

from typing import Iterable

BASE_SHARED_ADDRESS_SCORE = 30
PER_SIBLING_SCORE = 15
MAX_SIBLING_SCORE = 40
NAME_OVERLAP_SCORE = 15
NAME_PREFIX_LENGTH = 3


def calculate_risk_score(sibling_count: int, name_overlap: bool) -> int:
    """Risk score in [0, 100] for a newly linked account.

    :param sibling_count: Distinct other accounts seen on the same hashed address
    :param name_overlap: Result of :func:`names_overlap`
    :returns: Clamped integer score

    >>> calculate_risk_score(1, False)
    45
    >>> calculate_risk_score(3, True)
    85
    """
    score = BASE_SHARED_ADDRESS_SCORE
    score += min(PER_SIBLING_SCORE * max(sibling_count, 0), MAX_SIBLING_SCORE)
    if name_overlap:
        score += NAME_OVERLAP_SCORE
    return max(0, min(score, 100))


def names_overlap(name: str, sibling_names: Iterable[str]) -> bool:
    """Case-insensitive 3-character prefix/substring heuristic.

    True when any sibling name contains the first three characters of ``name``,
    or ``name`` contains the first three characters of a sibling name. An empty
    ``name`` never overlaps; empty sibling names are ignored.
    """
    lowered = (name or "").lower()
    if not lowered:
        return False

    own_prefix = lowered[:NAME_PREFIX_LENGTH]
    for sibling in sibling_names:
        other = (sibling or "").lower()
        if not other:
            continue
        if own_prefix in other or other[:NAME_PREFIX_LENGTH] in lowered:
            return True
    return False
