"""Weighted similarity matching of fingerprints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from astid.config import DEFAULT_POLICY, MatchPolicy

if TYPE_CHECKING:
    from collections.abc import Mapping

    from astid.fingerprint import StructuralFingerprint


@dataclass(frozen=True)
class FuzzyMatch:
    """Accepted fuzzy candidate."""

    identity: str
    score: int
    fingerprint: StructuralFingerprint


def names_agree(a: StructuralFingerprint, b: StructuralFingerprint) -> bool:
    """Whether both fingerprints carry a name and the names are equal."""
    return a.name is not None and b.name is not None and a.name == b.name


def names_conflict(a: StructuralFingerprint, b: StructuralFingerprint) -> bool:
    """Whether both fingerprints carry a name and the names differ."""
    return a.name is not None and b.name is not None and a.name != b.name


def fuzzy_score(
    candidate: StructuralFingerprint,
    stored: StructuralFingerprint,
    policy: MatchPolicy = DEFAULT_POLICY,
) -> int:
    """Score how likely ``stored`` describes the same element as ``candidate``.

    With the default policy:

        node type match         40 (required, 0 otherwise)
        parent identity match   25
        containing field match  15
        name match              10 (both names present)
        sibling index match     10

    """
    if candidate.node_type != stored.node_type:
        return 0

    score = policy.type_weight
    if candidate.parent_identity == stored.parent_identity:
        score += policy.parent_weight
    if candidate.containing_field == stored.containing_field:
        score += policy.field_weight
    if names_agree(candidate, stored):
        score += policy.name_weight
    if candidate.sibling_index == stored.sibling_index:
        score += policy.index_weight
    return score


def best_match(
    candidate: StructuralFingerprint,
    pool: Mapping[str, StructuralFingerprint],
    policy: MatchPolicy = DEFAULT_POLICY,
) -> FuzzyMatch | None:
    """Pick the best stored fingerprint for ``candidate`` from ``pool``.

    Only candidates scoring at least ``policy.threshold`` are considered.
    Among equal scores a candidate whose name agrees wins; remaining ties go
    to the first candidate in the pool's iteration order.

    Args:
        candidate: Fingerprint of the unmatched node
        pool: Unclaimed stored fingerprints keyed by identity

    Returns:
        The accepted match, or None when no candidate reaches the threshold

    """
    best: FuzzyMatch | None = None
    best_rank = (-1, False)

    for identity, stored in pool.items():
        if stored.node_type != candidate.node_type:
            continue
        score = fuzzy_score(candidate, stored, policy)
        if score < policy.threshold:
            continue
        rank = (score, names_agree(candidate, stored))
        if rank > best_rank:
            best_rank = rank
            best = FuzzyMatch(identity=identity, score=score, fingerprint=stored)

    return best
