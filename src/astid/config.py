"""Fuzzy matching policy."""

from __future__ import annotations

from dataclasses import dataclass, fields


@dataclass(frozen=True, slots=True)
class MatchPolicy:
    """Weights and acceptance threshold of the fuzzy matcher.

    A stored fingerprint of a different node type always scores 0. Otherwise
    the score starts at ``type_weight`` and each agreeing attribute adds its
    weight. A candidate is accepted when its score reaches ``threshold``.
    """

    type_weight: int = 40
    parent_weight: int = 25
    field_weight: int = 15
    name_weight: int = 10
    index_weight: int = 10
    threshold: int = 55

    def __post_init__(self) -> None:
        """Reject negative or non-integer weights."""
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                msg = f"MatchPolicy.{f.name} must be a non-negative int, got {value!r}"
                raise ValueError(msg)

    @property
    def max_score(self) -> int:
        """Score of a candidate agreeing on every attribute."""
        return (
            self.type_weight
            + self.parent_weight
            + self.field_weight
            + self.name_weight
            + self.index_weight
        )


DEFAULT_POLICY = MatchPolicy()

__all__ = ["DEFAULT_POLICY", "MatchPolicy"]
