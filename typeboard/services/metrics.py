"""Derived metric repair for submitted attempts."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

_CENTS = Decimal("0.01")


def round2(value: float) -> float:
    """Round to two decimals, halves away from zero.

    Works on the shortest repr of the float so that ``2.675`` rounds to
    ``2.68`` the way it reads, not the way it is stored.
    """

    return float(Decimal(repr(float(value))).quantize(_CENTS, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class NormalizedCounters:
    """Counters of one attempt after consistency repair."""

    characters_typed: int
    correct_characters: int
    incorrect_characters: int
    words_typed: int
    accuracy: float
    issue: Optional[str] = None

    @property
    def consistent(self) -> bool:
        return self.issue is None


def normalize_counters(
    *,
    characters_typed: int,
    correct_characters: int,
    incorrect_characters: int,
    accuracy: float,
    words_typed: int = 0,
) -> NormalizedCounters:
    """Make character totals and accuracy agree with the raw counters.

    ``characters_typed`` is replaced by ``correct + incorrect`` when they
    disagree. Accuracy is then recomputed from the counters whenever any
    characters were typed; with no characters it is kept as supplied and,
    if words were reported anyway, the result is flagged with an issue
    instead of inventing an accuracy.
    """

    total = correct_characters + incorrect_characters
    characters = characters_typed if characters_typed == total else total

    issue = None
    if characters > 0:
        accuracy = round2(correct_characters / characters * 100)
    elif words_typed > 0:
        issue = "words_typed is non-zero but no characters were recorded"

    return NormalizedCounters(
        characters_typed=characters,
        correct_characters=correct_characters,
        incorrect_characters=incorrect_characters,
        words_typed=words_typed,
        accuracy=accuracy,
        issue=issue,
    )


__all__ = ["NormalizedCounters", "normalize_counters", "round2"]
