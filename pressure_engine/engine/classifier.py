"""Ordered threshold rules → classification, direction, confidence."""

from __future__ import annotations

from pressure_engine.engine.config import (
    CAUTION,
    CONFIRM,
    CONFIRMING_SIDE,
    CONTRADICT,
    CONTRADICTING_SIDE,
    ThresholdSet,
)
from pressure_engine.engine.probability import Probabilities

CONSENSUS_BANDS = (
    (0.7, "strong"),
    (0.5, "moderate"),
    (0.3, "weak"),
)


def classify(
    final_score: float,
    confirm_probability: float,
    consensus_ratio: float,
    active_high_severity: int,
    active_contradicting: int,
    thresholds: ThresholdSet,
) -> str:
    """Return ``confirm``, ``contradict`` or ``caution``.

    Rules are checked in that order; ``caution`` catches everything else,
    so every input maps to exactly one label.
    """
    t = thresholds
    if (
        confirm_probability >= t.confirm_probability
        and final_score >= t.confirm_score
        and consensus_ratio >= t.min_consensus
        and active_high_severity == 0
    ):
        return CONFIRM
    if (
        confirm_probability <= t.contradict_probability
        and final_score <= t.contradict_score
        and active_contradicting >= t.min_contradicting
    ):
        return CONTRADICT
    return CAUTION


def direction_of(net: float) -> str:
    """Sign of the pre-boost net score; exactly 0 goes to the contradicting side."""
    return CONFIRMING_SIDE if net > 0 else CONTRADICTING_SIDE


def confidence_of(probabilities: Probabilities) -> float:
    """The leading share, whichever bucket it is."""
    leading = max(probabilities.confirm, probabilities.contradict, probabilities.neutral)
    return max(0.0, min(100.0, leading))


def consensus_strength(ratio: float) -> str:
    for floor, label in CONSENSUS_BANDS:
        if ratio >= floor:
            return label
    return "divergent"
