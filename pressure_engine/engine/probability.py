"""Probability mapper — net edge score + consensus → three shares of 100."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from pressure_engine.engine.config import ThresholdSet

# Bucket order doubles as the tie-break order for rounding reconciliation.
BUCKETS = ("confirm", "contradict", "neutral")


@dataclass(frozen=True)
class Probabilities:
    confirm: float
    contradict: float
    neutral: float

    def total(self) -> float:
        return self.confirm + self.contradict + self.neutral


def logistic(net: float, k: float) -> float:
    """``100 / (1 + exp(-net / k))`` without overflow for large |net|."""
    z = net / k
    if z >= 0:
        return 100.0 / (1.0 + math.exp(-z))
    e = math.exp(z)
    return 100.0 * e / (1.0 + e)


def consensus_correction(consensus_ratio: float, max_correction: float) -> float:
    """Linear nudge in ``[-max_correction, +max_correction]``; 0.5 is neutral."""
    ratio = max(0.0, min(1.0, consensus_ratio))
    return max_correction * (2.0 * ratio - 1.0)


def reconcile(values: np.ndarray, total: int = 100) -> np.ndarray:
    """Round half-up, then push the remainder into the largest bucket.

    ``np.argmax`` returns the first maximum, so ties resolve to the lowest
    bucket index.
    """
    rounded = np.floor(np.asarray(values, dtype=float) + 0.5)
    remainder = total - rounded.sum()
    if remainder:
        rounded[int(np.argmax(rounded))] += remainder
    return rounded


def map_probabilities(
    net: float, consensus_ratio: float, thresholds: ThresholdSet,
) -> Probabilities:
    """Map a net edge score to confirm / contradict / neutral percentages.

    Parameters
    ----------
    net : float
        Pre-boost net edge score.
    consensus_ratio : float
        Fraction of books agreeing on the move, 0..1.
    thresholds : ThresholdSet
        Supplies ``logistic_k``, ``max_correction`` and ``neutral_ceiling``.

    Returns
    -------
    Probabilities
        Whole-number percentages summing to exactly 100.
    """
    p = logistic(net, thresholds.logistic_k)
    p += consensus_correction(consensus_ratio, thresholds.max_correction)
    p_confirm = max(1.0, min(99.0, p))
    p_contradict = 100.0 - p_confirm

    neutral = thresholds.neutral_ceiling * (1.0 - abs(p_confirm - p_contradict) / 100.0)
    scale = (100.0 - neutral) / 100.0

    shares = reconcile(np.array([p_confirm * scale, p_contradict * scale, neutral]))
    return Probabilities(
        confirm=float(shares[0]),
        contradict=float(shares[1]),
        neutral=float(shares[2]),
    )
