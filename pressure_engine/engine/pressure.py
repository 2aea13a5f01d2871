"""Pressure aggregation and the net edge score."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

from pressure_engine.engine.config import ThresholdSet
from pressure_engine.signals.definition import SignalOutcome
from pressure_engine.snapshot.models import InputSnapshot

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Pressures:
    sharp: float
    trap: float
    noise: float
    volatility: float


def aggregate(
    confirming: Sequence[SignalOutcome],
    contradicting: Sequence[SignalOutcome],
    high_severity: Sequence[str],
    snapshot: InputSnapshot,
    thresholds: ThresholdSet,
) -> Pressures:
    """Sum the two sides and derive noise and volatility.

    Parameters
    ----------
    confirming, contradicting : Sequence[SignalOutcome]
        Evaluator output for each side.
    high_severity : Sequence[str]
        Names of contradicting signals flagged as high severity.
    snapshot : InputSnapshot
        Source of the volatility context flags.
    thresholds : ThresholdSet
        Noise and volatility parameters.
    """
    sharp = sum(o.final_weight for o in confirming if o.active)
    trap = sum(o.final_weight for o in contradicting if o.active)

    n_low = sum(1 for o in (*confirming, *contradicting) if o.active and o.low_magnitude)
    noise = thresholds.noise_base + thresholds.noise_per_signal * n_low

    severe = set(high_severity)
    n_severe = sum(1 for o in contradicting if o.active and o.name in severe)
    # Unknown (None) context flags do not count as set.
    n_flags = sum(1 for f in thresholds.volatility_flags if snapshot.value(f) is True)
    volatility = 1.0 + thresholds.volatility_step * (n_severe + n_flags)
    volatility = max(1.0, min(thresholds.volatility_cap, volatility))

    return Pressures(sharp=sharp, trap=trap, noise=noise, volatility=volatility)


def net_edge_score(pressures: Pressures) -> float:
    """``(sharp - trap) / volatility`` narrowed towards zero by noise.

    Noise shrinks the magnitude but never flips the sign.
    """
    raw = (pressures.sharp - pressures.trap) / pressures.volatility
    magnitude = max(0.0, abs(raw) - pressures.noise)
    return math.copysign(magnitude, raw) if magnitude else 0.0


def is_out_of_range(net: float, subject_id: str, thresholds: ThresholdSet) -> bool:
    if abs(net) > thresholds.out_of_range:
        log.warning(
            "%s: net edge score %.1f outside ±%.0f, check catalog tuning",
            subject_id, net, thresholds.out_of_range,
        )
        return True
    return False
