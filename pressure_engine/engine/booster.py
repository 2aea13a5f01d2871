"""Fixed additive strategy adjustments applied after the net score."""

from __future__ import annotations

from dataclasses import dataclass

from pressure_engine.engine.config import ThresholdSet
from pressure_engine.snapshot.models import InputSnapshot


@dataclass(frozen=True)
class Boost:
    delta: float
    applied: tuple[str, ...]


def apply_boosts(snapshot: InputSnapshot, thresholds: ThresholdSet) -> Boost:
    """Sum the table entries whose flag is set; each applies at most once."""
    applied: list[str] = []
    delta = 0.0
    for flag, adjustment in thresholds.boosts:
        if flag in applied:
            continue
        if snapshot.value(flag) is True:
            applied.append(flag)
            delta += adjustment
    return Boost(delta=delta, applied=tuple(applied))
