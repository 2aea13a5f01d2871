"""Catalog entries and per-evaluation signal outcomes."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Optional

from pressure_engine.signals.conditions import Condition
from pressure_engine.signals.multipliers import Constant, Multiplier

CONFIRMING = "confirming"
CONTRADICTING = "contradicting"
CATEGORIES = (CONFIRMING, CONTRADICTING)


@dataclass(frozen=True)
class SignalDefinition:
    """One named signal of a catalog.

    ``magnitude_field`` names the snapshot field whose absolute value tells
    how strongly the signal fired; small values count towards market noise.
    ``high_severity`` only matters on the contradicting side.
    """

    name: str
    category: str
    base_weight: float
    condition: Condition
    multiplier: Multiplier = field(default_factory=Constant)
    description: str = ""
    high_severity: bool = False
    magnitude_field: Optional[str] = None


@dataclass(frozen=True)
class SignalOutcome:
    name: str
    category: str
    base_weight: float
    multiplier: float
    final_weight: float
    active: bool
    description: str = ""
    degraded: bool = False
    low_magnitude: bool = False

    def to_dict(self) -> dict:
        return asdict(self)
