"""Matchup zones — player shot zones against opponent defensive ranks.

Ranks run 1 (best defense) to 30 (worst).  ``attack`` targets a soft
zone the player actually uses; ``avoid`` flags an elite zone defense.
"""

from __future__ import annotations

from pressure_engine.engine.config import (
    CAUTION,
    CONFIRM,
    CONTRADICT,
    EngineConfig,
    ThresholdSet,
    build_config,
)
from pressure_engine.signals.catalog import SignalCatalog
from pressure_engine.signals.conditions import AtLeast, AtMost, Flag
from pressure_engine.signals.definition import CONFIRMING, CONTRADICTING, SignalDefinition
from pressure_engine.signals.multipliers import Ramp
from pressure_engine.snapshot.extractor import to_float

VERSION = "1.0"

PRIME_RANK = 25
FAVORABLE_RANK = 18
AVOID_RANK = 5


def classify_rank(rank: float) -> str | None:
    """Zone grade used by the scanner: prime / favorable / avoid / None."""
    if rank >= PRIME_RANK:
        return "prime"
    if rank >= FAVORABLE_RANK:
        return "favorable"
    if rank <= AVOID_RANK:
        return "avoid"
    return None


CONFIRMING_SIGNALS = (
    SignalDefinition(
        name="PRIME_ZONE",
        category=CONFIRMING,
        base_weight=25.0,
        condition=Flag("zone_prime"),
        multiplier=Ramp("zone_rank", PRIME_RANK, 30.0, 1.3),
        description="Opponent is bottom-6 defending the player's main zone",
    ),
    SignalDefinition(
        name="FAVORABLE_ZONE",
        category=CONFIRMING,
        base_weight=15.0,
        condition=Flag("zone_favorable"),
        description="Opponent is below average in the player's main zone",
    ),
    SignalDefinition(
        name="HIGH_ZONE_VOLUME",
        category=CONFIRMING,
        base_weight=10.0,
        condition=AtLeast("zone_share", 0.35),
        multiplier=Ramp("zone_share", 0.35, 0.6, 1.4),
        description="Player takes 35%+ of shots from that zone",
    ),
    SignalDefinition(
        name="SOFT_OVERALL_DEFENSE",
        category=CONFIRMING,
        base_weight=10.0,
        condition=AtLeast("defense_rank", 21),
        description="Bottom-10 defense overall",
    ),
)

CONTRADICTING_SIGNALS = (
    SignalDefinition(
        name="ELITE_ZONE_DEFENSE",
        category=CONTRADICTING,
        base_weight=25.0,
        condition=Flag("zone_avoid"),
        description="Top-5 defense in the player's main zone",
        high_severity=True,
    ),
    SignalDefinition(
        name="TOUGH_OVERALL_DEFENSE",
        category=CONTRADICTING,
        base_weight=15.0,
        condition=AtMost("defense_rank", 10),
        description="Top-10 defense overall",
    ),
    SignalDefinition(
        name="LOW_ZONE_VOLUME",
        category=CONTRADICTING,
        base_weight=10.0,
        condition=AtMost("zone_share", 0.2, strict=True),
        description="Player rarely shoots from the graded zone",
    ),
    SignalDefinition(
        name="INJURY_UNCERTAINTY",
        category=CONTRADICTING,
        base_weight=10.0,
        condition=Flag("injury_uncertainty"),
        description="Status still questionable",
    ),
)

CATALOG = SignalCatalog(
    version=VERSION,
    confirming=CONFIRMING_SIGNALS,
    contradicting=CONTRADICTING_SIGNALS,
)

THRESHOLDS = ThresholdSet(
    max_correction=0.0,
    min_consensus=0.0,
    confirm_score=15.0,
    contradict_score=-15.0,
    volatility_flags=("injury_uncertainty",),
)

LABELS = {CONFIRM: "attack", CONTRADICT: "avoid", CAUTION: "neutral"}


def prepare(raw: dict) -> dict:
    """Grade ``zone_rank`` into the ``zone_prime`` / ``zone_favorable`` /
    ``zone_avoid`` flags the catalog keys on.
    """
    rank = raw.get("zone_rank", raw.get("metric_zone_rank"))
    if rank is None:
        rank = (raw.get("metrics") or {}).get("zone_rank")
    rank = to_float(rank)
    if rank is None:
        return raw
    grade = classify_rank(rank)
    flags = dict(raw.get("flags") or {})
    for name in ("prime", "favorable", "avoid"):
        flags.setdefault(f"zone_{name}", grade == name)
    raw["flags"] = flags
    metrics = dict(raw.get("metrics") or {})
    metrics.setdefault("zone_rank", rank)
    raw["metrics"] = metrics
    return raw


def build(params: dict) -> EngineConfig:
    """Build the matchup engine config from a config block."""
    return build_config("matchup", CATALOG, params, THRESHOLDS, LABELS, prepare=prepare)
