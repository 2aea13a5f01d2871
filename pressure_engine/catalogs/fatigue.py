"""Fatigue edge — schedule fatigue of a team against its opponent.

Confirming means the opponent is the tired side (``attack``);
contradicting means the evaluated team is (``fade``).
"""

from __future__ import annotations

from typing import Mapping

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
from pressure_engine.signals.multipliers import Ramp, Step
from pressure_engine.snapshot.extractor import to_bool, to_float

VERSION = "1.1"

SIDES = ("team", "opponent")
FACTOR_KEYS = (
    "back_to_back",
    "road_back_to_back",
    "travel_miles",
    "timezone_changes",
    "altitude",
    "three_in_four",
    "four_in_six",
    "early_start",
)

# fatigue points per schedule factor
BACK_TO_BACK = 22.0
ROAD_BACK_TO_BACK = 14.0
MILES_PER_POINT = 120.0
TIMEZONE_POINTS = 6.0
ALTITUDE = 10.0
THREE_IN_FOUR = 12.0
FOUR_IN_SIX = 18.0
EARLY_START = 8.0

CATEGORIES = (
    (20, "Fresh"),
    (40, "Mild"),
    (60, "Significant"),
    (80, "Heavy"),
)

LEAN_DIFF = 15.0
ATTACK_DIFF = 30.0
HEAVY_FATIGUE = 61.0


def fatigue_score(factors: Mapping) -> float:
    """0-100 fatigue score from one side's schedule factors.

    Factor keys: ``back_to_back``, ``road_back_to_back``, ``travel_miles``,
    ``timezone_changes``, ``altitude``, ``three_in_four``, ``four_in_six``,
    ``early_start``.  Missing factors count as zero.
    """
    def flag(key):
        return bool(to_bool(factors.get(key)))

    def number(key):
        return to_float(factors.get(key)) or 0.0

    score = 0.0
    if flag("back_to_back"):
        score += BACK_TO_BACK
    if flag("road_back_to_back"):
        score += ROAD_BACK_TO_BACK
    score += number("travel_miles") / MILES_PER_POINT
    score += number("timezone_changes") * TIMEZONE_POINTS
    if flag("altitude"):
        score += ALTITUDE
    if flag("three_in_four"):
        score += THREE_IN_FOUR
    if flag("four_in_six"):
        score += FOUR_IN_SIX
    if flag("early_start"):
        score += EARLY_START
    return float(min(100, round(score)))


def fatigue_category(score: float) -> str:
    for ceiling, label in CATEGORIES:
        if score <= ceiling:
            return label
    return "Red Alert"


def _side_factors(raw: Mapping, side: str) -> dict:
    prefix = f"{side}_"
    return {
        key: raw[prefix + key] for key in FACTOR_KEYS if prefix + key in raw
    }


def prepare(raw: dict) -> dict:
    """Score ``team_*`` / ``opponent_*`` schedule factors into metrics.

    Adds ``team_fatigue``, ``opponent_fatigue`` and ``fatigue_diff``
    (opponent minus team), the ``opponent_red_alert`` flag, and maps the
    team's back-to-back onto the snapshot's ``back_to_back`` field.
    """
    metrics = dict(raw.get("metrics") or {})
    flags = dict(raw.get("flags") or {})
    for side in SIDES:
        factors = _side_factors(raw, side)
        if factors and f"{side}_fatigue" not in metrics:
            metrics[f"{side}_fatigue"] = fatigue_score(factors)

    if "team_fatigue" in metrics and "opponent_fatigue" in metrics:
        metrics.setdefault("fatigue_diff", metrics["opponent_fatigue"] - metrics["team_fatigue"])
    if "opponent_fatigue" in metrics:
        flags.setdefault(
            "opponent_red_alert", fatigue_category(metrics["opponent_fatigue"]) == "Red Alert"
        )
    if "back_to_back" not in raw and "team_back_to_back" in raw:
        raw["back_to_back"] = raw["team_back_to_back"]
    if "opponent_back_to_back" in raw:
        flags.setdefault("opponent_back_to_back", to_bool(raw["opponent_back_to_back"]))
    if "opponent_travel_miles" in raw:
        miles = to_float(raw["opponent_travel_miles"])
        if miles is not None:
            metrics.setdefault("opponent_travel_miles", miles)

    raw["metrics"] = metrics
    raw["flags"] = flags
    return raw


CONFIRMING_SIGNALS = (
    SignalDefinition(
        name="FATIGUE_EDGE",
        category=CONFIRMING,
        base_weight=25.0,
        condition=AtLeast("fatigue_diff", LEAN_DIFF),
        multiplier=Ramp("fatigue_diff", LEAN_DIFF, ATTACK_DIFF, 1.5),
        description="Opponent is 15+ fatigue points worse off",
    ),
    SignalDefinition(
        name="OPPONENT_RED_ALERT",
        category=CONFIRMING,
        base_weight=20.0,
        condition=Flag("opponent_red_alert"),
        description="Opponent fatigue above 80",
    ),
    SignalDefinition(
        name="OPPONENT_HEAVY_FATIGUE",
        category=CONFIRMING,
        base_weight=15.0,
        condition=AtLeast("opponent_fatigue", HEAVY_FATIGUE),
        multiplier=Ramp("opponent_fatigue", HEAVY_FATIGUE, 100.0, 1.3),
        description="Opponent fatigue in the heavy band",
    ),
    SignalDefinition(
        name="OPPONENT_BACK_TO_BACK",
        category=CONFIRMING,
        base_weight=15.0,
        condition=Flag("opponent_back_to_back"),
        multiplier=Step("opponent_travel_miles", 1000.0, 1.2),
        description="Opponent on the second night of a back-to-back",
    ),
    SignalDefinition(
        name="TEAM_RESTED",
        category=CONFIRMING,
        base_weight=10.0,
        condition=AtMost("team_fatigue", 20.0),
        description="Team is fresh",
    ),
)

CONTRADICTING_SIGNALS = (
    SignalDefinition(
        name="FATIGUE_DEFICIT",
        category=CONTRADICTING,
        base_weight=25.0,
        condition=AtMost("fatigue_diff", -LEAN_DIFF),
        multiplier=Ramp("team_fatigue", 40.0, 100.0, 1.5),
        description="Team is 15+ fatigue points worse off",
        high_severity=True,
    ),
    SignalDefinition(
        name="TEAM_HEAVY_FATIGUE",
        category=CONTRADICTING,
        base_weight=20.0,
        condition=AtLeast("team_fatigue", HEAVY_FATIGUE),
        multiplier=Ramp("team_fatigue", HEAVY_FATIGUE, 100.0, 1.3),
        description="Team fatigue in the heavy band",
    ),
    SignalDefinition(
        name="TEAM_BACK_TO_BACK",
        category=CONTRADICTING,
        base_weight=15.0,
        condition=Flag("back_to_back"),
        description="Team on the second night of a back-to-back",
    ),
    SignalDefinition(
        name="NO_FATIGUE_EDGE",
        category=CONTRADICTING,
        base_weight=10.0,
        condition=AtMost("fatigue_diff", 8.0, strict=True),
        description="Opponent is not meaningfully more tired",
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
    volatility_flags=("injury_uncertainty",),
)

LABELS = {CONFIRM: "attack", CONTRADICT: "fade", CAUTION: "pass"}


def build(params: dict) -> EngineConfig:
    """Build the fatigue engine config from a config block."""
    return build_config("fatigue", CATALOG, params, THRESHOLDS, LABELS, prepare=prepare)
