"""MedianLock — player prop line against the player's recent medians.

``lock`` means the over clears every median gate; ``block`` means the
prop should be kept off the card.

Snapshots can carry the medians directly as metrics (``edge``,
``hit_rate``, ``minutes_median`` ...) or raw game logs, which
:func:`prepare` reduces to those metrics.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np

from pressure_engine.engine.config import (
    CAUTION,
    CONFIRM,
    CONTRADICT,
    EngineConfig,
    ThresholdSet,
    build_config,
)
from pressure_engine.signals.catalog import SignalCatalog
from pressure_engine.signals.conditions import AllOf, AnyOf, AtLeast, AtMost, Flag
from pressure_engine.signals.definition import CONFIRMING, CONTRADICTING, SignalDefinition
from pressure_engine.signals.multipliers import Ramp
from pressure_engine.snapshot.extractor import to_float

log = logging.getLogger(__name__)

VERSION = "1.3"

EDGE_MIN = 1.0
HIT_RATE_MIN = 0.70
MINUTES_FLOOR = 24.0
MINUTES_MIN = 18.0
SPLIT_EDGE_MIN = 0.5
ADJUSTED_EDGE_MIN = 0.5
JUICE_LAG = -15.0

# recent-vs-median jumps that count as a usage shock
SHOCK_MINUTES = 4.0
SHOCK_USAGE = 3.5
SHOCK_SHOTS = 2.5
SHOCK_TEAMMATES_OUT = 2

GAME_LOGS = ("stat_last10", "minutes_last10", "usage_last10", "shots_last10")


def defense_adjustment(rank: float) -> float:
    """Top-10 defense costs 1.5 points of edge, bottom-10 adds 1.5."""
    if 1 <= rank <= 10:
        return -1.5
    if 11 <= rank <= 20:
        return 0.0
    return 1.5


def hit_rate(values: Sequence[float], line: float) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.mean(np.asarray(values, dtype=float) >= line))


def _median(values: Sequence[float]) -> float:
    return float(np.median(np.asarray(values, dtype=float))) if len(values) else 0.0


def _recent_jump(values: Sequence[float]) -> float:
    """Average of the last 3 games minus the 10-game median (newest first)."""
    if len(values) == 0:
        return 0.0
    return float(np.mean(np.asarray(values[:3], dtype=float))) - _median(values)


def game_log(value) -> Optional[list[float]]:
    """*value* as a list of floats, or None unless it is a non-empty numeric list."""
    if isinstance(value, np.ndarray):
        value = value.tolist()
    if not isinstance(value, (list, tuple)) or not value:
        return None
    numbers = [to_float(v) for v in value]
    if any(n is None for n in numbers):
        return None
    return numbers


def prepare(raw: dict) -> dict:
    """Reduce game logs (newest first) to median metrics.

    Recognised keys: ``line``, ``stat_last10``, ``minutes_last10``,
    ``usage_last10``, ``shots_last10``, ``teammates_out``,
    ``newly_starting`` and ``defense_rank``.  Metrics already present in
    *raw* are left alone.  A game log that is not a list of numbers (a
    CSV cell such as ``"25;24;22"``) is treated as missing.
    """
    metrics = dict(raw.get("metrics") or {})
    line = to_float(raw.get("line"))

    logs = {}
    for key in GAME_LOGS:
        value = raw.get(key)
        logs[key] = game_log(value)
        if logs[key] is None and isinstance(value, str) and value.strip():
            log.debug("%s: unusable %s %r treated as missing", raw.get("subject_id"), key, value)
    stats = logs["stat_last10"]

    if line is not None and stats:
        metrics.setdefault("edge", _median(stats) - line)
        metrics.setdefault("hit_rate", hit_rate(stats, line))

        last5 = stats[:5]
        validated = hit_rate(last5, line) >= 0.6 and _median(last5) - line >= 0.5
        raw.setdefault("flag_shock_validated", validated)

    minutes = logs["minutes_last10"]
    if minutes:
        metrics.setdefault("minutes_median", _median(minutes))
        metrics.setdefault("minutes_increase", _recent_jump(minutes))
    if logs["usage_last10"]:
        metrics.setdefault("usage_increase", _recent_jump(logs["usage_last10"]))
    if logs["shots_last10"]:
        metrics.setdefault("shots_increase", _recent_jump(logs["shots_last10"]))

    out = raw.get("teammates_out")
    if isinstance(out, (list, tuple)):
        metrics.setdefault("teammates_out", float(len(out)))
    elif to_float(out) is not None:
        metrics.setdefault("teammates_out", to_float(out))
    if raw.get("newly_starting") is not None:
        raw.setdefault("flag_newly_starting", raw["newly_starting"])

    rank = to_float(raw.get("defense_rank", metrics.get("defense_rank")))
    if rank is not None:
        metrics.setdefault("defense_rank", rank)
        if "edge" in metrics:
            metrics.setdefault("adjusted_edge", metrics["edge"] + defense_adjustment(rank))

    raw["metrics"] = metrics
    log.debug("%s: median metrics %s", raw.get("subject_id"), sorted(metrics))
    return raw


_usage_shock = AnyOf((
    AtLeast("minutes_increase", SHOCK_MINUTES),
    AtLeast("usage_increase", SHOCK_USAGE),
    AtLeast("shots_increase", SHOCK_SHOTS),
    AtLeast("teammates_out", SHOCK_TEAMMATES_OUT),
    Flag("newly_starting"),
))

CONFIRMING_SIGNALS = (
    SignalDefinition(
        name="EDGE_CLEARS_MEDIAN",
        category=CONFIRMING,
        base_weight=25.0,
        condition=AtLeast("edge", EDGE_MIN),
        multiplier=Ramp("edge", EDGE_MIN, 4.0, 1.5),
        description="10-game median clears the line by a point or more",
    ),
    SignalDefinition(
        name="HIT_RATE_STRONG",
        category=CONFIRMING,
        base_weight=20.0,
        condition=AtLeast("hit_rate", HIT_RATE_MIN),
        multiplier=Ramp("hit_rate", HIT_RATE_MIN, 0.9, 1.3),
        description="Cleared the line in 70%+ of recent games",
    ),
    SignalDefinition(
        name="ADJUSTED_EDGE_HOLDS",
        category=CONFIRMING,
        base_weight=15.0,
        condition=AtLeast("adjusted_edge", ADJUSTED_EDGE_MIN),
        description="Edge survives the opponent defense adjustment",
    ),
    SignalDefinition(
        name="MINUTES_SECURE",
        category=CONFIRMING,
        base_weight=15.0,
        condition=AtLeast("minutes_median", MINUTES_FLOOR),
        description="Median minutes at or above 24",
    ),
    SignalDefinition(
        name="SPLIT_EDGE_CONFIRMS",
        category=CONFIRMING,
        base_weight=10.0,
        condition=AtLeast("split_edge", SPLIT_EDGE_MIN),
        description="Home/away split agrees with the median",
    ),
    SignalDefinition(
        name="JUICE_LAG",
        category=CONFIRMING,
        base_weight=10.0,
        condition=AtMost("price_delta", JUICE_LAG),
        description="Over juice moved 15+ cents while the line stood still",
    ),
    SignalDefinition(
        name="VALIDATED_USAGE_SHOCK",
        category=CONFIRMING,
        base_weight=10.0,
        condition=AllOf((_usage_shock, Flag("shock_validated"))),
        description="Role change backed by the last five games",
    ),
)

CONTRADICTING_SIGNALS = (
    SignalDefinition(
        name="NEGATIVE_EDGE",
        category=CONTRADICTING,
        base_weight=25.0,
        condition=AtMost("edge", 0.0, strict=True),
        description="Median sits below the line",
        high_severity=True,
    ),
    SignalDefinition(
        name="THIN_EDGE",
        category=CONTRADICTING,
        base_weight=15.0,
        condition=AtMost("edge", EDGE_MIN, strict=True),
        description="Median is not a full point above the line",
    ),
    SignalDefinition(
        name="HIT_RATE_WEAK",
        category=CONTRADICTING,
        base_weight=20.0,
        condition=AtMost("hit_rate", HIT_RATE_MIN, strict=True),
        description="Hit rate under 70%",
    ),
    SignalDefinition(
        name="MINUTES_RISK",
        category=CONTRADICTING,
        base_weight=25.0,
        condition=AtMost("minutes_median", MINUTES_MIN, strict=True),
        description="Median minutes under 18",
        high_severity=True,
    ),
    SignalDefinition(
        name="MINUTES_BELOW_FLOOR",
        category=CONTRADICTING,
        base_weight=10.0,
        condition=AllOf((
            AtLeast("minutes_median", MINUTES_MIN),
            AtMost("minutes_median", MINUTES_FLOOR, strict=True),
        )),
        description="Median minutes between 18 and 24",
    ),
    SignalDefinition(
        name="TOUGH_DEFENSE",
        category=CONTRADICTING,
        base_weight=15.0,
        condition=AtMost("defense_rank", 10.0),
        description="Opponent is a top-10 defense for this stat",
    ),
    SignalDefinition(
        name="SPLIT_EDGE_CONFLICT",
        category=CONTRADICTING,
        base_weight=10.0,
        condition=AtMost("split_edge", 0.0, strict=True),
        description="Home/away split points the other way",
    ),
    SignalDefinition(
        name="UNVALIDATED_USAGE_SHOCK",
        category=CONTRADICTING,
        base_weight=20.0,
        condition=AllOf((_usage_shock, Flag("shock_validated", expected=False))),
        description="Role change not yet backed by results",
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

# No book consensus behind a median; the correction is switched off.
THRESHOLDS = ThresholdSet(
    max_correction=0.0,
    min_consensus=0.0,
    confirm_probability=65.0,
    confirm_score=25.0,
    volatility_flags=("injury_uncertainty",),
)

LABELS = {CONFIRM: "lock", CONTRADICT: "block", CAUTION: "caution"}


def build(params: dict) -> EngineConfig:
    """Build the MedianLock engine config from a config block."""
    return build_config("median_lock", CATALOG, params, THRESHOLDS, LABELS, prepare=prepare)
