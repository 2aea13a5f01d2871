"""PressureEngine — one evaluation pipeline over an injected catalog."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Mapping

from pressure_engine.engine.booster import apply_boosts
from pressure_engine.engine.classifier import (
    classify,
    confidence_of,
    consensus_strength,
    direction_of,
)
from pressure_engine.engine.config import EngineConfig, ThresholdSet
from pressure_engine.engine.evaluator import evaluate_catalog
from pressure_engine.engine.explain import explain, rank, summarize
from pressure_engine.engine.pressure import aggregate, is_out_of_range, net_edge_score
from pressure_engine.engine.probability import map_probabilities
from pressure_engine.signals.definition import SignalOutcome
from pressure_engine.snapshot.extractor import extract_snapshot
from pressure_engine.snapshot.models import InputSnapshot

log = logging.getLogger(__name__)

# Column order of the flat batch table (see Decision.to_row)
ROW_COLUMNS = (
    "subject_id",
    "engine",
    "strategy_version",
    "classification",
    "recommendation",
    "direction",
    "confidence",
    "sharp_pressure",
    "trap_pressure",
    "market_noise",
    "volatility_modifier",
    "net_edge_score",
    "boost_delta",
    "final_score",
    "confirm_probability",
    "contradict_probability",
    "neutral_probability",
    "consensus_ratio",
    "consensus_strength",
    "active_signals",
    "out_of_range",
    "summary",
)


@dataclass(frozen=True)
class Decision:
    """Result of one evaluation.  Percentages are on the 0–100 scale."""

    subject_id: str
    engine: str
    strategy_version: str

    sharp_pressure: float
    trap_pressure: float
    market_noise: float
    volatility_modifier: float
    net_edge_score: float

    confirm_probability: float
    contradict_probability: float
    neutral_probability: float

    boost_delta: float
    boosts_applied: tuple[str, ...]
    final_score: float

    classification: str
    recommendation: str
    direction: str
    confidence: float
    consensus_ratio: float
    consensus_strength: str

    explanation: tuple[str, ...]
    summary: str
    confirming_outcomes: tuple[SignalOutcome, ...]
    contradicting_outcomes: tuple[SignalOutcome, ...]
    context: Mapping[str, str] = field(default_factory=dict, hash=False)
    out_of_range: bool = False

    @property
    def active_signals(self) -> list[str]:
        return [
            o.name for o in (*self.confirming_outcomes, *self.contradicting_outcomes)
            if o.active
        ]

    def to_dict(self) -> dict:
        """JSON-ready representation (lists instead of tuples)."""
        data = asdict(self)
        data["boosts_applied"] = list(self.boosts_applied)
        data["explanation"] = list(self.explanation)
        data["confirming_outcomes"] = [o.to_dict() for o in self.confirming_outcomes]
        data["contradicting_outcomes"] = [o.to_dict() for o in self.contradicting_outcomes]
        data["context"] = dict(self.context)
        return data

    def to_row(self) -> dict:
        """Flat summary for tabular batch output."""
        row = {column: getattr(self, column) for column in ROW_COLUMNS}
        row["active_signals"] = "|".join(self.active_signals)
        return row


class PressureEngine:
    """Generic evaluate-over-catalog engine.

    Holds no mutable state; one instance can serve concurrent callers.
    """

    def __init__(self, config: EngineConfig):
        self.config = config
        self._high_severity = tuple(
            d.name for d in config.catalog.contradicting if d.high_severity
        )
        self._sport_thresholds = {
            sport: config.thresholds_for(sport) for sport in config.sport_overrides
        }

    def thresholds_for(self, sport: str) -> ThresholdSet:
        return self._sport_thresholds.get(sport.lower(), self.config.thresholds)

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def strategy_version(self) -> str:
        return self.config.strategy_version

    def evaluate(self, snapshot: InputSnapshot) -> Decision:
        cfg = self.config
        t = self.thresholds_for(snapshot.sport)

        confirming, contradicting = evaluate_catalog(cfg.catalog, snapshot, t.noise_floor)
        pressures = aggregate(confirming, contradicting, self._high_severity, snapshot, t)
        net = net_edge_score(pressures)
        out_of_range = is_out_of_range(net, snapshot.subject_id, t)

        probs = map_probabilities(net, snapshot.consensus_ratio, t)
        boost = apply_boosts(snapshot, t)
        final = net + boost.delta

        severe = set(self._high_severity)
        n_severe = sum(1 for o in contradicting if o.active and o.name in severe)
        n_contra = sum(1 for o in contradicting if o.active)
        classification = classify(
            final, probs.confirm, snapshot.consensus_ratio, n_severe, n_contra, t,
        )
        recommendation = cfg.label(classification)
        strength = consensus_strength(snapshot.consensus_ratio)

        decision = Decision(
            subject_id=snapshot.subject_id,
            engine=cfg.name,
            strategy_version=cfg.strategy_version,
            sharp_pressure=pressures.sharp,
            trap_pressure=pressures.trap,
            market_noise=pressures.noise,
            volatility_modifier=pressures.volatility,
            net_edge_score=net,
            confirm_probability=probs.confirm,
            contradict_probability=probs.contradict,
            neutral_probability=probs.neutral,
            boost_delta=boost.delta,
            boosts_applied=boost.applied,
            final_score=final,
            classification=classification,
            recommendation=recommendation,
            direction=direction_of(net),
            confidence=confidence_of(probs),
            consensus_ratio=snapshot.consensus_ratio,
            consensus_strength=strength,
            explanation=tuple(explain(confirming, contradicting)),
            summary=summarize(
                recommendation, confirming, contradicting, snapshot.consensus_ratio, strength,
            ),
            confirming_outcomes=rank(confirming),
            contradicting_outcomes=rank(contradicting),
            context=snapshot.context(),
            out_of_range=out_of_range,
        )
        log.debug(
            "%s [%s] net=%.1f final=%.1f -> %s",
            snapshot.subject_id, cfg.name, net, final, classification,
        )
        return decision

    def evaluate_raw(self, raw: Mapping) -> Decision:
        """Extract a snapshot from *raw* and evaluate it.

        The engine's ``prepare`` hook, if any, runs on a copy of *raw* first.
        """
        if self.config.prepare is not None:
            raw = self.config.prepare(dict(raw))
        return self.evaluate(extract_snapshot(raw))
