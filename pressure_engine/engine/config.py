"""Engine configuration: threshold set, labels and catalog binding."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Callable, Mapping, Optional

from pressure_engine.signals.catalog import SignalCatalog, load_catalog

CONFIRM = "confirm"
CONTRADICT = "contradict"
CAUTION = "caution"
CLASSIFICATIONS = (CONFIRM, CONTRADICT, CAUTION)

CONFIRMING_SIDE = "confirming-side"
CONTRADICTING_SIDE = "contradicting-side"

DEFAULT_BOOSTS: tuple[tuple[str, float], ...] = (
    ("model_alignment", 8.0),
    ("portfolio_anchor", 5.0),
    ("volatility_flagged", -10.0),
    ("trap_flagged", -12.0),
)


@dataclass(frozen=True)
class ThresholdSet:
    """Every tunable number of the pipeline after the signal catalog."""

    # probability mapping
    logistic_k: float = 25.0
    max_correction: float = 10.0
    neutral_ceiling: float = 30.0

    # market noise
    noise_base: float = 2.0
    noise_per_signal: float = 4.0
    noise_floor: float = 8.0

    # event volatility
    volatility_step: float = 0.10
    volatility_cap: float = 1.40
    volatility_flags: tuple[str, ...] = ("injury_uncertainty", "chaos_day")

    # |net| above this is logged as a data-quality problem
    out_of_range: float = 150.0

    # classifier
    confirm_probability: float = 60.0
    confirm_score: float = 20.0
    min_consensus: float = 0.5
    contradict_probability: float = 40.0
    contradict_score: float = -20.0
    min_contradicting: int = 2

    # strategy booster, applied in table order
    boosts: tuple[tuple[str, float], ...] = DEFAULT_BOOSTS

    def __post_init__(self) -> None:
        object.__setattr__(self, "volatility_flags", tuple(self.volatility_flags))
        object.__setattr__(
            self, "boosts", tuple((str(k), float(v)) for k, v in self.boosts)
        )
        if self.logistic_k <= 0:
            raise ValueError(f"logistic_k must be > 0, got {self.logistic_k}")
        if not 0 <= self.max_correction <= 10:
            raise ValueError(f"max_correction must be within [0, 10], got {self.max_correction}")
        if not 0 <= self.neutral_ceiling < 100:
            raise ValueError(f"neutral_ceiling must be within [0, 100), got {self.neutral_ceiling}")
        if self.volatility_cap < 1.0:
            raise ValueError(f"volatility_cap must be >= 1.0, got {self.volatility_cap}")
        if self.contradict_probability > self.confirm_probability:
            raise ValueError("contradict_probability must not exceed confirm_probability")
        if self.contradict_score > self.confirm_score:
            raise ValueError("contradict_score must not exceed confirm_score")

    def boost_table(self) -> dict[str, float]:
        return dict(self.boosts)

    def with_overrides(self, overrides: Mapping | None) -> "ThresholdSet":
        """Return a copy with *overrides* applied (e.g. a sport overlay).

        ``boosts`` given as a mapping is merged over the current table.
        Unknown keys raise ``ValueError``.
        """
        if not overrides:
            return self
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(f"Unknown threshold keys: {unknown}. Known: {sorted(known)}")

        changes = dict(overrides)
        if "boosts" in changes and isinstance(changes["boosts"], Mapping):
            table = self.boost_table()
            table.update(changes["boosts"])
            changes["boosts"] = tuple(table.items())
        return replace(self, **changes)


DEFAULT_LABELS: Mapping[str, str] = {
    CONFIRM: "pick",
    CONTRADICT: "fade",
    CAUTION: "caution",
}


@dataclass(frozen=True)
class EngineConfig:
    """Everything a ``PressureEngine`` needs: catalog, thresholds, labels."""

    name: str
    catalog: SignalCatalog
    thresholds: ThresholdSet = field(default_factory=ThresholdSet)
    labels: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_LABELS), hash=False)
    # sport -> threshold overrides, applied on top of ``thresholds``
    sport_overrides: Mapping[str, Mapping] = field(default_factory=dict, hash=False)
    # raw payload hook run before extraction (derived metrics, flags)
    prepare: Optional[Callable[[dict], dict]] = None

    def __post_init__(self) -> None:
        missing = [c for c in CLASSIFICATIONS if c not in self.labels]
        if missing:
            raise ValueError(f"Engine '{self.name}' labels missing {missing}")
        object.__setattr__(
            self,
            "sport_overrides",
            {str(k).lower(): dict(v) for k, v in self.sport_overrides.items()},
        )
        for overrides in self.sport_overrides.values():
            self.thresholds.with_overrides(overrides)

    def thresholds_for(self, sport: str) -> ThresholdSet:
        overrides = self.sport_overrides.get(sport.lower()) if sport else None
        return self.thresholds.with_overrides(overrides)

    @property
    def strategy_version(self) -> str:
        return f"{self.name}-{self.catalog.version}"

    def label(self, classification: str) -> str:
        return self.labels[classification]


def build_config(
    name: str,
    catalog: SignalCatalog,
    params: Mapping,
    thresholds: ThresholdSet | None = None,
    labels: Mapping[str, str] | None = None,
    prepare: Optional[Callable[[dict], dict]] = None,
) -> EngineConfig:
    """Apply an engine config block on top of an engine's defaults.

    Parameters
    ----------
    name : str
        Engine name (used in ``strategy_version``).
    catalog : SignalCatalog
        Bundled catalog; replaced when ``params["catalog"]`` names a YAML file.
    params : Mapping
        Remaining keys of the engine config block: ``catalog``,
        ``overrides``, ``sport_overrides`` and ``labels``.
    thresholds, labels, prepare
        Engine defaults.
    """
    params = dict(params)
    catalog_path = params.pop("catalog", None)
    if catalog_path:
        catalog = load_catalog(catalog_path)
    base = thresholds if thresholds is not None else ThresholdSet()
    merged_labels = dict(labels if labels is not None else DEFAULT_LABELS)
    merged_labels.update(params.pop("labels", None) or {})
    config = EngineConfig(
        name=name,
        catalog=catalog,
        thresholds=base.with_overrides(params.pop("overrides", None)),
        labels=merged_labels,
        sport_overrides=params.pop("sport_overrides", None) or {},
        prepare=prepare,
    )
    if params:
        raise ValueError(f"Unknown parameters for engine '{name}': {sorted(params)}")
    return config
