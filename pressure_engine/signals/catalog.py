"""Validated, frozen set of signal definitions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Mapping, Optional

import pandas as pd
import yaml

from pressure_engine.signals.conditions import Condition, build_condition
from pressure_engine.signals.definition import (
    CATEGORIES,
    CONFIRMING,
    CONTRADICTING,
    SignalDefinition,
)
from pressure_engine.signals.multipliers import Multiplier, build_multiplier
from pressure_engine.snapshot.models import field_relation

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignalCatalog:
    """Confirming and contradicting definitions, in display order.

    Validated on construction; invalid catalogs never reach an engine.
    """

    version: str
    confirming: tuple[SignalDefinition, ...]
    contradicting: tuple[SignalDefinition, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "confirming", tuple(self.confirming))
        object.__setattr__(self, "contradicting", tuple(self.contradicting))
        validate_catalog(self)

    def __iter__(self) -> Iterator[SignalDefinition]:
        yield from self.confirming
        yield from self.contradicting

    def __len__(self) -> int:
        return len(self.confirming) + len(self.contradicting)

    @property
    def names(self) -> list[str]:
        return [d.name for d in self]

    def get(self, name: str) -> SignalDefinition:
        for definition in self:
            if definition.name == name:
                return definition
        raise KeyError(name)

    def to_frame(self) -> pd.DataFrame:
        """One row per definition, for listings and reports."""
        rows = [
            {
                "name": d.name,
                "category": d.category,
                "base_weight": d.base_weight,
                "high_severity": d.high_severity,
                "condition": d.condition.describe(),
                "multiplier": d.multiplier.describe(),
                "description": d.description,
            }
            for d in self
        ]
        return pd.DataFrame(
            rows,
            columns=[
                "name", "category", "base_weight", "high_severity",
                "condition", "multiplier", "description",
            ],
        )


def validate_catalog(catalog: SignalCatalog) -> None:
    """Raise ``ValueError`` on the first structural problem found."""
    if not str(catalog.version).strip():
        raise ValueError("Catalog version must not be empty")
    if not catalog.confirming and not catalog.contradicting:
        raise ValueError("Catalog has no signal definitions")

    seen: set[str] = set()
    for expected, group in (
        (CONFIRMING, catalog.confirming),
        (CONTRADICTING, catalog.contradicting),
    ):
        for definition in group:
            if definition.name in seen:
                raise ValueError(f"Duplicate signal name '{definition.name}'")
            seen.add(definition.name)

            if definition.category not in CATEGORIES:
                raise ValueError(
                    f"Signal '{definition.name}' has unknown category "
                    f"'{definition.category}'"
                )
            if definition.category != expected:
                raise ValueError(
                    f"Signal '{definition.name}' is '{definition.category}' but "
                    f"listed under {expected}"
                )
            if not definition.base_weight > 0:
                raise ValueError(
                    f"Signal '{definition.name}' base_weight must be > 0, "
                    f"got {definition.base_weight}"
                )
            if not isinstance(definition.condition, Condition):
                raise ValueError(f"Signal '{definition.name}' has no valid condition")
            if not isinstance(definition.multiplier, Multiplier):
                raise ValueError(f"Signal '{definition.name}' has no valid multiplier")

    _check_multiplier_inputs(catalog)


def _side(definition: SignalDefinition) -> int:
    return 1 if definition.category == CONFIRMING else -1


def _reads(definition: SignalDefinition, owner: SignalDefinition):
    yield f"condition of '{definition.name}'", definition.condition.trends()
    if definition is not owner:
        yield f"multiplier of '{definition.name}'", definition.multiplier.trends()


def _check_multiplier_inputs(catalog: SignalCatalog) -> None:
    """Raising a multiplier input must push the net score one way only.

    A confirming multiplier's input may switch confirming signals on and
    contradicting ones off, never the reverse, and may not feed noise.
    Contradicting multipliers mirror that.
    """
    for owner in catalog:
        wanted = _side(owner)
        for field, own_trend in owner.multiplier.trends().items():
            for other in catalog:
                for where, trends in _reads(other, owner):
                    for name, trend in trends.items():
                        relation = field_relation(field, name)
                        if relation == 0:
                            continue
                        if own_trend is None or relation is None or trend is None:
                            effect = None
                        else:
                            effect = _side(other) * relation * trend
                        if effect != wanted:
                            raise ValueError(
                                f"Multiplier input '{field}' of '{owner.name}' "
                                f"also drives the {where} against it"
                            )
                magnitude = other.magnitude_field
                if magnitude and field_relation(field, magnitude) != 0:
                    raise ValueError(
                        f"Multiplier input '{field}' of '{owner.name}' is the "
                        f"magnitude field of '{other.name}'"
                    )


# -- YAML loading -------------------------------------------------------------

def _definition_from_dict(category: str, entry: Mapping) -> SignalDefinition:
    entry = dict(entry)
    for key in ("name", "weight", "condition"):
        if key not in entry:
            raise ValueError(f"Signal entry missing '{key}': {entry}")
    return SignalDefinition(
        name=str(entry["name"]),
        category=category,
        base_weight=float(entry["weight"]),
        condition=build_condition(entry["condition"]),
        multiplier=build_multiplier(entry.get("multiplier")),
        description=str(entry.get("description", "")),
        high_severity=bool(entry.get("high_severity", False)),
        magnitude_field=entry.get("magnitude_field"),
    )


def catalog_from_dict(data: Mapping, version: Optional[str] = None) -> SignalCatalog:
    """Build a catalog from ``{"version": ..., "confirming": [...], "contradicting": [...]}``."""
    return SignalCatalog(
        version=str(version or data.get("version", "")),
        confirming=tuple(
            _definition_from_dict(CONFIRMING, e) for e in data.get(CONFIRMING) or ()
        ),
        contradicting=tuple(
            _definition_from_dict(CONTRADICTING, e) for e in data.get(CONTRADICTING) or ()
        ),
    )


def load_catalog(path: str | Path) -> SignalCatalog:
    """Load, validate and freeze a catalog YAML file."""
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    catalog = catalog_from_dict(data)
    log.info("Loaded catalog %s v%s (%d signals)", path.name, catalog.version, len(catalog))
    return catalog
