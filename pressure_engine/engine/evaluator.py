"""Evaluate every catalog entry against a snapshot."""

from __future__ import annotations

import logging

from pressure_engine.signals.catalog import SignalCatalog
from pressure_engine.signals.definition import SignalDefinition, SignalOutcome
from pressure_engine.signals.multipliers import MIN_MULTIPLIER, clamp_multiplier
from pressure_engine.snapshot.models import InputSnapshot

log = logging.getLogger(__name__)


def _inactive(definition: SignalDefinition, degraded: bool = False) -> SignalOutcome:
    return SignalOutcome(
        name=definition.name,
        category=definition.category,
        base_weight=definition.base_weight,
        multiplier=MIN_MULTIPLIER,
        final_weight=0.0,
        active=False,
        description=definition.description,
        degraded=degraded,
    )


def _is_low_magnitude(
    definition: SignalDefinition, snapshot: InputSnapshot, noise_floor: float,
) -> bool:
    if definition.magnitude_field is None:
        return False
    value = snapshot.value(definition.magnitude_field)
    if value is None:
        return False
    return abs(float(value)) < noise_floor


def evaluate_signal(
    definition: SignalDefinition,
    snapshot: InputSnapshot,
    noise_floor: float,
) -> SignalOutcome:
    """Evaluate one definition; never raises for missing data."""
    try:
        active = definition.condition.evaluate(snapshot)
        if active is None:
            log.debug(
                "%s: %s degraded (condition input missing)",
                snapshot.subject_id, definition.name,
            )
            return _inactive(definition, degraded=True)
        if not active:
            return _inactive(definition)

        raw = definition.multiplier.evaluate(snapshot)
        if raw is None:
            log.debug(
                "%s: %s degraded (multiplier input missing)",
                snapshot.subject_id, definition.name,
            )
            return _inactive(definition, degraded=True)
    except (ArithmeticError, ValueError) as exc:
        log.debug("%s: %s degraded (%s)", snapshot.subject_id, definition.name, exc)
        return _inactive(definition, degraded=True)

    multiplier = clamp_multiplier(float(raw))
    return SignalOutcome(
        name=definition.name,
        category=definition.category,
        base_weight=definition.base_weight,
        multiplier=multiplier,
        final_weight=definition.base_weight * multiplier,
        active=True,
        description=definition.description,
        low_magnitude=_is_low_magnitude(definition, snapshot, noise_floor),
    )


def evaluate_catalog(
    catalog: SignalCatalog,
    snapshot: InputSnapshot,
    noise_floor: float,
) -> tuple[tuple[SignalOutcome, ...], tuple[SignalOutcome, ...]]:
    """Return ``(confirming, contradicting)`` outcomes in catalog order."""
    confirming = tuple(evaluate_signal(d, snapshot, noise_floor) for d in catalog.confirming)
    contradicting = tuple(
        evaluate_signal(d, snapshot, noise_floor) for d in catalog.contradicting
    )
    return confirming, contradicting
