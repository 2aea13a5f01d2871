"""Ranked reasoning lines and the one-line summary of a decision."""

from __future__ import annotations

from typing import Sequence

from pressure_engine.signals.definition import CONFIRMING, SignalOutcome


def rank(outcomes: Sequence[SignalOutcome]) -> tuple[SignalOutcome, ...]:
    """Descending final weight; equal weights keep catalog order."""
    return tuple(sorted(outcomes, key=lambda o: -o.final_weight))


def render_line(outcome: SignalOutcome) -> str:
    sign = "+" if outcome.category == CONFIRMING else "-"
    text = f"{sign}{outcome.final_weight:.1f} {outcome.name}"
    if outcome.description:
        text += f": {outcome.description}"
    return text


def explain(
    confirming: Sequence[SignalOutcome],
    contradicting: Sequence[SignalOutcome],
) -> list[str]:
    """Active signals only, confirming block first."""
    lines = [render_line(o) for o in rank(confirming) if o.active]
    lines += [render_line(o) for o in rank(contradicting) if o.active]
    return lines


def summarize(
    recommendation: str,
    confirming: Sequence[SignalOutcome],
    contradicting: Sequence[SignalOutcome],
    consensus_ratio: float,
    strength: str,
) -> str:
    active = [o for o in rank([*confirming, *contradicting]) if o.active]
    head = recommendation.upper()
    if not active:
        drivers = "no active signals"
    else:
        drivers = "driven by " + " and ".join(o.name for o in active[:2])
    return f"{head}: {drivers}; {strength} consensus ({consensus_ratio:.0%})"
