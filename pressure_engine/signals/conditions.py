"""Activation predicates as tagged variants.

Every condition answers ``evaluate(snapshot) -> Optional[bool]``.
``None`` means a field the condition needs was not observed; the
evaluator turns that into a degraded, inactive signal.

``trends()`` maps each field a condition reads to the direction its
activation follows as that field rises: ``1`` (never switches off),
``-1`` (never switches on) or ``None`` (either).  Catalog validation uses
it to keep multiplier inputs from toggling other signals the wrong way.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional, Protocol, runtime_checkable

from pressure_engine.snapshot.models import InputSnapshot


@runtime_checkable
class Condition(Protocol):
    kind: ClassVar[str]

    def evaluate(self, snapshot: InputSnapshot) -> Optional[bool]:
        ...

    def describe(self) -> str:
        ...

    def trends(self) -> dict[str, Optional[int]]:
        ...


Trends = dict[str, Optional[int]]


def _merge(parts) -> Trends:
    merged: Trends = {}
    for part in parts:
        for name, trend in part.items():
            if name in merged and merged[name] != trend:
                merged[name] = None
            else:
                merged.setdefault(name, trend)
    return merged


def _number(snapshot: InputSnapshot, field: str, absolute: bool) -> Optional[float]:
    value = snapshot.value(field)
    if value is None:
        return None
    value = float(value)
    return abs(value) if absolute else value


def _label(field: str, absolute: bool) -> str:
    return f"|{field}|" if absolute else field


@dataclass(frozen=True)
class Flag:
    field: str
    expected: bool = True
    kind: ClassVar[str] = "flag"

    def evaluate(self, snapshot: InputSnapshot) -> Optional[bool]:
        value = snapshot.value(self.field)
        if value is None:
            return None
        return bool(value) is self.expected

    def describe(self) -> str:
        return self.field if self.expected else f"not {self.field}"

    def trends(self) -> Trends:
        return {self.field: None}


@dataclass(frozen=True)
class AtLeast:
    field: str
    threshold: float
    strict: bool = False
    absolute: bool = False
    kind: ClassVar[str] = "at_least"

    def evaluate(self, snapshot: InputSnapshot) -> Optional[bool]:
        value = _number(snapshot, self.field, self.absolute)
        if value is None:
            return None
        return value > self.threshold if self.strict else value >= self.threshold

    def describe(self) -> str:
        op = ">" if self.strict else ">="
        return f"{_label(self.field, self.absolute)} {op} {self.threshold:g}"

    def trends(self) -> Trends:
        return {self.field: None if self.absolute else 1}


@dataclass(frozen=True)
class AtMost:
    field: str
    threshold: float
    strict: bool = False
    absolute: bool = False
    kind: ClassVar[str] = "at_most"

    def evaluate(self, snapshot: InputSnapshot) -> Optional[bool]:
        value = _number(snapshot, self.field, self.absolute)
        if value is None:
            return None
        return value < self.threshold if self.strict else value <= self.threshold

    def describe(self) -> str:
        op = "<" if self.strict else "<="
        return f"{_label(self.field, self.absolute)} {op} {self.threshold:g}"

    def trends(self) -> Trends:
        return {self.field: None if self.absolute else -1}


@dataclass(frozen=True)
class Between:
    """Inclusive band ``low <= value <= high``."""

    field: str
    low: float
    high: float
    absolute: bool = False
    kind: ClassVar[str] = "between"

    def __post_init__(self) -> None:
        if self.low > self.high:
            raise ValueError(
                f"between({self.field}): low ({self.low}) must be <= high ({self.high})"
            )

    def evaluate(self, snapshot: InputSnapshot) -> Optional[bool]:
        value = _number(snapshot, self.field, self.absolute)
        if value is None:
            return None
        return self.low <= value <= self.high

    def describe(self) -> str:
        return f"{self.low:g} <= {_label(self.field, self.absolute)} <= {self.high:g}"

    def trends(self) -> Trends:
        return {self.field: None}


@dataclass(frozen=True)
class Not:
    condition: Condition
    kind: ClassVar[str] = "not"

    def evaluate(self, snapshot: InputSnapshot) -> Optional[bool]:
        result = self.condition.evaluate(snapshot)
        return None if result is None else not result

    def describe(self) -> str:
        return f"not ({self.condition.describe()})"

    def trends(self) -> Trends:
        return {
            name: None if trend is None else -trend
            for name, trend in self.condition.trends().items()
        }


@dataclass(frozen=True)
class AllOf:
    conditions: tuple[Condition, ...]
    kind: ClassVar[str] = "all_of"

    def __post_init__(self) -> None:
        object.__setattr__(self, "conditions", tuple(self.conditions))
        if not self.conditions:
            raise ValueError("all_of needs at least one condition")

    def evaluate(self, snapshot: InputSnapshot) -> Optional[bool]:
        # A definite False decides the conjunction even if other inputs are missing.
        results = [c.evaluate(snapshot) for c in self.conditions]
        if any(r is False for r in results):
            return False
        if any(r is None for r in results):
            return None
        return True

    def describe(self) -> str:
        return " and ".join(f"({c.describe()})" for c in self.conditions)

    def trends(self) -> Trends:
        return _merge(c.trends() for c in self.conditions)


@dataclass(frozen=True)
class AnyOf:
    conditions: tuple[Condition, ...]
    kind: ClassVar[str] = "any_of"

    def __post_init__(self) -> None:
        object.__setattr__(self, "conditions", tuple(self.conditions))
        if not self.conditions:
            raise ValueError("any_of needs at least one condition")

    def evaluate(self, snapshot: InputSnapshot) -> Optional[bool]:
        results = [c.evaluate(snapshot) for c in self.conditions]
        if any(r is True for r in results):
            return True
        if any(r is None for r in results):
            return None
        return False

    def describe(self) -> str:
        return " or ".join(f"({c.describe()})" for c in self.conditions)

    def trends(self) -> Trends:
        return _merge(c.trends() for c in self.conditions)


# -- config loading -----------------------------------------------------------

_CONDITIONS: dict[str, type] = {
    cls.kind: cls for cls in (Flag, AtLeast, AtMost, Between, Not, AllOf, AnyOf)
}


def build_condition(cfg: dict) -> Condition:
    """Build a condition from a ``{"type": ..., **params}`` mapping."""
    cfg = dict(cfg)
    kind = cfg.pop("type", None)
    if kind is None:
        raise ValueError("condition config must contain a 'type' key")
    if kind not in _CONDITIONS:
        raise ValueError(
            f"Unknown condition type '{kind}'. Registered: {sorted(_CONDITIONS)}"
        )
    if kind == "not":
        return Not(build_condition(cfg["condition"]))
    if kind in ("all_of", "any_of"):
        children = tuple(build_condition(c) for c in cfg.get("conditions", ()))
        return _CONDITIONS[kind](children)
    try:
        return _CONDITIONS[kind](**cfg)
    except TypeError as exc:
        raise ValueError(f"Bad parameters for condition '{kind}': {exc}") from exc
