"""Context multiplier shapes.

Each shape maps one snapshot field to a factor ``>= 1.0`` and is
non-decreasing in that field (in its magnitude for ``absolute`` shapes).
``None`` is returned when the field was not observed.  The evaluator
clamps the result to ``[1.0, 2.0]``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional, Protocol, runtime_checkable

from pressure_engine.snapshot.models import InputSnapshot

MIN_MULTIPLIER = 1.0
MAX_MULTIPLIER = 2.0


@runtime_checkable
class Multiplier(Protocol):
    kind: ClassVar[str]

    def evaluate(self, snapshot: InputSnapshot) -> Optional[float]:
        ...

    def describe(self) -> str:
        ...

    def trends(self) -> dict[str, Optional[int]]:
        ...


def clamp_multiplier(value: float) -> float:
    return max(MIN_MULTIPLIER, min(MAX_MULTIPLIER, value))


def _read(snapshot: InputSnapshot, field: str, absolute: bool) -> Optional[float]:
    value = snapshot.value(field)
    if value is None:
        return None
    value = float(value)
    return abs(value) if absolute else value


def _check_boost(kind: str, boost: float) -> None:
    if boost < MIN_MULTIPLIER:
        raise ValueError(f"{kind} multiplier boost must be >= {MIN_MULTIPLIER}, got {boost}")


@dataclass(frozen=True)
class Constant:
    value: float = 1.0
    kind: ClassVar[str] = "constant"

    def __post_init__(self) -> None:
        _check_boost(self.kind, self.value)

    def evaluate(self, snapshot: InputSnapshot) -> Optional[float]:
        return self.value

    def describe(self) -> str:
        return f"x{self.value:g}"

    def trends(self) -> dict[str, Optional[int]]:
        return {}


@dataclass(frozen=True)
class Step:
    """``boost`` when the field exceeds ``threshold``, else 1.0."""

    field: str
    threshold: float
    boost: float
    absolute: bool = False
    kind: ClassVar[str] = "step"

    def __post_init__(self) -> None:
        _check_boost(self.kind, self.boost)

    def evaluate(self, snapshot: InputSnapshot) -> Optional[float]:
        value = _read(snapshot, self.field, self.absolute)
        if value is None:
            return None
        return self.boost if value > self.threshold else MIN_MULTIPLIER

    def describe(self) -> str:
        return f"x{self.boost:g} if {self.field} > {self.threshold:g}"

    def trends(self) -> dict[str, Optional[int]]:
        return {self.field: None if self.absolute else 1}


@dataclass(frozen=True)
class Count:
    """``boost`` once the count field reaches ``minimum``, else 1.0."""

    field: str
    minimum: float
    boost: float
    kind: ClassVar[str] = "count"

    def __post_init__(self) -> None:
        _check_boost(self.kind, self.boost)

    def evaluate(self, snapshot: InputSnapshot) -> Optional[float]:
        value = _read(snapshot, self.field, False)
        if value is None:
            return None
        return self.boost if value >= self.minimum else MIN_MULTIPLIER

    def describe(self) -> str:
        return f"x{self.boost:g} if {self.field} >= {self.minimum:g}"

    def trends(self) -> dict[str, Optional[int]]:
        return {self.field: 1}


@dataclass(frozen=True)
class Ramp:
    """Linear ramp from 1.0 at ``start`` to ``ceiling`` at ``end``."""

    field: str
    start: float
    end: float
    ceiling: float
    absolute: bool = False
    kind: ClassVar[str] = "ramp"

    def __post_init__(self) -> None:
        _check_boost(self.kind, self.ceiling)
        if self.end <= self.start:
            raise ValueError(
                f"ramp({self.field}): end ({self.end}) must be > start ({self.start})"
            )

    def evaluate(self, snapshot: InputSnapshot) -> Optional[float]:
        value = _read(snapshot, self.field, self.absolute)
        if value is None:
            return None
        if value <= self.start:
            return MIN_MULTIPLIER
        if value >= self.end:
            return self.ceiling
        frac = (value - self.start) / (self.end - self.start)
        return MIN_MULTIPLIER + frac * (self.ceiling - MIN_MULTIPLIER)

    def describe(self) -> str:
        field = f"|{self.field}|" if self.absolute else self.field
        return f"x1..{self.ceiling:g} over {field} {self.start:g}..{self.end:g}"

    def trends(self) -> dict[str, Optional[int]]:
        return {self.field: None if self.absolute else 1}


# -- config loading -----------------------------------------------------------

_MULTIPLIERS: dict[str, type] = {
    cls.kind: cls for cls in (Constant, Step, Count, Ramp)
}


def build_multiplier(cfg: Optional[dict]) -> Multiplier:
    """Build a multiplier from a ``{"type": ..., **params}`` mapping.

    ``None`` yields the neutral ``Constant(1.0)``.
    """
    if cfg is None:
        return Constant()
    cfg = dict(cfg)
    kind = cfg.pop("type", None)
    if kind is None:
        raise ValueError("multiplier config must contain a 'type' key")
    if kind not in _MULTIPLIERS:
        raise ValueError(
            f"Unknown multiplier type '{kind}'. Registered: {sorted(_MULTIPLIERS)}"
        )
    try:
        return _MULTIPLIERS[kind](**cfg)
    except TypeError as exc:
        raise ValueError(f"Bad parameters for multiplier '{kind}': {exc}") from exc
