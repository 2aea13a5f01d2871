"""Immutable per-evaluation input snapshot."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Mapping, Optional


@dataclass(frozen=True)
class InputSnapshot:
    """Everything one evaluation is allowed to look at.

    Numeric and tri-state fields use ``None`` for "not observed" so that
    signals depending on them can degrade instead of guessing.
    Percentages are on the 0–100 scale; ``consensus_ratio`` is 0–1.
    """

    subject_id: str
    category: str
    sport: str = ""

    # movement
    line_delta: Optional[float] = None
    price_delta: Optional[float] = None
    opposite_price_delta: Optional[float] = None
    opening_price: Optional[float] = None
    current_price: Optional[float] = None
    hours_to_event: Optional[float] = None
    movement_speed: Optional[float] = None

    # market structure
    books_moved: Optional[float] = None
    total_books: Optional[float] = None
    consensus_ratio: float = 0.0
    public_pct: float = 50.0

    # context flags (None = unknown)
    injury_uncertainty: Optional[bool] = None
    back_to_back: Optional[bool] = None
    chaos_day: Optional[bool] = None

    # directional flags
    reverse_movement: bool = False
    steam_move: bool = False
    price_only_move: bool = False
    both_sides_moved: bool = False

    # booster context
    model_alignment: bool = False
    portfolio_anchor: bool = False
    volatility_flagged: bool = False
    trap_flagged: bool = False

    metrics: Mapping[str, float] = field(default_factory=dict, hash=False)
    flags: Mapping[str, bool] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        # Freeze the open-ended mappings too; the snapshot is shared read-only.
        object.__setattr__(self, "metrics", MappingProxyType(dict(self.metrics)))
        object.__setattr__(self, "flags", MappingProxyType(dict(self.flags)))

    # -- derived fields ------------------------------------------------------

    @property
    def public_pct_against(self) -> float:
        return 100.0 - self.public_pct

    @property
    def abs_price_delta(self) -> Optional[float]:
        return None if self.price_delta is None else abs(self.price_delta)

    @property
    def abs_line_delta(self) -> Optional[float]:
        return None if self.line_delta is None else abs(self.line_delta)

    @property
    def clv_delta(self) -> Optional[float]:
        """Opening minus current price; positive when the price shortened."""
        if self.opening_price is None or self.current_price is None:
            return None
        return self.opening_price - self.current_price

    @property
    def movement_bucket(self) -> str:
        move = self.abs_price_delta
        if move is None:
            return "unknown"
        if move >= 50:
            return "extreme"
        if move >= 30:
            return "large"
        if move >= 15:
            return "moderate"
        if move >= 10:
            return "small"
        return "minimal"

    @property
    def price_direction(self) -> str:
        if not self.opening_price or not self.current_price:
            return "neutral"
        diff = self.current_price - self.opening_price
        if diff < -10:
            return "toward_favorite"
        if diff > 10:
            return "toward_underdog"
        return "neutral"

    @property
    def opening_side(self) -> str:
        price = self.opening_price
        if not price:
            return "unknown"
        if price <= -150:
            return "heavy_favorite"
        if price < -110:
            return "slight_favorite"
        if price >= 150:
            return "heavy_underdog"
        if price > 110:
            return "slight_underdog"
        return "pick_em"

    # -- lookup --------------------------------------------------------------

    def value(self, name: str):
        """Resolve *name* against attributes, then metrics, then flags.

        Returns ``None`` when the field is unknown or unobserved.
        """
        if name in _ATTRIBUTE_NAMES or name in _DERIVED_NAMES:
            return getattr(self, name)
        if name in self.metrics:
            return self.metrics[name]
        if name in self.flags:
            return self.flags[name]
        return None

    def context(self) -> dict:
        return {
            "movement_bucket": self.movement_bucket,
            "price_direction": self.price_direction,
            "opening_side": self.opening_side,
        }


_ATTRIBUTE_NAMES = frozenset(
    f.name for f in fields(InputSnapshot) if f.name not in ("metrics", "flags")
)
# derived field -> {source field: direction}; None marks an absolute value
DERIVED_SOURCES: dict[str, dict[str, Optional[int]]] = {
    "public_pct_against": {"public_pct": -1},
    "abs_price_delta": {"price_delta": None},
    "abs_line_delta": {"line_delta": None},
    "clv_delta": {"opening_price": 1, "current_price": -1},
}
_DERIVED_NAMES = frozenset(DERIVED_SOURCES)


def field_relation(driver: str, other: str) -> Optional[int]:
    """How *other* moves when *driver* rises and every other input is held.

    ``1`` or ``-1`` for a monotone dependency, ``0`` when the fields are
    unrelated, ``None`` when the direction cannot be told.
    """
    if driver == other:
        return 1
    driver_sources = DERIVED_SOURCES.get(driver, {driver: 1})
    other_sources = DERIVED_SOURCES.get(other, {other: 1})
    shared = driver_sources.keys() & other_sources.keys()
    if not shared:
        return 0
    if shared != driver_sources.keys():
        return None
    signs = set()
    for source in shared:
        a, b = driver_sources[source], other_sources[source]
        if a is None or b is None:
            return None
        signs.add(a * b)
    return signs.pop() if len(signs) == 1 else None
