"""God Mode — sharp money vs. public trap on line / price movement.

Confirming signals argue the move came from sharp money (``pick``);
contradicting signals argue it is a public trap or juice (``fade``).
Base weights follow the sharp engine's default configuration.
"""

from __future__ import annotations

from pressure_engine.engine.config import (
    CAUTION,
    CONFIRM,
    CONTRADICT,
    EngineConfig,
    ThresholdSet,
    build_config,
)
from pressure_engine.signals.catalog import SignalCatalog
from pressure_engine.signals.conditions import AllOf, AtLeast, AtMost, Between, Flag, Not
from pressure_engine.signals.definition import CONFIRMING, CONTRADICTING, SignalDefinition
from pressure_engine.signals.multipliers import Count, Ramp

VERSION = "2.1"

LATE_WINDOW = (1.0, 3.0)       # hours before start
EARLY_WINDOW_HOURS = 6.0
OPTIMAL_BAND = (10.0, 30.0)    # |price move| in cents
INSIGNIFICANT_MOVE = 8.0
EXTREME_JUICE = -150.0
HIGH_CONSENSUS = 0.6
ISOLATED_CONSENSUS = 0.4

_shortening = AllOf((
    AtMost("current_price", EXTREME_JUICE),
    AtLeast("clv_delta", 0.0, strict=True),
))

CONFIRMING_SIGNALS = (
    SignalDefinition(
        name="REVERSE_LINE_MOVEMENT",
        category=CONFIRMING,
        base_weight=25.0,
        condition=Flag("reverse_movement"),
        multiplier=Ramp("public_pct_against", 50.0, 80.0, 1.5),
        description="Line moved against the public side",
    ),
    SignalDefinition(
        name="STEAM_MOVE",
        category=CONFIRMING,
        base_weight=20.0,
        condition=Flag("steam_move"),
        multiplier=Count("books_moved", 3, 1.25),
        description="Fast, synchronized move across books",
    ),
    SignalDefinition(
        name="LINE_AND_JUICE_MOVED",
        category=CONFIRMING,
        base_weight=25.0,
        condition=AllOf((
            AtLeast("abs_line_delta", 0.5),
            AtLeast("abs_price_delta", 10.0),
        )),
        description="Both the number and the price moved",
    ),
    SignalDefinition(
        name="LATE_MONEY_WINDOW",
        category=CONFIRMING,
        base_weight=15.0,
        condition=Between("hours_to_event", *LATE_WINDOW),
        description="Move landed in the 1-3 hour pre-game window",
    ),
    SignalDefinition(
        name="MARKET_CONSENSUS_HIGH",
        category=CONFIRMING,
        base_weight=20.0,
        condition=AtLeast("consensus_ratio", HIGH_CONSENSUS),
        multiplier=Ramp("consensus_ratio", HIGH_CONSENSUS, 1.0, 1.3),
        description="Most tracked books moved the same way",
    ),
    SignalDefinition(
        name="CLV_POSITIVE",
        category=CONFIRMING,
        base_weight=10.0,
        condition=AtLeast("clv_delta", 0.0, strict=True),
        description="Price shortened since open",
    ),
    SignalDefinition(
        name="OPTIMAL_MOVEMENT_BAND",
        category=CONFIRMING,
        base_weight=10.0,
        condition=AllOf((
            Between("abs_price_delta", *OPTIMAL_BAND),
            Flag("both_sides_moved", expected=False),
        )),
        description="Move size in the 10-30 cent band sharps favour",
    ),
    SignalDefinition(
        name="MULTI_MARKET_ALIGNMENT",
        category=CONFIRMING,
        base_weight=15.0,
        condition=Flag("multi_market_alignment"),
        description="Spread, total and moneyline agree",
    ),
)

CONTRADICTING_SIGNALS = (
    SignalDefinition(
        name="BOTH_SIDES_MOVED",
        category=CONTRADICTING,
        base_weight=30.0,
        condition=Flag("both_sides_moved"),
        description="Both sides' prices moved together (juice, not direction)",
        high_severity=True,
    ),
    SignalDefinition(
        name="PRICE_ONLY_MOVE",
        category=CONTRADICTING,
        base_weight=25.0,
        condition=Flag("price_only_move"),
        multiplier=Ramp("public_pct", 50.0, 80.0, 1.3),
        description="Price moved without the line, heavier with public money on it",
        magnitude_field="price_delta",
    ),
    SignalDefinition(
        name="FAVORITE_SHORTENING",
        category=CONTRADICTING,
        base_weight=20.0,
        condition=_shortening,
        multiplier=Ramp("public_pct", 50.0, 80.0, 1.5),
        description="Public favourite shortened past -150",
        high_severity=True,
    ),
    SignalDefinition(
        name="EARLY_MORNING_ACTION",
        category=CONTRADICTING,
        base_weight=15.0,
        condition=AtLeast("hours_to_event", EARLY_WINDOW_HOURS, strict=True),
        description="Move happened more than 6 hours out",
    ),
    SignalDefinition(
        name="INSIGNIFICANT_MOVEMENT",
        category=CONTRADICTING,
        base_weight=20.0,
        condition=AtMost("abs_price_delta", INSIGNIFICANT_MOVE, strict=True),
        description="Price move under 8 cents",
        magnitude_field="price_delta",
    ),
    SignalDefinition(
        name="EXTREME_JUICE_WARNING",
        category=CONTRADICTING,
        base_weight=15.0,
        condition=AllOf((
            AtMost("current_price", EXTREME_JUICE),
            Not(AtLeast("clv_delta", 0.0, strict=True)),
        )),
        description="Price sits at -150 or worse",
    ),
    SignalDefinition(
        name="ISOLATED_SIGNAL",
        category=CONTRADICTING,
        base_weight=20.0,
        condition=AllOf((
            AtMost("consensus_ratio", ISOLATED_CONSENSUS, strict=True),
            AtLeast("total_books", 1),
        )),
        description="Under 40% of the tracked books moved",
    ),
    SignalDefinition(
        name="CLV_NEGATIVE",
        category=CONTRADICTING,
        base_weight=10.0,
        condition=AtMost("clv_delta", 0.0, strict=True),
        description="Price drifted out since open",
    ),
)

CATALOG = SignalCatalog(
    version=VERSION,
    confirming=CONFIRMING_SIGNALS,
    contradicting=CONTRADICTING_SIGNALS,
)

THRESHOLDS = ThresholdSet()

LABELS = {CONFIRM: "pick", CONTRADICT: "fade", CAUTION: "caution"}


def build(params: dict) -> EngineConfig:
    """Build the God Mode engine config from a config block."""
    return build_config("god_mode", CATALOG, params, THRESHOLDS, LABELS)
