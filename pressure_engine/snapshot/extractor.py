"""Signal extractor — raw payload → ``InputSnapshot``.

Only type coercion and range defaulting happen here.  Anything that
interprets the numbers belongs to a signal definition.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from pressure_engine.snapshot.models import InputSnapshot
from pressure_engine.snapshot.validation import is_missing, require_fields

log = logging.getLogger(__name__)

MANDATORY_FIELDS = ("subject_id", "category")

# Dashboard payloads and the movement tracker use camelCase names.
ALIASES: dict[str, str] = {
    "subjectId": "subject_id",
    "eventId": "subject_id",
    "propType": "category",
    "prop_type": "category",
    "marketType": "category",
    "market_type": "category",
    "lineDelta": "line_delta",
    "lineChange": "line_delta",
    "line_change": "line_delta",
    "priceDelta": "price_delta",
    "priceChange": "price_delta",
    "price_change": "price_delta",
    "oppositePriceDelta": "opposite_price_delta",
    "openingPrice": "opening_price",
    "currentPrice": "current_price",
    "hoursToEvent": "hours_to_event",
    "hoursToGame": "hours_to_event",
    "hours_to_game": "hours_to_event",
    "movementSpeed": "movement_speed",
    "booksMoved": "books_moved",
    "booksCount": "books_moved",
    "books_count": "books_moved",
    "totalBooks": "total_books",
    "consensusRatio": "consensus_ratio",
    "publicPct": "public_pct",
    "publicPercentage": "public_pct",
    "injuryUncertainty": "injury_uncertainty",
    "backToBack": "back_to_back",
    "chaosDay": "chaos_day",
    "reverseMovement": "reverse_movement",
    "reverseLineMovement": "reverse_movement",
    "steamMove": "steam_move",
    "isSteamMove": "steam_move",
    "priceOnlyMove": "price_only_move",
    "bothSidesMoved": "both_sides_moved",
    "oppositeSideMoved": "both_sides_moved",
    "modelAlignment": "model_alignment",
    "portfolioAnchor": "portfolio_anchor",
    "volatilityFlagged": "volatility_flagged",
    "trapFlagged": "trap_flagged",
}

NUMERIC_FIELDS = (
    "line_delta",
    "price_delta",
    "opposite_price_delta",
    "opening_price",
    "current_price",
    "hours_to_event",
    "movement_speed",
    "books_moved",
    "total_books",
)
TRISTATE_FIELDS = ("injury_uncertainty", "back_to_back", "chaos_day")
DIRECTIONAL_FLAGS = ("reverse_movement", "steam_move", "price_only_move", "both_sides_moved")
BOOSTER_FLAGS = ("model_alignment", "portfolio_anchor", "volatility_flagged", "trap_flagged")

# Flat rows (CSV) carry engine-specific inputs as prefixed columns.
METRIC_PREFIX = "metric_"
FLAG_PREFIX = "flag_"

_TRUE = {"true", "1", "yes", "y", "t"}
_FALSE = {"false", "0", "no", "n", "f"}


# -- coercion -----------------------------------------------------------------

def to_float(value: Any) -> Optional[float]:
    """Numbers and numeric strings → float; blanks, NaN and junk → None."""
    if is_missing(value):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        log.debug("Unparseable numeric value %r treated as missing", value)
        return None


def to_bool(value: Any) -> Optional[bool]:
    """Truthy strings / numbers → bool; blanks, NaN and junk → None."""
    if is_missing(value):
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    log.debug("Unparseable boolean value %r treated as missing", value)
    return None


def _clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


# -- public API ---------------------------------------------------------------

def normalize_keys(raw: Mapping) -> dict:
    """Map camelCase aliases onto canonical names.

    A canonical key already present wins over its alias.
    """
    out: dict = {}
    for key, value in raw.items():
        canonical = ALIASES.get(key, key)
        if canonical in out and canonical != key:
            continue
        out[canonical] = value
    return out


def derive_directional_flags(values: dict) -> dict[str, bool]:
    """Movement-tracker rules for the directional flags.

    Only used for flags the payload did not supply.
    """
    price = values.get("price_delta")
    line = values.get("line_delta")
    opposite = values.get("opposite_price_delta")
    hours = values.get("hours_to_event")

    derived = {flag: False for flag in DIRECTIONAL_FLAGS}
    if price is not None and line is not None:
        derived["reverse_movement"] = (price < -10 and line > 0) or (price > 10 and line < 0)
        derived["price_only_move"] = abs(line) < 0.5 and abs(price) >= 8
    if price is not None and hours is not None:
        derived["steam_move"] = abs(price) >= 15 and hours <= 2
    if price is not None and opposite is not None:
        # Both prices shortening together is juice, not direction.
        derived["both_sides_moved"] = (
            abs(price) >= 8 and abs(opposite) >= 8 and (price < 0) == (opposite < 0)
        )
    return derived


def extract_snapshot(raw: Mapping) -> InputSnapshot:
    """Build an ``InputSnapshot`` from a raw mapping.

    Parameters
    ----------
    raw : Mapping
        Flat payload (JSON object, CSV row as dict).  Engine-specific
        inputs may be nested under ``metrics`` / ``flags`` or given as
        ``metric_<name>`` / ``flag_<name>`` columns.

    Returns
    -------
    InputSnapshot

    Raises
    ------
    MissingFieldError
        If ``subject_id`` or ``category`` is absent or blank.
    """
    values = normalize_keys(raw)
    require_fields(values, MANDATORY_FIELDS)

    numeric = {name: to_float(values.get(name)) for name in NUMERIC_FIELDS}

    books_moved = numeric["books_moved"]
    total_books = numeric["total_books"]
    consensus = to_float(values.get("consensus_ratio"))
    if consensus is None:
        if books_moved is not None and total_books:
            consensus = books_moved / total_books
        else:
            consensus = 0.0
    consensus = _clamp(consensus, 0.0, 1.0)

    public_pct = to_float(values.get("public_pct"))
    public_pct = 50.0 if public_pct is None else _clamp(public_pct, 0.0, 100.0)

    tristate = {name: to_bool(values.get(name)) for name in TRISTATE_FIELDS}

    derived = derive_directional_flags(numeric)
    directional = {}
    for name in DIRECTIONAL_FLAGS:
        given = to_bool(values.get(name))
        directional[name] = derived[name] if given is None else given

    boosters = {name: bool(to_bool(values.get(name))) for name in BOOSTER_FLAGS}

    metrics: dict[str, float] = {}
    flags: dict[str, bool] = {}
    for name, value in dict(values.get("metrics") or {}).items():
        number = to_float(value)
        if number is not None:
            metrics[name] = number
    for name, value in dict(values.get("flags") or {}).items():
        flag = to_bool(value)
        if flag is not None:
            flags[name] = flag
    for key, value in values.items():
        if key.startswith(METRIC_PREFIX):
            number = to_float(value)
            if number is not None:
                metrics[key[len(METRIC_PREFIX):]] = number
        elif key.startswith(FLAG_PREFIX):
            flag = to_bool(value)
            if flag is not None:
                flags[key[len(FLAG_PREFIX):]] = flag

    sport = values.get("sport")
    return InputSnapshot(
        subject_id=str(values["subject_id"]).strip(),
        category=str(values["category"]).strip(),
        sport="" if is_missing(sport) else str(sport).strip(),
        consensus_ratio=consensus,
        public_pct=public_pct,
        metrics=metrics,
        flags=flags,
        **numeric,
        **tristate,
        **directional,
        **boosters,
    )
