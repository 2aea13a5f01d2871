"""Tests for signal conditions and context multipliers."""

from __future__ import annotations

import pytest

from pressure_engine.signals.conditions import (
    AllOf,
    AnyOf,
    AtLeast,
    AtMost,
    Between,
    Condition,
    Flag,
    Not,
    build_condition,
)
from pressure_engine.signals.multipliers import (
    MAX_MULTIPLIER,
    MIN_MULTIPLIER,
    Constant,
    Count,
    Ramp,
    Step,
    build_multiplier,
    clamp_multiplier,
)
from pressure_engine.snapshot.models import InputSnapshot, field_relation


def _snap(**kwargs) -> InputSnapshot:
    return InputSnapshot(subject_id="s1", category="spread", **kwargs)


# ---------------------------------------------------------------------------
# Conditions
# ---------------------------------------------------------------------------

class TestComparisons:
    def test_at_least_inclusive_and_strict(self):
        snap = _snap(price_delta=10.0)
        assert AtLeast("price_delta", 10.0).evaluate(snap) is True
        assert AtLeast("price_delta", 10.0, strict=True).evaluate(snap) is False

    def test_at_most_uses_absolute_value(self):
        snap = _snap(price_delta=-12.0)
        assert AtMost("price_delta", 8.0).evaluate(snap) is True
        assert AtMost("price_delta", 8.0, absolute=True).evaluate(snap) is False

    def test_between_is_inclusive(self):
        assert Between("hours_to_event", 1.0, 3.0).evaluate(_snap(hours_to_event=1.0)) is True
        assert Between("hours_to_event", 1.0, 3.0).evaluate(_snap(hours_to_event=3.0)) is True
        assert Between("hours_to_event", 1.0, 3.0).evaluate(_snap(hours_to_event=3.5)) is False

    def test_between_rejects_inverted_band(self):
        with pytest.raises(ValueError, match="low"):
            Between("hours_to_event", 3.0, 1.0)

    def test_missing_field_is_unknown(self):
        snap = _snap()
        assert AtLeast("price_delta", 1.0).evaluate(snap) is None
        assert Flag("injury_uncertainty").evaluate(snap) is None
        assert Not(Flag("injury_uncertainty")).evaluate(snap) is None

    def test_flag_expected_false(self):
        assert Flag("both_sides_moved", expected=False).evaluate(_snap()) is True
        assert Flag("both_sides_moved", expected=False).evaluate(
            _snap(both_sides_moved=True)
        ) is False

    def test_metrics_are_reachable(self):
        snap = _snap(metrics={"edge": 2.5})
        assert AtLeast("edge", 2.0).evaluate(snap) is True


class TestCombinators:
    def test_all_of_false_beats_unknown(self):
        cond = AllOf((AtLeast("price_delta", 1.0), Flag("steam_move")))
        assert cond.evaluate(_snap()) is False

    def test_all_of_unknown_when_nothing_is_false(self):
        cond = AllOf((AtLeast("price_delta", 1.0), Flag("steam_move")))
        assert cond.evaluate(_snap(steam_move=True)) is None

    def test_any_of_true_beats_unknown(self):
        cond = AnyOf((AtLeast("price_delta", 1.0), Flag("steam_move")))
        assert cond.evaluate(_snap(steam_move=True)) is True
        assert cond.evaluate(_snap()) is None

    def test_empty_combinator_raises(self):
        with pytest.raises(ValueError, match="at least one"):
            AllOf(())
        with pytest.raises(ValueError, match="at least one"):
            AnyOf([])

    def test_describe(self):
        cond = AllOf((AtLeast("price_delta", 10, absolute=True), Not(Flag("chaos_day"))))
        assert cond.describe() == "(|price_delta| >= 10) and (not (chaos_day))"


class TestBuildCondition:
    def test_nested_config(self):
        cond = build_condition({
            "type": "all_of",
            "conditions": [
                {"type": "at_least", "field": "consensus_ratio", "threshold": 0.6},
                {"type": "not", "condition": {"type": "flag", "field": "chaos_day"}},
            ],
        })
        assert isinstance(cond, Condition)
        assert cond.evaluate(_snap(consensus_ratio=0.7, chaos_day=False)) is True
        assert cond.evaluate(_snap(consensus_ratio=0.7, chaos_day=True)) is False

    def test_missing_type_raises(self):
        with pytest.raises(ValueError, match="must contain a 'type' key"):
            build_condition({"field": "x"})

    def test_unknown_type_raises(self):
        with pytest.raises(ValueError, match="Unknown condition type"):
            build_condition({"type": "regex", "field": "x"})

    def test_bad_parameters_raise(self):
        with pytest.raises(ValueError, match="Bad parameters"):
            build_condition({"type": "at_least", "field": "x", "limit": 3})

    def test_config_does_not_mutate_caller(self):
        cfg = {"type": "flag", "field": "steam_move"}
        build_condition(cfg)
        assert cfg == {"type": "flag", "field": "steam_move"}


# ---------------------------------------------------------------------------
# Multipliers
# ---------------------------------------------------------------------------

class TestMultipliers:
    def test_constant_default_is_neutral(self):
        assert Constant().evaluate(_snap()) == 1.0

    def test_step(self):
        step = Step("opponent_travel_miles", 1000, 1.2)
        assert step.evaluate(_snap(metrics={"opponent_travel_miles": 1500})) == 1.2
        assert step.evaluate(_snap(metrics={"opponent_travel_miles": 1000})) == 1.0
        assert step.evaluate(_snap()) is None

    def test_count(self):
        count = Count("books_moved", 3, 1.25)
        assert count.evaluate(_snap(books_moved=3.0)) == 1.25
        assert count.evaluate(_snap(books_moved=2.0)) == 1.0

    def test_ramp_endpoints_and_midpoint(self):
        ramp = Ramp("public_pct_against", 50.0, 80.0, 1.5)
        assert ramp.evaluate(_snap(public_pct=60.0)) == 1.0   # against = 40
        assert ramp.evaluate(_snap(public_pct=35.0)) == pytest.approx(1.25)
        assert ramp.evaluate(_snap(public_pct=0.0)) == 1.5

    def test_ramp_is_non_decreasing(self):
        ramp = Ramp("price_delta", 8.0, 30.0, 1.3, absolute=True)
        values = [ramp.evaluate(_snap(price_delta=-float(x))) for x in range(0, 41)]
        assert values == sorted(values)
        assert min(values) == 1.0
        assert max(values) == 1.3

    def test_ramp_rejects_empty_range(self):
        with pytest.raises(ValueError, match="must be >"):
            Ramp("x", 5.0, 5.0, 1.2)

    @pytest.mark.parametrize("factory", [
        lambda: Constant(0.5),
        lambda: Step("x", 1.0, 0.9),
        lambda: Count("x", 1, 0.0),
        lambda: Ramp("x", 0.0, 1.0, 0.8),
    ])
    def test_boost_below_one_rejected(self, factory):
        with pytest.raises(ValueError, match="boost must be >="):
            factory()

    @pytest.mark.parametrize("value, expected", [
        (0.2, MIN_MULTIPLIER), (1.0, 1.0), (1.6, 1.6), (3.0, MAX_MULTIPLIER),
    ])
    def test_clamp(self, value, expected):
        assert clamp_multiplier(value) == expected


class TestTrends:
    def test_comparisons(self):
        assert AtLeast("edge", 1).trends() == {"edge": 1}
        assert AtMost("edge", 0).trends() == {"edge": -1}
        assert AtMost("fatigue_diff", 8, absolute=True).trends() == {"fatigue_diff": None}
        assert Between("hours_to_event", 1, 3).trends() == {"hours_to_event": None}
        assert Flag("steam_move").trends() == {"steam_move": None}

    def test_not_flips_direction(self):
        assert Not(AtLeast("clv_delta", 0)).trends() == {"clv_delta": -1}

    def test_combinators_merge_fields(self):
        cond = AllOf((AtMost("current_price", -150), AtLeast("clv_delta", 0, strict=True)))
        assert cond.trends() == {"current_price": -1, "clv_delta": 1}
        assert AnyOf((AtLeast("edge", 0), AtMost("edge", 1))).trends() == {"edge": None}

    def test_multipliers(self):
        assert Constant(1.5).trends() == {}
        assert Count("books_moved", 3, 1.25).trends() == {"books_moved": 1}
        assert Ramp("public_pct", 50, 80, 1.3).trends() == {"public_pct": 1}
        assert Step("travel", 1000, 1.2, absolute=True).trends() == {"travel": None}


class TestFieldRelation:
    @pytest.mark.parametrize("driver, other, expected", [
        ("edge", "edge", 1),
        ("edge", "hit_rate", 0),
        ("public_pct_against", "public_pct", -1),
        ("public_pct", "public_pct_against", -1),
        ("current_price", "clv_delta", -1),
        ("opening_price", "clv_delta", 1),
        ("clv_delta", "current_price", None),
        ("price_delta", "abs_price_delta", None),
        ("abs_price_delta", "abs_price_delta", 1),
    ])
    def test_relation(self, driver, other, expected):
        assert field_relation(driver, other) == expected


class TestBuildMultiplier:
    def test_none_is_constant(self):
        assert build_multiplier(None) == Constant()

    def test_ramp_from_config(self):
        mult = build_multiplier({
            "type": "ramp", "field": "consensus_ratio", "start": 0.6, "end": 1.0, "ceiling": 1.3,
        })
        assert isinstance(mult, Ramp)
        assert mult.evaluate(_snap(consensus_ratio=0.8)) == pytest.approx(1.15)

    def test_unknown_type_raises(self):
        with pytest.raises(ValueError, match="Unknown multiplier type"):
            build_multiplier({"type": "exponential"})

    def test_missing_type_raises(self):
        with pytest.raises(ValueError, match="must contain a 'type' key"):
            build_multiplier({"field": "x"})

    def test_bad_parameters_raise(self):
        with pytest.raises(ValueError, match="Bad parameters"):
            build_multiplier({"type": "step", "field": "x"})
