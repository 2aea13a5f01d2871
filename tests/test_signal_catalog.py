"""Tests for catalog validation, YAML loading and the engine registry."""

from __future__ import annotations

from pathlib import Path

import pytest

from pressure_engine.catalogs import god_mode
from pressure_engine.catalogs.registry import build_config_for, build_engine, registered
from pressure_engine.engine.config import CAUTION, CONFIRM, CONTRADICT, EngineConfig
from pressure_engine.engine.core import PressureEngine
from pressure_engine.signals.catalog import SignalCatalog, catalog_from_dict, load_catalog
from pressure_engine.signals.conditions import AtLeast, AtMost, Between, Flag
from pressure_engine.signals.definition import CONFIRMING, CONTRADICTING, SignalDefinition
from pressure_engine.signals.multipliers import Constant, Count, Ramp

REPO_ROOT = Path(__file__).resolve().parent.parent
CONSERVATIVE_CATALOG = REPO_ROOT / "configs" / "catalogs" / "god_mode_conservative.yaml"


def _defn(name: str, category: str = CONFIRMING, weight: float = 10.0) -> SignalDefinition:
    return SignalDefinition(name, category, weight, Flag("steam_move"))


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class TestValidation:
    def test_valid_catalog(self):
        catalog = SignalCatalog("1", (_defn("A"),), (_defn("B", CONTRADICTING),))
        assert len(catalog) == 2
        assert catalog.names == ["A", "B"]
        assert catalog.get("B").category == CONTRADICTING

    def test_get_unknown_raises_key_error(self):
        catalog = SignalCatalog("1", (_defn("A"),), ())
        with pytest.raises(KeyError):
            catalog.get("Z")

    def test_empty_version(self):
        with pytest.raises(ValueError, match="version must not be empty"):
            SignalCatalog(" ", (_defn("A"),), ())

    def test_no_definitions(self):
        with pytest.raises(ValueError, match="no signal definitions"):
            SignalCatalog("1", (), ())

    def test_duplicate_name_across_sides(self):
        with pytest.raises(ValueError, match="Duplicate signal name 'A'"):
            SignalCatalog("1", (_defn("A"),), (_defn("A", CONTRADICTING),))

    def test_unknown_category(self):
        with pytest.raises(ValueError, match="unknown category"):
            SignalCatalog("1", (_defn("A", "neutral"),), ())

    def test_category_mismatch(self):
        with pytest.raises(ValueError, match="listed under confirming"):
            SignalCatalog("1", (_defn("A", CONTRADICTING),), ())

    @pytest.mark.parametrize("weight", [0.0, -5.0])
    def test_non_positive_weight(self, weight):
        with pytest.raises(ValueError, match="base_weight must be > 0"):
            SignalCatalog("1", (_defn("A", weight=weight),), ())

    def test_invalid_condition(self):
        bad = SignalDefinition("A", CONFIRMING, 10.0, condition="steam_move")
        with pytest.raises(ValueError, match="no valid condition"):
            SignalCatalog("1", (bad,), ())

    def test_bundled_catalogs_are_valid(self):
        for name in registered():
            config = build_config_for({"type": name})
            assert len(config.catalog) > 0
            assert config.catalog.confirming
            assert config.catalog.contradicting


# ---------------------------------------------------------------------------
# Multiplier inputs
# ---------------------------------------------------------------------------

def _scaled(name, category, condition, multiplier, magnitude_field=None) -> SignalDefinition:
    return SignalDefinition(
        name, category, 10.0, condition, multiplier, magnitude_field=magnitude_field,
    )


class TestMultiplierInputs:
    def test_count_input_that_switches_on_a_contradicting_signal(self):
        steam = _scaled("STEAM_MOVE", CONFIRMING, Flag("steam_move"), Count("books_moved", 3, 1.25))
        isolated = _scaled("ISOLATED_SIGNAL", CONTRADICTING, AtLeast("books_moved", 1), Constant())
        with pytest.raises(ValueError, match="'books_moved' of 'STEAM_MOVE'.*'ISOLATED_SIGNAL'"):
            SignalCatalog("1", (steam,), (isolated,))

    def test_ramp_input_read_by_a_band(self):
        band = _scaled(
            "OPTIMAL_MOVEMENT_BAND", CONFIRMING, Between("abs_price_delta", 10, 30), Constant(),
        )
        price_only = _scaled(
            "PRICE_ONLY_MOVE", CONTRADICTING, Flag("price_only_move"),
            Ramp("abs_price_delta", 8, 30, 1.3),
        )
        with pytest.raises(ValueError, match="condition of 'OPTIMAL_MOVEMENT_BAND'"):
            SignalCatalog("1", (band,), (price_only,))

    def test_derived_field_counts_as_its_source(self):
        rlm = _scaled(
            "REVERSE_LINE_MOVEMENT", CONFIRMING, Flag("reverse_movement"),
            Ramp("public_pct_against", 50, 80, 1.5),
        )
        public_side = _scaled("PUBLIC_SIDE", CONTRADICTING, AtMost("public_pct", 40), Constant())
        with pytest.raises(ValueError, match="'public_pct_against'"):
            SignalCatalog("1", (rlm,), (public_side,))

    def test_absolute_input_read_by_its_own_condition(self):
        deficit = _scaled(
            "FATIGUE_DEFICIT", CONTRADICTING, AtMost("fatigue_diff", -15),
            Ramp("fatigue_diff", 15, 30, 1.5, absolute=True),
        )
        with pytest.raises(ValueError, match="'fatigue_diff' of 'FATIGUE_DEFICIT'"):
            SignalCatalog("1", (_defn("A"),), (deficit,))

    def test_input_used_as_magnitude_field(self):
        scaled = _scaled(
            "A", CONFIRMING, Flag("steam_move"), Ramp("price_delta", 10, 30, 1.5),
        )
        noisy = _scaled(
            "B", CONTRADICTING, Flag("price_only_move"), Constant(), magnitude_field="price_delta",
        )
        with pytest.raises(ValueError, match="magnitude field of 'B'"):
            SignalCatalog("1", (scaled,), (noisy,))

    def test_agreeing_overlaps_are_allowed(self):
        edge = _scaled("EDGE", CONFIRMING, AtLeast("edge", 1), Ramp("edge", 1, 4, 1.5))
        rlm = _scaled(
            "RLM", CONFIRMING, Flag("reverse_movement"), Ramp("public_pct_against", 50, 80, 1.5),
        )
        negative = _scaled("NEGATIVE_EDGE", CONTRADICTING, AtMost("edge", 0, strict=True), Constant())
        public = _scaled(
            "PUBLIC", CONTRADICTING, Flag("price_only_move"), Ramp("public_pct", 50, 80, 1.3),
        )
        catalog = SignalCatalog("1", (edge, rlm), (negative, public))
        assert len(catalog) == 4

    def test_yaml_catalog_is_checked_too(self):
        with pytest.raises(ValueError, match="'books_moved' of 'STEAM_MOVE'"):
            catalog_from_dict({
                "version": "x",
                "confirming": [{
                    "name": "STEAM_MOVE", "weight": 20,
                    "condition": {"type": "flag", "field": "steam_move"},
                    "multiplier": {"type": "count", "field": "books_moved", "minimum": 3,
                                   "boost": 1.25},
                }],
                "contradicting": [{
                    "name": "ISOLATED_SIGNAL", "weight": 20,
                    "condition": {"type": "at_least", "field": "books_moved", "threshold": 1},
                }],
            })


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

class TestLoading:
    def test_load_conservative_catalog(self):
        catalog = load_catalog(CONSERVATIVE_CATALOG)
        assert catalog.version == "2.1-conservative"
        assert len(catalog.confirming) == 4
        assert len(catalog.contradicting) == 4
        assert catalog.get("BOTH_SIDES_MOVED").high_severity is True
        assert catalog.get("PRICE_ONLY_MOVE").magnitude_field == "price_delta"

    def test_entry_missing_weight(self):
        with pytest.raises(ValueError, match="missing 'weight'"):
            catalog_from_dict({
                "version": "x",
                "confirming": [{"name": "A", "condition": {"type": "flag", "field": "f"}}],
            })

    def test_version_argument_wins(self):
        catalog = catalog_from_dict(
            {"version": "1", "confirming": [
                {"name": "A", "weight": 5, "condition": {"type": "flag", "field": "f"}},
            ]},
            version="9",
        )
        assert catalog.version == "9"

    def test_bad_yaml_condition_surfaces_as_value_error(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text(
            "version: '1'\n"
            "confirming:\n"
            "  - name: A\n"
            "    weight: 5\n"
            "    condition: {type: wildcard, field: f}\n",
            encoding="utf-8",
        )
        with pytest.raises(ValueError, match="Unknown condition type"):
            load_catalog(path)

    def test_to_frame(self):
        frame = god_mode.CATALOG.to_frame()
        assert list(frame.columns) == [
            "name", "category", "base_weight", "high_severity",
            "condition", "multiplier", "description",
        ]
        assert len(frame) == len(god_mode.CATALOG)
        assert frame["high_severity"].sum() == 2
        assert frame.iloc[0]["name"] == "REVERSE_LINE_MOVEMENT"


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class TestRegistry:
    def test_registered_engines(self):
        assert registered() == ["fatigue", "god_mode", "matchup", "median_lock"]

    def test_build_engine(self):
        engine = build_engine({"type": "god_mode"})
        assert isinstance(engine, PressureEngine)
        assert engine.name == "god_mode"
        assert engine.strategy_version == "god_mode-2.1"

    def test_missing_type_raises(self):
        with pytest.raises(ValueError, match="must contain a 'type' key"):
            build_engine({"overrides": {}})

    def test_unknown_type_raises(self):
        with pytest.raises(ValueError, match="Unknown engine type"):
            build_engine({"type": "nonexistent"})

    def test_unknown_parameter_raises(self):
        with pytest.raises(ValueError, match="Unknown parameters for engine 'god_mode'"):
            build_engine({"type": "god_mode", "fast_period": 10})

    def test_unknown_threshold_key_raises(self):
        with pytest.raises(ValueError, match="Unknown threshold keys"):
            build_engine({"type": "god_mode", "overrides": {"confirm_prob": 70}})

    def test_caller_dict_not_mutated(self):
        cfg = {"type": "god_mode", "overrides": {"confirm_score": 25.0}}
        build_engine(cfg)
        assert cfg == {"type": "god_mode", "overrides": {"confirm_score": 25.0}}

    def test_overrides_and_boost_merge(self):
        config = build_config_for({
            "type": "god_mode",
            "overrides": {"confirm_score": 30.0, "boosts": {"model_alignment": 5.0}},
        })
        assert isinstance(config, EngineConfig)
        assert config.thresholds.confirm_score == 30.0
        table = config.thresholds.boost_table()
        assert table["model_alignment"] == 5.0
        assert table["trap_flagged"] == -12.0

    def test_catalog_path_replaces_bundled_catalog(self):
        config = build_config_for({"type": "god_mode", "catalog": str(CONSERVATIVE_CATALOG)})
        assert config.strategy_version == "god_mode-2.1-conservative"

    def test_label_override(self):
        config = build_config_for({"type": "matchup", "labels": {CAUTION: "monitor"}})
        assert config.label(CAUTION) == "monitor"
        assert config.label(CONFIRM) == "attack"
        assert config.label(CONTRADICT) == "avoid"

    def test_sport_overrides(self):
        engine = build_engine({
            "type": "god_mode",
            "sport_overrides": {"NHL": {"noise_floor": 6.0}},
        })
        assert engine.thresholds_for("nhl").noise_floor == 6.0
        assert engine.thresholds_for("NHL").noise_floor == 6.0
        assert engine.thresholds_for("nba").noise_floor == 8.0
        assert engine.thresholds_for("").noise_floor == 8.0

    def test_bad_sport_override_fails_at_build(self):
        with pytest.raises(ValueError, match="Unknown threshold keys"):
            build_engine({"type": "god_mode", "sport_overrides": {"nhl": {"floor": 6.0}}})
