from .definition import CONFIRMING, CONTRADICTING, SignalDefinition, SignalOutcome
from .conditions import AllOf, AnyOf, AtLeast, AtMost, Between, Condition, Flag, Not, build_condition
from .multipliers import Constant, Count, Multiplier, Ramp, Step, build_multiplier
from .catalog import SignalCatalog, catalog_from_dict, load_catalog

__all__ = [
    "CONFIRMING",
    "CONTRADICTING",
    "SignalDefinition",
    "SignalOutcome",
    "Condition",
    "Flag",
    "AtLeast",
    "AtMost",
    "Between",
    "Not",
    "AllOf",
    "AnyOf",
    "build_condition",
    "Multiplier",
    "Constant",
    "Step",
    "Count",
    "Ramp",
    "build_multiplier",
    "SignalCatalog",
    "catalog_from_dict",
    "load_catalog",
]
