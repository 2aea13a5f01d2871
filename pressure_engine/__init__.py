"""Multi-signal weighted pressure / classification engines."""

from .snapshot import InputSnapshot, MissingFieldError, extract_snapshot
from .engine import Decision, EngineConfig, PressureEngine, ThresholdSet
from .catalogs import build_engine

__version__ = "0.3.0"

__all__ = [
    "InputSnapshot",
    "MissingFieldError",
    "extract_snapshot",
    "Decision",
    "EngineConfig",
    "PressureEngine",
    "ThresholdSet",
    "build_engine",
]
