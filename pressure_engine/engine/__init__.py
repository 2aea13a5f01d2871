from .config import (
    CAUTION,
    CONFIRM,
    CONTRADICT,
    EngineConfig,
    ThresholdSet,
    build_config,
)
from .core import Decision, PressureEngine

__all__ = [
    "CONFIRM",
    "CONTRADICT",
    "CAUTION",
    "EngineConfig",
    "ThresholdSet",
    "build_config",
    "Decision",
    "PressureEngine",
]
