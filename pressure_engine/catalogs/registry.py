"""Engine registry — maps type strings to engine config builders."""

from __future__ import annotations

from typing import Callable

from pressure_engine.engine.config import EngineConfig
from pressure_engine.engine.core import PressureEngine

EngineBuilder = Callable[[dict], EngineConfig]

_REGISTRY: dict[str, EngineBuilder] = {}


def register(name: str, builder: EngineBuilder) -> None:
    """Register an engine config builder under the given name."""
    _REGISTRY[name] = builder


def registered() -> list[str]:
    return sorted(_REGISTRY)


def build_config_for(engine_cfg: dict) -> EngineConfig:
    """Build an ``EngineConfig`` from an engine config block.

    Parameters
    ----------
    engine_cfg : dict
        Must contain a ``type`` key that maps to a registered builder.
        Remaining keys (``overrides``, ``sport_overrides``, ``labels``,
        ``catalog``) are passed as ``params`` to the builder.

    Returns
    -------
    EngineConfig
    """
    cfg = dict(engine_cfg)  # shallow copy so we don't mutate caller's dict
    engine_type = cfg.pop("type", None)
    if engine_type is None:
        raise ValueError("engine config must contain a 'type' key")
    if engine_type not in _REGISTRY:
        raise ValueError(
            f"Unknown engine type '{engine_type}'. "
            f"Registered: {sorted(_REGISTRY)}"
        )
    return _REGISTRY[engine_type](cfg)


def build_engine(engine_cfg: dict) -> PressureEngine:
    """Build a ready-to-use ``PressureEngine`` from an engine config block."""
    return PressureEngine(build_config_for(engine_cfg))


# Auto-register built-in engines
from .god_mode import build as _build_god_mode  # noqa: E402
from .median_lock import build as _build_median_lock  # noqa: E402
from .fatigue import build as _build_fatigue  # noqa: E402
from .matchup import build as _build_matchup  # noqa: E402

register("god_mode", _build_god_mode)
register("median_lock", _build_median_lock)
register("fatigue", _build_fatigue)
register("matchup", _build_matchup)
