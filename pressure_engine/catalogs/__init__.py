from .registry import build_config_for, build_engine, register, registered

__all__ = [
    "build_config_for",
    "build_engine",
    "register",
    "registered",
]
