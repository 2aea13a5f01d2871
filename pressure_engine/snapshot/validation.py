"""Fail-fast checks on raw snapshot payloads."""

from __future__ import annotations

from typing import Iterable, Mapping

import pandas as pd


class MissingFieldError(ValueError):
    """A mandatory identifying field is absent or blank."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Missing mandatory field '{field}'")


def is_missing(value) -> bool:
    """True for ``None``, NaN and blank strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, dict)):
        return False
    return bool(pd.isna(value))


def require_fields(raw: Mapping, names: Iterable[str]) -> None:
    """Raise ``MissingFieldError`` for the first of *names* missing in *raw*."""
    for name in names:
        if is_missing(raw.get(name)):
            raise MissingFieldError(name)
