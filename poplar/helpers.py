"""Small shared helpers."""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from typing import Any


def is_empty(value: Any) -> bool:
    """True for absent, ``None`` and empty-string parameter values."""
    return value is None or (isinstance(value, str) and value == "")


def get_slot(context: Any, name: str, default: Any = None) -> Any:
    if isinstance(context, Mapping):
        return context.get(name, default)
    return getattr(context, name, default)


def set_slot(context: Any, name: str, value: Any) -> None:
    if isinstance(context, MutableMapping):
        context[name] = value
    else:
        setattr(context, name, value)
