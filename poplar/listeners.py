"""Listener registry: hook patterns mapped to ordered hook callables."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from typing import Any

from poplar.matcher import match
from poplar.models import HookPhase

logger = logging.getLogger(__name__)

Hook = Callable[..., Any]

DEFAULT_MAX_LISTENERS = 16


def hook_pattern(phase: HookPhase | str, method_glob: str) -> str:
    return f"{HookPhase(phase).value}.{method_glob}"


class ListenerRegistry:
    """Ordered pattern -> hooks store; insertion order is invocation order."""

    def __init__(self, max_listeners: int = DEFAULT_MAX_LISTENERS) -> None:
        self.max_listeners = max_listeners
        self._listeners: dict[str, list[Hook]] = {}

    def register(self, pattern: str, fn: Hook) -> None:
        if not callable(fn):
            raise TypeError(f"Hook for {pattern!r} must be callable, got {type(fn).__name__}")
        fns = self._listeners.setdefault(pattern, [])
        fns.append(fn)
        if self.max_listeners and len(fns) == self.max_listeners + 1:
            logger.warning(
                "Possible listener leak: %s hooks registered for %s (max_listeners=%s)",
                len(fns),
                pattern,
                self.max_listeners,
            )

    def remove(self, pattern: str, fn: Hook | None = None) -> int:
        fns = self._listeners.get(pattern)
        if not fns:
            return 0
        if fn is None:
            del self._listeners[pattern]
            return len(fns)
        try:
            fns.remove(fn)
        except ValueError:
            return 0
        if not fns:
            del self._listeners[pattern]
        return 1

    def listeners(self, pattern: str) -> list[Hook]:
        return list(self._listeners.get(pattern, ()))

    def patterns(self) -> list[str]:
        return list(self._listeners)

    def items(self) -> Iterator[tuple[str, list[Hook]]]:
        for pattern, fns in self._listeners.items():
            yield pattern, list(fns)

    def search(self, phase: HookPhase | str, method_name: str) -> list[str]:
        """Scan every pattern for ones matching ``<phase>.<method_name>``."""
        candidate = hook_pattern(phase, method_name)
        return [pattern for pattern in self._listeners if match(candidate, pattern)]

    def __contains__(self, pattern: object) -> bool:
        return pattern in self._listeners

    def __len__(self) -> int:
        return len(self._listeners)
