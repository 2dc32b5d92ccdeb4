"""Precomputed method -> phase -> matching hook patterns cache.

Example shape::

    {
        "users.info": {
            "before": ("before.users.*", "before.users.info"),
            "after": ("after.users.*",),
            "afterError": (),
        }
    }
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from poplar.listeners import ListenerRegistry
from poplar.models import PHASES, HookPhase

logger = logging.getLogger(__name__)

Branch = dict[HookPhase, tuple[str, ...]]


class ListenerTree:
    def __init__(self) -> None:
        self._tree: dict[str, Branch] = {}

    def rebuild(self, method_names: Iterable[str], registry: ListenerRegistry) -> None:
        tree: dict[str, Branch] = {}
        for name in method_names:
            tree[name] = {phase: tuple(registry.search(phase, name)) for phase in PHASES}
        # swap in one assignment so lookups never see a partial tree
        self._tree = tree
        logger.debug("Rebuilt listener tree for %s methods", len(tree))

    def lookup(self, method_name: str, phase: HookPhase | str) -> tuple[str, ...]:
        branch = self._tree.get(method_name)
        if branch is None:
            return ()
        return branch[HookPhase(phase)]

    def snapshot(self) -> dict[str, dict[str, list[str]]]:
        return {
            name: {phase.value: list(patterns) for phase, patterns in branch.items()}
            for name, branch in self._tree.items()
        }

    def __contains__(self, method_name: object) -> bool:
        return method_name in self._tree

    def __len__(self) -> int:
        return len(self._tree)
