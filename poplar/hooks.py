"""Hook execution engine: resolve matching hooks and run them in sequence."""

from __future__ import annotations

import asyncio
import concurrent.futures
import inspect
import logging
from collections.abc import Callable
from typing import Any

from poplar.errors import HookAbortError
from poplar.listeners import Hook, ListenerRegistry
from poplar.models import HookPhase
from poplar.tree import ListenerTree

logger = logging.getLogger(__name__)

Done = Callable[[BaseException | None], None]
Settled = Callable[[BaseException | None, Any], None]


def is_future_like(value: Any) -> bool:
    return callable(getattr(value, "add_done_callback", None))


def defer(value: Any, on_settled: Settled) -> bool:
    """Route a deferred hook/handler result into ``on_settled(error, result)``.

    Future-like values (anything with ``add_done_callback``) are awaited through
    their done callback; coroutines are scheduled on the running event loop.
    Returns False when ``value`` is not deferred at all.
    """
    if inspect.iscoroutine(value):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            value.close()
            on_settled(RuntimeError("coroutine hooks and handlers require a running event loop"), None)
            return True
        value = loop.create_task(value)
    if not is_future_like(value):
        return False

    def _on_done(future: Any) -> None:
        if future.cancelled():
            if isinstance(future, asyncio.Future):
                on_settled(asyncio.CancelledError(), None)
            else:
                on_settled(concurrent.futures.CancelledError(), None)
            return
        exc = future.exception()
        if exc is not None:
            on_settled(exc, None)
        else:
            on_settled(None, future.result())

    value.add_done_callback(_on_done)
    return True


def accepts_method(fn: Hook) -> bool:
    """Whether ``fn`` takes the method as a third positional argument."""
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return True
    positional = 0
    for param in signature.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return True
        if param.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            positional += 1
    return positional >= 3


def as_abort_error(err: Any, phase: HookPhase | None = None) -> BaseException:
    if isinstance(err, BaseException):
        return err
    return HookAbortError(err, phase=phase.value if phase else None)


class HookRunner:
    """Runs the hooks of one phase for one method strictly one after another."""

    def __init__(self, registry: ListenerRegistry, tree: ListenerTree, fallback_scan: bool = True) -> None:
        self.registry = registry
        self.tree = tree
        self.fallback_scan = fallback_scan

    def resolve(self, phase: HookPhase | str, method_name: str) -> list[str]:
        patterns = list(self.tree.lookup(method_name, phase))
        if not patterns and self.fallback_scan:
            patterns = self.registry.search(phase, method_name)
            if patterns:
                logger.debug("Listener tree miss for %s %s; live scan found %s", phase, method_name, patterns)
        return patterns

    def stack(self, phase: HookPhase | str, method_name: str) -> list[Hook]:
        stack: list[Hook] = []
        for pattern in self.resolve(phase, method_name):
            stack.extend(self.registry.listeners(pattern))
        return stack

    def execute(self, phase: HookPhase | str, method: Any, context: Any, done: Done) -> None:
        phase = HookPhase(phase)
        _HookChain(phase, method, context, self.stack(phase, method.full_name), done).run(0)


class _HookChain:
    """One execution of a hook stack.

    Hooks that complete synchronously are driven by the loop in ``run``; only a
    completion that arrives later (future, coroutine, deferred ``proceed``)
    re-enters ``run``, so long synchronous chains use constant stack depth.
    """

    def __init__(self, phase: HookPhase, method: Any, context: Any, stack: list[Hook], done: Done) -> None:
        self.phase = phase
        self.method = method
        self.context = context
        self.stack = stack
        self.done = done

    def run(self, index: int) -> None:
        while index < len(self.stack):
            if not self._call(index):
                return
            index += 1
        self.done(None)

    def _call(self, index: int) -> bool:
        """Invoke one hook; True when it already succeeded and the loop may go on."""
        hook = self.stack[index]
        settled = False
        running = True
        succeeded_inline = False

        def proceed(err: Any = None) -> None:
            nonlocal settled, succeeded_inline
            if settled:
                logger.warning(
                    "Hook %r for %s %s signalled completion more than once; ignoring",
                    hook,
                    self.phase.value,
                    self.method.full_name,
                )
                return
            settled = True
            if err:
                self.done(as_abort_error(err, self.phase))
            elif running:
                succeeded_inline = True
            else:
                self.run(index + 1)

        try:
            if accepts_method(hook):
                result = hook(self.context, proceed, self.method)
            else:
                result = hook(self.context, proceed)
        except Exception as exc:
            running = False
            if settled:
                raise
            proceed(exc)
            return False
        if result is not None:
            defer(result, lambda err, _value: proceed(err))
        running = False
        return succeeded_inline
