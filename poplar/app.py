"""Method registry, hook registration surface and invocation orchestration."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from poplar.api_builder import ApiBuilder
from poplar.api_method import ApiMethod
from poplar.config import PoplarConfig, load_effective_config
from poplar.errors import DuplicateCollectionError, MethodNotFoundError, RegistryFrozenError, ValidationFailure
from poplar.helpers import get_slot, set_slot
from poplar.hooks import Done, HookRunner
from poplar.listeners import Hook, ListenerRegistry, hook_pattern
from poplar.logging_utils import configure_logging
from poplar.models import CollectionOptions, HookPhase, InvocationContext
from poplar.tree import ListenerTree
from poplar.validation import ValidatorLibrary, validate

logger = logging.getLogger(__name__)

Callback = Callable[[BaseException | None], None]


def _once(callback: Callback, label: str) -> Callback:
    called = False

    def wrapper(err: BaseException | None = None) -> None:
        nonlocal called
        if called:
            logger.warning("Invocation of %s already completed; dropping extra callback", label)
            return
        called = True
        callback(err)

    return wrapper


class Poplar:
    """Registry of method collections and hooks plus the invocation pipeline.

    Configure first (``use``, ``before``/``after``/``after_error``), optionally
    ``freeze()``, then serve with ``dispatch``.
    """

    def __init__(self, config: PoplarConfig | None = None, validators: ValidatorLibrary | None = None) -> None:
        self.config = config or PoplarConfig()
        self.validators = validators or ValidatorLibrary(self.config.validation.aliases)
        self._builders: dict[str, ApiBuilder] = {}
        self._methods: dict[str, ApiMethod] = {}
        self._listeners = ListenerRegistry(max_listeners=self.config.hooks.max_listeners)
        self._tree = ListenerTree()
        self._runner = HookRunner(self._listeners, self._tree, fallback_scan=self.config.hooks.fallback_scan)
        self._frozen = False

    @classmethod
    def create(cls, config: PoplarConfig | None = None) -> Poplar:
        return cls(config=config)

    @classmethod
    def from_config(
        cls,
        path: str | Path,
        system_defaults: dict[str, Any] | None = None,
        runtime_override: dict[str, Any] | None = None,
    ) -> Poplar:
        config = load_effective_config(path, system_defaults=system_defaults, runtime_override=runtime_override)
        if config.logging.configure:
            configure_logging(config.logging.level, poplar_level=config.logging.poplar_level)
        return cls(config=config)

    @property
    def listeners(self) -> ListenerRegistry:
        return self._listeners

    @property
    def tree(self) -> ListenerTree:
        return self._tree

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _ensure_mutable(self) -> None:
        if self._frozen:
            raise RegistryFrozenError("Registry is frozen; register collections and hooks before serving")

    # -- method registry -------------------------------------------------

    def use(self, name: str | ApiBuilder, options: CollectionOptions | dict[str, Any] | None = None) -> ApiBuilder:
        """Merge a collection's methods and hooks into this registry."""
        self._ensure_mutable()
        builder = name if isinstance(name, ApiBuilder) else ApiBuilder(name, options)
        if builder.name in self._builders:
            raise DuplicateCollectionError(builder.name)

        self._builders[builder.name] = builder
        for pattern, fns in builder.listeners():
            for fn in fns:
                self._listeners.register(pattern, fn)
        for method in builder.methods().values():
            self._methods[method.full_name] = method

        logger.debug("Merged collection %s (%s methods)", builder.name, len(builder.methods()))
        self.rebuild_tree()
        return builder

    def collections(self) -> dict[str, ApiBuilder]:
        return dict(self._builders)

    def all_methods(self) -> list[ApiMethod]:
        return list(self._methods.values())

    def method(self, full_name: str) -> ApiMethod:
        try:
            return self._methods[full_name]
        except KeyError:
            raise MethodNotFoundError(full_name) from None

    # -- hook registration -----------------------------------------------

    def register_hook(self, phase: HookPhase | str, method_glob: str, fn: Hook) -> None:
        self._ensure_mutable()
        self._listeners.register(hook_pattern(phase, method_glob), fn)
        self.rebuild_tree()

    def before(self, method_glob: str, fn: Hook) -> None:
        """Run ``fn(ctx, next, method)`` before methods matching ``method_glob``, e.g. ``users.*``."""
        self.register_hook(HookPhase.BEFORE, method_glob, fn)

    def after(self, method_glob: str, fn: Hook) -> None:
        """Run ``fn(ctx, next, method)`` after a matching method succeeded; ``ctx.result`` is set."""
        self.register_hook(HookPhase.AFTER, method_glob, fn)

    def after_error(self, method_glob: str, fn: Hook) -> None:
        """Run ``fn(ctx, next, method)`` after a matching invocation failed; ``ctx.error`` is set.

        Calling ``next(err)`` reports ``err`` instead of the original error.
        """
        self.register_hook(HookPhase.AFTER_ERROR, method_glob, fn)

    def remove_hook(self, phase: HookPhase | str, method_glob: str, fn: Hook | None = None) -> int:
        self._ensure_mutable()
        removed = self._listeners.remove(hook_pattern(phase, method_glob), fn)
        if removed:
            self.rebuild_tree()
        return removed

    def rebuild_tree(self) -> None:
        self._tree.rebuild(self._methods, self._listeners)

    def freeze(self) -> None:
        self.rebuild_tree()
        self._frozen = True
        logger.info("Registry frozen with %s methods and %s hook patterns", len(self._methods), len(self._listeners))

    def search_listeners(self, method_name: str, phase: HookPhase | str) -> list[str]:
        return self._listeners.search(phase, method_name)

    def search_listener_tree(self, method_name: str, phase: HookPhase | str) -> list[str]:
        return list(self._tree.lookup(method_name, phase))

    # -- invocation --------------------------------------------------------

    def execute_hooks(self, phase: HookPhase | str, method: Any, context: Any, done: Done) -> None:
        self._runner.execute(phase, method, context, done)

    def invoke_method_in_context(self, method: Any, context: Any, callback: Callback) -> None:
        """before hooks -> handler -> after hooks, with afterError hooks on any failure."""
        finish = _once(callback, method.full_name)

        def fail(err: BaseException) -> None:
            set_slot(context, "error", err)

            def after_error_done(hook_err: BaseException | None) -> None:
                finish(hook_err or err)

            self._runner.execute(HookPhase.AFTER_ERROR, method, context, after_error_done)

        def after_done(err: BaseException | None) -> None:
            if err:
                fail(err)
                return
            finish(None)

        def invoked(err: BaseException | None, result: Any = None) -> None:
            if err:
                if self.config.hooks.route_handler_errors:
                    fail(err)
                else:
                    finish(err)
                return
            set_slot(context, "result", result)
            self._runner.execute(HookPhase.AFTER, method, context, after_done)

        def before_done(err: BaseException | None) -> None:
            if err:
                fail(err)
                return
            method.invoke(context, invoked)

        self._runner.execute(HookPhase.BEFORE, method, context, before_done)

    def dispatch(self, method: str | Any, context: Any, callback: Callback) -> None:
        """Entry point for transports: resolve, validate, then invoke."""
        if self.config.freeze_on_dispatch and not self._frozen:
            self.freeze()
        if isinstance(method, str):
            try:
                method = self.method(method)
            except MethodNotFoundError as exc:
                callback(exc)
                return
        if isinstance(context, InvocationContext) and context.method_name is None:
            context.method_name = method.full_name

        errors = validate(
            get_slot(context, "params"),
            getattr(method, "accepts", None),
            library=self.validators,
            default_message=self.config.validation.default_message,
        )
        if errors.any():
            logger.debug("Validation failed for %s: %s", method.full_name, errors.to_human())
            callback(ValidationFailure(errors))
            return

        self.invoke_method_in_context(method, context, callback)

    async def dispatch_async(self, method: str | Any, context: Any) -> Any:
        """Awaitable ``dispatch``; resolves to ``context.result`` or raises the reported error."""
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Any] = loop.create_future()

        def settle(err: BaseException | None) -> None:
            if future.done():
                return
            if err:
                future.set_exception(err)
            else:
                future.set_result(get_slot(context, "result"))

        def callback(err: BaseException | None = None) -> None:
            loop.call_soon_threadsafe(settle, err)

        self.dispatch(method, context, callback)
        return await future
