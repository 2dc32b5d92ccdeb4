"""Method collections: a named namespace of methods with its own hooks."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from poplar.api_method import ApiMethod, Handler
from poplar.errors import MethodNotFoundError
from poplar.listeners import Hook, ListenerRegistry, hook_pattern
from poplar.models import CollectionOptions, HookPhase, MethodOptions


class ApiBuilder:
    """Collects methods and hooks under one name before they are merged into ``Poplar``.

    Hooks registered here use the same glob patterns as the global ones, e.g.
    ``builder.before("users.*", fn)``, and are copied into the global registry
    when the builder is used.
    """

    def __init__(self, name: str, options: CollectionOptions | dict[str, Any] | None = None) -> None:
        if not name or "." in name:
            raise ValueError(f"Invalid collection name: {name!r}")
        self.name = name
        self.options = (
            options if isinstance(options, CollectionOptions) else CollectionOptions.model_validate(options or {})
        )
        self._methods: dict[str, ApiMethod] = {}
        self._listeners = ListenerRegistry()

    @property
    def base_path(self) -> str:
        return self.options.base_path or f"/{self.name}"

    def define(self, name: str, options: MethodOptions | dict[str, Any] | None, fn: Handler) -> ApiMethod:
        method = ApiMethod(name, options, fn, collection=self.name)
        self._methods[name] = method
        return method

    def method(self, name: str) -> ApiMethod:
        try:
            return self._methods[name]
        except KeyError:
            raise MethodNotFoundError(f"{self.name}.{name}") from None

    def methods(self) -> dict[str, ApiMethod]:
        return dict(self._methods)

    def before(self, method_glob: str, fn: Hook) -> None:
        self._listeners.register(hook_pattern(HookPhase.BEFORE, method_glob), fn)

    def after(self, method_glob: str, fn: Hook) -> None:
        self._listeners.register(hook_pattern(HookPhase.AFTER, method_glob), fn)

    def after_error(self, method_glob: str, fn: Hook) -> None:
        self._listeners.register(hook_pattern(HookPhase.AFTER_ERROR, method_glob), fn)

    def listeners(self) -> Iterator[tuple[str, list[Hook]]]:
        return self._listeners.items()

    def __repr__(self) -> str:
        return f"ApiBuilder({self.name!r}, methods={len(self._methods)})"
