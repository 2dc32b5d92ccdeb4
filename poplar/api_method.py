"""Method objects: a named handler plus the metadata transports and validation need."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from poplar.errors import HandlerError
from poplar.helpers import get_slot
from poplar.hooks import defer
from poplar.models import AcceptSpec, MethodOptions

logger = logging.getLogger(__name__)

Handler = Callable[..., Any]
Callback = Callable[..., None]


class ApiMethod:
    def __init__(
        self,
        name: str,
        options: MethodOptions | dict[str, Any] | None,
        fn: Handler,
        collection: str | None = None,
    ) -> None:
        if not callable(fn):
            raise TypeError(f"Handler for method {name!r} must be callable")
        self.name = name
        self.options = options if isinstance(options, MethodOptions) else MethodOptions.model_validate(options or {})
        self.fn = fn
        self.collection = collection

    @property
    def full_name(self) -> str:
        if self.collection:
            return f"{self.collection}.{self.name}"
        return self.name

    @property
    def accepts(self) -> list[AcceptSpec]:
        return self.options.accepts

    @property
    def description(self) -> str:
        return self.options.description

    @property
    def http(self) -> dict[str, Any]:
        return self.options.http

    def invoke(self, context: Any, callback: Callback) -> None:
        """Run the handler with ``context.params``; ``callback(error, result)`` fires once.

        The handler is called as ``fn(params, callback)``. It may call the
        callback, return a future-like or coroutine whose result becomes the
        method result, or raise.
        """
        params = get_slot(context, "params") or {}
        settled = False

        def finish(err: Any = None, result: Any = None) -> None:
            nonlocal settled
            if settled:
                logger.warning("Handler for %s called back more than once; ignoring", self.full_name)
                return
            settled = True
            if err and not isinstance(err, BaseException):
                err = HandlerError(err, method_name=self.full_name)
            callback(err or None, result)

        try:
            returned = self.fn(params, finish)
        except Exception as exc:
            if settled:
                raise
            finish(exc)
            return
        if returned is not None:
            defer(returned, finish)

    def __repr__(self) -> str:
        return f"ApiMethod({self.full_name!r})"
