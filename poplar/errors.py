"""Error hierarchy for registration, hook dispatch and validation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from poplar.validation import ValidationError


class PoplarError(Exception):
    """Base class for every error raised or reported by poplar."""


class DuplicateCollectionError(PoplarError, ValueError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Can't use the same ApiBuilder: {name} more than once!")
        self.name = name


class RegistryFrozenError(PoplarError, RuntimeError):
    """Raised when registration is attempted after the registry was frozen."""


class MethodNotFoundError(PoplarError, LookupError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown method: {name}")
        self.name = name


class HookAbortError(PoplarError):
    """A hook aborted its chain with a value that is not an exception."""

    def __init__(self, reason: Any, phase: str | None = None) -> None:
        super().__init__(str(reason))
        self.reason = reason
        self.phase = phase


class HandlerError(PoplarError):
    """A method handler reported a failure value that is not an exception."""

    def __init__(self, reason: Any, method_name: str | None = None) -> None:
        super().__init__(str(reason))
        self.reason = reason
        self.method_name = method_name


class ValidationFailure(PoplarError):
    """Aggregated parameter validation failure for one dispatch."""

    def __init__(self, errors: ValidationError) -> None:
        super().__init__(errors.to_human())
        self.errors = errors
