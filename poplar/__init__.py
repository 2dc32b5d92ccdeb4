"""Remote-method registry with glob-matched hooks and parameter validation."""

from .api_builder import ApiBuilder
from .api_method import ApiMethod
from .app import Poplar
from .config import PoplarConfig, load_effective_config
from .errors import (
    DuplicateCollectionError,
    HandlerError,
    HookAbortError,
    MethodNotFoundError,
    PoplarError,
    RegistryFrozenError,
    ValidationFailure,
)
from .models import HookPhase, InvocationContext
from .validation import ValidationError, ValidatorLibrary, validate

__all__ = [
    "ApiBuilder",
    "ApiMethod",
    "DuplicateCollectionError",
    "HandlerError",
    "HookAbortError",
    "HookPhase",
    "InvocationContext",
    "MethodNotFoundError",
    "Poplar",
    "PoplarConfig",
    "PoplarError",
    "RegistryFrozenError",
    "ValidationError",
    "ValidationFailure",
    "ValidatorLibrary",
    "load_effective_config",
    "validate",
]
