"""Declarative parameter validation with per-parameter error aggregation.

Usage::

    accepts = [
        {
            "arg": "email",
            "validates": {
                "required": {"message": "email is required"},
                "email": {"message": "not a valid email"},
                "long_enough": lambda value, params: None if len(value) > 8 else "email is too short",
            },
        }
    ]
    errors = validate({"email": ""}, accepts)
    errors.flatten()  # ["email is required"]
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

import validators as validator_lib

from poplar.helpers import is_empty
from poplar.models import AcceptSpec

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = "{name}: '{validator}' validation failed"

LEGACY_ALIASES: dict[str, str] = {
    "isEmail": "email",
    "isURL": "url",
    "isUUID": "uuid",
    "isIP": "ipv4",
    "isLength": "length",
    "isSlug": "slug",
    "isDomain": "domain",
}

ValidatorFn = Callable[..., Any]

# the package also exports its `validator` decorator and error class
_PACKAGE_VALIDATORS = frozenset(getattr(validator_lib, "__all__", ())) - {"validator", "ValidationError"}


class ValidationError:
    """Collects failures as ``{param: {validator: message}}`` for one validate call.

    Not an exception: dispatch wraps it in ``ValidationFailure`` when ``any()``
    is true.
    """

    def __init__(self, message_template: str | None = None) -> None:
        self.message_template = message_template or DEFAULT_MESSAGE
        self._errors: dict[str, dict[str, Any]] = {}

    def add(self, name: str, validator_name: str, message: Any = None) -> None:
        message = message or self.default_message(name, validator_name)
        self._errors.setdefault(name, {})[validator_name] = message

    def default_message(self, name: str, validator_name: str) -> str:
        return self.message_template.format(name=name, validator=validator_name)

    def flatten(self) -> list[str]:
        """Messages in parameter-then-validator order, e.g. ``["email is required"]``."""
        return [
            str(message) or self.default_message(name, validator_name)
            for name, failures in self._errors.items()
            for validator_name, message in failures.items()
        ]

    def to_human(self) -> str:
        return "; ".join(self.flatten())

    def as_json(self) -> dict[str, dict[str, Any]]:
        return {name: dict(failures) for name, failures in self._errors.items()}

    def any(self) -> bool:
        return bool(self._errors)

    def __bool__(self) -> bool:
        return self.any()

    def __repr__(self) -> str:
        return f"ValidationError({self._errors!r})"


class ValidatorLibrary:
    """Named validators: custom definitions first, then the ``validators`` package."""

    def __init__(self, aliases: Mapping[str, str] | None = None) -> None:
        self.aliases = dict(LEGACY_ALIASES if aliases is None else aliases)
        self._custom: dict[str, ValidatorFn] = {}

    def define(self, name: str, fn: ValidatorFn) -> None:
        if not callable(fn):
            raise TypeError(f"Validator {name!r} must be callable")
        self._custom[name] = fn

    def undefine(self, name: str) -> None:
        self._custom.pop(name, None)

    def get(self, name: str) -> ValidatorFn | None:
        if name in self._custom:
            return self._custom[name]
        target = self.aliases.get(name, name)
        if target in self._custom:
            return self._custom[target]
        if target not in _PACKAGE_VALIDATORS:
            return None
        candidate = getattr(validator_lib, target, None)
        if candidate is None or inspect.isclass(candidate) or not callable(candidate):
            return None
        return candidate

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None


default_library = ValidatorLibrary()


def _disabled(spec: Any) -> bool:
    return spec is None or spec is False


def _spec_message(spec: Any) -> Any:
    if isinstance(spec, Mapping):
        return spec.get("message")
    return None


def _apply(fn: ValidatorFn, value: Any, args: Any) -> Any:
    if args is None:
        return fn(value)
    if isinstance(args, Mapping):
        return fn(value, **args)
    if isinstance(args, (list, tuple)):
        return fn(value, *args)
    return fn(value, args)


def _call_custom(
    errors: ValidationError, name: str, validator_name: str, fn: ValidatorFn, value: Any, params: Mapping
) -> None:
    try:
        result = fn(value, params)
    except Exception as exc:
        logger.debug("Validator %s for %s raised %s: %s", validator_name, name, type(exc).__name__, exc)
        return
    if result:
        errors.add(name, validator_name, result)


def validate(
    params: Mapping[str, Any] | None,
    accepts: Iterable[AcceptSpec | Mapping[str, Any]] | None,
    library: ValidatorLibrary | None = None,
    default_message: str | None = None,
) -> ValidationError:
    errors = ValidationError(default_message)
    params = params or {}
    library = library or default_library

    for accept in accepts or []:
        spec = accept if isinstance(accept, AcceptSpec) else AcceptSpec.model_validate(accept)
        name = spec.arg
        value = params.get(name)
        validates = dict(spec.validates)
        if not validates:
            continue

        if is_empty(value):
            required = validates.get("required")
            if callable(required):
                _call_custom(errors, name, "required", required, value, params)
            elif not _disabled(required):
                errors.add(name, "required", _spec_message(required))
            continue

        validates.pop("required", None)
        for validator_name, opts in validates.items():
            if _disabled(opts):
                continue
            if callable(opts):
                _call_custom(errors, name, validator_name, opts, value, params)
                continue
            fn = library.get(validator_name)
            if fn is None:
                logger.debug("Validator %s is not defined", validator_name)
                continue
            args = opts.get("args") if isinstance(opts, Mapping) else None
            try:
                ok = _apply(fn, value, args)
            except Exception as exc:
                logger.debug("Validator %s for %s raised %s: %s", validator_name, name, type(exc).__name__, exc)
                continue
            if not ok:
                errors.add(name, validator_name, _spec_message(opts))

    return errors
