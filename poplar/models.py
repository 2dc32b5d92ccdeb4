"""Core Pydantic domain models for poplar."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class HookPhase(str, Enum):
    BEFORE = "before"
    AFTER = "after"
    AFTER_ERROR = "afterError"


PHASES: tuple[HookPhase, ...] = (HookPhase.BEFORE, HookPhase.AFTER, HookPhase.AFTER_ERROR)


class AcceptSpec(BaseModel):
    """One accepted parameter of a method and the validators attached to it."""

    model_config = ConfigDict(extra="forbid")

    arg: str
    type: str | None = None
    description: str = ""
    source: str | None = None
    validates: dict[str, Any] = Field(default_factory=dict)


class MethodOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    description: str = ""
    accepts: list[AcceptSpec] = Field(default_factory=list)
    http: dict[str, Any] = Field(default_factory=dict)


class CollectionOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    base_path: str | None = None
    description: str = ""


class InvocationContext(BaseModel):
    """Per-invocation state shared by transports, hooks and the handler.

    ``result`` and ``error`` are the slots the orchestrator writes; everything
    else belongs to whoever built the context.
    """

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    method_name: str | None = None
    params: dict[str, Any] = Field(default_factory=dict)
    result: Any = None
    error: BaseException | None = None
    request: Any = None
    response: Any = None
    state: dict[str, Any] = Field(default_factory=dict)
