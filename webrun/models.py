"""
Pydantic models for records exchanged with the page.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Literal

from pydantic import BaseModel, Field

from .constants import DEFAULT_INTERVAL_MS, DEFAULT_TIMEOUT_MS

PropertyKind = Literal[
    "null", "undefined", "function", "string", "number", "boolean", "array", "object"
]


class _Undefined:
    """Sentinel standing for JavaScript ``undefined`` (``None`` maps to ``null``)."""

    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()


class PropertyDescriptor(BaseModel):
    """Category of a value about to be assigned to an element property"""

    model_config = {"arbitrary_types_allowed": True}

    kind: PropertyKind
    value: Any = None


class FunctionCall(BaseModel):
    """One invocation of a tracking stand-in"""

    timestamp: float
    args: list[Any] = Field(default_factory=list)


class TrackedEvent(BaseModel):
    """One captured DOM event occurrence"""

    type: str
    detail: Any = None
    timestamp: float
    bubbles: bool = False
    cancelable: bool = False
    composed: bool = False


class RetryBudget(BaseModel):
    """
    Timeout, poll interval and optional acceptance predicate for a property read.

    The deadline counts from the first attempt, so the interval never extends it.
    """

    timeout_ms: float = Field(DEFAULT_TIMEOUT_MS, ge=0)
    interval_ms: float = Field(DEFAULT_INTERVAL_MS, ge=0)
    predicate: Callable[[Any], Any] | None = None


class EmitOptions(BaseModel):
    """Propagation flags for a dispatched CustomEvent"""

    bubbles: bool = True
    cancelable: bool = True
    composed: bool = True


def detect_property_type(value: Any) -> PropertyDescriptor:
    """Classify a host value the way it will be treated on the page."""
    if value is None:
        return PropertyDescriptor(kind="null", value=value)
    if value is UNDEFINED:
        return PropertyDescriptor(kind="undefined", value=value)
    if callable(value):
        return PropertyDescriptor(kind="function", value=value)
    if isinstance(value, str):
        return PropertyDescriptor(kind="string", value=value)
    # bool before number: bool is an int subclass
    if isinstance(value, bool):
        return PropertyDescriptor(kind="boolean", value=value)
    if isinstance(value, (int, float)):
        return PropertyDescriptor(kind="number", value=value)
    if isinstance(value, (list, tuple)):
        return PropertyDescriptor(kind="array", value=value)
    return PropertyDescriptor(kind="object", value=value)
