"""
Property helpers for web components - set/get element properties with retry

Targets are polymorphic: pass ``(page, selector, ...)`` to address an element by
CSS selector, or ``(locator, ...)`` / an ExtendedLocator / an ElementRef to
address it through a handle.

Function values cannot cross into the page. ``set_property`` installs a
*tracking stand-in* instead: it records every invocation (timestamp and
arguments) and returns its argument list. The original function body is never
run, so callers observe that a callback fired, not what it would have done.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Callable
from typing import Any

from .constants import DEFAULT_INTERVAL_MS, DEFAULT_TIMEOUT_MS
from .models import FunctionCall, RetryBudget, detect_property_type
from .registry import DEFAULT_REGISTRY, ENSURE_REGISTRY_JS, RemoteStateRegistry
from .remote import resolve_target
from .retry import retry

logger = logging.getLogger(__name__)

_monotonic = time.monotonic

_INSTALL_STAND_IN = """
(element, { prop, namespace, key }) => {
__ENSURE_REGISTRY__
  registry.functionCalls[key] = [];
  element[prop] = (...args) => {
    const calls = window[namespace]?.functionCalls?.[key];
    if (calls) {
      calls.push({ timestamp: Date.now(), args });
    }
    return args;
  };
}
""".replace("__ENSURE_REGISTRY__", ENSURE_REGISTRY_JS)

_ASSIGN = """
(element, { prop, value, undefinedValue }) => {
  element[prop] = undefinedValue ? undefined : value;
}
"""

_READ = """
(element, prop) => {
  const value = element[prop];
  return { defined: value !== undefined, value: typeof value === 'function' ? null : value };
}
"""

_ATTRIBUTES = """
(element) => {
  const attrs = {};
  for (const attr of element.attributes) {
    attrs[attr.name] = attr.value;
  }
  return attrs;
}
"""


class _NotSettled(Exception):
    """Attempt result that does not meet the acceptance condition yet."""


async def set_property(
    target: Any,
    *args: Any,
    registry: RemoteStateRegistry | None = None,
) -> None:
    """
    Set a property on an element with automatic type detection.

    Args:
        target: Page (followed by a selector), Locator, ExtendedLocator or ElementRef
        *args: ``(selector, name, value)`` for a Page, ``(name, value)`` otherwise
        registry: Registry holding stand-in call histories (default: DEFAULT_REGISTRY)

    Examples:
        await set_property(page, "my-button", "label", "Save")
        await set_property(page, "my-button", "onClick", lambda *a: None)
        calls = await get_function_calls(page, "my-button", "onClick")
    """
    ref, rest = resolve_target(target, args)
    name, value = rest
    registry = registry or DEFAULT_REGISTRY
    descriptor = detect_property_type(value)

    if descriptor.kind == "function":
        key = registry.key(await ref.registry_selector(), name)
        logger.debug(f"Installing tracking stand-in for {name!r} on {ref.describe()} ({key})")
        await ref.evaluate(_INSTALL_STAND_IN, registry.script_args(key, prop=name))
        return

    await ref.evaluate(
        _ASSIGN,
        {
            "prop": name,
            "value": None if descriptor.kind == "undefined" else value,
            "undefinedValue": descriptor.kind == "undefined",
        },
    )


async def get_property(
    target: Any,
    *args: Any,
    timeout: float = DEFAULT_TIMEOUT_MS,
    interval: float = DEFAULT_INTERVAL_MS,
    predicate: Callable[[Any], Any] | None = None,
) -> Any:
    """
    Get a property value, retrying until it settles or ``timeout`` elapses.

    Without a predicate the value is settled once it is not ``undefined``
    (``null`` counts as settled). With a predicate, settled means
    ``predicate(value)`` is truthy; a predicate that raises is treated as not
    settled yet. An already-settled property returns on the first attempt.

    Args:
        target: Page (followed by a selector), Locator, ExtendedLocator or ElementRef
        *args: ``(selector, name)`` for a Page, ``(name,)`` otherwise
        timeout: Budget in milliseconds counted from the first read
        interval: Delay in milliseconds between reads
        predicate: Optional acceptance condition

    Raises:
        RemoteTimeoutError: message contains "to be defined" or "to satisfy predicate"
    """
    ref, rest = resolve_target(target, args)
    (name,) = rest
    budget = RetryBudget(timeout_ms=timeout, interval_ms=interval, predicate=predicate)
    clock = _monotonic
    start = clock()

    async def _read_once() -> Any:
        # Playwright treats timeout=0 as "no timeout".
        remaining_ms = max(budget.timeout_ms - (clock() - start) * 1000, 1)
        result = await ref.evaluate(_READ, name, timeout_ms=remaining_ms)
        value = result.get("value")
        if budget.predicate is not None:
            try:
                ok = budget.predicate(value)
            except Exception as e:
                raise _NotSettled(
                    f"Predicate raised {type(e).__name__}: {e}. Current value: {_preview(value)}"
                ) from e
            if not ok:
                raise _NotSettled(f"Predicate not satisfied. Current value: {_preview(value)}")
        elif not result.get("defined"):
            raise _NotSettled("Property is undefined")
        return value

    expectation = "to satisfy predicate" if predicate is not None else "to be defined"
    return await retry(
        _read_once,
        timeout_ms=budget.timeout_ms,
        wait_between_attempts=lambda: _sleep_ms(budget.interval_ms),
        error_label=f'waiting for property "{name}" on {ref.describe()} {expectation}',
        clock=clock,
    )


async def get_function_calls(
    target: Any,
    *args: Any,
    registry: RemoteStateRegistry | None = None,
) -> list[FunctionCall]:
    """Invocation history of a stand-in installed by ``set_property``."""
    ref, rest = resolve_target(target, args)
    (name,) = rest
    registry = registry or DEFAULT_REGISTRY
    key = registry.key(await ref.registry_selector(), name)
    return await registry.read_function_calls(ref.page, key)


async def clear_function_calls(
    target: Any,
    *args: Any,
    registry: RemoteStateRegistry | None = None,
) -> None:
    """Empty the invocation history of a stand-in (the stand-in stays installed)."""
    ref, rest = resolve_target(target, args)
    (name,) = rest
    registry = registry or DEFAULT_REGISTRY
    key = registry.key(await ref.registry_selector(), name)
    await registry.clear_function_calls(ref.page, key)


async def get_attributes(target: Any, *args: Any) -> dict[str, str]:
    """All attributes of an element as a name -> value dict."""
    ref, _ = resolve_target(target, args)
    return await ref.evaluate(_ATTRIBUTES)


def _preview(value: Any) -> str:
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return repr(value)


async def _sleep_ms(ms: float) -> None:
    await asyncio.sleep(ms / 1000.0)
