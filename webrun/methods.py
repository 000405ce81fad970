"""
Method invocation helpers for web components
"""

from __future__ import annotations

import logging
from typing import Any

from .remote import resolve_target

logger = logging.getLogger(__name__)

_INVOKE = """
(element, { method, args }) => {
  const fn = element[method];
  if (typeof fn !== 'function') {
    throw new Error(`[webrun:member_not_callable] Method ${method} not found on element`);
  }
  return fn.apply(element, args);
}
"""


async def call(target: Any, *args: Any) -> Any:
    """
    Call a method on an element and return its (serialized) result.

    A missing or non-callable member is a caller error and raises
    MemberNotCallableError immediately; there is no retry.

    Args:
        target: Page (followed by a selector), Locator, ExtendedLocator or ElementRef
        *args: ``(selector, method, *method_args)`` for a Page, ``(method, *method_args)`` otherwise

    Example:
        total = await call(page, "my-cart", "addItem", {"sku": "A1"}, 2)
    """
    ref, rest = resolve_target(target, args)
    if not rest:
        raise TypeError("A method name is required")
    method, *method_args = rest
    logger.debug(f"Calling {method}() on {ref.describe()} with {len(method_args)} arg(s)")
    return await ref.evaluate(_INVOKE, {"method": method, "args": list(method_args)})
