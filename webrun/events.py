"""
Event handling helpers for web components

- spy_on(): record every occurrence of an event into the page registry
- emit(): dispatch a CustomEvent on an element
- wait_for_event(): suspend inside the page until one occurrence or a timeout
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .constants import DEFAULT_TIMEOUT_MS
from .exceptions import RemoteTimeoutError
from .models import EmitOptions, TrackedEvent
from .registry import DEFAULT_REGISTRY, ENSURE_REGISTRY_JS, RemoteStateRegistry
from .remote import resolve_target

if TYPE_CHECKING:
    from playwright.async_api import Page

logger = logging.getLogger(__name__)

_NO_DETAIL = object()

# One listener per (element, namespace, key); re-activating a spy only resets its list.
_INSTALL_LISTENER = """
(element, { event, namespace, key }) => {
__ENSURE_REGISTRY__
  registry.events[key] = [];
  const spyId = `${namespace}|${key}`;
  element.__webrunSpies ??= new Set();
  if (element.__webrunSpies.has(spyId)) {
    return;
  }
  element.__webrunSpies.add(spyId);
  element.addEventListener(event, (e) => {
    const events = window[namespace]?.events?.[key];
    if (events) {
      events.push({
        type: e.type,
        detail: e.detail,
        timestamp: Date.now(),
        bubbles: e.bubbles,
        cancelable: e.cancelable,
        composed: e.composed
      });
    }
  });
}
""".replace("__ENSURE_REGISTRY__", ENSURE_REGISTRY_JS)

_DISPATCH = """
(element, { event, detail, options }) => {
  return element.dispatchEvent(new CustomEvent(event, { detail, ...options }));
}
"""

_WAIT_FOR_EVENT = """
(element, { event, timeoutMs }) => new Promise((resolve, reject) => {
  const timer = setTimeout(() => {
    cleanup();
    reject(new Error(`[webrun:timeout] Timeout ${timeoutMs}ms exceeded waiting for event "${event}"`));
  }, timeoutMs);
  const handler = (e) => {
    cleanup();
    resolve({
      type: e.type,
      detail: e.detail,
      timestamp: Date.now(),
      bubbles: e.bubbles,
      cancelable: e.cancelable,
      composed: e.composed
    });
  };
  const cleanup = () => {
    clearTimeout(timer);
    element.removeEventListener(event, handler);
  };
  element.addEventListener(event, handler, { once: true });
})
"""


class EventSpy:
    """
    Accessor returned by ``spy_on``.

    Awaiting ``spy()`` reads the accumulated records. Reads are non-destructive:
    repeated calls return everything captured since activation.
    """

    def __init__(self, page: Page, key: str, registry: RemoteStateRegistry) -> None:
        self.page = page
        self.key = key
        self.registry = registry

    async def __call__(self) -> list[TrackedEvent]:
        return await self.registry.read_events(self.page, self.key)

    async def count(self) -> int:
        return len(await self())

    def __repr__(self) -> str:
        return f"EventSpy(key={self.key!r})"


async def spy_on(
    target: Any,
    *args: Any,
    registry: RemoteStateRegistry | None = None,
) -> EventSpy:
    """
    Start recording an event on an element.

    Args:
        target: Page (followed by a selector), Locator, ExtendedLocator or ElementRef
        *args: ``(selector, event_name)`` for a Page, ``(event_name,)`` otherwise
        registry: Registry receiving the records (default: DEFAULT_REGISTRY)

    Returns:
        EventSpy; ``await spy()`` returns the list of TrackedEvent so far

    Example:
        spy = await spy_on(page, "my-toggle", "change")
        await page.click("my-toggle")
        assert len(await spy()) == 1
    """
    ref, rest = resolve_target(target, args)
    (event_name,) = rest
    registry = registry or DEFAULT_REGISTRY

    # Handles are not addressable from inside a submission; a stamped id is.
    selector = await ref.registry_selector()
    key = registry.key(selector, event_name)
    await ref.evaluate(_INSTALL_LISTENER, registry.script_args(key, event=event_name))
    logger.debug(f"Spying on {event_name!r} at {ref.describe()} ({key})")
    return EventSpy(ref.page, key, registry)


async def emit(
    target: Any,
    *args: Any,
    detail: Any = _NO_DETAIL,
    bubbles: bool = True,
    cancelable: bool = True,
    composed: bool = True,
) -> bool:
    """
    Dispatch a CustomEvent on an element.

    Args:
        target: Page (followed by a selector), Locator, ExtendedLocator or ElementRef
        *args: ``(selector, event_name)`` for a Page, ``(event_name,)`` otherwise.
            A trailing positional argument is taken as ``detail``.
        detail: ``CustomEvent.detail`` (default null)

    Returns:
        False if a listener called ``preventDefault()``, True otherwise

    Raises:
        TypeError: ``detail`` given both positionally and as a keyword
    """
    ref, rest = resolve_target(target, args)
    if len(rest) == 2:
        if detail is not _NO_DETAIL:
            raise TypeError("emit() got detail both positionally and as a keyword")
        event_name, detail = rest
    else:
        (event_name,) = rest
        if detail is _NO_DETAIL:
            detail = None
    options = EmitOptions(bubbles=bubbles, cancelable=cancelable, composed=composed)
    logger.debug(f"Emitting {event_name!r} on {ref.describe()}")
    result = await ref.evaluate(
        _DISPATCH,
        {"event": event_name, "detail": detail, "options": options.model_dump()},
    )
    return bool(result)


async def wait_for_event(
    target: Any,
    *args: Any,
    timeout: float = DEFAULT_TIMEOUT_MS,
) -> TrackedEvent:
    """
    Wait inside the page for the next occurrence of an event.

    The listener and timer race within a single submission; the host does not
    poll. Only occurrences after the listener is attached are seen.

    Raises:
        RemoteTimeoutError: 'Timeout {timeout}ms exceeded waiting for event "{name}"'
    """
    ref, rest = resolve_target(target, args)
    (event_name,) = rest
    label = f'waiting for event "{event_name}"'
    try:
        raw = await ref.evaluate(_WAIT_FOR_EVENT, {"event": event_name, "timeoutMs": timeout})
    except RemoteTimeoutError as e:
        raise RemoteTimeoutError(str(e), timeout_ms=timeout, label=label) from e
    return TrackedEvent.model_validate(raw)
