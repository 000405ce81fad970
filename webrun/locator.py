"""
Locator extension with component testing helpers.

``extend_locator(locator)`` returns an ExtendedLocator: a Playwright ``Locator``
sharing the wrapped locator's state (so every Locator method and ``expect()``
keep working) plus property/method/event helpers bound to that element.
Chaining methods (``locator``, ``nth``, ``first``, ``get_by_role``...) return
extended locators too.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from playwright.async_api import Locator

from . import events as event_helpers
from . import methods as method_helpers
from . import property as property_helpers
from .constants import DEFAULT_INTERVAL_MS, DEFAULT_TIMEOUT_MS
from .models import FunctionCall, TrackedEvent
from .registry import RemoteStateRegistry
from .remote import LocatorRef


class ExtendedLocator(Locator):
    """
    Locator with helpers bound to its element.

    Do not instantiate directly; use ``extend_locator``.
    """

    def __init__(  # pylint: disable=super-init-not-called
        self,
        locator: Any,
        *,
        registry: RemoteStateRegistry | None = None,
        resolve_timeout_ms: float | None = None,
    ) -> None:
        # Share the underlying implementation object instead of creating a new one.
        self.__dict__.update(getattr(locator, "__dict__", {}))
        self._base_locator = locator
        self._registry = registry
        self._resolve_timeout_ms = resolve_timeout_ms

    def unwrap(self) -> Any:
        """Return the plain locator this one extends."""
        return self._base_locator

    def _ref(self) -> LocatorRef:
        return LocatorRef(self._base_locator, resolve_timeout_ms=self._resolve_timeout_ms)

    def _extend(self, locator: Any) -> ExtendedLocator:
        return ExtendedLocator(
            locator, registry=self._registry, resolve_timeout_ms=self._resolve_timeout_ms
        )

    # ---- helpers -----------------------------------------------------------

    async def get_property(
        self,
        name: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_MS,
        interval: float = DEFAULT_INTERVAL_MS,
        predicate: Callable[[Any], Any] | None = None,
    ) -> Any:
        """Get a property value with automatic retry (see ``webrun.get_property``)."""
        return await property_helpers.get_property(
            self._ref(), name, timeout=timeout, interval=interval, predicate=predicate
        )

    async def set_property(self, name: str, value: Any) -> None:
        """Set a property; functions become tracking stand-ins."""
        await property_helpers.set_property(self._ref(), name, value, registry=self._registry)

    async def call_method(self, method: str, *args: Any) -> Any:
        """Call a method on the element and return its result."""
        return await method_helpers.call(self._ref(), method, *args)

    async def get_function_calls(self, name: str) -> list[FunctionCall]:
        return await property_helpers.get_function_calls(self._ref(), name, registry=self._registry)

    async def clear_function_calls(self, name: str) -> None:
        await property_helpers.clear_function_calls(self._ref(), name, registry=self._registry)

    async def get_attributes(self) -> dict[str, str]:
        return await property_helpers.get_attributes(self._ref())

    async def spy_on(self, event_name: str) -> event_helpers.EventSpy:
        return await event_helpers.spy_on(self._ref(), event_name, registry=self._registry)

    async def emit(
        self,
        event_name: str,
        detail: Any = None,
        *,
        bubbles: bool = True,
        cancelable: bool = True,
        composed: bool = True,
    ) -> bool:
        return await event_helpers.emit(
            self._ref(),
            event_name,
            detail=detail,
            bubbles=bubbles,
            cancelable=cancelable,
            composed=composed,
        )

    async def wait_for_event(self, event_name: str, timeout: float = DEFAULT_TIMEOUT_MS) -> TrackedEvent:
        return await event_helpers.wait_for_event(self._ref(), event_name, timeout=timeout)

    # ---- chaining keeps the extension ----------------------------------------

    @property
    def first(self) -> ExtendedLocator:
        return self._extend(self._base_locator.first)

    @property
    def last(self) -> ExtendedLocator:
        return self._extend(self._base_locator.last)

    def locator(self, *args: Any, **kwargs: Any) -> ExtendedLocator:
        return self._extend(self._base_locator.locator(*args, **kwargs))

    def nth(self, index: int) -> ExtendedLocator:
        return self._extend(self._base_locator.nth(index))

    def filter(self, *args: Any, **kwargs: Any) -> ExtendedLocator:
        return self._extend(self._base_locator.filter(*args, **kwargs))

    def and_(self, locator: Any) -> ExtendedLocator:
        return self._extend(self._base_locator.and_(_plain(locator)))

    def or_(self, locator: Any) -> ExtendedLocator:
        return self._extend(self._base_locator.or_(_plain(locator)))

    def get_by_alt_text(self, *args: Any, **kwargs: Any) -> ExtendedLocator:
        return self._extend(self._base_locator.get_by_alt_text(*args, **kwargs))

    def get_by_label(self, *args: Any, **kwargs: Any) -> ExtendedLocator:
        return self._extend(self._base_locator.get_by_label(*args, **kwargs))

    def get_by_placeholder(self, *args: Any, **kwargs: Any) -> ExtendedLocator:
        return self._extend(self._base_locator.get_by_placeholder(*args, **kwargs))

    def get_by_role(self, *args: Any, **kwargs: Any) -> ExtendedLocator:
        return self._extend(self._base_locator.get_by_role(*args, **kwargs))

    def get_by_test_id(self, *args: Any, **kwargs: Any) -> ExtendedLocator:
        return self._extend(self._base_locator.get_by_test_id(*args, **kwargs))

    def get_by_text(self, *args: Any, **kwargs: Any) -> ExtendedLocator:
        return self._extend(self._base_locator.get_by_text(*args, **kwargs))

    def get_by_title(self, *args: Any, **kwargs: Any) -> ExtendedLocator:
        return self._extend(self._base_locator.get_by_title(*args, **kwargs))

    def __repr__(self) -> str:
        return f"ExtendedLocator({self._base_locator!r})"


def _plain(locator: Any) -> Any:
    return locator.unwrap() if isinstance(locator, ExtendedLocator) else locator


def extend_locator(
    locator: Any,
    *,
    registry: RemoteStateRegistry | None = None,
    resolve_timeout_ms: float | None = None,
) -> ExtendedLocator:
    """
    Extend a Playwright Locator with component helpers.

    Args:
        locator: Locator to extend (an ExtendedLocator is re-wrapped from its base)
        registry: Registry for tracked calls/events (default: DEFAULT_REGISTRY)
        resolve_timeout_ms: Timeout for resolving the locator on each helper call

    Example:
        button = extend_locator(page.locator("my-button"))
        await button.set_property("label", "Save")
        assert await button.get_property("label") == "Save"
        await expect(button).to_be_visible()
    """
    return ExtendedLocator(
        _plain(locator), registry=registry, resolve_timeout_ms=resolve_timeout_ms
    )
