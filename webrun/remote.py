"""
Selector-or-handle references to one element in the page.

Every bridge operation goes through ``ElementRef.evaluate``: it submits a
function body of the form ``(element, arg) => ...`` for execution against the
live element and translates tagged remote errors into ``webrun.exceptions``.
Nothing is cached: the element is resolved again on every submission, so a
reference stays usable across re-renders as long as a matching element exists.
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .constants import TRACKING_ATTRIBUTE
from .exceptions import ElementNotFoundError, from_remote_error

if TYPE_CHECKING:
    from playwright.async_api import Locator, Page

logger = logging.getLogger(__name__)

_SELECTOR_WRAPPER = """
async ({ selector, arg }) => {
  const element = document.querySelector(selector);
  if (!element) {
    throw new Error(`[webrun:element_not_found] Element not found: ${selector}`);
  }
  return await (__BODY__)(element, arg);
}
"""

_STAMP_TRACKING_ID = """
(element, { attribute, candidate }) => {
  let id = element.getAttribute(attribute);
  if (!id) {
    id = candidate;
    element.setAttribute(attribute, id);
  }
  return id;
}
"""


class ElementRef(ABC):
    """A way of reaching one element inside the page."""

    @property
    @abstractmethod
    def page(self) -> Page:
        """Page owning the element (used for registry reads)."""

    @abstractmethod
    async def evaluate(self, body: str, arg: Any = None, *, timeout_ms: float | None = None) -> Any:
        """
        Run ``body`` as ``(element, arg) => ...`` against the resolved element.

        ``timeout_ms`` caps how long resolving the element may take, where the
        reference resolves through a waiting handle.
        """

    @abstractmethod
    async def registry_selector(self) -> str:
        """Selector usable from inside a page submission to find this element again."""

    @abstractmethod
    def describe(self) -> str:
        """Short human label for error messages."""


class SelectorRef(ElementRef):
    """Element addressed by a CSS selector against the whole document."""

    def __init__(self, page: Page, selector: str) -> None:
        self._page = page
        self.selector = selector

    @property
    def page(self) -> Page:
        return self._page

    async def evaluate(self, body: str, arg: Any = None, *, timeout_ms: float | None = None) -> Any:
        _ = timeout_ms  # querySelector does not wait
        script = _SELECTOR_WRAPPER.replace("__BODY__", body.strip())
        logger.debug(f"evaluate on selector {self.selector!r}")
        try:
            return await self._page.evaluate(script, {"selector": self.selector, "arg": arg})
        except PlaywrightError as e:
            translated = from_remote_error(e)
            if translated is None:
                raise
            raise translated from e

    async def registry_selector(self) -> str:
        return self.selector

    def describe(self) -> str:
        return f'"{self.selector}"'

    def __repr__(self) -> str:
        return f"SelectorRef({self.selector!r})"


class LocatorRef(ElementRef):
    """
    Element addressed through a Playwright Locator.

    Args:
        locator: Playwright Locator (or anything exposing ``evaluate`` and ``page``)
        resolve_timeout_ms: Passed to ``locator.evaluate``; None keeps Playwright's default
            unless the caller passes a tighter ``timeout_ms``
    """

    def __init__(self, locator: Locator, resolve_timeout_ms: float | None = None) -> None:
        self.locator = locator
        self.resolve_timeout_ms = resolve_timeout_ms

    @property
    def page(self) -> Page:
        return self.locator.page

    async def evaluate(self, body: str, arg: Any = None, *, timeout_ms: float | None = None) -> Any:
        timeout = _tighter(self.resolve_timeout_ms, timeout_ms)
        logger.debug(f"evaluate on locator {self.locator!r} (timeout={timeout})")
        try:
            return await self.locator.evaluate(body.strip(), arg, timeout=timeout)
        except PlaywrightTimeoutError as e:
            raise ElementNotFoundError(f"Element not found: {self.locator!r} ({e})") from e
        except PlaywrightError as e:
            translated = from_remote_error(e)
            if translated is None:
                raise
            raise translated from e

    async def registry_selector(self) -> str:
        """
        Stamp a tracking id attribute on the element (reusing an existing one)
        and return an attribute selector for it.
        """
        tracking_id = await self.evaluate(
            _STAMP_TRACKING_ID,
            {"attribute": TRACKING_ATTRIBUTE, "candidate": f"locator-{uuid.uuid4().hex}"},
        )
        return f'[{TRACKING_ATTRIBUTE}="{tracking_id}"]'

    def describe(self) -> str:
        return "locator"

    def __repr__(self) -> str:
        return f"LocatorRef({self.locator!r})"


def _tighter(a: float | None, b: float | None) -> float | None:
    if a is None:
        return b
    if b is None:
        return a
    return min(a, b)


def is_page(target: Any) -> bool:
    """Pages navigate; locators do not."""
    return hasattr(target, "goto")


def resolve_target(target: Any, args: tuple[Any, ...]) -> tuple[ElementRef, tuple[Any, ...]]:
    """
    Split polymorphic call arguments into an ElementRef and the remaining args.

    ``(page, selector, *rest)`` becomes ``SelectorRef(page, selector), rest``;
    ``(locator, *rest)`` becomes ``LocatorRef(locator), rest``; an ElementRef
    passes through unchanged.
    """
    if isinstance(target, ElementRef):
        return target, args

    if is_page(target):
        if not args or not isinstance(args[0], str):
            raise TypeError("A selector string must follow a Page target")
        return SelectorRef(target, args[0]), args[1:]

    from .locator import ExtendedLocator

    if isinstance(target, ExtendedLocator):
        target = target.unwrap()
    return LocatorRef(target), args
