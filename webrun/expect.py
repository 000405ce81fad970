"""
Expect extensions for automatic visual regression testing.

When instrumentation is enabled, ``expect_with_screenshots(subject)`` returns the
normal Playwright assertions object wrapped so that every positive *visual*
assertion (visibility, text, attribute, role... see VISUAL_ASSERTIONS) is
followed by a screenshot capture of the subject, or of the page when the
subject has no visual surface. Negated ``not_to_*`` assertions are not
captured. The assertion itself always runs first and its outcome is never
altered: failures propagate unchanged and capture errors are swallowed.

Instrumentation state lives in an InstrumentationContext. The module keeps one
default context, overwritten per test by ``set_execution_context`` and
``set_instrumentation_enabled``; ``create_expect_with_screenshots`` builds a
factory with its own context for callers that need isolation.
"""

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from playwright.async_api import expect as playwright_expect

from .exceptions import CaptureFailedError
from .visual import ScreenshotCapture

logger = logging.getLogger(__name__)

Capture = Callable[[Any], Awaitable[Any]]

# Assertions with a stable visual correlate.
VISUAL_ASSERTIONS = frozenset(
    {
        "to_be_visible",
        "to_be_checked",
        "to_be_enabled",
        "to_be_disabled",
        "to_be_editable",
        "to_be_focused",
        "to_be_in_viewport",
        "to_have_text",
        "to_contain_text",
        "to_have_value",
        "to_have_values",
        "to_have_attribute",
        "to_have_class",
        "to_contain_class",
        "to_have_css",
        "to_have_role",
        "to_have_accessible_name",
        "to_have_accessible_description",
    }
)

# These already capture/compare images themselves.
SCREENSHOT_ASSERTIONS = frozenset({"to_have_screenshot", "to_match_snapshot"})


def should_capture(method_name: str) -> bool:
    """
    Whether an assertion method triggers a capture.

    Negated assertions (``not_to_*``) never do: the subject may be hidden or
    detached, and screenshotting it would wait for it to appear.
    """
    if method_name.startswith("not_") or method_name in SCREENSHOT_ASSERTIONS:
        return False
    return method_name in VISUAL_ASSERTIONS


def _has_visual_surface(subject: Any) -> bool:
    return callable(getattr(subject, "screenshot", None))


@dataclass
class InstrumentationContext:
    """Per-test instrumentation state: the page, the on/off flag, the capture primitive."""

    page: Any = None
    enabled: bool = False
    capture: Capture | None = None

    def capture_primitive(self) -> Capture:
        if self.capture is None:
            self.capture = ScreenshotCapture()
        return self.capture

    async def capture_after(self, subject: Any) -> None:
        """Best-effort capture; never raises."""
        target = subject if _has_visual_surface(subject) else self.page
        if target is None:
            logger.debug("No visual surface and no page set; skipping capture")
            return
        try:
            await self.capture_primitive()(target)
        except CaptureFailedError as e:
            logger.debug(f"Screenshot capture after assertion did not match: {e}")
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.warning(f"Screenshot capture after assertion failed: {e}")


_default_context = InstrumentationContext()


def get_instrumentation_context() -> InstrumentationContext:
    return _default_context


def set_execution_context(page: Any, *, capture: Capture | None = None) -> None:
    """Bind the default context to ``page`` (and optionally a capture primitive)."""
    _default_context.page = page
    _default_context.capture = capture


def set_instrumentation_enabled(enabled: bool) -> None:
    _default_context.enabled = bool(enabled)


def reset_instrumentation() -> None:
    set_execution_context(None)
    set_instrumentation_enabled(False)


class InstrumentedAssertions:
    """Wraps a Playwright assertions object; visual assertions capture after success."""

    def __init__(self, assertions: Any, subject: Any, context: InstrumentationContext) -> None:
        self._assertions = assertions
        self._subject = subject
        self._context = context

    def __getattr__(self, name: str) -> Any:
        attr = getattr(self._assertions, name)
        if not callable(attr) or not should_capture(name):
            return attr

        @functools.wraps(attr)
        async def _instrumented(*args: Any, **kwargs: Any) -> Any:
            result = attr(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
            await self._context.capture_after(self._subject)
            return result

        return _instrumented

    def __repr__(self) -> str:
        return f"InstrumentedAssertions({self._assertions!r})"


class InstrumentedExpect:
    """
    Drop-in replacement for Playwright's ``expect``.

    Calling it returns the factory's assertions object, wrapped when the context
    is enabled. Other attributes (``set_options``...) are forwarded to the factory.
    """

    def __init__(
        self,
        factory: Callable[..., Any] | None = None,
        context: InstrumentationContext | None = None,
    ) -> None:
        self._factory = factory
        self._context = context

    @property
    def factory(self) -> Callable[..., Any]:
        return self._factory if self._factory is not None else playwright_expect

    @property
    def context(self) -> InstrumentationContext:
        return self._context if self._context is not None else _default_context

    def __call__(self, actual: Any, *args: Any, **kwargs: Any) -> Any:
        assertions = self.factory(actual, *args, **kwargs)
        context = self.context
        if not context.enabled:
            return assertions
        return InstrumentedAssertions(assertions, actual, context)

    def __getattr__(self, name: str) -> Any:
        return getattr(self.factory, name)


expect_with_screenshots = InstrumentedExpect()


def create_expect_with_screenshots(
    page: Any,
    *,
    factory: Callable[..., Any] | None = None,
    capture: Capture | None = None,
    enabled: bool = True,
) -> InstrumentedExpect:
    """
    Build an expect function with its own instrumentation context.

    Args:
        page: Page captured when the asserted subject has no visual surface
        factory: Assertion factory to wrap (default: Playwright's ``expect``)
        capture: Async capture primitive taking the subject (default: ScreenshotCapture())
        enabled: Start enabled (default True)
    """
    return InstrumentedExpect(
        factory=factory,
        context=InstrumentationContext(page=page, enabled=enabled, capture=capture),
    )
