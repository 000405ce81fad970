"""
Remote execution bridge for web component tests.

webrun lets a Python test read and write element properties, call element
methods, dispatch and observe DOM events, and instrument assertions with
screenshots, all against a component running in a real browser page driven
by Playwright.

Helpers accept either ``(page, selector, ...)`` or ``(locator, ...)``:

    from webrun import call, emit, get_property, render, set_property, spy_on

    result = await render(page, "<my-counter></my-counter>")
    await set_property(page, "my-counter", "step", 2)
    await call(page, "my-counter", "increment")
    assert await get_property(page, "my-counter", "count", predicate=lambda v: v == 2) == 2

    spy = await spy_on(result.container, "change")
    await result.container.emit("change", {"value": 3})
    assert len(await spy()) == 1
"""

from .config import ComponentTestingConfig
from .events import EventSpy, emit, spy_on, wait_for_event
from .exceptions import (
    CaptureFailedError,
    ElementNotFoundError,
    MemberNotCallableError,
    RemoteTimeoutError,
    WebrunError,
)
from .expect import (
    InstrumentedExpect,
    create_expect_with_screenshots,
    expect_with_screenshots,
    reset_instrumentation,
    set_execution_context,
    set_instrumentation_enabled,
)
from .lifecycle import is_component_defined, wait_for_component
from .locator import ExtendedLocator, extend_locator
from .methods import call
from .models import UNDEFINED, FunctionCall, PropertyDescriptor, TrackedEvent, detect_property_type
from .property import (
    clear_function_calls,
    get_attributes,
    get_function_calls,
    get_property,
    set_property,
)
from .registry import DEFAULT_REGISTRY, RemoteStateRegistry
from .remote import ElementRef, LocatorRef, SelectorRef
from .render import RenderContext, RenderResult, build_html, render
from .retry import retry
from .visual import ScreenshotCapture, ScreenshotCaptureOptions

__version__ = "0.1.0"

__all__ = [
    # Properties
    "get_property",
    "set_property",
    "get_function_calls",
    "clear_function_calls",
    "get_attributes",
    # Methods
    "call",
    # Events
    "spy_on",
    "emit",
    "wait_for_event",
    "EventSpy",
    # Lifecycle
    "wait_for_component",
    "is_component_defined",
    # Locator extension
    "ExtendedLocator",
    "extend_locator",
    # Assertions
    "expect_with_screenshots",
    "create_expect_with_screenshots",
    "set_execution_context",
    "set_instrumentation_enabled",
    "reset_instrumentation",
    "InstrumentedExpect",
    "ScreenshotCapture",
    "ScreenshotCaptureOptions",
    # Rendering
    "render",
    "build_html",
    "RenderContext",
    "RenderResult",
    "ComponentTestingConfig",
    # Bridge internals
    "retry",
    "ElementRef",
    "SelectorRef",
    "LocatorRef",
    "RemoteStateRegistry",
    "DEFAULT_REGISTRY",
    # Models
    "UNDEFINED",
    "FunctionCall",
    "TrackedEvent",
    "PropertyDescriptor",
    "detect_property_type",
    # Errors
    "WebrunError",
    "ElementNotFoundError",
    "MemberNotCallableError",
    "RemoteTimeoutError",
    "CaptureFailedError",
]
