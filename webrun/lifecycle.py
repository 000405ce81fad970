"""
Component lifecycle helpers
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .constants import DEFAULT_TIMEOUT_MS
from .exceptions import RemoteTimeoutError

if TYPE_CHECKING:
    from playwright.async_api import Page


async def wait_for_component(page: Page, component_name: str, timeout: float = DEFAULT_TIMEOUT_MS) -> None:
    """Wait until a custom element is registered with ``customElements``."""
    try:
        await page.wait_for_function(
            "(name) => customElements.get(name) !== undefined",
            arg=component_name,
            timeout=timeout,
        )
    except PlaywrightTimeoutError as e:
        label = f'waiting for component "{component_name}" to be defined'
        raise RemoteTimeoutError(
            f"Timeout {timeout}ms exceeded {label}.", timeout_ms=timeout, label=label
        ) from e


async def is_component_defined(page: Page, component_name: str) -> bool:
    """Check whether a custom element is registered."""
    return bool(
        await page.evaluate("(name) => customElements.get(name) !== undefined", component_name)
    )
