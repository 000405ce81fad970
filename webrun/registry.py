"""
Host-side handle for the page-resident store of tracked calls and events.

The store itself lives at ``window[namespace]`` inside the page:

    { functionCalls: { "<selector>:<prop>": [FunctionCall, ...] },
      events:        { "<selector>:<event>": [TrackedEvent, ...] } }

It is created lazily by the first submission that needs it and disappears with
the document. The host only ever holds the namespace and the keys.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .constants import REGISTRY_NAMESPACE
from .models import FunctionCall, TrackedEvent

if TYPE_CHECKING:
    from playwright.async_api import Page

logger = logging.getLogger(__name__)

# Inlined at the top of page scripts; expects `namespace` in scope and defines `registry`.
ENSURE_REGISTRY_JS = """
  const registry = (window[namespace] ??= {});
  registry.functionCalls ??= {};
  registry.events ??= {};
"""

_READ_FUNCTION_CALLS = "({ namespace, key }) => window[namespace]?.functionCalls?.[key] ?? []"

_CLEAR_FUNCTION_CALLS = """
({ namespace, key }) => {
  const calls = window[namespace]?.functionCalls;
  if (calls && calls[key]) {
    calls[key] = [];
  }
}
"""

_READ_EVENTS = "({ namespace, key }) => window[namespace]?.events?.[key] ?? []"


class RemoteStateRegistry:
    """
    Handle naming one registry namespace.

    Passing a registry with a distinct namespace keeps two sets of helpers on
    the same page from seeing each other's records.
    """

    def __init__(self, namespace: str = REGISTRY_NAMESPACE) -> None:
        self.namespace = namespace

    @staticmethod
    def key(selector: str, name: str) -> str:
        return f"{selector}:{name}"

    def script_args(self, key: str, **extra: object) -> dict[str, object]:
        return {"namespace": self.namespace, "key": key, **extra}

    async def read_function_calls(self, page: Page, key: str) -> list[FunctionCall]:
        raw = await page.evaluate(_READ_FUNCTION_CALLS, self.script_args(key))
        return [FunctionCall.model_validate(entry) for entry in raw or []]

    async def clear_function_calls(self, page: Page, key: str) -> None:
        logger.debug(f"Clearing tracked calls for {key!r}")
        await page.evaluate(_CLEAR_FUNCTION_CALLS, self.script_args(key))

    async def read_events(self, page: Page, key: str) -> list[TrackedEvent]:
        raw = await page.evaluate(_READ_EVENTS, self.script_args(key))
        return [TrackedEvent.model_validate(entry) for entry in raw or []]

    def __repr__(self) -> str:
        return f"RemoteStateRegistry(namespace={self.namespace!r})"


DEFAULT_REGISTRY = RemoteStateRegistry()
