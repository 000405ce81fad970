"""
Stage component markup into the page.

``render(page, component)`` builds a complete HTML document around the component
markup (stylesheets, scripts, inline styles, import map), loads it with
``page.set_content`` and returns an ExtendedLocator for the first rendered
element. Markup is a ``str`` or any object implementing ``__html__()``.
"""

from __future__ import annotations

import html
import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from .constants import CONTAINER_ID, CONTAINER_SELECTOR
from .locator import ExtendedLocator, extend_locator

if TYPE_CHECKING:
    from playwright.async_api import Page

    from .config import ComponentTestingConfig

logger = logging.getLogger(__name__)


class RenderContext(BaseModel):
    """Page-level resources included in every rendered document"""

    stylesheets: list[str] = Field(default_factory=list)
    scripts: list[str] = Field(default_factory=list)
    global_styles: str = ""
    import_map: dict[str, dict] | None = None


def to_markup(component: Any) -> str:
    """Normalize a component value to an HTML string."""
    if isinstance(component, str):
        return component
    to_html = getattr(component, "__html__", None)
    if callable(to_html):
        return str(to_html())
    raise TypeError(
        f"Cannot render {type(component).__name__}; pass an HTML string or an object with __html__()"
    )


def build_html(component_html: str, context: RenderContext | None = None) -> str:
    """Build a full HTML document around the component markup."""
    context = context or RenderContext()
    head: list[str] = [
        '<meta charset="UTF-8">',
        '<meta name="viewport" content="width=device-width, initial-scale=1.0">',
    ]
    if context.import_map:
        head.append(f'<script type="importmap">{json.dumps(context.import_map, indent=2)}</script>')
    for href in context.stylesheets:
        head.append(f'<link rel="stylesheet" href="{html.escape(href, quote=True)}" />')
    if context.global_styles:
        head.append(f"<style>{context.global_styles}</style>")

    scripts = [f'<script src="{html.escape(src, quote=True)}"></script>' for src in context.scripts]

    lines = [
        "<!DOCTYPE html>",
        "<html>",
        "  <head>",
        *(f"    {line}" for line in head),
        "  </head>",
        "  <body>",
        f'    <div id="{CONTAINER_ID}">{component_html}</div>',
        *(f"    {line}" for line in scripts),
        "  </body>",
        "</html>",
    ]
    return "\n".join(lines) + "\n"


@dataclass
class RenderResult:
    """Handle to a rendered component."""

    page: Page
    container: ExtendedLocator

    async def unmount(self) -> None:
        """Remove the rendered markup from the container."""
        await self.page.evaluate(
            "(id) => { const c = document.getElementById(id); if (c) { c.innerHTML = ''; } }",
            CONTAINER_ID,
        )


async def render(
    page: Page,
    component: Any,
    config: ComponentTestingConfig | None = None,
    *,
    skip_visibility_check: bool = False,
) -> RenderResult:
    """
    Render markup into ``page`` and return its container.

    Args:
        page: Playwright Page
        component: HTML string or object with ``__html__()``
        config: ComponentTestingConfig (resources and initial wait selector)
        skip_visibility_check: Wait for initial elements to be attached instead of visible

    Example:
        result = await render(page, "<my-counter count='2'></my-counter>")
        assert await result.container.get_property("count") == 2
    """
    if config is None:
        from .config import ComponentTestingConfig

        config = ComponentTestingConfig()

    document = build_html(to_markup(component), config.render_context())
    await page.set_content(document)

    if config.initial_wait_for_element:
        await _wait_for_initial_elements(
            page,
            config.initial_wait_for_element,
            skip_visibility_check=skip_visibility_check,
            timeout_ms=config.default_timeout_ms,
        )

    return RenderResult(page=page, container=extend_locator(page.locator(CONTAINER_SELECTOR)))


async def _wait_for_initial_elements(
    page: Page,
    selector: str,
    *,
    skip_visibility_check: bool,
    timeout_ms: float,
) -> None:
    """Wait for every element matching ``selector`` to be visible (or attached)."""
    elements = page.locator(selector)
    count = await elements.count()
    state = "attached" if skip_visibility_check else "visible"
    logger.debug(f"Waiting for {count} element(s) matching {selector!r} to be {state}")
    for i in range(count):
        await elements.nth(i).wait_for(state=state, timeout=timeout_ms)
