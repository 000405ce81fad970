"""
pytest fixtures for component tests.

Import the fixtures into a ``conftest.py`` to use them:

    from webrun.pytest_plugin import *  # noqa: F401,F403

    @pytest.mark.asyncio
    async def test_counter(render, expect):
        result = await render("<my-counter></my-counter>")
        await expect(result.container).to_be_visible()

Fixtures:
    webrun_browser    headless Chromium (test skipped when it cannot launch)
    webrun_page       fresh page in its own context
    component_config  ComponentTestingConfig.from_env()
    render            ``await render(component, *, skip_visibility_check=False)`` bound to the page
    expect            instrumented expect, capturing when ``auto_vrt`` is on
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
from typing import Any

import pytest
import pytest_asyncio
from playwright.async_api import Browser, Page, async_playwright
from playwright.async_api import Error as PlaywrightError

from .config import ComponentTestingConfig
from .expect import (
    InstrumentedExpect,
    expect_with_screenshots,
    reset_instrumentation,
    set_execution_context,
    set_instrumentation_enabled,
)
from .render import RenderResult
from .render import render as render_component
from .visual import ScreenshotCapture, ScreenshotCaptureOptions

logger = logging.getLogger(__name__)

__all__ = ["webrun_browser", "webrun_page", "component_config", "render", "expect"]


@pytest_asyncio.fixture
async def webrun_browser() -> AsyncIterator[Browser]:
    async with async_playwright() as p:
        try:
            browser = await p.chromium.launch(
                headless=True,
                args=["--no-sandbox", "--disable-dev-shm-usage"],
            )
        except PlaywrightError as e:
            pytest.skip(f"Chromium not available for Playwright: {e}")
        try:
            yield browser
        finally:
            await browser.close()


@pytest_asyncio.fixture
async def webrun_page(webrun_browser: Browser) -> AsyncIterator[Page]:
    context = await webrun_browser.new_context()
    page = await context.new_page()
    try:
        yield page
    finally:
        await context.close()


@pytest.fixture
def component_config() -> ComponentTestingConfig:
    return ComponentTestingConfig.from_env()


@pytest.fixture
def render(
    webrun_page: Page, component_config: ComponentTestingConfig
) -> Callable[..., Awaitable[RenderResult]]:
    async def _render(component: Any, *, skip_visibility_check: bool = False) -> RenderResult:
        return await render_component(
            webrun_page,
            component,
            component_config,
            skip_visibility_check=skip_visibility_check,
        )

    return _render


@pytest.fixture
def expect(
    request: pytest.FixtureRequest,
    webrun_page: Page,
    component_config: ComponentTestingConfig,
) -> Iterator[InstrumentedExpect]:
    capture = ScreenshotCapture(
        ScreenshotCaptureOptions(
            output_dir=component_config.screenshot_dir,
            name_prefix=request.node.name,
        )
    )
    set_execution_context(webrun_page, capture=capture)
    set_instrumentation_enabled(component_config.auto_vrt)
    logger.debug(f"Instrumented expect for {request.node.name} (auto_vrt={component_config.auto_vrt})")
    try:
        yield expect_with_screenshots
    finally:
        reset_instrumentation()
