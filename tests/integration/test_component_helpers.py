"""
End-to-end checks against a real Chromium page.

Skipped automatically when Chromium cannot be launched.
"""

from __future__ import annotations

import pytest

from webrun import (
    ElementNotFoundError,
    MemberNotCallableError,
    RemoteStateRegistry,
    RemoteTimeoutError,
    call,
    clear_function_calls,
    emit,
    extend_locator,
    get_attributes,
    get_function_calls,
    get_property,
    is_component_defined,
    set_property,
    spy_on,
    wait_for_component,
    wait_for_event,
)

pytestmark = pytest.mark.integration

COUNTER_JS = """
customElements.define('x-counter', class extends HTMLElement {
  constructor() {
    super();
    this.count = 0;
    this.step = 1;
  }
  connectedCallback() {
    this.textContent = `count: ${this.count}`;
  }
  increment() {
    this.count += this.step;
    this.textContent = `count: ${this.count}`;
    this.dispatchEvent(new CustomEvent('change', { detail: { count: this.count }, bubbles: true }));
    return this.count;
  }
});
"""


async def mount_counter(render, page):
    result = await render('<x-counter label="clicks"></x-counter>', skip_visibility_check=True)
    await page.add_script_tag(content=COUNTER_JS)
    await wait_for_component(page, "x-counter")
    return result


@pytest.mark.asyncio
async def test_property_and_method_round_trip(render, webrun_page) -> None:
    await mount_counter(render, webrun_page)

    await set_property(webrun_page, "x-counter", "step", 2)
    assert await call(webrun_page, "x-counter", "increment") == 2
    assert await get_property(webrun_page, "x-counter", "count", predicate=lambda v: v == 2) == 2
    assert await is_component_defined(webrun_page, "x-counter") is True


@pytest.mark.asyncio
async def test_null_property_is_defined(render, webrun_page) -> None:
    await mount_counter(render, webrun_page)

    await set_property(webrun_page, "x-counter", "selection", None)
    assert await get_property(webrun_page, "x-counter", "selection", timeout=200) is None


@pytest.mark.asyncio
async def test_undefined_property_times_out(render, webrun_page) -> None:
    await mount_counter(render, webrun_page)

    with pytest.raises(RemoteTimeoutError) as exc_info:
        await get_property(webrun_page, "x-counter", "missing", timeout=200, interval=50)
    assert "Timeout 200ms exceeded" in str(exc_info.value)
    assert "to be defined" in str(exc_info.value)


@pytest.mark.asyncio
async def test_function_property_is_tracked(render, webrun_page) -> None:
    await mount_counter(render, webrun_page)

    await set_property(webrun_page, "x-counter", "onSave", lambda *args: None)
    await webrun_page.evaluate("document.querySelector('x-counter').onSave('a')")
    await webrun_page.evaluate("document.querySelector('x-counter').onSave('b', 2)")

    calls = await get_function_calls(webrun_page, "x-counter", "onSave")
    assert [c.args for c in calls] == [["a"], ["b", 2]]
    assert calls[0].timestamp <= calls[1].timestamp

    await clear_function_calls(webrun_page, "x-counter", "onSave")
    assert await get_function_calls(webrun_page, "x-counter", "onSave") == []


@pytest.mark.asyncio
async def test_event_round_trip_through_container(render, webrun_page) -> None:
    result = await mount_counter(render, webrun_page)
    container = result.container

    spy = await container.spy_on("ping")
    assert await container.emit("ping", {"n": 1}) is True

    events = await spy()
    assert len(events) == 1
    assert events[0].detail == {"n": 1}
    assert len(await spy()) == 1

    await container.emit("ping", {"n": 2})
    assert [e.detail["n"] for e in await spy()] == [1, 2]

    # the container was stamped with a tracking id for the registry key
    assert "data-webrun-id" in await get_attributes(container)


@pytest.mark.asyncio
async def test_spy_sees_component_events(render, webrun_page) -> None:
    await mount_counter(render, webrun_page)

    spy = await spy_on(webrun_page, "x-counter", "change")
    await call(webrun_page, "x-counter", "increment")
    await call(webrun_page, "x-counter", "increment")

    assert [e.detail["count"] for e in await spy()] == [1, 2]


@pytest.mark.asyncio
async def test_wait_for_event(render, webrun_page) -> None:
    await mount_counter(render, webrun_page)

    await webrun_page.evaluate(
        "setTimeout(() => document.querySelector('x-counter')"
        ".dispatchEvent(new CustomEvent('done', { detail: 5 })), 50)"
    )
    event = await wait_for_event(webrun_page, "x-counter", "done", timeout=2000)
    assert event.type == "done"
    assert event.detail == 5

    with pytest.raises(RemoteTimeoutError) as exc_info:
        await wait_for_event(webrun_page, "x-counter", "never", timeout=100)
    assert str(exc_info.value) == 'Timeout 100ms exceeded waiting for event "never"'


@pytest.mark.asyncio
async def test_missing_element_and_member(render, webrun_page) -> None:
    await mount_counter(render, webrun_page)

    with pytest.raises(ElementNotFoundError):
        await call(webrun_page, "x-missing", "increment")
    with pytest.raises(MemberNotCallableError):
        await call(webrun_page, "x-counter", "decrement")


@pytest.mark.asyncio
async def test_extended_locator_keeps_playwright_assertions(render, webrun_page, expect) -> None:
    result = await mount_counter(render, webrun_page)

    await expect(result.container).to_be_visible()
    await expect(result.container).to_have_attribute("label", "clicks")

    counter = extend_locator(webrun_page.locator("x-counter"))
    await counter.call_method("increment")
    assert await counter.get_property("count") == 1
    await expect(counter).to_have_text("count: 1")


@pytest.mark.asyncio
async def test_unmount(render, webrun_page) -> None:
    result = await mount_counter(render, webrun_page)

    await result.unmount()

    assert await webrun_page.locator("x-counter").count() == 0


@pytest.mark.asyncio
async def test_spies_under_separate_registries_both_record(render, webrun_page) -> None:
    await mount_counter(render, webrun_page)

    shared = await spy_on(webrun_page, "x-counter", "change")
    isolated = await spy_on(
        webrun_page, "x-counter", "change", registry=RemoteStateRegistry("__isolated")
    )
    await call(webrun_page, "x-counter", "increment")

    assert await shared.count() == 1
    assert await isolated.count() == 1
