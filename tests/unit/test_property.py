from __future__ import annotations

import time

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from webrun import property as property_module
from webrun.exceptions import ElementNotFoundError, RemoteTimeoutError
from webrun.locator import extend_locator
from webrun.models import UNDEFINED
from webrun.property import (
    clear_function_calls,
    get_attributes,
    get_function_calls,
    get_property,
    set_property,
)
from webrun.registry import RemoteStateRegistry
from webrun.remote import LocatorRef, SelectorRef, resolve_target


class FakePage:
    """Records evaluate() calls; answers from a list of responses (last one repeats)."""

    def __init__(self, responses: list | None = None) -> None:
        self.responses = list(responses or [None])
        self.evaluations: list[tuple[str, object]] = []

    async def goto(self, url: str) -> None:
        _ = url

    async def evaluate(self, script: str, arg: object = None):
        self.evaluations.append((script, arg))
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


class StubLocator:
    def __init__(self, page: FakePage | None = None, result: object = None) -> None:
        self.page = page or FakePage()
        self.result = result
        self.calls: list[tuple[str, object, object]] = []

    async def evaluate(self, script: str, arg: object = None, timeout: float | None = None):
        self.calls.append((script, arg, timeout))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def submitted_arg(page: FakePage, index: int = -1) -> object:
    _, arg = page.evaluations[index]
    return arg["arg"]


@pytest.mark.asyncio
async def test_set_property_assigns_plain_value() -> None:
    page = FakePage()
    await set_property(page, "my-button", "label", "Save")

    assert len(page.evaluations) == 1
    script, arg = page.evaluations[0]
    assert "document.querySelector(selector)" in script
    assert arg["selector"] == "my-button"
    assert arg["arg"] == {"prop": "label", "value": "Save", "undefinedValue": False}


@pytest.mark.asyncio
async def test_set_property_none_is_null_and_undefined_is_flagged() -> None:
    page = FakePage()
    await set_property(page, "my-el", "value", None)
    await set_property(page, "my-el", "value", UNDEFINED)

    assert submitted_arg(page, 0) == {"prop": "value", "value": None, "undefinedValue": False}
    assert submitted_arg(page, 1) == {"prop": "value", "value": None, "undefinedValue": True}


@pytest.mark.asyncio
async def test_set_property_function_installs_tracking_stand_in() -> None:
    page = FakePage()
    await set_property(page, "my-button", "onClick", lambda *args: None)

    script, _ = page.evaluations[0]
    assert "functionCalls" in script
    assert "Date.now()" in script
    assert submitted_arg(page) == {
        "namespace": "__componentHelpers",
        "key": "my-button:onClick",
        "prop": "onClick",
    }


@pytest.mark.asyncio
async def test_set_property_function_uses_custom_registry_namespace() -> None:
    page = FakePage()
    registry = RemoteStateRegistry("__isolated")
    await set_property(page, "my-button", "onClick", print, registry=registry)
    assert submitted_arg(page)["namespace"] == "__isolated"


@pytest.mark.asyncio
async def test_get_property_settled_on_first_attempt() -> None:
    page = FakePage([{"defined": True, "value": 3}])
    assert await get_property(page, "my-counter", "count") == 3
    assert len(page.evaluations) == 1


@pytest.mark.asyncio
async def test_get_property_accepts_null_as_defined() -> None:
    page = FakePage([{"defined": True, "value": None}])
    assert await get_property(page, "my-el", "value", timeout=50, interval=10) is None
    assert len(page.evaluations) == 1


@pytest.mark.asyncio
async def test_get_property_retries_until_defined() -> None:
    page = FakePage([{"defined": False, "value": None}, {"defined": True, "value": "ready"}])
    assert await get_property(page, "my-el", "status", timeout=1000, interval=0) == "ready"
    assert len(page.evaluations) == 2


@pytest.mark.asyncio
async def test_get_property_retries_until_predicate_holds() -> None:
    page = FakePage(
        [
            {"defined": True, "value": 1},
            {"defined": True, "value": 2},
        ]
    )
    value = await get_property(
        page, "my-counter", "count", timeout=1000, interval=0, predicate=lambda v: v == 2
    )
    assert value == 2


@pytest.mark.asyncio
async def test_get_property_timeout_when_undefined() -> None:
    page = FakePage([{"defined": False, "value": None}])
    with pytest.raises(RemoteTimeoutError) as exc_info:
        await get_property(page, "my-el", "missing", timeout=50, interval=10)

    message = str(exc_info.value)
    assert message.startswith("Timeout 50ms exceeded")
    assert 'waiting for property "missing"' in message
    assert "to be defined" in message
    assert "Property is undefined" in message
    assert exc_info.value.attempts >= 2


@pytest.mark.asyncio
async def test_get_property_timeout_names_predicate_and_current_value() -> None:
    page = FakePage([{"defined": True, "value": 1}])
    with pytest.raises(RemoteTimeoutError) as exc_info:
        await get_property(
            page, "my-counter", "count", timeout=50, interval=10, predicate=lambda v: v == 2
        )

    message = str(exc_info.value)
    assert "to satisfy predicate" in message
    assert "Current value: 1" in message
    assert "to be defined" not in message


@pytest.mark.asyncio
async def test_get_property_raising_predicate_is_not_settled() -> None:
    page = FakePage([{"defined": True, "value": None}])
    with pytest.raises(RemoteTimeoutError, match="Predicate raised TypeError"):
        await get_property(
            page, "my-el", "data", timeout=30, interval=10, predicate=lambda v: v["items"]
        )


@pytest.mark.asyncio
async def test_get_property_missing_element_surfaces_after_budget() -> None:
    page = FakePage([PlaywrightError("Error: [webrun:element_not_found] Element not found: nope")])
    with pytest.raises(RemoteTimeoutError) as exc_info:
        await get_property(page, "nope", "value", timeout=30, interval=10)
    assert isinstance(exc_info.value.__cause__, ElementNotFoundError)


@pytest.mark.asyncio
async def test_get_function_calls_reads_registry_key() -> None:
    page = FakePage([[{"timestamp": 1700000000000, "args": [1, "a"]}]])
    calls = await get_function_calls(page, "my-button", "onClick")

    assert [c.args for c in calls] == [[1, "a"]]
    _, arg = page.evaluations[0]
    assert arg == {"namespace": "__componentHelpers", "key": "my-button:onClick"}


@pytest.mark.asyncio
async def test_get_function_calls_empty_when_nothing_recorded() -> None:
    page = FakePage([[]])
    assert await get_function_calls(page, "my-button", "onClick") == []


@pytest.mark.asyncio
async def test_clear_function_calls_targets_same_key() -> None:
    page = FakePage()
    await clear_function_calls(page, "my-button", "onClick")
    script, arg = page.evaluations[0]
    assert "calls[key] = []" in script
    assert arg["key"] == "my-button:onClick"


@pytest.mark.asyncio
async def test_get_attributes_through_locator() -> None:
    locator = StubLocator(result={"id": "a", "disabled": ""})
    assert await get_attributes(locator) == {"id": "a", "disabled": ""}
    assert len(locator.calls) == 1


@pytest.mark.asyncio
async def test_locator_target_stamps_tracking_id_for_registry_key() -> None:
    page = FakePage([[]])
    locator = StubLocator(page=page, result="locator-abc")

    await get_function_calls(locator, "onClick")

    _, stamp_arg, _ = locator.calls[0]
    assert stamp_arg["attribute"] == "data-webrun-id"
    _, read_arg = page.evaluations[0]
    assert read_arg["key"] == '[data-webrun-id="locator-abc"]:onClick'


def test_resolve_target_page_requires_selector() -> None:
    with pytest.raises(TypeError):
        resolve_target(FakePage(), ())


def test_resolve_target_variants() -> None:
    page = FakePage()
    ref, rest = resolve_target(page, ("my-el", "count"))
    assert isinstance(ref, SelectorRef)
    assert ref.selector == "my-el"
    assert rest == ("count",)

    locator = StubLocator()
    ref, rest = resolve_target(locator, ("count",))
    assert isinstance(ref, LocatorRef)
    assert ref.locator is locator
    assert rest == ("count",)

    ref, _ = resolve_target(extend_locator(locator), ("count",))
    assert isinstance(ref, LocatorRef)
    assert ref.locator is locator

    same, rest = resolve_target(ref, ("x",))
    assert same is ref
    assert rest == ("x",)


@pytest.fixture
def fake_time(monkeypatch):
    """Drive get_property with a fake clock; sleeping advances it."""
    now = {"ms": 0.0}

    def clock() -> float:
        return now["ms"] / 1000.0

    async def sleep_ms(ms: float) -> None:
        now["ms"] += ms

    monkeypatch.setattr(property_module, "_monotonic", clock)
    monkeypatch.setattr(property_module, "_sleep_ms", sleep_ms)
    return now


@pytest.mark.asyncio
async def test_get_property_gives_up_within_one_interval_of_the_budget(fake_time) -> None:
    page = FakePage([{"defined": False, "value": None}])

    with pytest.raises(RemoteTimeoutError) as exc_info:
        await get_property(page, "my-el", "missing", timeout=500, interval=50)

    assert 500 <= fake_time["ms"] < 550
    assert exc_info.value.attempts == 11


@pytest.mark.asyncio
async def test_get_property_real_clock_respects_budget() -> None:
    page = FakePage([{"defined": False, "value": None}])

    started = time.monotonic()
    with pytest.raises(RemoteTimeoutError):
        await get_property(page, "my-el", "missing", timeout=500, interval=50)
    elapsed_ms = (time.monotonic() - started) * 1000

    # one interval past the budget, plus event loop scheduling slack
    assert 500 <= elapsed_ms < 500 + 50 + 50


@pytest.mark.asyncio
async def test_get_property_caps_locator_resolution_to_remaining_budget() -> None:
    locator = StubLocator(result={"defined": True, "value": 1})
    assert await get_property(extend_locator(locator), "count", timeout=500) == 1
    _, _, resolve_timeout = locator.calls[0]
    assert 1 <= resolve_timeout <= 500

    generous = StubLocator(result={"defined": True, "value": 1})
    await get_property(extend_locator(generous, resolve_timeout_ms=30000), "count", timeout=500)
    assert generous.calls[0][2] <= 500


@pytest.mark.asyncio
async def test_get_property_missing_locator_element_does_not_outlive_budget(fake_time) -> None:
    class WaitingLocator(StubLocator):
        async def evaluate(self, script: str, arg: object = None, timeout: float | None = None):
            self.calls.append((script, arg, timeout))
            # Playwright waits the whole resolution timeout before giving up.
            fake_time["ms"] += timeout if timeout is not None else 30000
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded.")

    locator = WaitingLocator()

    with pytest.raises(RemoteTimeoutError) as exc_info:
        await get_property(locator, "count", timeout=500, interval=50)

    assert [call[2] for call in locator.calls] == [500]
    assert fake_time["ms"] == 500
    assert isinstance(exc_info.value.__cause__, ElementNotFoundError)
