from __future__ import annotations

import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from petrolmate.core.errors import PageSourceError
from petrolmate.services.fuel import page_source
from petrolmate.services.fuel.page_source import PlaywrightPageSource, block_heavy_resources

STATION_HTML = (
    '<div class="stations-list-item">'
    '<div class="stations-item-column-first"><img src="/logos/bp.png"><span>$1.899</span></div>'
    '<div class="stations-item-column-middle"><b>BP Example</b><br>1 Main St<br><b>Exampletown</b>, 5000</div>'
    '</div>'
)


class FakeElement:
    def __init__(self, html: str):
        self.html = html
        self.scripts: list[str] = []

    async def evaluate(self, script: str):
        self.scripts.append(script)
        return self.html


class FakePage:
    def __init__(self, items=(), fail_on: str | None = None, error: Exception | None = None):
        self.items = [FakeElement(html) for html in items]
        self.fail_on = fail_on
        self.error = error
        self.calls: list[tuple] = []
        self.routes: list[tuple] = []
        self.closed = False

    def _record(self, name: str, *args, **kwargs):
        self.calls.append((name, args, kwargs))
        if name == self.fail_on:
            raise self.error

    async def goto(self, url, **kwargs):
        self._record("goto", url, **kwargs)

    async def wait_for_selector(self, selector):
        self._record("wait_for_selector", selector)

    async def click(self, selector):
        self._record("click", selector)

    async def wait_for_timeout(self, timeout):
        self._record("wait_for_timeout", timeout)

    async def query_selector_all(self, selector):
        self._record("query_selector_all", selector)
        return self.items

    def set_default_timeout(self, timeout):
        self._record("set_default_timeout", timeout)

    async def route(self, pattern, handler):
        self.routes.append((pattern, handler))

    async def close(self):
        self.closed = True


class FakeRequest:
    def __init__(self, resource_type: str):
        self.resource_type = resource_type


class FakeRoute:
    def __init__(self, resource_type: str):
        self.request = FakeRequest(resource_type)
        self.outcome = None

    async def abort(self):
        self.outcome = "aborted"

    async def continue_(self):
        self.outcome = "continued"


def open_source(page: FakePage, **kwargs) -> PlaywrightPageSource:
    source = PlaywrightPageSource(base_url="https://petrolspy.example/", timeout_ms=5000, **kwargs)
    source._page = page
    return source


def test_navigate_to_opens_map_for_location():
    page = FakePage()

    asyncio.run(open_source(page).navigate_to("-34.9/138.6"))

    assert page.calls == [
        ("goto", ("https://petrolspy.example/map/latlng/-34.9/138.6",), {"wait_until": "networkidle", "timeout": 5000}),
    ]


def test_select_fuel_type_opens_dropdown_and_picks_option():
    page = FakePage()

    asyncio.run(open_source(page).select_fuel_type("DIESEL"))

    assert [(name, args) for name, args, _ in page.calls] == [
        ("wait_for_selector", ("#fuel-dropdown",)),
        ("click", ("#fuel-dropdown",)),
        ("wait_for_selector", (".dropDownOptionsDiv",)),
        ("click", ("#option_DIESEL",)),
    ]


def test_switch_to_list_view_zooms_out_with_pauses_between_clicks():
    page = FakePage()

    asyncio.run(open_source(page, zoom_out_steps=3).switch_to_list_view())

    assert [(name, args) for name, args, _ in page.calls] == [
        ("click", (".maplibregl-ctrl-zoom-out",)),
        ("wait_for_timeout", (1000,)),
        ("click", (".maplibregl-ctrl-zoom-out",)),
        ("wait_for_timeout", (1000,)),
        ("click", (".maplibregl-ctrl-zoom-out",)),
        ("click", ("#list-view",)),
        ("wait_for_selector", (".stations-list-item",)),
    ]


def test_list_stations_reads_rendered_items():
    page = FakePage(items=[STATION_HTML, STATION_HTML])

    listings = asyncio.run(open_source(page).list_stations())

    assert page.calls[0][:2] == ("query_selector_all", (".stations-list-item",))
    assert page.items[0].scripts == ["el => el.outerHTML"]
    assert len(listings) == 2
    assert "1.899" in listings[0].price_text
    assert listings[0].suburb_text == "Exampletown"
    assert listings[0].logo_src == "/logos/bp.png"


@pytest.mark.parametrize(
    "fail_on, call",
    [
        ("goto", lambda source: source.navigate_to("-34.9/138.6")),
        ("click", lambda source: source.select_fuel_type("U91")),
        ("wait_for_selector", lambda source: source.switch_to_list_view()),
        ("query_selector_all", lambda source: source.list_stations()),
    ],
)
@pytest.mark.parametrize(
    "error",
    [PlaywrightTimeoutError("Timeout 5000ms exceeded"), PlaywrightError("Target closed")],
)
def test_playwright_errors_surface_as_page_source_error(fail_on, call, error):
    source = open_source(FakePage(fail_on=fail_on, error=error))

    with pytest.raises(PageSourceError) as exc_info:
        asyncio.run(call(source))

    assert exc_info.value.__cause__ is error


def test_operations_without_open_session_fail():
    source = PlaywrightPageSource()

    with pytest.raises(PageSourceError):
        asyncio.run(source.navigate_to("-34.9/138.6"))


@pytest.mark.parametrize(
    "resource_type, outcome",
    [
        ("image", "aborted"),
        ("font", "aborted"),
        ("media", "aborted"),
        ("document", "continued"),
        ("script", "continued"),
        ("xhr", "continued"),
    ],
)
def test_heavy_resources_are_blocked(resource_type, outcome):
    route = FakeRoute(resource_type)

    asyncio.run(block_heavy_resources(route))

    assert route.outcome == outcome


class FakeContext:
    def __init__(self, page: FakePage):
        self.page = page
        self.options: dict = {}
        self.closed = False

    async def new_page(self):
        return self.page

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, context: FakeContext):
        self.context = context
        self.launch_options: dict = {}
        self.closed = False

    async def new_context(self, **kwargs):
        self.context.options = kwargs
        return self.context

    async def close(self):
        self.closed = True


class FakeChromium:
    def __init__(self, browser: FakeBrowser):
        self.browser = browser

    async def launch(self, **kwargs):
        self.browser.launch_options = kwargs
        return self.browser


class FakePlaywright:
    def __init__(self, browser: FakeBrowser):
        self.chromium = FakeChromium(browser)
        self.stopped = False

    async def stop(self):
        self.stopped = True


class FakePlaywrightManager:
    def __init__(self, playwright: FakePlaywright):
        self.playwright = playwright

    async def start(self):
        return self.playwright


def test_session_registers_resource_blocking_and_closes_everything(monkeypatch):
    page = FakePage()
    context = FakeContext(page)
    browser = FakeBrowser(context)
    playwright = FakePlaywright(browser)
    monkeypatch.setattr(page_source, "async_playwright", lambda: FakePlaywrightManager(playwright))

    async def run():
        async with PlaywrightPageSource(timeout_ms=5000, headless=True) as source:
            assert source.page is page

    asyncio.run(run())

    assert browser.launch_options["headless"] is True
    assert context.options["user_agent"] in page_source.USER_AGENTS
    assert ("set_default_timeout", (5000,), {}) in page.calls
    assert page.routes == [("**/*", block_heavy_resources)]
    assert page.closed and context.closed and browser.closed and playwright.stopped
