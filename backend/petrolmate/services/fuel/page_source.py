"""
Page source for the PetrolSpy map/list view
Uses Playwright headless Chromium; one instance is one browsing session
"""
import logging
import random
from typing import Callable, List, Optional, Protocol

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from petrolmate.core.config import Settings
from petrolmate.core.errors import PageSourceError
from petrolmate.schemas.fuel import RawListing
from petrolmate.services.fuel.extractor import raw_listing_from_html

logger = logging.getLogger(__name__)

# User-agent rotation list
USER_AGENTS = [
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
    'Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
]

BLOCKED_RESOURCE_TYPES = ('image', 'font', 'media')

# Selectors
FUEL_DROPDOWN = '#fuel-dropdown'
FUEL_OPTIONS = '.dropDownOptionsDiv'
ZOOM_OUT_BUTTON = '.maplibregl-ctrl-zoom-out'
LIST_VIEW_BUTTON = '#list-view'
STATION_ITEM = '.stations-list-item'


async def block_heavy_resources(route):
    if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
        await route.abort()
    else:
        await route.continue_()


class PageSource(Protocol):
    """Rendered listing provider for one browsing session"""

    async def navigate_to(self, location_descriptor: str) -> None: ...

    async def select_fuel_type(self, fuel_site_id: str) -> None: ...

    async def switch_to_list_view(self) -> None: ...

    async def list_stations(self) -> List[RawListing]: ...


class PlaywrightPageSource:
    """
    Drives the PetrolSpy map for one city session.

    Usage:
        async with PlaywrightPageSource(base_url) as source:
            await source.navigate_to("-34.928499/138.600746")
            await source.select_fuel_type("U91")
            await source.switch_to_list_view()
            listings = await source.list_stations()

    Every Playwright failure surfaces as PageSourceError.
    """

    def __init__(
        self,
        base_url: str = "https://petrolspy.com.au",
        timeout_ms: int = 120000,
        zoom_out_steps: int = 5,
        headless: bool = True,
        executable_path: Optional[str] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.timeout_ms = timeout_ms
        self.zoom_out_steps = zoom_out_steps
        self.headless = headless
        self.executable_path = executable_path
        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None

    async def __aenter__(self) -> 'PlaywrightPageSource':
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.headless,
                executable_path=self.executable_path,
                args=['--no-sandbox', '--disable-setuid-sandbox']
            )
            self._context = await self._browser.new_context(
                user_agent=random.choice(USER_AGENTS),
                viewport={'width': 1280, 'height': 720},
                locale='en-AU',
            )
            self._page = await self._context.new_page()
            self._page.set_default_timeout(self.timeout_ms)
            await self._page.route('**/*', block_heavy_resources)
        except PlaywrightError as e:
            await self.close()
            raise PageSourceError(f"Failed to start browser session: {e}") from e

        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        for resource in (self._page, self._context, self._browser):
            if resource is None:
                continue
            try:
                await resource.close()
            except PlaywrightError as e:
                logger.warning(f"Error closing browser resource: {e}")
        if self._playwright is not None:
            await self._playwright.stop()
        self._page = self._context = self._browser = self._playwright = None

    @property
    def page(self):
        if self._page is None:
            raise PageSourceError("Browser session is not open")
        return self._page

    async def navigate_to(self, location_descriptor: str) -> None:
        url = f"{self.base_url}/map/latlng/{location_descriptor}"
        logger.info(f"Navigating to {url}")
        try:
            await self.page.goto(url, wait_until='networkidle', timeout=self.timeout_ms)
        except PlaywrightTimeoutError as e:
            raise PageSourceError(f"Timeout navigating to {url}") from e
        except PlaywrightError as e:
            raise PageSourceError(f"Navigation to {url} failed: {e}") from e

    async def select_fuel_type(self, fuel_site_id: str) -> None:
        page = self.page
        try:
            await page.wait_for_selector(FUEL_DROPDOWN)
            await page.click(FUEL_DROPDOWN)
            await page.wait_for_selector(FUEL_OPTIONS)
            await page.click(f'#option_{fuel_site_id}')
        except PlaywrightTimeoutError as e:
            raise PageSourceError(f"Timeout selecting fuel type {fuel_site_id}") from e
        except PlaywrightError as e:
            raise PageSourceError(f"Selecting fuel type {fuel_site_id} failed: {e}") from e

    async def _normalize_zoom(self):
        # Zoom out far enough that the list covers the metro area
        for i in range(self.zoom_out_steps):
            await self.page.click(ZOOM_OUT_BUTTON)
            if i < self.zoom_out_steps - 1:
                await self.page.wait_for_timeout(1000)

    async def switch_to_list_view(self) -> None:
        try:
            await self._normalize_zoom()
            await self.page.click(LIST_VIEW_BUTTON)
            await self.page.wait_for_selector(STATION_ITEM)
        except PlaywrightTimeoutError as e:
            raise PageSourceError("Timeout waiting for station list") from e
        except PlaywrightError as e:
            raise PageSourceError(f"Switching to list view failed: {e}") from e

    async def list_stations(self) -> List[RawListing]:
        try:
            items = await self.page.query_selector_all(STATION_ITEM)
            html_blocks = [await item.evaluate('el => el.outerHTML') for item in items]
        except PlaywrightError as e:
            raise PageSourceError(f"Reading station list failed: {e}") from e

        logger.info(f"Found {len(html_blocks)} station items")
        return [raw_listing_from_html(html) for html in html_blocks]


def playwright_session_factory(app_settings: Settings) -> Callable[[], PlaywrightPageSource]:
    """Factory producing one independent browser session per call"""
    def _factory() -> PlaywrightPageSource:
        return PlaywrightPageSource(
            base_url=app_settings.SOURCE_BASE_URL,
            timeout_ms=app_settings.NAVIGATION_TIMEOUT_MS,
            zoom_out_steps=app_settings.ZOOM_OUT_STEPS,
            headless=app_settings.HEADLESS,
            executable_path=app_settings.BROWSER_EXECUTABLE_PATH,
        )
    return _factory
