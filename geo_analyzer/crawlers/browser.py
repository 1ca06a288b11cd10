"""
Headless browser session shared by the deep analyzer and the rendered crawl.
"""

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from geo_analyzer.config import settings
from geo_analyzer.utils.logger import get_logger

logger = get_logger(__name__)


class BrowserSession:
    """
    One Chromium browser + context for the lifetime of an ``async with`` block.

    Callers open short-lived pages with ``new_page()`` and must close them;
    the context and browser are torn down on exit.
    """

    def __init__(self, headless: bool | None = None, user_agent: str | None = None):
        self.headless = settings.crawler_headless if headless is None else headless
        self.user_agent = user_agent or settings.user_agent
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None

    async def __aenter__(self) -> "BrowserSession":
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(headless=self.headless)
            self._context = await self._browser.new_context(user_agent=self.user_agent)
        except Exception:
            await self.close()
            raise
        logger.debug("Browser session started", headless=self.headless)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def new_page(self) -> Page:
        if self._context is None:
            raise RuntimeError("BrowserSession used outside of its context manager")
        return await self._context.new_page()

    async def close(self) -> None:
        if self._context is not None:
            await self._context.close()
            self._context = None
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
        logger.debug("Browser session closed")
