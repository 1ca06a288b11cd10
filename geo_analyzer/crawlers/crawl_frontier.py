"""
Crawl Frontier - bounded, domain-scoped breadth-first link discovery.
"""

import re
from collections import deque
from dataclasses import dataclass, field
from typing import Protocol

import httpx
from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError

from geo_analyzer.config import settings
from geo_analyzer.crawlers.browser import BrowserSession
from geo_analyzer.services.context import JobContext
from geo_analyzer.utils.http import FETCH_ERRORS, is_html_response
from geo_analyzer.utils.logger import get_logger
from geo_analyzer.utils.urls import (
    DEFAULT_EXCLUDE_PATTERN,
    is_asset_url,
    is_http_url,
    normalize_url,
    resolve_href,
    same_site,
)

logger = get_logger(__name__)

# Failures that mean "this page has no usable links"
LINK_ERRORS = (*FETCH_ERRORS, PlaywrightError)

# Upper bound on seen URLs relative to the page cap
SEEN_FACTOR = 6


class LinkSource(Protocol):
    async def links(self, url: str) -> list[str]:
        """Raw href values found on *url*."""
        ...


class StaticLinkSource:
    """Fetch with httpx and read anchors with BeautifulSoup."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def links(self, url: str) -> list[str]:
        response = await self.client.get(url)
        if not response.is_success or not is_html_response(response):
            return []
        soup = BeautifulSoup(response.text, "lxml")
        return [a["href"] for a in soup.find_all("a", href=True)]


class RenderedLinkSource:
    """Render each page in a shared browser context; one page handle per URL."""

    def __init__(self, session: BrowserSession):
        self.session = session

    async def links(self, url: str) -> list[str]:
        page = await self.session.new_page()
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=settings.crawler_timeout_ms)
            hrefs = await page.eval_on_selector_all(
                "a[href]", "els => els.map(el => el.getAttribute('href'))"
            )
        finally:
            await page.close()
        return [href for href in hrefs if href]


@dataclass
class CrawlPolicy:
    """URL normalization and filtering applied to every candidate link."""

    keep_query: bool = False
    keep_hash: bool = False
    include_patterns: list[str] = field(default_factory=list)
    exclude_patterns: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._include = [re.compile(p) for p in self.include_patterns]
        self._exclude = [re.compile(p) for p in (self.exclude_patterns or [DEFAULT_EXCLUDE_PATTERN])]

    def matches(self, url: str) -> bool:
        """All include patterns and no exclude pattern."""
        return (
            all(p.search(url) for p in self._include)
            and not any(p.search(url) for p in self._exclude)
        )

    def normalize(self, url: str) -> str:
        return normalize_url(url, keep_query=self.keep_query, keep_hash=self.keep_hash)

    def accept(self, href: str, base_url: str, scope_url: str) -> str | None:
        """Normalized absolute URL if the link is a same-site page passing every filter, else None."""
        absolute = resolve_href(href, base_url)
        if not absolute or not is_http_url(absolute):
            return None
        if not same_site(absolute, scope_url):
            return None
        url = self.normalize(absolute)
        if is_asset_url(url) or not self.matches(url):
            return None
        return url


class CrawlFrontier:
    """
    BFS over same-site links starting from one URL.

    Caps: at most ``max_pages`` URLs in the output and at most ``max_pages``
    pages visited; the seen set never grows past ``max_pages * 6``.
    """

    def __init__(
        self,
        start_url: str,
        max_pages: int,
        policy: CrawlPolicy | None = None,
        seeds: list[str] | None = None,
    ):
        self.policy = policy or CrawlPolicy()
        self.max_pages = max(1, max_pages)
        self.seen_cap = self.max_pages * SEEN_FACTOR
        self.start_url = self.policy.normalize(start_url)
        self.seen: set[str] = set()
        self.queue: deque[str] = deque()
        self.output: list[str] = []
        self.visited = 0

        self._admit(self.start_url)
        for seed in seeds or []:
            candidate = self.accept(seed, self.start_url)
            if candidate:
                self._admit(candidate)

    def accept(self, href: str, base_url: str) -> str | None:
        return self.policy.accept(href, base_url, self.start_url)

    def _admit(self, url: str) -> bool:
        if url in self.seen or len(self.seen) >= self.seen_cap:
            return False
        self.seen.add(url)
        self.queue.append(url)
        if len(self.output) < self.max_pages:
            self.output.append(url)
        return True

    @property
    def done(self) -> bool:
        return not self.queue or self.visited >= self.max_pages or len(self.output) >= self.max_pages

    async def crawl(self, source: LinkSource, ctx: JobContext | None = None) -> list[str]:
        while not self.done:
            if ctx is not None:
                ctx.token.raise_if_cancelled()
            url = self.queue.popleft()
            self.visited += 1
            try:
                hrefs = await source.links(url)
            except LINK_ERRORS as e:
                logger.debug("Link extraction failed", url=url, error=str(e))
                hrefs = []

            for href in hrefs:
                candidate = self.accept(href, url)
                if candidate:
                    self._admit(candidate)

        logger.info(
            "Crawl finished",
            start=self.start_url,
            discovered=len(self.output),
            visited=self.visited,
            seen=len(self.seen),
        )
        return list(self.output)
