"""
Sitemap Resolver - robots.txt directives and recursive sitemap expansion.
"""

import gzip
from dataclasses import dataclass, field
from xml.etree import ElementTree

import httpx
from pydantic import BaseModel, Field

from geo_analyzer.config import settings
from geo_analyzer.utils.http import FETCH_ERRORS
from geo_analyzer.utils.logger import get_logger
from geo_analyzer.utils.urls import is_asset_url, is_http_url

logger = get_logger(__name__)


@dataclass
class RobotsDirectives:
    sitemaps: list[str] = field(default_factory=list)
    disallow: list[str] = field(default_factory=list)


class SitemapResult(BaseModel):
    """Everything learned about an origin's robots.txt and sitemaps."""
    urls: list[str] = Field(default_factory=list)
    candidates: list[str] = Field(default_factory=list)
    robots_txt_found: bool = False
    disallow: list[str] = Field(default_factory=list)
    sitemap_listed_in_robots: bool = False
    broad_block: bool = False
    sitemap_found: bool = False


def parse_robots_txt(text: str) -> RobotsDirectives:
    """
    Collect Sitemap and Disallow values.

    Keys are case-insensitive, the first colon separates key from value,
    blank lines and # comments are ignored. User-agent groups are not
    distinguished.
    """
    directives = RobotsDirectives()
    for raw_line in (text or "").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition(":")
        if not sep:
            continue
        key = key.strip().lower()
        value = value.split("#", 1)[0].strip() if key != "sitemap" else value.strip()
        if key == "sitemap" and value:
            directives.sitemaps.append(value)
        elif key == "disallow" and value:
            directives.disallow.append(value)
    return directives


def _local_name(tag: str) -> str:
    """Strip an XML namespace: '{ns}loc' -> 'loc'."""
    return tag.rsplit("}", 1)[-1].lower()


def parse_sitemap_document(content: bytes) -> tuple[list[str], list[str]]:
    """
    Split a sitemap document into (child sitemap locations, page locations).

    Raises ElementTree.ParseError on malformed XML.
    """
    root = ElementTree.fromstring(content)
    children: list[str] = []
    pages: list[str] = []
    root_name = _local_name(root.tag)
    for entry in root:
        entry_name = _local_name(entry.tag)
        loc = next(
            (el.text.strip() for el in entry if _local_name(el.tag) == "loc" and el.text),
            "",
        )
        if not loc:
            continue
        if root_name == "sitemapindex" or entry_name == "sitemap":
            children.append(loc)
        elif entry_name == "url":
            pages.append(loc)
    return children, pages


def _decode_body(url: str, response: httpx.Response) -> bytes:
    content = response.content
    if url.lower().endswith(".gz") or content[:2] == b"\x1f\x8b":
        try:
            return gzip.decompress(content)
        except (OSError, EOFError):
            # Some servers already decompress transparently
            return content
    return content


class SitemapResolver:
    """Expands an origin's sitemap tree into a capped list of page URLs."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def fetch_robots(self, origin: str) -> tuple[bool, RobotsDirectives]:
        robots_url = f"{origin.rstrip('/')}/robots.txt"
        try:
            response = await self.client.get(robots_url)
        except FETCH_ERRORS as e:
            logger.debug("robots.txt fetch failed", url=robots_url, error=str(e))
            return False, RobotsDirectives()
        if response.status_code != 200:
            return False, RobotsDirectives()
        return True, parse_robots_txt(response.text)

    async def resolve(self, origin: str, cap: int | None = None) -> SitemapResult:
        cap = settings.sitemap_max_urls if cap is None else cap
        origin = origin.rstrip("/")

        robots_found, directives = await self.fetch_robots(origin)
        candidates = list(dict.fromkeys(directives.sitemaps)) or [f"{origin}/sitemap.xml"]

        found: list[str] = []
        seen_pages: set[str] = set()
        visited: set[str] = set()

        for candidate in candidates:
            if len(found) >= cap:
                break
            await self._expand(candidate, visited, found, seen_pages, cap)

        result = SitemapResult(
            urls=found,
            candidates=candidates,
            robots_txt_found=robots_found,
            disallow=directives.disallow,
            sitemap_listed_in_robots=bool(directives.sitemaps),
            broad_block="/" in directives.disallow,
            sitemap_found=bool(found),
        )
        logger.info(
            "Sitemap resolved",
            origin=origin,
            urls=len(found),
            candidates=len(candidates),
            robots_txt=robots_found,
            broad_block=result.broad_block,
        )
        return result

    async def _expand(
        self,
        sitemap_url: str,
        visited: set[str],
        found: list[str],
        seen_pages: set[str],
        cap: int,
    ) -> None:
        if sitemap_url in visited or len(found) >= cap:
            return
        visited.add(sitemap_url)

        try:
            response = await self.client.get(sitemap_url)
        except FETCH_ERRORS as e:
            logger.debug("Sitemap fetch failed", url=sitemap_url, error=str(e))
            return
        if response.status_code != 200:
            logger.debug("Sitemap not available", url=sitemap_url, status=response.status_code)
            return

        try:
            children, pages = parse_sitemap_document(_decode_body(sitemap_url, response))
        except ElementTree.ParseError as e:
            logger.debug("Sitemap XML malformed", url=sitemap_url, error=str(e))
            return

        for page in pages:
            if len(found) >= cap:
                return
            if not is_http_url(page) or is_asset_url(page) or page in seen_pages:
                continue
            seen_pages.add(page)
            found.append(page)

        for child in children:
            if len(found) >= cap:
                return
            await self._expand(child, visited, found, seen_pages, cap)
