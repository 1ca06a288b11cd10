"""Tests for common-path probing."""

import httpx

from geo_analyzer.crawlers.page_analyzer import LightPageAnalyzer
from geo_analyzer.crawlers.path_prober import COMMON_PATHS, PathProber, candidate_urls
from helpers import html_page

ORIGIN = "https://example.com"


class TestCandidates:
    def test_each_slug_with_and_without_slash(self):
        candidates = candidate_urls(ORIGIN + "/")

        assert len(candidates) == len(COMMON_PATHS) * 2 == 26
        assert candidates[:2] == [f"{ORIGIN}/kontakt", f"{ORIGIN}/kontakt/"]


class TestProbe:
    async def test_keeps_only_reachable_html(self, router, client):
        router.get(f"{ORIGIN}/kontakt").mock(return_value=httpx.Response(200, html=html_page("<h1>Kontakt</h1>")))
        router.get(f"{ORIGIN}/impressum/").mock(return_value=httpx.Response(200, html=html_page("<h1>Impressum</h1>")))
        router.get(f"{ORIGIN}/faq").mock(return_value=httpx.Response(200, json={"faq": []}))
        router.get(f"{ORIGIN}/blog").mock(side_effect=httpx.ConnectError("refused"))
        router.get(url__regex=r".*").mock(return_value=httpx.Response(404))

        confirmed = await PathProber(LightPageAnalyzer(client), concurrency=4).probe(ORIGIN)

        assert confirmed == [f"{ORIGIN}/kontakt", f"{ORIGIN}/impressum/"]

    async def test_nothing_found(self, router, client):
        router.get(url__regex=r".*").mock(return_value=httpx.Response(404))

        assert await PathProber(LightPageAnalyzer(client)).probe(ORIGIN) == []
