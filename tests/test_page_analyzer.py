"""Tests for the light and deep page analyzers and the network interceptor."""

import httpx
import pytest
from playwright.async_api import Error as PlaywrightError

from geo_analyzer.crawlers.network_interceptor import NetworkInterceptor, render_delta_pct
from geo_analyzer.crawlers.page_analyzer import (
    DeepPageAnalyzer,
    LightPageAnalyzer,
    redirect_chain_length,
)
from geo_analyzer.scoring.models import Impact, Severity
from helpers import (
    BARE_HTML,
    RICH_HTML,
    FakeBrowser,
    FakeResponse,
    PageSpec,
    html_page,
    observed,
    redirect_chain,
)

URL = "https://example.com/"


class TestLightPageAnalyzer:
    async def test_html_page(self, router, client):
        router.get(URL).mock(return_value=httpx.Response(200, html=RICH_HTML))

        result = await LightPageAnalyzer(client).analyze(URL)

        assert result.ok
        assert result.status == 200
        assert result.reason is None
        assert result.json_ld_count == 2
        issues = [f.issue for f in result.findings]
        assert "Canonical-Tag fehlt." not in issues
        assert any(issue.startswith("Wenig Text") for issue in issues)

    async def test_bare_page_findings(self, router, client):
        router.get(URL).mock(return_value=httpx.Response(200, html=BARE_HTML))

        result = await LightPageAnalyzer(client).analyze(URL)

        issues = {f.issue for f in result.findings}
        assert "Canonical-Tag fehlt." in issues
        assert "<html lang> nicht gesetzt." in issues
        assert "H1-Anzahl ist 0 (sollte 1 sein)." in issues
        assert all(f.url == URL for f in result.findings)

    async def test_http_error(self, router, client):
        router.get(URL).mock(return_value=httpx.Response(404, html="<p>weg</p>"))

        result = await LightPageAnalyzer(client).analyze(URL)

        assert not result.ok
        assert result.status == 404
        assert result.reason == "HTTP 404"
        assert len(result.findings) == 1
        assert result.findings[0].severity == Severity.ERROR
        assert result.findings[0].impact == Impact.HIGH
        assert result.findings[0].issue == "Seite nicht erreichbar (HTTP 404)."

    async def test_non_html(self, router, client):
        router.get(URL).mock(return_value=httpx.Response(200, json={"ok": True}))

        result = await LightPageAnalyzer(client).analyze(URL)

        assert not result.ok
        assert result.status == 200
        assert result.reason.startswith("Non-HTML content")
        assert result.findings == []

    async def test_network_error(self, router, client):
        router.get(URL).mock(side_effect=httpx.ConnectError("connection refused"))

        result = await LightPageAnalyzer(client).analyze(URL)

        assert not result.ok
        assert result.status is None
        assert result.reason == "connection refused"
        assert result.findings[0].severity == Severity.ERROR

    async def test_invalid_url(self, router, client):
        result = await LightPageAnalyzer(client).analyze("https://example.com:abc/x")

        assert not result.ok
        assert result.status is None
        assert result.reason
        assert result.findings[0].severity == Severity.ERROR


class TestRedirectChain:
    def test_counts_hops(self):
        assert redirect_chain_length(FakeResponse(URL, request=redirect_chain(2))) == 2

    def test_no_response(self):
        assert redirect_chain_length(None) == 0


class TestDeepPageAnalyzer:
    async def test_rendered_page(self, router, client):
        router.get(URL).mock(return_value=httpx.Response(200, html=html_page("<p>sieben Wörter im rohen HTML stehen hier</p>")))
        browser = FakeBrowser({
            URL: PageSpec(
                html=RICH_HTML,
                headers={"content-type": "text/html", "cache-control": "public, max-age=3600"},
                redirects=2,
                network=[
                    observed("https://example.com/hero.jpg", "image", 600_000),
                    observed("https://example.com/app.js", "script", 1_000, with_length=False),
                ],
            ),
        })

        result = await DeepPageAnalyzer(browser, client).analyze(URL)

        assert result.ok
        assert result.error is None
        signals = result.signals
        assert signals.http.redirect_chain == 2
        assert signals.has_caching
        performance = signals.performance
        assert performance.total_bytes == 601_000
        assert performance.image_bytes == 600_000
        assert performance.script_bytes == 1_000
        assert performance.big_images == 1
        assert performance.response_count == 2
        assert performance.raw_word_count == 7
        assert performance.rendered_word_count == 14
        assert performance.render_delta_pct == 100.0
        issues = {f.issue for f in result.findings}
        assert "Redirect-Kette mit 2 Sprüngen." in issues
        assert any(issue.startswith("Inhalt entsteht überwiegend clientseitig") for issue in issues)
        assert browser.all_pages_closed

    async def test_navigation_options(self, router, client):
        router.get(URL).mock(return_value=httpx.Response(200, html=RICH_HTML))
        browser = FakeBrowser({URL: PageSpec(html=RICH_HTML)})

        await DeepPageAnalyzer(browser, client).analyze(URL)

        call = browser.pages[0].goto_calls[0]
        assert call["wait_until"] == "domcontentloaded"
        assert call["timeout"] > 0

    async def test_navigation_failure(self, router, client):
        router.get(URL).mock(side_effect=httpx.ConnectError("refused"))
        browser = FakeBrowser({URL: PageSpec(error=PlaywrightError("Timeout 30000ms exceeded"))})

        result = await DeepPageAnalyzer(browser, client).analyze(URL)

        assert not result.ok
        assert result.error.startswith("Navigation failed:")
        assert result.signals is None
        assert browser.all_pages_closed

    @pytest.mark.parametrize(
        "raw_response",
        [
            httpx.ConnectError("refused"),
            httpx.Response(403, html="<p>Zugriff verweigert</p>"),
            httpx.Response(200, json={"ok": True}),
        ],
    )
    async def test_unknown_raw_count_keeps_delta_off(self, router, client, raw_response):
        if isinstance(raw_response, Exception):
            router.get(URL).mock(side_effect=raw_response)
        else:
            router.get(URL).mock(return_value=raw_response)
        browser = FakeBrowser({URL: PageSpec(html=RICH_HTML)})

        result = await DeepPageAnalyzer(browser, client).analyze(URL)

        assert result.ok
        performance = result.signals.performance
        assert performance.raw_word_count is None
        assert performance.rendered_word_count == 14
        assert performance.render_delta_pct is None
        assert not any(f.issue.startswith("Inhalt entsteht überwiegend clientseitig") for f in result.findings)

    async def test_invalid_url_raw_count(self, router, client):
        assert await DeepPageAnalyzer(FakeBrowser(), client).raw_word_count("https://example.com:abc/x") is None

    async def test_page_open_failure_is_page_level(self, router, client):
        class ClosedBrowser(FakeBrowser):
            async def new_page(self):
                raise PlaywrightError("Target page, context or browser has been closed")

        router.get(URL).mock(return_value=httpx.Response(200, html=RICH_HTML))
        browser = ClosedBrowser()

        result = await DeepPageAnalyzer(browser, client).analyze(URL)

        assert not result.ok
        assert result.error.startswith("Navigation failed:")
        assert browser.pages == []

    async def test_http_error_page(self, router, client):
        router.get(URL).mock(return_value=httpx.Response(404, html=BARE_HTML))
        browser = FakeBrowser({URL: PageSpec(html=BARE_HTML, status=404)})

        result = await DeepPageAnalyzer(browser, client).analyze(URL)

        assert result.ok
        assert not result.signals.indexable
        http_findings = [f for f in result.findings if f.location == "HTTP"]
        assert http_findings[0].severity == Severity.ERROR
        assert http_findings[0].issue == "HTTP-Status 404, Seite nicht indexierbar."


class TestNetworkInterceptor:
    async def test_cap_on_observed_responses(self):
        interceptor = NetworkInterceptor(max_responses=2, big_image_bytes=100)

        for i in range(5):
            await interceptor.on_response(observed(f"https://example.com/{i}.png", "image", 150))

        assert interceptor.response_count == 2
        assert interceptor.totals["image_bytes"] == 300
        assert interceptor.big_images == 2

    async def test_stylesheet_bucket(self):
        interceptor = NetworkInterceptor()

        await interceptor.on_response(observed("https://example.com/a.css", "stylesheet", 2048))
        await interceptor.on_response(observed("https://example.com/font.woff2", "font", 4096))

        summary = interceptor.summary()
        assert summary.css_bytes == 2048
        assert summary.total_bytes == 6144

    async def test_unreadable_body_is_skipped(self):
        class Broken(FakeResponse):
            async def body(self) -> bytes:
                raise PlaywrightError("Response body is unavailable for redirect responses")

        interceptor = NetworkInterceptor()
        await interceptor.on_response(Broken("https://example.com/r"))

        assert interceptor.response_count == 0


class TestRenderDelta:
    @pytest.mark.parametrize(
        "raw, rendered, expected",
        [(0, 0, 0.0), (0, 50, 100.0), (100, 150, 50.0), (100, 80, -20.0), (3, 4, 33.3)],
    )
    def test_delta(self, raw, rendered, expected):
        assert render_delta_pct(raw, rendered) == expected

    def test_unknown_raw_count(self):
        assert render_delta_pct(None, 500) is None
        assert NetworkInterceptor().summary(raw_word_count=None, rendered_word_count=500).render_delta_pct is None
