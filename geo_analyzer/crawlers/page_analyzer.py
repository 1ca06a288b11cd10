"""
Page Analyzer - light (plain fetch) and deep (rendered) inspection of one URL.

Neither variant raises for per-URL failures: the light analyzer returns a
result with ok=False, the deep analyzer a result carrying an error string.
"""

import httpx
from playwright.async_api import Error as PlaywrightError

from geo_analyzer.config import settings
from geo_analyzer.crawlers.browser import BrowserSession
from geo_analyzer.crawlers.network_interceptor import NetworkInterceptor
from geo_analyzer.crawlers.page_signals import DeepPageResult, LightPageResult
from geo_analyzer.crawlers.signal_extractor import SignalExtractor
from geo_analyzer.scoring.findings import deep_findings, light_findings
from geo_analyzer.utils.http import FETCH_ERRORS, is_html_response
from geo_analyzer.utils.logger import get_logger

logger = get_logger(__name__)


def redirect_chain_length(response) -> int:
    """Number of hops behind a Playwright response, walked via redirected_from."""
    if response is None:
        return 0
    hops = 0
    request = response.request.redirected_from
    while request is not None:
        hops += 1
        request = request.redirected_from
    return hops


class LightPageAnalyzer:
    """One HTTP GET, static parse, reduced signal set."""

    def __init__(self, client: httpx.AsyncClient, extractor: SignalExtractor | None = None):
        self.client = client
        self.extractor = extractor or SignalExtractor()

    async def analyze(self, url: str) -> LightPageResult:
        try:
            response = await self.client.get(url)
        except FETCH_ERRORS as e:
            logger.debug("Light fetch failed", url=url, error=str(e))
            result = LightPageResult(url=url, ok=False, reason=str(e) or e.__class__.__name__)
            result.findings = light_findings(result)
            return result

        if not response.is_success or not is_html_response(response):
            reason = (
                f"HTTP {response.status_code}"
                if not response.is_success
                else f"Non-HTML content ({response.headers.get('content-type', 'unknown')})"
            )
            result = LightPageResult(
                url=url,
                ok=False,
                status=response.status_code,
                reason=reason,
                final_url=str(response.url),
            )
            result.findings = light_findings(result)
            return result

        result = self.extractor.light_result(
            response.text, url=url, status=response.status_code, final_url=str(response.url)
        )
        result.findings = light_findings(result)
        return result


class DeepPageAnalyzer:
    """
    Rendered inspection inside a shared BrowserSession.

    A plain fetch of the same URL runs first so the rendered word count can
    be compared against what non-JS consumers see.
    """

    def __init__(
        self,
        session: BrowserSession,
        client: httpx.AsyncClient,
        extractor: SignalExtractor | None = None,
    ):
        self.session = session
        self.client = client
        self.extractor = extractor or SignalExtractor()

    async def raw_word_count(self, url: str) -> int | None:
        """Word count of the unrendered page; None when the plain fetch yields no HTML."""
        try:
            response = await self.client.get(url)
        except FETCH_ERRORS as e:
            logger.debug("Raw fetch failed", url=url, error=str(e))
            return None
        if not response.is_success or not is_html_response(response):
            return None
        return self.extractor.word_count(self.extractor.parse(response.text))

    async def analyze(self, url: str) -> DeepPageResult:
        raw_words = await self.raw_word_count(url)

        interceptor = NetworkInterceptor()
        page = None
        try:
            page = await self.session.new_page()
            page.on("response", interceptor.on_response)
            response = await page.goto(
                url, wait_until="domcontentloaded", timeout=settings.crawler_timeout_ms
            )
            try:
                await page.wait_for_load_state("networkidle", timeout=settings.network_idle_timeout_ms)
            except PlaywrightError:
                logger.debug("Network did not settle", url=url)

            final_url = page.url
            html = await page.content()
            status = response.status if response is not None else 0
            headers = await response.all_headers() if response is not None else {}
            chain = redirect_chain_length(response)
        except PlaywrightError as e:
            logger.warning("Navigation failed", url=url, error=str(e))
            return DeepPageResult(url=url, ok=False, error=f"Navigation failed: {e}")
        finally:
            if page is not None:
                await page.close()

        rendered_words = self.extractor.word_count(self.extractor.parse(html))
        signals = self.extractor.page_signals(
            html,
            requested_url=url,
            final_url=final_url,
            status=status,
            headers=headers,
            redirect_chain=chain,
            performance=interceptor.summary(raw_words, rendered_words),
        )
        result = DeepPageResult(url=url, ok=True, signals=signals)
        result.findings = deep_findings(signals)
        logger.debug(
            "Deep analysis complete",
            url=url,
            status=status,
            findings=len(result.findings),
            responses=interceptor.response_count,
        )
        return result
