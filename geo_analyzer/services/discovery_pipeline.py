"""
Discovery Pipeline - one full discovery + analysis run for a URL.

Stages run strictly in sequence:
main page (deep) -> robots/sitemap -> seeds -> crawl -> light analysis ->
deep analysis -> scoring. Page-level work inside a stage is bounded by
settings.page_concurrency_limit.
"""

from collections import Counter
from typing import Callable

import httpx

from geo_analyzer.config import settings
from geo_analyzer.crawlers.browser import BrowserSession
from geo_analyzer.crawlers.crawl_frontier import CrawlFrontier, CrawlPolicy, RenderedLinkSource, StaticLinkSource
from geo_analyzer.crawlers.page_analyzer import DeepPageAnalyzer, LightPageAnalyzer
from geo_analyzer.crawlers.page_signals import DeepPageResult, LightPageResult, PageSignals
from geo_analyzer.crawlers.path_prober import PathProber
from geo_analyzer.crawlers.sitemap_resolver import SitemapResolver, SitemapResult
from geo_analyzer.database.models import (
    AnalyzeOptions,
    DiscoveryResult,
    ResultCounts,
    RobotsSummary,
    SitemapSummary,
)
from geo_analyzer.scoring.explainer import ScoreExplainer
from geo_analyzer.scoring.models import Finding, Severity
from geo_analyzer.scoring.score_engine import calculate_score
from geo_analyzer.services.context import JobContext
from geo_analyzer.utils.concurrency import gather_bounded
from geo_analyzer.utils.http import create_http_client
from geo_analyzer.utils.logger import get_logger
from geo_analyzer.utils.urls import origin_of

logger = get_logger(__name__)

MAX_ORPHAN_CANDIDATES = 50


class MainPageUnavailable(Exception):
    """The main URL could not be rendered; the whole run fails."""


def _union(*groups: list[str]) -> list[str]:
    """Insertion-ordered union of URL lists."""
    merged: dict[str, None] = {}
    for group in groups:
        for url in group:
            merged.setdefault(url, None)
    return list(merged)


def sitemap_coverage(crawled: list[str], sitemap_urls: list[str]) -> float | None:
    """Percent of crawl-discovered URLs listed in the sitemap; None without both inputs."""
    if not crawled or not sitemap_urls:
        return None
    listed = set(sitemap_urls)
    hits = sum(1 for url in crawled if url in listed)
    return round(hits / len(crawled) * 100, 1)


def summarize_findings(findings: list[Finding], pages_scanned: int) -> ResultCounts:
    severity_counts = {severity.value: 0 for severity in Severity}
    severity_counts.update(Counter(finding.severity.value for finding in findings))
    return ResultCounts(
        pages_scanned=pages_scanned,
        pages_with_issues=len({finding.url for finding in findings}),
        severity_counts=severity_counts,
    )


class DiscoveryPipeline:
    """Holds the shared HTTP client and browser factory for one run."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        options: AnalyzeOptions,
        ctx: JobContext,
        browser_factory: Callable[[], BrowserSession] = BrowserSession,
    ):
        self.client = client
        self.options = options
        self.ctx = ctx
        self.browser_factory = browser_factory
        self.light = LightPageAnalyzer(client)
        self.explainer = ScoreExplainer()
        self.limit = settings.page_concurrency_limit
        self.policy = CrawlPolicy(
            keep_query=options.keep_query,
            keep_hash=options.keep_hash,
            include_patterns=options.include_patterns,
            exclude_patterns=options.exclude_patterns,
        )

    def _normalize(self, url: str) -> str:
        return self.policy.normalize(url)

    def _before_page(self) -> None:
        self.ctx.token.raise_if_cancelled()

    # ============== Stages ==============

    async def analyze_main(self, url: str) -> DeepPageResult:
        async with self.browser_factory() as session:
            main = await DeepPageAnalyzer(session, self.client).analyze(url)
        if not main.ok or main.signals is None:
            raise MainPageUnavailable(main.error or f"Navigation failed: {url}")
        return main

    async def resolve_sitemap(self, origin: str) -> SitemapResult:
        return await SitemapResolver(self.client).resolve(origin)

    async def collect_seeds(self, origin: str, base_url: str) -> list[str]:
        """Manual seeds that pass the crawl filters, then confirmed common paths."""
        manual = []
        for seed in self.options.seeds:
            accepted = self.policy.accept(seed, base_url, scope_url=base_url)
            if accepted:
                manual.append(accepted)
            else:
                logger.info("Seed rejected", seed=seed, job_id=self.ctx.job_id)
        probed = []
        if self.options.guess_paths:
            probed = await PathProber(self.light, self.limit).probe(origin, before_each=self._before_page)
        return _union(manual, probed)

    async def crawl(self, start_url: str, seeds: list[str]) -> list[str]:
        frontier = CrawlFrontier(start_url, self.options.crawl_max_pages, policy=self.policy, seeds=seeds)
        if self.options.crawl_render:
            async with self.browser_factory() as session:
                return await frontier.crawl(RenderedLinkSource(session), self.ctx)
        return await frontier.crawl(StaticLinkSource(self.client), self.ctx)

    async def light_analyze(self, urls: list[str]) -> dict[str, LightPageResult]:
        """Each distinct URL is fetched once."""
        unique = _union(urls)
        results = await gather_bounded(unique, self.light.analyze, self.limit, before_each=self._before_page)
        return dict(zip(unique, results))

    async def deep_analyze(self, urls: list[str]) -> list[DeepPageResult]:
        if not urls:
            return []
        async with self.browser_factory() as session:
            analyzer = DeepPageAnalyzer(session, self.client)
            return await gather_bounded(urls, analyzer.analyze, self.limit, before_each=self._before_page)

    # ============== Run ==============

    async def run(self, url: str) -> DiscoveryResult:
        ctx = self.ctx
        options = self.options
        ctx.checkpoint(2, f"Analyse gestartet: {url}")

        main_result = await self.analyze_main(url)
        main: PageSignals = main_result.signals
        ctx.checkpoint(25, f"Hauptseite analysiert (HTTP {main.http.status})")

        origin = origin_of(main.final_url or url)
        sitemap = await self.resolve_sitemap(origin)
        main.flags = main.flags.model_copy(
            update={"robots_txt_found": sitemap.robots_txt_found, "sitemap_found": sitemap.sitemap_found}
        )
        ctx.checkpoint(35, f"Sitemap: {len(sitemap.urls)} URLs, robots.txt {'gefunden' if sitemap.robots_txt_found else 'fehlt'}")

        seeds = await self.collect_seeds(origin, main.final_url or url)
        ctx.checkpoint(45, f"{len(seeds)} Seeds gesammelt")

        crawled: list[str] = []
        if options.crawl:
            crawled = await self.crawl(url, seeds)
        ctx.checkpoint(65, f"Crawl: {len(crawled)} URLs entdeckt")

        sitemap_urls = [self._normalize(u) for u in sitemap.urls]
        discovered = _union(
            sitemap_urls if options.include_sitemap else [],
            crawled,
            [self._normalize(u) for u in seeds],
        )

        sample_targets = _union(sitemap_urls)[: options.max_sample_pages] if options.sample_sitemap else []
        light_results = await self.light_analyze(_union(sample_targets, discovered))
        sampled_pages = [light_results[u] for u in sample_targets]
        crawl_analyses = [light_results[u] for u in discovered]
        ctx.checkpoint(85, f"{len(light_results)} Seiten leicht analysiert")

        main_key = self._normalize(main.final_url or url)
        requested_key = self._normalize(url)
        deep_targets = [u for u in discovered if u not in (main_key, requested_key)][: options.deep_analyze_max]
        deep_analyses = await self.deep_analyze(deep_targets)
        ctx.checkpoint(95, f"{len(deep_analyses)} Seiten tief analysiert")

        findings = list(dict.fromkeys(
            main_result.findings
            + [f for page in light_results.values() for f in page.findings]
            + [f for page in deep_analyses for f in page.findings]
        ))
        scanned = {requested_key} | set(light_results) | {page.url for page in deep_analyses}

        crawled_set = set(crawled)
        orphans = [u for u in sitemap_urls if u not in crawled_set] if options.crawl else []

        result = DiscoveryResult(
            requested_url=url,
            main=main,
            robots=RobotsSummary(
                found=sitemap.robots_txt_found,
                disallow=sitemap.disallow,
                broad_block=sitemap.broad_block,
                sitemap_listed_in_robots=sitemap.sitemap_listed_in_robots,
            ),
            sitemap=SitemapSummary(
                found=sitemap.sitemap_found,
                candidates=sitemap.candidates,
                url_count=len(sitemap.urls),
                sample_count=len(sampled_pages),
                coverage_pct=sitemap_coverage(crawled, sitemap_urls),
            ),
            discovered_count=len(discovered),
            discovered=discovered,
            orphan_candidates=orphans[:MAX_ORPHAN_CANDIDATES],
            sampled_pages=sampled_pages,
            crawl_analyses=crawl_analyses,
            deep_analyses=deep_analyses,
            findings=findings,
            counts=summarize_findings(findings, len(scanned)),
            issues=self.explainer.main_issues(main, sitemap),
            check_matrix=self.explainer.check_matrix(main, sitemap),
            score=calculate_score(main.flags),
        )
        ctx.checkpoint(100, f"Analyse abgeschlossen, Score {result.score.total}/100")
        logger.info(
            "Discovery run complete",
            job_id=ctx.job_id,
            url=url,
            discovered=result.discovered_count,
            findings=len(findings),
            score=result.score.total,
        )
        return result


async def run_discovery_and_analysis(
    url: str,
    options: AnalyzeOptions | None = None,
    ctx: JobContext | None = None,
    *,
    client: httpx.AsyncClient | None = None,
    browser_factory: Callable[[], BrowserSession] = BrowserSession,
) -> DiscoveryResult:
    """
    Discover and audit the pages of *url*'s site.

    Raises MainPageUnavailable when the main page cannot be rendered and
    JobCancelled when *ctx*'s token is tripped.
    """
    options = options or AnalyzeOptions()
    ctx = ctx or JobContext()
    if client is not None:
        return await DiscoveryPipeline(client, options, ctx, browser_factory).run(url)
    async with create_http_client() as owned_client:
        return await DiscoveryPipeline(owned_client, options, ctx, browser_factory).run(url)
