"""
Common-Path Prober - best-effort seeding with conventional page slugs.
"""

from geo_analyzer.config import settings
from geo_analyzer.crawlers.page_analyzer import LightPageAnalyzer
from geo_analyzer.crawlers.page_signals import LightPageResult
from geo_analyzer.utils.concurrency import gather_bounded
from geo_analyzer.utils.logger import get_logger

logger = get_logger(__name__)


# German and English variants of pages most sites have
COMMON_PATHS = [
    "kontakt", "contact",
    "impressum",
    "datenschutz", "privacy",
    "faq",
    "standorte", "locations",
    "ueber-uns", "about",
    "portfolio", "referenzen",
    "blog",
]


def candidate_urls(origin: str, slugs: list[str] = COMMON_PATHS) -> list[str]:
    origin = origin.rstrip("/")
    candidates = []
    for slug in slugs:
        candidates.append(f"{origin}/{slug}")
        candidates.append(f"{origin}/{slug}/")
    return candidates


class PathProber:
    """Keeps every candidate the light analyzer can fetch as HTML."""

    def __init__(self, analyzer: LightPageAnalyzer, concurrency: int | None = None):
        self.analyzer = analyzer
        self.concurrency = concurrency or settings.page_concurrency_limit

    async def probe(self, origin: str, before_each=None) -> list[str]:
        candidates = candidate_urls(origin)
        results: list[LightPageResult] = await gather_bounded(
            candidates, self.analyzer.analyze, self.concurrency, before_each=before_each
        )

        confirmed = []
        for candidate, result in zip(candidates, results):
            if result.ok:
                confirmed.append(candidate)
            else:
                logger.debug("Probe miss", url=candidate, status=result.status, reason=result.reason)

        confirmed = list(dict.fromkeys(confirmed))
        logger.info("Common paths probed", origin=origin, tried=len(candidates), confirmed=len(confirmed))
        return confirmed
