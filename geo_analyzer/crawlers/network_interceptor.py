"""
Network Interceptor - weighs the responses observed while rendering a page.

Only the first ``max_responses`` responses of a navigation are counted;
later ones are ignored.
"""

from typing import Any

from geo_analyzer.config import settings
from geo_analyzer.crawlers.page_signals import PerformanceSignals
from geo_analyzer.utils.logger import get_logger

logger = get_logger(__name__)


# Playwright resource types -> weight bucket
RESOURCE_BUCKETS = {
    "image": "image_bytes",
    "script": "script_bytes",
    "stylesheet": "css_bytes",
}


class NetworkInterceptor:
    """
    Response listener for one page navigation.

    Attach with ``page.on("response", interceptor.on_response)``.
    """

    def __init__(self, max_responses: int | None = None, big_image_bytes: int | None = None):
        self.max_responses = settings.max_observed_responses if max_responses is None else max_responses
        self.big_image_bytes = settings.big_image_bytes if big_image_bytes is None else big_image_bytes
        self.response_count = 0
        self.totals = {"total_bytes": 0, "image_bytes": 0, "script_bytes": 0, "css_bytes": 0}
        self.big_images = 0

    @property
    def saturated(self) -> bool:
        return self.response_count >= self.max_responses

    def record(self, url: str, resource_type: str, size: int) -> bool:
        """Count one response; returns False once the cap is reached."""
        if self.saturated:
            return False
        self.response_count += 1
        size = max(0, int(size or 0))
        self.totals["total_bytes"] += size
        bucket = RESOURCE_BUCKETS.get(resource_type)
        if bucket:
            self.totals[bucket] += size
        if resource_type == "image" and size > self.big_image_bytes:
            self.big_images += 1
            logger.debug("Big image observed", url=url[:200], size=size)
        return True

    async def on_response(self, response: Any) -> None:
        if self.saturated:
            return
        try:
            resource_type = response.request.resource_type
            length = response.headers.get("content-length")
            if length and length.isdigit():
                size = int(length)
            else:
                size = len(await response.body())
        except Exception as e:
            # Redirects and aborted requests have no readable body
            logger.debug("Response size unavailable", url=getattr(response, "url", ""), error=str(e))
            return
        self.record(response.url, resource_type, size)

    def summary(self, raw_word_count: int | None = None, rendered_word_count: int = 0) -> PerformanceSignals:
        return PerformanceSignals(
            **self.totals,
            big_images=self.big_images,
            response_count=self.response_count,
            raw_word_count=raw_word_count,
            rendered_word_count=rendered_word_count,
            render_delta_pct=render_delta_pct(raw_word_count, rendered_word_count),
        )


def render_delta_pct(raw_words: int | None, rendered_words: int) -> float | None:
    """
    Relative growth of the word count through client-side rendering, in percent.

    None when the raw count is unknown (plain fetch failed or was not HTML).
    """
    if raw_words is None:
        return None
    if raw_words <= 0:
        return 100.0 if rendered_words > 0 else 0.0
    return round((rendered_words - raw_words) / raw_words * 100, 1)
