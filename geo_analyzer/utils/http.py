"""
Shared httpx client configuration.
"""

import httpx

from geo_analyzer.config import settings

# Per-URL fetch failures; httpx.InvalidURL does not derive from HTTPError
FETCH_ERRORS = (httpx.HTTPError, httpx.InvalidURL, ValueError)


def create_http_client(**overrides) -> httpx.AsyncClient:
    """Async client with redirect-following and the analyzer's user agent."""
    options = {
        "headers": {"User-Agent": settings.user_agent},
        "timeout": settings.http_timeout_seconds,
        "follow_redirects": True,
    }
    options.update(overrides)
    return httpx.AsyncClient(**options)


def is_html_response(response: httpx.Response) -> bool:
    content_type = response.headers.get("content-type", "").lower()
    return "text/html" in content_type or "application/xhtml" in content_type
