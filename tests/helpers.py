"""Shared HTML fixtures and hand-written Playwright stand-ins.

The fakes implement only what the analyzers touch: ``new_page``,
``page.on("response")``, ``goto``, ``wait_for_load_state``, ``content``,
``eval_on_selector_all``, ``close`` and the ``redirected_from`` chain.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field

from playwright.async_api import Error as PlaywrightError


RICH_HTML = """\
<!DOCTYPE html>
<html lang="de">
<head>
  <title>Beispiel GmbH – Webdesign und SEO aus Sundern für KMU</title>
  <meta name="description" content="Webdesign, SEO und Hosting für kleine und mittlere Unternehmen im Sauerland.">
  <link rel="canonical" href="https://example.com/">
  <meta name="robots" content="index,follow">
  <meta property="og:title" content="Beispiel GmbH">
  <meta property="og:description" content="Webdesign aus Sundern">
  <meta property="og:image" content="https://example.com/og.png">
  <meta name="twitter:card" content="summary_large_image">
  <link rel="alternate" hreflang="de" href="https://example.com/">
  <link rel="alternate" hreflang="x-default" href="https://example.com/">
  <script type="application/ld+json">
  {"@context": "https://schema.org", "@type": "WebSite", "url": "https://example.com/",
   "potentialAction": {"@type": "SearchAction", "target": "https://example.com/?s={q}", "query-input": "required name=q"}}
  </script>
  <script type="application/ld+json">
  {"@context": "https://schema.org", "@type": "LocalBusiness", "name": "Beispiel GmbH",
   "address": {"@type": "PostalAddress", "streetAddress": "In der Esmecke 31"},
   "telephone": "+49 171 0000000", "openingHours": "Mo-Fr 09:00-17:00"}
  </script>
</head>
<body>
  <h1>Webdesign aus Sundern</h1>
  <h2>Leistungen</h2>
  <h3>SEO</h3>
  <p>Wir bauen schnelle Websites.</p>
  <img src="/a.jpg" alt="Team" loading="lazy">
  <img src="/b.jpg" alt="">
  <form>
    <label for="email">E-Mail</label>
    <input id="email" type="email">
    <input type="text" name="name">
    <input type="hidden" name="token">
    <button type="submit">Senden</button>
  </form>
  <a href="/impressum">Impressum</a>
  <a href="/datenschutz">Datenschutz</a>
  <a href="https://other.org/">Partner</a>
</body>
</html>
"""

BARE_HTML = """\
<html>
<head><title>Kurz</title></head>
<body>
  <h2>Start</h2>
  <h4>Tief</h4>
  <p>Nur wenig Text hier.</p>
</body>
</html>
"""


def html_page(body: str, title: str = "Seite", head: str = "") -> str:
    return f"<html lang=\"de\"><head><title>{title}</title>{head}</head><body>{body}</body></html>"


# ---------------------------------------------------------------------------
# Playwright fakes
# ---------------------------------------------------------------------------

class FakeRequest:
    def __init__(self, resource_type: str = "document", redirected_from: FakeRequest | None = None):
        self.resource_type = resource_type
        self.redirected_from = redirected_from


class FakeResponse:
    def __init__(
        self,
        url: str,
        status: int = 200,
        headers: dict[str, str] | None = None,
        request: FakeRequest | None = None,
        body: bytes = b"",
    ):
        self.url = url
        self.status = status
        self.headers = headers or {}
        self.request = request or FakeRequest()
        self._body = body

    async def all_headers(self) -> dict[str, str]:
        return dict(self.headers)

    async def body(self) -> bytes:
        return self._body


def observed(url: str, resource_type: str, size: int, with_length: bool = True) -> FakeResponse:
    """A sub-resource response as seen by a response listener."""
    headers = {"content-length": str(size)} if with_length else {}
    return FakeResponse(url, 200, headers, FakeRequest(resource_type), body=b"x" * (0 if with_length else size))


def redirect_chain(hops: int) -> FakeRequest:
    previous = None
    for _ in range(hops):
        previous = FakeRequest(redirected_from=previous)
    return FakeRequest(redirected_from=previous)


@dataclass
class PageSpec:
    html: str = ""
    status: int = 200
    headers: dict[str, str] = field(default_factory=lambda: {"content-type": "text/html; charset=utf-8"})
    final_url: str | None = None
    redirects: int = 0
    network: list[FakeResponse] = field(default_factory=list)
    links: list[str] = field(default_factory=list)
    error: Exception | None = None


class FakePage:
    def __init__(self, routes: dict[str, PageSpec]):
        self.routes = routes
        self.url = "about:blank"
        self.closed = False
        self.goto_calls: list[dict] = []
        self._handlers = []
        self._spec: PageSpec | None = None

    def on(self, event: str, handler) -> None:
        if event == "response":
            self._handlers.append(handler)

    async def goto(self, url: str, wait_until: str | None = None, timeout: int | None = None):
        self.goto_calls.append({"url": url, "wait_until": wait_until, "timeout": timeout})
        spec = self.routes.get(url)
        if spec is None:
            raise PlaywrightError(f"net::ERR_NAME_NOT_RESOLVED at {url}")
        if spec.error is not None:
            raise spec.error
        self._spec = spec
        for response in spec.network:
            for handler in self._handlers:
                outcome = handler(response)
                if inspect.isawaitable(outcome):
                    await outcome
        self.url = spec.final_url or url
        return FakeResponse(self.url, spec.status, spec.headers, redirect_chain(spec.redirects))

    async def wait_for_load_state(self, state: str = "load", timeout: int | None = None) -> None:
        return None

    async def content(self) -> str:
        return self._spec.html if self._spec else ""

    async def eval_on_selector_all(self, selector: str, expression: str) -> list:
        return list(self._spec.links) if self._spec else []

    async def close(self) -> None:
        self.closed = True


class FakeBrowser:
    """Stands in for BrowserSession; usable directly as a browser_factory result."""

    def __init__(self, routes: dict[str, PageSpec] | None = None):
        self.routes = routes or {}
        self.pages: list[FakePage] = []
        self.sessions = 0

    async def __aenter__(self) -> FakeBrowser:
        self.sessions += 1
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    async def new_page(self) -> FakePage:
        page = FakePage(self.routes)
        self.pages.append(page)
        return page

    @property
    def all_pages_closed(self) -> bool:
        return all(page.closed for page in self.pages)
