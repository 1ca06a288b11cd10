"""
URL helpers shared by the sitemap resolver, the crawl frontier and the pipeline.
"""

import re
from urllib.parse import urljoin, urlsplit, urlunsplit

# Resources that are never analyzable pages
ASSET_EXTENSION_RE = re.compile(
    r"\.(?:jpe?g|png|gif|webp|avif|svg|ico|bmp|tiff?"
    r"|zip|rar|7z|gz|tgz|tar|bz2"
    r"|mp4|m4v|webm|avi|mov|mkv|mp3|wav|ogg|flac"
    r"|woff2?|ttf|otf|eot"
    r"|xml|pdf)$",
    re.IGNORECASE,
)

# Applied by the crawl frontier when the caller gives no exclude patterns
DEFAULT_EXCLUDE_PATTERN = (
    r"\.(?:css|js|json|txt|rss|atom)(?:$|\?)"
    r"|/(?:wp-content|wp-includes|wp-json|cdn-cgi|static|assets|feed|xmlrpc\.php)(?:/|$)"
)

HTTP_SCHEMES = ("http", "https")


def origin_of(url: str) -> str:
    """Return scheme://host[:port] of *url* without path."""
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}"


def registrable_domain(url_or_host: str) -> str:
    """
    Approximate site identity: the last two dot-separated labels of the host.

    Multi-label public suffixes (co.uk, com.au) collapse to the suffix itself,
    so every *.co.uk host is treated as one site. IP addresses are returned as-is.
    """
    host = urlsplit(url_or_host).hostname if "://" in url_or_host else url_or_host
    host = (host or "").lower().rstrip(".")
    if not host or re.fullmatch(r"[\d.]+", host) or ":" in host:
        return host
    labels = host.split(".")
    return ".".join(labels[-2:])


def same_site(url: str, reference: str) -> bool:
    return registrable_domain(url) == registrable_domain(reference)


def is_http_url(url: str) -> bool:
    return urlsplit(url).scheme.lower() in HTTP_SCHEMES


def is_asset_url(url: str) -> bool:
    return bool(ASSET_EXTENSION_RE.search(urlsplit(url).path))


def normalize_url(url: str, keep_query: bool = False, keep_hash: bool = False) -> str:
    """
    Canonical absolute form used for deduplication.

    Scheme and host are lower-cased, an empty path becomes "/", and the query
    string and fragment are kept only when the policy asks for them.
    """
    parts = urlsplit(url.strip())
    scheme = parts.scheme.lower()
    netloc = parts.netloc.lower()
    path = parts.path or "/"
    query = parts.query if keep_query else ""
    fragment = parts.fragment if keep_hash else ""
    return urlunsplit((scheme, netloc, path, query, fragment))


def resolve_href(href: str, base_url: str) -> str | None:
    """Resolve *href* against *base_url*; None for empty or unparseable hrefs."""
    href = (href or "").strip()
    if not href:
        return None
    try:
        return urljoin(base_url, href)
    except ValueError:
        return None


def is_clean_url(url: str) -> bool:
    """Short path, lowercase, few query parameters."""
    parts = urlsplit(url)
    path = parts.path or "/"
    params = [p for p in parts.query.split("&") if p] if parts.query else []
    return len(path) <= 120 and path == path.lower() and len(params) <= 4
