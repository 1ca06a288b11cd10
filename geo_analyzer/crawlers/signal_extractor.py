"""
Signal Extractor - turns page HTML into PageSignals.

Shared by the light analyzer (plain fetch) and the deep analyzer (rendered
DOM). Parsing is BeautifulSoup over lxml; queries are CSS selectors.
"""

import re
from datetime import datetime, timezone
from typing import Any, Mapping

from bs4 import BeautifulSoup, NavigableString, Tag

from geo_analyzer.crawlers import structured_data as sd
from geo_analyzer.crawlers.page_signals import (
    AccessibilitySignals,
    ArticleFields,
    HeadingSignals,
    HreflangEntry,
    HreflangSignals,
    HttpSignals,
    ImageSignals,
    LightPageResult,
    LocalBusinessFields,
    MetaSignals,
    PageSignals,
    PerformanceSignals,
    ProductFields,
    ScoreFlags,
    SocialSignals,
    StructuredDataSignals,
)
from geo_analyzer.utils.urls import is_clean_url

# Elements whose text never counts as visible content
NON_CONTENT_TAGS = {"script", "style", "noscript", "template", "svg", "head"}

# input types that need no label
UNLABELLED_INPUT_TYPES = {"hidden", "submit", "button", "reset", "image"}

IMPRESSUM_PATTERN = re.compile(r"impressum|imprint|legal[-_ ]?notice", re.IGNORECASE)
PRIVACY_PATTERN = re.compile(r"datenschutz|privacy", re.IGNORECASE)

MAX_MISSING_ALT_RATIO = 0.2


def heading_order_issues(levels: list[int]) -> list[str]:
    """
    One issue per downward skip of more than one level (H2 -> H4).

    Moving back up (H3 -> H1) is never an issue.
    """
    issues = []
    for index in range(1, len(levels)):
        previous, current = levels[index - 1], levels[index]
        if current - previous > 1:
            issues.append(f"Heading jump from H{previous} to H{current} at index {index}")
    return issues


def has_strong_caching(cache_control: str) -> bool:
    """True when responses may be cached for a positive period."""
    value = (cache_control or "").lower()
    if not value or "no-store" in value or "no-cache" in value:
        return False
    if "immutable" in value:
        return True
    match = re.search(r"(?:s-maxage|max-age)\s*=\s*(\d+)", value)
    return bool(match and int(match.group(1)) > 0)


def _text_len(value: str) -> int:
    return len((value or "").strip())


def _attr(tag: Tag | None, name: str) -> str:
    if tag is None:
        return ""
    value = tag.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return (value or "").strip()


class SignalExtractor:
    """Stateless extraction helpers over one parsed document."""

    def parse(self, html: str) -> BeautifulSoup:
        return BeautifulSoup(html or "", "lxml")

    # ============== Meta / Headings ==============

    def meta(self, soup: BeautifulSoup) -> MetaSignals:
        title_tag = soup.find("title")
        title = title_tag.get_text(strip=True) if title_tag else ""
        description = _attr(soup.select_one('meta[name="description" i]'), "content")
        html_tag = soup.find("html")
        return MetaSignals(
            title=title,
            title_length=_text_len(title),
            description=description,
            description_length=_text_len(description),
            lang=_attr(html_tag, "lang"),
            canonical=_attr(soup.select_one('link[rel="canonical" i]'), "href"),
            robots=_attr(soup.select_one('meta[name="robots" i]'), "content"),
        )

    def heading_levels(self, soup: BeautifulSoup) -> list[int]:
        return [int(tag.name[1]) for tag in soup.find_all(re.compile(r"^h[1-6]$"))]

    def headings(self, soup: BeautifulSoup) -> HeadingSignals:
        h1s = [tag.get_text(" ", strip=True) for tag in soup.find_all("h1")]
        return HeadingSignals(
            h1_count=len(h1s),
            h2_count=len(soup.find_all("h2")),
            h1=h1s,
            order_issues=heading_order_issues(self.heading_levels(soup)),
        )

    # ============== Content ==============

    def visible_text(self, soup: BeautifulSoup) -> str:
        parts = []
        for node in soup.find_all(string=True):
            # Comments, doctypes and script bodies are NavigableString subclasses
            if type(node) is not NavigableString:
                continue
            if any(parent.name in NON_CONTENT_TAGS for parent in node.parents):
                continue
            text = node.strip()
            if text:
                parts.append(text)
        return re.sub(r"\s+", " ", " ".join(parts)).strip()

    def word_count(self, soup: BeautifulSoup) -> int:
        text = self.visible_text(soup)
        return len(text.split()) if text else 0

    def images(self, soup: BeautifulSoup) -> ImageSignals:
        imgs = soup.find_all("img")
        missing_alt = sum(1 for img in imgs if not _attr(img, "alt"))
        lazy = sum(1 for img in imgs if _attr(img, "loading").lower() == "lazy")
        count = len(imgs)
        return ImageSignals(
            count=count,
            missing_alt=missing_alt,
            missing_alt_ratio=missing_alt / count if count else 0.0,
            lazy_count=lazy,
            lazy_ratio=round(lazy / count * 100, 1) if count else 0.0,
        )

    # ============== Structured data ==============

    def json_ld_nodes(self, soup: BeautifulSoup) -> tuple[list[sd.JsonNode], list[str], bool]:
        """Parsed blocks, parse errors, and whether every block sits in <head>."""
        nodes: list[sd.JsonNode] = []
        errors: list[str] = []
        scripts = soup.select('script[type="application/ld+json" i]')
        for script in scripts:
            raw = script.string if script.string is not None else script.get_text()
            try:
                nodes.append(sd.parse_block(raw))
            except ValueError as e:
                errors.append(f"Invalid JSON-LD: {e}")
        in_head = bool(scripts) and all(script.find_parent("head") is not None for script in scripts)
        return nodes, errors, in_head

    def structured_data(self, soup: BeautifulSoup) -> StructuredDataSignals:
        nodes, errors, in_head = self.json_ld_nodes(soup)
        return StructuredDataSignals(
            json_ld_count=len(nodes),
            types=sd.collect_types(nodes),
            errors=errors,
            in_head=in_head,
            has_search_action=sd.has_search_action(nodes),
            local_business=LocalBusinessFields(**sd.local_business_fields(nodes)),
            product=ProductFields(**sd.product_fields(nodes)),
            article=ArticleFields(**sd.article_fields(nodes)),
        )

    # ============== Social / i18n ==============

    def _meta_content(self, soup: BeautifulSoup, key: str) -> str:
        tag = soup.select_one(f'meta[property="{key}"]') or soup.select_one(f'meta[name="{key}"]')
        return _attr(tag, "content")

    def social(self, soup: BeautifulSoup) -> SocialSignals:
        og = {key: self._meta_content(soup, f"og:{key}") for key in ("title", "description", "image", "type", "url")}
        twitter = {key: self._meta_content(soup, f"twitter:{key}") for key in ("card", "title", "description", "image")}
        return SocialSignals(
            og=og,
            twitter=twitter,
            og_ok=bool(og["title"] or og["description"] or og["image"]),
            og_complete=bool(og["title"] and og["description"] and og["image"]),
            twitter_ok=bool(twitter["card"] or twitter["title"] or twitter["description"]),
            twitter_large=twitter["card"].lower() == "summary_large_image",
        )

    def hreflang(self, soup: BeautifulSoup) -> HreflangSignals:
        entries = [
            HreflangEntry(lang=_attr(tag, "hreflang"), href=_attr(tag, "href"))
            for tag in soup.select('link[rel="alternate" i][hreflang]')
        ]
        return HreflangSignals(
            entries=entries,
            count=len(entries),
            x_default=any(entry.lang.lower() == "x-default" for entry in entries),
        )

    # ============== Accessibility / legal ==============

    def _is_labelled(self, soup: BeautifulSoup, field: Tag) -> bool:
        if _attr(field, "aria-label") or _attr(field, "aria-labelledby") or _attr(field, "title"):
            return True
        if field.find_parent("label") is not None:
            return True
        field_id = _attr(field, "id")
        return bool(field_id) and soup.find("label", attrs={"for": field_id}) is not None

    def accessibility(self, soup: BeautifulSoup) -> AccessibilitySignals:
        fields = [
            tag for tag in soup.find_all(["input", "select", "textarea"])
            if not (tag.name == "input" and _attr(tag, "type").lower() in UNLABELLED_INPUT_TYPES)
        ]
        labelled = sum(1 for tag in fields if self._is_labelled(soup, tag))
        has_impressum = False
        has_privacy = False
        for anchor in soup.find_all("a", href=True):
            haystack = f"{_attr(anchor, 'href')} {anchor.get_text(' ', strip=True)}"
            has_impressum = has_impressum or bool(IMPRESSUM_PATTERN.search(haystack))
            has_privacy = has_privacy or bool(PRIVACY_PATTERN.search(haystack))
        return AccessibilitySignals(
            form_inputs=len(fields),
            labelled_inputs=labelled,
            label_coverage=round(labelled / len(fields) * 100, 1) if fields else 100.0,
            has_impressum=has_impressum,
            has_privacy=has_privacy,
        )

    # ============== Assembly ==============

    def page_signals(
        self,
        html: str,
        requested_url: str,
        final_url: str,
        status: int,
        headers: Mapping[str, str] | None = None,
        redirect_chain: int = 0,
        performance: PerformanceSignals | None = None,
    ) -> PageSignals:
        """Full signal set, as used for the main page and deep-analyzed pages."""
        headers = {k.lower(): v for k, v in (headers or {}).items()}
        soup = self.parse(html)

        meta = self.meta(soup)
        headings = self.headings(soup)
        images = self.images(soup)
        structured = self.structured_data(soup)
        social = self.social(soup)
        x_robots = headers.get("x-robots-tag", "")
        cache_control = headers.get("cache-control", "")

        noindex = "noindex" in meta.robots.lower() or "noindex" in x_robots.lower()
        indexable = 200 <= status < 400 and not noindex

        signals = PageSignals(
            requested_url=requested_url,
            final_url=final_url or requested_url,
            fetched_at=datetime.now(timezone.utc).isoformat(),
            http=HttpSignals(
                status=status,
                content_type=headers.get("content-type", ""),
                cache_control=cache_control,
                x_robots_tag=x_robots,
                redirect_chain=redirect_chain,
            ),
            meta=meta,
            headings=headings,
            images=images,
            structured_data=structured,
            social=social,
            hreflang=self.hreflang(soup),
            accessibility=self.accessibility(soup),
            performance=performance,
            word_count=self.word_count(soup),
            url_clean=is_clean_url(final_url or requested_url),
            indexable=indexable,
            has_caching=has_strong_caching(cache_control),
        )
        signals.flags = self.score_flags(signals)
        return signals

    def score_flags(self, signals: PageSignals, **site: Any) -> ScoreFlags:
        """Flags for scoring; robots/sitemap facts are filled in by the pipeline."""
        structured = signals.structured_data
        return ScoreFlags(
            has_json_ld=structured.json_ld_count > 0,
            has_organization=structured.has_type(*sd.ORGANIZATION_TYPES),
            has_website=structured.has_type("WebSite"),
            has_search_action=structured.has_search_action,
            has_canonical=bool(signals.meta.canonical),
            indexable=signals.indexable,
            h1_count=signals.headings.h1_count,
            good_alt_ratio=signals.images.missing_alt_ratio <= MAX_MISSING_ALT_RATIO,
            lang_set=bool(signals.meta.lang),
            og_ok=signals.social.og_ok,
            twitter_ok=signals.social.twitter_ok,
            **site,
        )

    def light_result(self, html: str, url: str, status: int, final_url: str = "") -> LightPageResult:
        """Reduced signal set for sampled pages."""
        soup = self.parse(html)
        meta = self.meta(soup)
        headings = self.headings(soup)
        images = self.images(soup)
        structured = self.structured_data(soup)
        hreflang = self.hreflang(soup)
        access = self.accessibility(soup)
        return LightPageResult(
            url=url,
            ok=True,
            status=status,
            final_url=final_url or url,
            title_len=meta.title_length,
            meta_desc_len=meta.description_length,
            has_canonical=bool(meta.canonical),
            robots_meta=meta.robots,
            lang=meta.lang,
            h1_count=headings.h1_count,
            h2_count=headings.h2_count,
            heading_order_issues=headings.order_issues,
            word_count=self.word_count(soup),
            json_ld_count=structured.json_ld_count,
            types=structured.types,
            img_count=images.count,
            img_missing_alt=images.missing_alt,
            og_ok=bool(self._meta_content(soup, "og:title") or self._meta_content(soup, "og:image")),
            hreflang_count=hreflang.count,
            hreflang_x_default=hreflang.x_default,
            form_inputs=access.form_inputs,
            labelled_inputs=access.labelled_inputs,
            has_impressum=access.has_impressum,
            has_privacy=access.has_privacy,
        )
