"""
Score Explainer - human-readable issue list and check matrix for the main page.
"""

from typing import Callable, NamedTuple

from geo_analyzer.crawlers.page_signals import PageSignals
from geo_analyzer.crawlers.sitemap_resolver import SitemapResult
from geo_analyzer.crawlers.structured_data import ARTICLE_TYPES, LOCAL_BUSINESS_TYPES
from geo_analyzer.scoring.findings import (
    A11Y,
    CONTENT,
    I18N,
    LOCAL,
    PERFORMANCE,
    SCHEMA,
    SOCIAL,
    STRUCTURE,
    TECH,
    DEEP_DESCRIPTION_RANGE,
    DEEP_MAX_MISSING_ALT,
    DEEP_MIN_WORDS,
    DEEP_TITLE_RANGE,
    MAX_BIG_IMAGES,
    MAX_REDIRECT_CHAIN,
    MAX_RENDER_DELTA,
    MIN_LAZY_RATIO,
)
from geo_analyzer.scoring.models import CheckRow, CheckStatus, Impact, MainIssue


class IssueRule(NamedTuple):
    predicate: Callable[[PageSignals, SitemapResult], bool]
    message: str | Callable[[PageSignals, SitemapResult], str]
    impact: Impact


MAIN_ISSUE_RULES = [
    IssueRule(
        lambda s, sm: not s.indexable,
        "Seite ist vermutlich nicht indexierbar (Status/robots).",
        Impact.HIGH,
    ),
    IssueRule(
        lambda s, sm: sm.broad_block,
        "robots.txt blockiert breitflächig (Disallow: /).",
        Impact.HIGH,
    ),
    IssueRule(lambda s, sm: not s.meta.canonical, "Canonical-Tag fehlt.", Impact.MEDIUM),
    IssueRule(lambda s, sm: not s.flags.has_json_ld, "Keine JSON-LD Daten gefunden.", Impact.HIGH),
    IssueRule(lambda s, sm: not s.flags.has_organization, "Organization/LocalBusiness Schema fehlt.", Impact.MEDIUM),
    IssueRule(lambda s, sm: not s.flags.has_website, "WebSite Schema fehlt.", Impact.MEDIUM),
    IssueRule(lambda s, sm: not s.flags.has_search_action, "SearchAction im WebSite Schema fehlt.", Impact.LOW),
    IssueRule(
        lambda s, sm: s.headings.h1_count != 1,
        lambda s, sm: f"H1-Anzahl ist {s.headings.h1_count} (sollte 1 sein).",
        Impact.MEDIUM,
    ),
    IssueRule(lambda s, sm: not s.meta.lang, "<html lang> nicht gesetzt.", Impact.MEDIUM),
    IssueRule(lambda s, sm: not s.social.og_ok, "OpenGraph-Tags fehlen/unvollständig.", Impact.LOW),
    IssueRule(
        lambda s, sm: s.images.missing_alt > 0 and s.images.missing_alt_ratio > DEEP_MAX_MISSING_ALT,
        "Zu viele Bilder ohne ALT-Text (>20%).",
        Impact.MEDIUM,
    ),
]


def _ok_or(fallback: CheckStatus, condition: bool) -> CheckStatus:
    return CheckStatus.OK if condition else fallback


def _check(category: str, check: str, condition: bool, soft: bool = False) -> CheckRow:
    """Hard checks fail, soft checks only warn."""
    return CheckRow(
        category=category,
        check=check,
        status=_ok_or(CheckStatus.WARN if soft else CheckStatus.FAIL, condition),
    )


class ScoreExplainer:
    """Explains the main page's score in terms a site owner can act on."""

    def main_issues(self, signals: PageSignals, sitemap: SitemapResult) -> list[MainIssue]:
        issues = []
        for rule in MAIN_ISSUE_RULES:
            if not rule.predicate(signals, sitemap):
                continue
            message = rule.message(signals, sitemap) if callable(rule.message) else rule.message
            issues.append(MainIssue(message=message, impact=rule.impact))
        return issues

    def check_matrix(self, signals: PageSignals, sitemap: SitemapResult) -> list[CheckRow]:
        """Pass/warn/fail overview grouped by topic."""
        s = signals
        sd = s.structured_data
        perf = s.performance
        title_ok = DEEP_TITLE_RANGE[0] <= s.meta.title_length <= DEEP_TITLE_RANGE[1]
        desc_ok = DEEP_DESCRIPTION_RANGE[0] <= s.meta.description_length <= DEEP_DESCRIPTION_RANGE[1]
        has_local = sd.has_type(*LOCAL_BUSINESS_TYPES)
        has_product = sd.has_type("Product")
        render_delta = perf.render_delta_pct if perf is not None else None

        return [
            _check(TECH, "HTTP 2xx/3xx", 200 <= s.http.status < 400),
            _check(TECH, f"Redirect-Kette ≤{MAX_REDIRECT_CHAIN}", s.http.redirect_chain <= MAX_REDIRECT_CHAIN),
            _check(TECH, "robots.txt erreichbar", sitemap.robots_txt_found),
            _check(TECH, "Sitemap in robots.txt verlinkt", sitemap.sitemap_listed_in_robots),
            _check(TECH, "Sitemap vorhanden", sitemap.sitemap_found),
            _check(TECH, "Kein breitflächiges Disallow", not sitemap.broad_block),
            _check(TECH, "<meta robots> nicht noindex", "noindex" not in s.meta.robots.lower()),
            _check(TECH, "Canonical vorhanden", bool(s.meta.canonical)),
            _check(I18N, "hreflang vorhanden", s.hreflang.count > 0, soft=True),
            _check(I18N, "x-default vorhanden", s.hreflang.x_default, soft=True),
            _check(PERFORMANCE, f"Große Bilder (>500KB) ≤{MAX_BIG_IMAGES}",
                   perf is None or perf.big_images <= MAX_BIG_IMAGES, soft=True),
            _check(PERFORMANCE, "Lazy-Load sinnvoll", s.images.lazy_ratio >= MIN_LAZY_RATIO, soft=True),
            _check(PERFORMANCE, "CSR-Delta moderat",
                   render_delta is not None and render_delta <= MAX_RENDER_DELTA, soft=True),
            _check(PERFORMANCE, "Caching-Header", s.has_caching, soft=True),
            _check(STRUCTURE, "Title 50–60", title_ok, soft=True),
            _check(STRUCTURE, "Description 140–180", desc_ok, soft=True),
            _check(STRUCTURE, "1× H1", s.headings.h1_count == 1),
            _check(STRUCTURE, "H2 vorhanden", s.headings.h2_count >= 1, soft=True),
            _check(STRUCTURE, "Heading-Hierarchie", not s.headings.order_issues, soft=True),
            _check(STRUCTURE, "URL sauber", s.url_clean, soft=True),
            _check(STRUCTURE, "Breadcrumb (Schema)", sd.has_type("BreadcrumbList"), soft=True),
            _check(SOCIAL, "OG komplett (T/D/Img)", s.social.og_complete, soft=True),
            _check(SOCIAL, "Twitter Card", s.social.twitter_ok, soft=True),
            _check(SOCIAL, "summary_large_image", s.social.twitter_large, soft=True),
            _check(SCHEMA, "WebSite (+SearchAction)", s.flags.has_website and s.flags.has_search_action, soft=True),
            _check(SCHEMA, "Organization/LocalBusiness", s.flags.has_organization, soft=True),
            _check(SCHEMA, "FAQ/Breadcrumb/Article",
                   sd.has_type("FAQPage", "BreadcrumbList", *ARTICLE_TYPES), soft=True),
            _check(SCHEMA, "Product(+Offer)",
                   has_product and sd.product.offer and sd.product.price and sd.product.currency, soft=True),
            _check(CONTENT, f"≥{DEEP_MIN_WORDS} Wörter", s.word_count >= DEEP_MIN_WORDS, soft=True),
            _check(CONTENT, "ALT-Quote ok", s.images.missing_alt_ratio <= DEEP_MAX_MISSING_ALT, soft=True),
            _check(CONTENT, "JSON-LD im <head>", sd.in_head, soft=True),
            _check(LOCAL, "NAP vollständig",
                   has_local and sd.local_business.telephone and sd.local_business.address, soft=True),
            _check(LOCAL, "Öffnungszeiten vorhanden", has_local and sd.local_business.hours, soft=True),
            _check(A11Y, "<html lang>", bool(s.meta.lang)),
            _check(A11Y, "Form-Labels", s.accessibility.labelled_inputs >= s.accessibility.form_inputs, soft=True),
            _check(A11Y, "Impressum/Datenschutz verlinkt",
                   s.accessibility.has_impressum and s.accessibility.has_privacy),
        ]
