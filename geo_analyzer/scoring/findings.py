"""
Findings rule tables.

Each Rule pairs a predicate (True when the problem is present) with the
template of the Finding it produces. Rule sets are evaluated generically by
``evaluate``; nothing here has side effects.

Light rules read LightPageResult and use coarse thresholds; deep rules read
PageSignals and use the strict ones. The two sets are intentionally separate.
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterable

from geo_analyzer.crawlers.structured_data import ARTICLE_TYPES, LOCAL_BUSINESS_TYPES
from geo_analyzer.scoring.models import Finding, Impact, Severity

# ============== Categories ==============

TECH = "Technik/Indexierung"
STRUCTURE = "Struktur/Semantik"
SCHEMA = "Schema.org"
SOCIAL = "OG/Social"
PERFORMANCE = "Performance/Rendering"
CONTENT = "Content & LLM"
LOCAL = "GEO/Local"
I18N = "Internationalisierung"
A11Y = "Barrierefreiheit/Recht"

# ============== Thresholds ==============

LIGHT_TITLE_RANGE = (30, 65)
LIGHT_DESCRIPTION_RANGE = (70, 200)
LIGHT_MIN_WORDS = 100
LIGHT_MAX_MISSING_ALT = 0.3

DEEP_TITLE_RANGE = (50, 60)
DEEP_DESCRIPTION_RANGE = (140, 180)
DEEP_MIN_WORDS = 200
DEEP_MAX_MISSING_ALT = 0.2
MAX_REDIRECT_CHAIN = 1
MAX_BIG_IMAGES = 3
MIN_LAZY_RATIO = 50.0
MAX_RENDER_DELTA = 50.0


@dataclass(frozen=True)
class Rule:
    predicate: Callable[[Any], bool]
    category: str
    location: str
    severity: Severity
    issue: str | Callable[[Any], str]
    fix: str
    example: str = ""
    impact: Impact = Impact.MEDIUM

    def finding(self, subject: Any, url: str) -> Finding:
        issue = self.issue(subject) if callable(self.issue) else self.issue
        return Finding(
            url=url,
            category=self.category,
            location=self.location,
            severity=self.severity,
            issue=issue,
            fix=self.fix,
            example=self.example,
            impact=self.impact,
        )


def evaluate(rules: Iterable[Rule], subject: Any, url: str) -> list[Finding]:
    """Findings for every rule whose predicate holds, in table order."""
    return [rule.finding(subject, url) for rule in rules if rule.predicate(subject)]


def _outside(value: int, bounds: tuple[int, int]) -> bool:
    return value > 0 and not bounds[0] <= value <= bounds[1]


def _noindex(value: str) -> bool:
    return "noindex" in (value or "").lower()


# ============== Light rules (sampled / crawled pages) ==============

LIGHT_FAILURE_RULES = [
    Rule(
        predicate=lambda r: r.status is not None and r.status >= 400,
        category=TECH,
        location="HTTP",
        severity=Severity.ERROR,
        issue=lambda r: f"Seite nicht erreichbar (HTTP {r.status}).",
        fix="URL reparieren, weiterleiten oder aus Sitemap/Verlinkung entfernen.",
        impact=Impact.HIGH,
    ),
    Rule(
        predicate=lambda r: r.status is None,
        category=TECH,
        location="HTTP",
        severity=Severity.ERROR,
        issue=lambda r: f"Seite nicht erreichbar ({r.reason}).",
        fix="Erreichbarkeit von Server und DNS prüfen.",
        impact=Impact.HIGH,
    ),
]

LIGHT_RULES = [
    Rule(
        predicate=lambda r: _noindex(r.robots_meta),
        category=TECH,
        location='<meta name="robots">',
        severity=Severity.ERROR,
        issue="Seite ist per robots-Meta auf noindex gesetzt.",
        fix="noindex entfernen, falls die Seite gefunden werden soll.",
        impact=Impact.HIGH,
    ),
    Rule(
        predicate=lambda r: not r.has_canonical,
        category=TECH,
        location='<link rel="canonical">',
        severity=Severity.WARNING,
        issue="Canonical-Tag fehlt.",
        fix="Selbstreferenzierendes Canonical setzen.",
        example='<link rel="canonical" href="https://example.com/seite/">',
    ),
    Rule(
        predicate=lambda r: r.title_len == 0,
        category=STRUCTURE,
        location="<title>",
        severity=Severity.ERROR,
        issue="Title fehlt.",
        fix="Eindeutigen, beschreibenden Title setzen.",
        impact=Impact.HIGH,
    ),
    Rule(
        predicate=lambda r: _outside(r.title_len, LIGHT_TITLE_RANGE),
        category=STRUCTURE,
        location="<title>",
        severity=Severity.WARNING,
        issue=lambda r: f"Title-Länge {r.title_len} Zeichen (Richtwert {LIGHT_TITLE_RANGE[0]}–{LIGHT_TITLE_RANGE[1]}).",
        fix="Title kürzen bzw. ergänzen.",
        impact=Impact.LOW,
    ),
    Rule(
        predicate=lambda r: r.meta_desc_len == 0,
        category=STRUCTURE,
        location='<meta name="description">',
        severity=Severity.WARNING,
        issue="Meta-Description fehlt.",
        fix="Aussagekräftige Description ergänzen.",
    ),
    Rule(
        predicate=lambda r: _outside(r.meta_desc_len, LIGHT_DESCRIPTION_RANGE),
        category=STRUCTURE,
        location='<meta name="description">',
        severity=Severity.NOTICE,
        issue=lambda r: (
            f"Description-Länge {r.meta_desc_len} Zeichen "
            f"(Richtwert {LIGHT_DESCRIPTION_RANGE[0]}–{LIGHT_DESCRIPTION_RANGE[1]})."
        ),
        fix="Description anpassen.",
        impact=Impact.LOW,
    ),
    Rule(
        predicate=lambda r: not r.lang,
        category=A11Y,
        location="<html lang>",
        severity=Severity.WARNING,
        issue="<html lang> nicht gesetzt.",
        fix="Sprache im html-Element deklarieren.",
        example='<html lang="de">',
    ),
    Rule(
        predicate=lambda r: r.h1_count != 1,
        category=STRUCTURE,
        location="<h1>",
        severity=Severity.WARNING,
        issue=lambda r: f"H1-Anzahl ist {r.h1_count} (sollte 1 sein).",
        fix="Genau eine H1 pro Seite verwenden.",
    ),
    Rule(
        predicate=lambda r: bool(r.heading_order_issues),
        category=STRUCTURE,
        location="<h1>–<h6>",
        severity=Severity.NOTICE,
        issue=lambda r: f"Heading-Hierarchie mit Sprüngen: {'; '.join(r.heading_order_issues)}",
        fix="Überschriften ohne ausgelassene Ebenen verschachteln.",
        impact=Impact.LOW,
    ),
    Rule(
        predicate=lambda r: r.word_count < LIGHT_MIN_WORDS,
        category=CONTENT,
        location="<body>",
        severity=Severity.WARNING,
        issue=lambda r: f"Wenig Text ({r.word_count} Wörter, Minimum {LIGHT_MIN_WORDS}).",
        fix="Kerninhalt ausbauen.",
    ),
    Rule(
        predicate=lambda r: r.json_ld_count == 0,
        category=SCHEMA,
        location="JSON-LD",
        severity=Severity.NOTICE,
        issue="Keine JSON-LD Daten gefunden.",
        fix="Passendes Schema.org-Markup ergänzen.",
    ),
    Rule(
        predicate=lambda r: r.missing_alt_ratio > LIGHT_MAX_MISSING_ALT,
        category=CONTENT,
        location="<img alt>",
        severity=Severity.WARNING,
        issue=lambda r: f"{r.img_missing_alt} von {r.img_count} Bildern ohne ALT-Text.",
        fix="Beschreibende ALT-Texte ergänzen.",
    ),
    Rule(
        predicate=lambda r: not r.og_ok,
        category=SOCIAL,
        location='<meta property="og:*">',
        severity=Severity.NOTICE,
        issue="OpenGraph-Tags fehlen.",
        fix="og:title und og:image setzen.",
        impact=Impact.LOW,
    ),
    Rule(
        predicate=lambda r: r.hreflang_count > 0 and not r.hreflang_x_default,
        category=I18N,
        location='<link rel="alternate" hreflang>',
        severity=Severity.NOTICE,
        issue="hreflang ohne x-default.",
        fix="x-default-Variante ergänzen.",
        example='<link rel="alternate" hreflang="x-default" href="https://example.com/">',
        impact=Impact.LOW,
    ),
    Rule(
        predicate=lambda r: r.labelled_inputs < r.form_inputs,
        category=A11Y,
        location="<form>",
        severity=Severity.WARNING,
        issue=lambda r: f"{r.form_inputs - r.labelled_inputs} von {r.form_inputs} Formularfeldern ohne Label.",
        fix="Felder per <label for> oder aria-label beschriften.",
    ),
    Rule(
        predicate=lambda r: not r.has_impressum,
        category=A11Y,
        location="<a href>",
        severity=Severity.WARNING,
        issue="Kein Link zum Impressum gefunden.",
        fix="Impressum von jeder Seite aus verlinken.",
    ),
    Rule(
        predicate=lambda r: not r.has_privacy,
        category=A11Y,
        location="<a href>",
        severity=Severity.WARNING,
        issue="Kein Link zur Datenschutzerklärung gefunden.",
        fix="Datenschutzerklärung von jeder Seite aus verlinken.",
    ),
]


# ============== Deep rules (main page / deep-analyzed pages) ==============

def _http_error(s) -> bool:
    return not 200 <= s.http.status < 400


def _performance(s, attr: str, default=0):
    return getattr(s.performance, attr) if s.performance is not None else default


DEEP_RULES = [
    Rule(
        predicate=_http_error,
        category=TECH,
        location="HTTP",
        severity=Severity.ERROR,
        issue=lambda s: f"HTTP-Status {s.http.status}, Seite nicht indexierbar.",
        fix="Seite mit Status 2xx ausliefern.",
        impact=Impact.HIGH,
    ),
    Rule(
        predicate=lambda s: _noindex(s.meta.robots) or _noindex(s.http.x_robots_tag),
        category=TECH,
        location='<meta name="robots"> / X-Robots-Tag',
        severity=Severity.ERROR,
        issue="noindex gesetzt, Seite wird nicht indexiert.",
        fix="noindex aus robots-Meta bzw. X-Robots-Tag entfernen.",
        impact=Impact.HIGH,
    ),
    Rule(
        predicate=lambda s: s.http.redirect_chain > MAX_REDIRECT_CHAIN,
        category=TECH,
        location="HTTP",
        severity=Severity.WARNING,
        issue=lambda s: f"Redirect-Kette mit {s.http.redirect_chain} Sprüngen.",
        fix="Direkt auf die Ziel-URL weiterleiten.",
    ),
    Rule(
        predicate=lambda s: not s.meta.canonical,
        category=TECH,
        location='<link rel="canonical">',
        severity=Severity.WARNING,
        issue="Canonical-Tag fehlt.",
        fix="Selbstreferenzierendes Canonical setzen.",
        example='<link rel="canonical" href="https://example.com/">',
    ),
    Rule(
        predicate=lambda s: not s.url_clean,
        category=STRUCTURE,
        location="URL",
        severity=Severity.NOTICE,
        issue="URL ist nicht sauber (lang, Großbuchstaben oder viele Parameter).",
        fix="Kurze, kleingeschriebene URLs mit wenigen Parametern verwenden.",
        impact=Impact.LOW,
    ),
    Rule(
        predicate=lambda s: s.meta.title_length == 0,
        category=STRUCTURE,
        location="<title>",
        severity=Severity.ERROR,
        issue="Title fehlt.",
        fix="Eindeutigen, beschreibenden Title setzen.",
        impact=Impact.HIGH,
    ),
    Rule(
        predicate=lambda s: _outside(s.meta.title_length, DEEP_TITLE_RANGE),
        category=STRUCTURE,
        location="<title>",
        severity=Severity.WARNING,
        issue=lambda s: f"Title-Länge {s.meta.title_length} Zeichen (ideal {DEEP_TITLE_RANGE[0]}–{DEEP_TITLE_RANGE[1]}).",
        fix="Title auf 50–60 Zeichen bringen.",
        impact=Impact.LOW,
    ),
    Rule(
        predicate=lambda s: s.meta.description_length == 0,
        category=STRUCTURE,
        location='<meta name="description">',
        severity=Severity.WARNING,
        issue="Meta-Description fehlt.",
        fix="Aussagekräftige Description ergänzen.",
    ),
    Rule(
        predicate=lambda s: _outside(s.meta.description_length, DEEP_DESCRIPTION_RANGE),
        category=STRUCTURE,
        location='<meta name="description">',
        severity=Severity.NOTICE,
        issue=lambda s: (
            f"Description-Länge {s.meta.description_length} Zeichen "
            f"(ideal {DEEP_DESCRIPTION_RANGE[0]}–{DEEP_DESCRIPTION_RANGE[1]})."
        ),
        fix="Description auf 140–180 Zeichen bringen.",
        impact=Impact.LOW,
    ),
    Rule(
        predicate=lambda s: not s.meta.lang,
        category=A11Y,
        location="<html lang>",
        severity=Severity.WARNING,
        issue="<html lang> nicht gesetzt.",
        fix="Sprache im html-Element deklarieren.",
        example='<html lang="de">',
    ),
    Rule(
        predicate=lambda s: s.headings.h1_count != 1,
        category=STRUCTURE,
        location="<h1>",
        severity=Severity.WARNING,
        issue=lambda s: f"H1-Anzahl ist {s.headings.h1_count} (sollte 1 sein).",
        fix="Genau eine H1 pro Seite verwenden.",
    ),
    Rule(
        predicate=lambda s: s.headings.h2_count == 0,
        category=STRUCTURE,
        location="<h2>",
        severity=Severity.NOTICE,
        issue="Keine H2-Überschriften.",
        fix="Inhalt mit H2-Abschnitten gliedern.",
        impact=Impact.LOW,
    ),
    Rule(
        predicate=lambda s: bool(s.headings.order_issues),
        category=STRUCTURE,
        location="<h1>–<h6>",
        severity=Severity.NOTICE,
        issue=lambda s: f"Heading-Hierarchie mit Sprüngen: {'; '.join(s.headings.order_issues)}",
        fix="Überschriften ohne ausgelassene Ebenen verschachteln.",
        impact=Impact.LOW,
    ),
    Rule(
        predicate=lambda s: s.word_count < DEEP_MIN_WORDS,
        category=CONTENT,
        location="<body>",
        severity=Severity.WARNING,
        issue=lambda s: f"Wenig Text ({s.word_count} Wörter, Minimum {DEEP_MIN_WORDS}).",
        fix="Mindestens 200 Wörter Kerntext bereitstellen.",
    ),
    Rule(
        predicate=lambda s: s.images.missing_alt_ratio > DEEP_MAX_MISSING_ALT,
        category=CONTENT,
        location="<img alt>",
        severity=Severity.WARNING,
        issue="Zu viele Bilder ohne ALT-Text (>20%).",
        fix="Beschreibende ALT-Texte ergänzen.",
    ),
    Rule(
        predicate=lambda s: s.structured_data.json_ld_count == 0,
        category=SCHEMA,
        location="JSON-LD",
        severity=Severity.WARNING,
        issue="Keine JSON-LD Daten gefunden.",
        fix="WebSite-, Organization- bzw. LocalBusiness-Markup ergänzen.",
        example='<script type="application/ld+json">{"@context":"https://schema.org","@type":"WebSite"}</script>',
        impact=Impact.HIGH,
    ),
    Rule(
        predicate=lambda s: bool(s.structured_data.errors),
        category=SCHEMA,
        location="JSON-LD",
        severity=Severity.WARNING,
        issue=lambda s: f"Ungültiges JSON-LD: {'; '.join(s.structured_data.errors)}",
        fix="JSON-LD-Syntax korrigieren.",
    ),
    Rule(
        predicate=lambda s: s.structured_data.json_ld_count > 0 and not s.structured_data.in_head,
        category=CONTENT,
        location="JSON-LD",
        severity=Severity.NOTICE,
        issue="JSON-LD steht nicht im <head>.",
        fix="JSON-LD früh im <head> ausgeben.",
        impact=Impact.LOW,
    ),
    Rule(
        predicate=lambda s: (
            s.structured_data.has_type(*LOCAL_BUSINESS_TYPES)
            and not (s.structured_data.local_business.name
                     and s.structured_data.local_business.address
                     and s.structured_data.local_business.telephone)
        ),
        category=LOCAL,
        location="JSON-LD LocalBusiness",
        severity=Severity.WARNING,
        issue="LocalBusiness ohne vollständige NAP-Angaben (Name/Adresse/Telefon).",
        fix="name, address und telephone im LocalBusiness-Markup ergänzen.",
    ),
    Rule(
        predicate=lambda s: s.structured_data.has_type(*LOCAL_BUSINESS_TYPES) and not s.structured_data.local_business.hours,
        category=LOCAL,
        location="JSON-LD LocalBusiness",
        severity=Severity.NOTICE,
        issue="Öffnungszeiten fehlen im LocalBusiness-Markup.",
        fix="openingHours bzw. openingHoursSpecification ergänzen.",
        impact=Impact.LOW,
    ),
    Rule(
        predicate=lambda s: (
            s.structured_data.has_type("Product")
            and not (s.structured_data.product.offer
                     and s.structured_data.product.price
                     and s.structured_data.product.currency)
        ),
        category=SCHEMA,
        location="JSON-LD Product",
        severity=Severity.WARNING,
        issue="Product ohne vollständiges Offer (Preis/Währung).",
        fix="offers mit price und priceCurrency ergänzen.",
    ),
    Rule(
        predicate=lambda s: (
            s.structured_data.has_type(*ARTICLE_TYPES)
            and not (s.structured_data.article.author and s.structured_data.article.date_published)
        ),
        category=SCHEMA,
        location="JSON-LD Article",
        severity=Severity.NOTICE,
        issue="Article ohne Autor oder Veröffentlichungsdatum.",
        fix="author und datePublished ergänzen.",
        impact=Impact.LOW,
    ),
    Rule(
        predicate=lambda s: not s.social.og_complete,
        category=SOCIAL,
        location='<meta property="og:*">',
        severity=Severity.NOTICE,
        issue="OpenGraph unvollständig (og:title/description/image).",
        fix="og:title, og:description und og:image setzen.",
        impact=Impact.LOW,
    ),
    Rule(
        predicate=lambda s: not s.social.twitter_ok,
        category=SOCIAL,
        location='<meta name="twitter:*">',
        severity=Severity.NOTICE,
        issue="Twitter Card fehlt.",
        fix="twitter:card setzen.",
        example='<meta name="twitter:card" content="summary_large_image">',
        impact=Impact.LOW,
    ),
    Rule(
        predicate=lambda s: s.social.twitter_ok and not s.social.twitter_large,
        category=SOCIAL,
        location='<meta name="twitter:card">',
        severity=Severity.NOTICE,
        issue="Twitter Card nicht summary_large_image.",
        fix="summary_large_image für große Vorschauen verwenden.",
        impact=Impact.LOW,
    ),
    Rule(
        predicate=lambda s: s.hreflang.count > 0 and not s.hreflang.x_default,
        category=I18N,
        location='<link rel="alternate" hreflang>',
        severity=Severity.NOTICE,
        issue="hreflang ohne x-default.",
        fix="x-default-Variante ergänzen.",
        impact=Impact.LOW,
    ),
    Rule(
        predicate=lambda s: s.images.count > 0 and s.images.lazy_ratio < MIN_LAZY_RATIO,
        category=PERFORMANCE,
        location="<img loading>",
        severity=Severity.NOTICE,
        issue=lambda s: f"Nur {s.images.lazy_ratio}% der Bilder mit Lazy-Loading.",
        fix='loading="lazy" für Bilder unterhalb des sichtbaren Bereichs.',
        impact=Impact.LOW,
    ),
    Rule(
        predicate=lambda s: _performance(s, "big_images") > MAX_BIG_IMAGES,
        category=PERFORMANCE,
        location="Bilder",
        severity=Severity.WARNING,
        issue=lambda s: f"{_performance(s, 'big_images')} Bilder größer als 500 KB.",
        fix="Bilder verkleinern und komprimieren (WebP/AVIF).",
    ),
    Rule(
        predicate=lambda s: (_performance(s, "render_delta_pct", None) or 0) > MAX_RENDER_DELTA,
        category=PERFORMANCE,
        location="Rendering",
        severity=Severity.WARNING,
        issue=lambda s: f"Inhalt entsteht überwiegend clientseitig (RAW→DOM Delta {_performance(s, 'render_delta_pct')}%).",
        fix="Server-Side Rendering oder statische Generierung erwägen.",
        impact=Impact.HIGH,
    ),
    Rule(
        predicate=lambda s: not s.has_caching,
        category=PERFORMANCE,
        location="Cache-Control",
        severity=Severity.NOTICE,
        issue="Keine Caching-Header.",
        fix="Cache-Control mit max-age setzen.",
        impact=Impact.LOW,
    ),
    Rule(
        predicate=lambda s: s.accessibility.labelled_inputs < s.accessibility.form_inputs,
        category=A11Y,
        location="<form>",
        severity=Severity.WARNING,
        issue=lambda s: f"Formular-Labels unvollständig ({s.accessibility.label_coverage}% beschriftet).",
        fix="Felder per <label for> oder aria-label beschriften.",
    ),
    Rule(
        predicate=lambda s: not s.accessibility.has_impressum,
        category=A11Y,
        location="<a href>",
        severity=Severity.WARNING,
        issue="Kein Link zum Impressum gefunden.",
        fix="Impressum von jeder Seite aus verlinken.",
    ),
    Rule(
        predicate=lambda s: not s.accessibility.has_privacy,
        category=A11Y,
        location="<a href>",
        severity=Severity.WARNING,
        issue="Kein Link zur Datenschutzerklärung gefunden.",
        fix="Datenschutzerklärung von jeder Seite aus verlinken.",
    ),
]


def light_findings(result) -> list[Finding]:
    """Findings for one LightPageResult; failed fetches only get the failure rules."""
    rules = LIGHT_RULES if result.ok else LIGHT_FAILURE_RULES
    return evaluate(rules, result, result.url)


def deep_findings(signals) -> list[Finding]:
    return evaluate(DEEP_RULES, signals, signals.requested_url)
