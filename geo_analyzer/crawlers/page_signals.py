"""
PageSignals - canonical extracted-facts record for one fetched or rendered page.

Both page analyzers produce these models and all findings rules read them.
"""

from pydantic import BaseModel, Field

from geo_analyzer.scoring.models import Finding


class HttpSignals(BaseModel):
    """Response-level facts."""
    status: int = 0
    content_type: str = ""
    cache_control: str = ""
    x_robots_tag: str = ""
    redirect_chain: int = 0


class MetaSignals(BaseModel):
    """<head> metadata."""
    title: str = ""
    title_length: int = 0
    description: str = ""
    description_length: int = 0
    lang: str = ""
    canonical: str = ""
    robots: str = ""


class HeadingSignals(BaseModel):
    h1_count: int = 0
    h2_count: int = 0
    h1: list[str] = Field(default_factory=list)
    order_issues: list[str] = Field(default_factory=list)


class ImageSignals(BaseModel):
    count: int = 0
    missing_alt: int = 0
    missing_alt_ratio: float = 0.0
    lazy_count: int = 0
    # Share of images with loading="lazy", in percent
    lazy_ratio: float = 0.0


class LocalBusinessFields(BaseModel):
    """NAP completeness plus opening hours."""
    name: bool = False
    address: bool = False
    telephone: bool = False
    hours: bool = False


class ProductFields(BaseModel):
    offer: bool = False
    price: bool = False
    currency: bool = False


class ArticleFields(BaseModel):
    author: bool = False
    date_published: bool = False


class StructuredDataSignals(BaseModel):
    """JSON-LD facts."""
    json_ld_count: int = 0
    types: dict[str, int] = Field(default_factory=dict)
    errors: list[str] = Field(default_factory=list)
    in_head: bool = False
    has_search_action: bool = False
    local_business: LocalBusinessFields = Field(default_factory=LocalBusinessFields)
    product: ProductFields = Field(default_factory=ProductFields)
    article: ArticleFields = Field(default_factory=ArticleFields)

    def has_type(self, *names: str) -> bool:
        return any(self.types.get(name, 0) > 0 for name in names)


class SocialSignals(BaseModel):
    og: dict[str, str] = Field(default_factory=dict)
    twitter: dict[str, str] = Field(default_factory=dict)
    og_ok: bool = False
    og_complete: bool = False
    twitter_ok: bool = False
    twitter_large: bool = False


class HreflangEntry(BaseModel):
    lang: str
    href: str = ""


class HreflangSignals(BaseModel):
    entries: list[HreflangEntry] = Field(default_factory=list)
    count: int = 0
    x_default: bool = False


class AccessibilitySignals(BaseModel):
    """Form labelling plus legal links (Impressum / Datenschutz)."""
    form_inputs: int = 0
    labelled_inputs: int = 0
    label_coverage: float = 100.0
    has_impressum: bool = False
    has_privacy: bool = False


class PerformanceSignals(BaseModel):
    """Deep variant only: weights observed while rendering."""
    total_bytes: int = 0
    image_bytes: int = 0
    script_bytes: int = 0
    css_bytes: int = 0
    big_images: int = 0
    response_count: int = 0
    raw_word_count: int | None = None
    rendered_word_count: int = 0
    render_delta_pct: float | None = None


class ScoreFlags(BaseModel):
    """Boolean view of the main page consumed by the score engine."""
    has_json_ld: bool = False
    has_organization: bool = False
    has_website: bool = False
    has_search_action: bool = False
    has_canonical: bool = False
    indexable: bool = False
    robots_txt_found: bool = False
    sitemap_found: bool = False
    h1_count: int = 0
    good_alt_ratio: bool = False
    lang_set: bool = False
    og_ok: bool = False
    twitter_ok: bool = False


class PageSignals(BaseModel):
    """
    Canonical facts for one page.

    Invariants: indexable implies 200 <= status < 400, and
    images.missing_alt_ratio stays within [0, 1].
    """
    requested_url: str
    final_url: str = ""
    fetched_at: str = ""

    http: HttpSignals = Field(default_factory=HttpSignals)
    meta: MetaSignals = Field(default_factory=MetaSignals)
    headings: HeadingSignals = Field(default_factory=HeadingSignals)
    images: ImageSignals = Field(default_factory=ImageSignals)
    structured_data: StructuredDataSignals = Field(default_factory=StructuredDataSignals)
    social: SocialSignals = Field(default_factory=SocialSignals)
    hreflang: HreflangSignals = Field(default_factory=HreflangSignals)
    accessibility: AccessibilitySignals = Field(default_factory=AccessibilitySignals)
    performance: PerformanceSignals | None = None

    word_count: int = 0
    url_clean: bool = True
    indexable: bool = False
    has_caching: bool = False

    flags: ScoreFlags = Field(default_factory=ScoreFlags)


class LightPageResult(BaseModel):
    """
    Reduced signal set from one plain HTTP fetch.

    ok=False means the page was unreachable or not HTML; only status and
    reason are meaningful then.
    """
    url: str
    ok: bool = False
    status: int | None = None
    reason: str | None = None
    final_url: str = ""

    title_len: int = 0
    meta_desc_len: int = 0
    has_canonical: bool = False
    robots_meta: str = ""
    lang: str = ""
    h1_count: int = 0
    h2_count: int = 0
    heading_order_issues: list[str] = Field(default_factory=list)
    word_count: int = 0
    json_ld_count: int = 0
    types: dict[str, int] = Field(default_factory=dict)
    img_count: int = 0
    img_missing_alt: int = 0
    og_ok: bool = False
    hreflang_count: int = 0
    hreflang_x_default: bool = False
    form_inputs: int = 0
    labelled_inputs: int = 0
    has_impressum: bool = False
    has_privacy: bool = False

    findings: list[Finding] = Field(default_factory=list)

    @property
    def missing_alt_ratio(self) -> float:
        return self.img_missing_alt / self.img_count if self.img_count else 0.0


class DeepPageResult(BaseModel):
    """Rendered analysis outcome; error is set when navigation failed."""
    url: str
    ok: bool = False
    error: str | None = None
    signals: PageSignals | None = None
    findings: list[Finding] = Field(default_factory=list)
