"""
Score Engine - fixed weighted points over the main page's flags.

Every entry in SCORE_RULES adds its weight to its bucket when the predicate
holds. Buckets are clamped to their maximum, the total to [0, 100].
"""

from typing import Callable, NamedTuple

from geo_analyzer.crawlers.page_signals import ScoreFlags
from geo_analyzer.scoring.models import Score, ScoreBreakdown


class ScoreRule(NamedTuple):
    bucket: str
    predicate: Callable[[ScoreFlags], bool]
    weight: int


BUCKET_MAX = {
    "structured_data": 40,
    "technical": 30,
    "content": 20,
    "social": 10,
}

SCORE_RULES = [
    # Structured data
    ScoreRule("structured_data", lambda f: f.has_json_ld, 15),
    ScoreRule("structured_data", lambda f: f.has_organization, 8),
    ScoreRule("structured_data", lambda f: f.has_website, 7),
    ScoreRule("structured_data", lambda f: f.has_search_action, 10),
    # Technical
    ScoreRule("technical", lambda f: f.has_canonical, 8),
    ScoreRule("technical", lambda f: f.indexable, 12),
    ScoreRule("technical", lambda f: f.robots_txt_found, 5),
    ScoreRule("technical", lambda f: f.sitemap_found, 5),
    # Content
    ScoreRule("content", lambda f: f.h1_count == 1, 8),
    ScoreRule("content", lambda f: f.good_alt_ratio, 7),
    ScoreRule("content", lambda f: f.lang_set, 5),
    # Social
    ScoreRule("social", lambda f: f.og_ok, 6),
    ScoreRule("social", lambda f: f.twitter_ok, 4),
]


def calculate_score(flags: ScoreFlags, rules: list[ScoreRule] = SCORE_RULES) -> Score:
    points = {bucket: 0 for bucket in BUCKET_MAX}
    for rule in rules:
        if rule.predicate(flags):
            points[rule.bucket] += rule.weight

    breakdown = ScoreBreakdown(
        **{bucket: max(0, min(BUCKET_MAX[bucket], value)) for bucket, value in points.items()}
    )
    total = sum(breakdown.model_dump().values())
    return Score(total=max(0, min(100, total)), breakdown=breakdown)
