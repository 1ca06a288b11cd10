"""Tests for score calculation."""

from geo_analyzer.crawlers.page_signals import ScoreFlags
from geo_analyzer.scoring.score_engine import BUCKET_MAX, SCORE_RULES, ScoreRule, calculate_score

ALL_TRUE = ScoreFlags(
    has_json_ld=True,
    has_organization=True,
    has_website=True,
    has_search_action=True,
    has_canonical=True,
    indexable=True,
    robots_txt_found=True,
    sitemap_found=True,
    h1_count=1,
    good_alt_ratio=True,
    lang_set=True,
    og_ok=True,
    twitter_ok=True,
)


class TestCalculateScore:
    def test_everything_present(self):
        score = calculate_score(ALL_TRUE)

        assert score.total == 100
        assert score.breakdown.model_dump() == BUCKET_MAX

    def test_nothing_present(self):
        score = calculate_score(ScoreFlags())

        assert score.total == 0
        assert score.breakdown.model_dump() == {"structured_data": 0, "technical": 0, "content": 0, "social": 0}

    def test_partial(self):
        flags = ScoreFlags(has_json_ld=True, has_website=True, indexable=True, h1_count=2, og_ok=True)

        score = calculate_score(flags)

        assert score.breakdown.structured_data == 22
        assert score.breakdown.technical == 12
        assert score.breakdown.content == 0
        assert score.breakdown.social == 6
        assert score.total == 40

    def test_buckets_clamp(self):
        rules = SCORE_RULES + [ScoreRule("social", lambda f: True, 50)]

        score = calculate_score(ALL_TRUE, rules)

        assert score.breakdown.social == 10
        assert score.total == 100

    def test_total_is_sum_of_buckets(self):
        flags = ScoreFlags(has_search_action=True, sitemap_found=True, lang_set=True, twitter_ok=True)

        score = calculate_score(flags)

        assert score.total == sum(score.breakdown.model_dump().values()) == 24

    def test_weights_fill_each_bucket_exactly(self):
        for bucket, maximum in BUCKET_MAX.items():
            assert sum(rule.weight for rule in SCORE_RULES if rule.bucket == bucket) == maximum
