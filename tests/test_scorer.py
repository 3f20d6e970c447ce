"""
Tests for relevance scoring (For You tab).
"""
from datetime import timedelta

import pytest
from pydantic import ValidationError

from inspiration_feed.config import Settings
from inspiration_feed.ranking.scorer import RelevanceScorer, ScoringWeights

pytestmark = pytest.mark.unit

VIEWER = {"minimalist", "streetwear"}


@pytest.fixture
def scorer() -> RelevanceScorer:
    return RelevanceScorer()


class TestScenario:
    def test_same_style_popular_fresh_post_scores_eight(self, scorer, make_post, now):
        post = make_post("A", likes=120, age=timedelta(hours=12))
        assert scorer.score(post, {"minimalist"}, [], VIEWER, now) == 3 + 2 + 3

    def test_unrelated_stale_post_scores_zero(self, scorer, make_post, now):
        post = make_post("B", likes=10, age=timedelta(days=10))
        assert scorer.score(post, {"bohemian"}, ["boho"], VIEWER, now) == 0


class TestTagTerms:
    def test_each_shared_author_tag_adds_three(self, scorer, make_post, now):
        post = make_post("p")
        assert scorer.score(post, {"minimalist", "streetwear", "urban"}, [], VIEWER, now) == 6

    def test_outfit_tags_compare_case_insensitively(self, scorer, make_post, now):
        post = make_post("p")
        assert scorer.score(post, set(), ["Minimalist", " STREETWEAR", "2024"], VIEWER, now) == 4

    def test_duplicate_outfit_tags_count_once(self, scorer, make_post, now):
        post = make_post("p")
        assert scorer.score(post, set(), ["minimalist", "Minimalist"], VIEWER, now) == 2

    def test_author_and_outfit_terms_add_up(self, scorer, make_post, now):
        post = make_post("p")
        assert scorer.score(post, {"streetwear"}, ["streetwear"], VIEWER, now) == 5

    @pytest.mark.parametrize("likes,age_days", [(0, 30), (75, 2), (500, 0)])
    def test_viewer_without_styles_only_gets_popularity_and_recency(
        self, scorer, make_post, now, likes, age_days
    ):
        post = make_post("p", likes=likes, age=timedelta(days=age_days))
        expected = scorer.popularity_boost(likes) + scorer.recency_boost(post.created_at, now)
        score = scorer.score(post, {"minimalist"}, ["minimalist"], set(), now)
        assert score == expected


class TestBoosts:
    @pytest.mark.parametrize(
        "likes,boost",
        [(0, 0), (50, 0), (51, 1), (100, 1), (101, 2), (1200, 2)],
    )
    def test_popularity_thresholds(self, scorer, likes, boost):
        assert scorer.popularity_boost(likes) == boost

    @pytest.mark.parametrize(
        "age,boost",
        [
            (timedelta(minutes=5), 3),
            (timedelta(hours=23, minutes=59), 3),
            (timedelta(days=1), 1),
            (timedelta(days=2, hours=23), 1),
            (timedelta(days=3), 0),
            (timedelta(days=28), 0),
        ],
    )
    def test_recency_thresholds(self, scorer, now, age, boost):
        assert scorer.recency_boost(now - age, now) == boost

    def test_naive_timestamps_are_treated_as_utc(self, scorer, now):
        created = (now - timedelta(hours=2)).replace(tzinfo=None)
        assert scorer.recency_boost(created, now) == 3

    def test_future_timestamp_counts_as_fresh(self, scorer, now):
        assert scorer.recency_boost(now + timedelta(hours=1), now) == 3


class TestWeights:
    def test_defaults_match_settings_defaults(self):
        assert ScoringWeights.from_settings(Settings()) == ScoringWeights()

    def test_injected_weights_are_used(self, make_post, now):
        scorer = RelevanceScorer(ScoringWeights(author_tag=10, fresh=0))
        post = make_post("p", likes=0, age=timedelta(hours=1))
        assert scorer.score(post, {"minimalist"}, [], VIEWER, now) == 10

    def test_negative_weights_are_rejected(self):
        with pytest.raises(ValidationError):
            ScoringWeights(popular=-1)

    @pytest.mark.parametrize("likes", [0, 10, 60, 300])
    @pytest.mark.parametrize("age_days", [0, 2, 15])
    def test_score_is_never_negative(self, scorer, make_post, now, likes, age_days):
        post = make_post("p", likes=likes, age=timedelta(days=age_days))
        assert scorer.score(post, {"x"}, ["y"], VIEWER, now) >= 0
