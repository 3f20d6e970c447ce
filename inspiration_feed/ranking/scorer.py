"""
Relevance scoring for the For You tab.

The score is a sum of independent integer signals:

  score = author_tag_weight  × |author styles ∩ viewer styles|
        + outfit_tag_weight  × |outfit tags   ∩ viewer styles|
        + popularity boost   (likes > 100 → popular, likes > 50 → rising)
        + recency boost      (< 1 day → fresh, < 3 days → recent)

A same-style author dominates, a matching outfit comes second, and freshness
and popularity only nudge ties. Thresholds are fixed; weights are injectable.
"""
from datetime import datetime, timezone
from typing import Iterable

from pydantic import BaseModel, Field

from inspiration_feed.config import Settings
from inspiration_feed.ranking.types import Post

POPULAR_LIKES = 100
RISING_LIKES = 50
FRESH_DAYS = 1
RECENT_DAYS = 3

_SECONDS_PER_DAY = 86400


class ScoringWeights(BaseModel):
    # ge=0 keeps every score non-negative
    author_tag: int = Field(3, ge=0)
    outfit_tag: int = Field(2, ge=0)
    popular: int = Field(2, ge=0)
    rising: int = Field(1, ge=0)
    fresh: int = Field(3, ge=0)
    recent: int = Field(1, ge=0)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ScoringWeights":
        return cls(
            author_tag=settings.score_author_tag_weight,
            outfit_tag=settings.score_outfit_tag_weight,
            popular=settings.score_popular_boost,
            rising=settings.score_rising_boost,
            fresh=settings.score_fresh_boost,
            recent=settings.score_recent_boost,
        )


def as_utc(moment: datetime) -> datetime:
    """Naive timestamps from the store are UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


class RelevanceScorer:
    def __init__(self, weights: ScoringWeights | None = None) -> None:
        self.weights = weights or ScoringWeights()

    def score(
        self,
        post: Post,
        author_styles: Iterable[str],
        outfit_tags: Iterable[str],
        viewer_styles: set[str],
        now: datetime,
    ) -> int:
        w = self.weights
        total = 0

        if viewer_styles:
            outfit_set = {t.strip().lower() for t in outfit_tags}
            total += w.author_tag * len(set(author_styles) & viewer_styles)
            total += w.outfit_tag * len(outfit_set & viewer_styles)

        total += self.popularity_boost(post.likes_count)
        total += self.recency_boost(post.created_at, now)
        return total

    def popularity_boost(self, likes_count: int) -> int:
        if likes_count > POPULAR_LIKES:
            return self.weights.popular
        if likes_count > RISING_LIKES:
            return self.weights.rising
        return 0

    def recency_boost(self, created_at: datetime, now: datetime) -> int:
        days_ago = (as_utc(now) - as_utc(created_at)).total_seconds() / _SECONDS_PER_DAY
        if days_ago < FRESH_DAYS:
            return self.weights.fresh
        if days_ago < RECENT_DAYS:
            return self.weights.recent
        return 0
