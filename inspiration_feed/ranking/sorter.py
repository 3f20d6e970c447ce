"""
Per-mode ordering of scored posts.

All orderings rely on Python's stable sort: posts with equal keys keep their
input order, so callers get reproducible output as long as the store returns
candidates in a deterministic order (post id as last tie-break).
"""
from inspiration_feed.ranking.scorer import as_utc
from inspiration_feed.ranking.types import FeedMode, FetchOrder, ScoredPost


def fetch_order_for(mode: FeedMode) -> FetchOrder:
    """Trending is pre-sorted by the store; everything else comes newest-first."""
    if mode is FeedMode.TRENDING:
        return FetchOrder.BY_LIKES_DESC
    return FetchOrder.BY_RECENCY_DESC


def sort_posts(
    posts: list[ScoredPost],
    mode: FeedMode,
    underlying_mode: FeedMode = FeedMode.FOR_YOU,
) -> list[ScoredPost]:
    """
    Return a new list ordered for `mode`.

    The saved tab has no ordering of its own: it reuses the ordering of the
    last non-saved tab the viewer was on (`underlying_mode`).
    """
    if mode is FeedMode.SAVED:
        mode = underlying_mode if underlying_mode is not FeedMode.SAVED else FeedMode.FOR_YOU

    if mode is FeedMode.FOR_YOU:
        return sorted(
            posts,
            key=lambda p: (p.relevance_score, as_utc(p.created_at)),
            reverse=True,
        )
    if mode is FeedMode.TRENDING:
        return sorted(posts, key=lambda p: p.likes_count, reverse=True)
    return sorted(posts, key=lambda p: as_utc(p.created_at), reverse=True)
