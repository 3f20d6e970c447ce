"""
Feed assembly — fetch, enrich, score, order, overlay, filter, truncate.

  Stage 1 │ Candidate fetch
  ────────┼──────────────────────────────────────────────────────────────
          │  ≤ feed_candidate_limit posts, pre-ordered by the store:
          │  by likes for Trending, by recency for every other tab.
          │  A failure here is fatal to the load (FeedLoadError).

  Stage 2 │ Enrichment (one concurrent batch)
  ────────┼──────────────────────────────────────────────────────────────
          │  Bulk lookups keyed by the distinct ids in the pool:
          │    • author profiles      • author style tags
          │    • outfits (+ items)    • clothing items
          │  Each lookup degrades independently: placeholder author, empty
          │  style set, linked content omitted. Posts are never dropped.

  Stage 3 │ Compose (pure)
  ────────┼──────────────────────────────────────────────────────────────
          │  score → sort per tab → stamp has_liked/has_saved →
          │  search filter → saved filter → truncate to feed_display_limit.

The enriched pool from stages 1–2 is what a session keeps; stage 3 is re-run
on every input change without touching the store.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Iterable, Optional, TypeVar

from opentelemetry import trace

from inspiration_feed.errors import FeedLoadError
from inspiration_feed.ranking.affinity import StyleAffinityIndex
from inspiration_feed.ranking.overlay import annotate, saved_filter, search_filter
from inspiration_feed.ranking.scorer import RelevanceScorer
from inspiration_feed.ranking.sorter import fetch_order_for, sort_posts
from inspiration_feed.ranking.types import (
    AuthorProfile,
    FeedMode,
    FetchOrder,
    Post,
    ScoredPost,
    ViewerContext,
)
from inspiration_feed.store import FeedStore
from inspiration_feed.telemetry import ENRICHMENT_FAILURES_TOTAL

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

MAX_CANDIDATES = 100       # raw posts pulled per load
MAX_DISPLAYED = 50         # posts left after filtering

V = TypeVar("V")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def compose_feed(
    pool: list[ScoredPost],
    viewer: ViewerContext,
    mode: FeedMode,
    query: str = "",
    *,
    underlying_mode: FeedMode = FeedMode.FOR_YOU,
    scorer: Optional[RelevanceScorer] = None,
    now: Optional[datetime] = None,
    limit: int = MAX_DISPLAYED,
) -> list[ScoredPost]:
    """
    Derive the visible post list from a candidate pool.

    Pure: the same (pool, viewer, mode, query, now) always yields the same
    list, and nothing from a previous render leaks in.
    """
    scorer = scorer or RelevanceScorer()
    now = now or utcnow()

    scored = [
        p.model_copy(
            update={
                "relevance_score": scorer.score(
                    p,
                    p.author.style_tags,
                    p.outfit.tags if p.outfit else (),
                    viewer.style_tags,
                    now,
                )
            }
        )
        for p in pool
    ]
    ordered = sort_posts(scored, mode, underlying_mode)
    visible = search_filter(annotate(ordered, viewer), query)
    if mode is FeedMode.SAVED:
        visible = saved_filter(visible)
    return visible[:limit]


def _dedupe(posts: Iterable[Post]) -> list[Post]:
    seen: set[str] = set()
    unique: list[Post] = []
    for post in posts:
        if post.id not in seen:
            seen.add(post.id)
            unique.append(post)
    return unique


class FeedAssembler:
    def __init__(
        self,
        store: FeedStore,
        affinity: StyleAffinityIndex,
        scorer: Optional[RelevanceScorer] = None,
        candidate_limit: int = MAX_CANDIDATES,
        display_limit: int = MAX_DISPLAYED,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._affinity = affinity
        self.scorer = scorer or RelevanceScorer()
        self.candidate_limit = candidate_limit
        self.display_limit = display_limit
        self.clock = clock

    async def fetch_pool(self, order: FetchOrder) -> list[ScoredPost]:
        """Stages 1–2: candidate fetch plus degradable enrichment."""
        with tracer.start_as_current_span("fetch_candidates") as span:
            span.set_attribute("feed.fetch_order", order.value)
            try:
                posts = await self._store.fetch_posts(order, self.candidate_limit)
            except Exception as exc:
                logger.error("Candidate fetch failed (order=%s): %s", order.value, exc)
                raise FeedLoadError("failed to load feed") from exc
            posts = _dedupe(posts)[: self.candidate_limit]
            span.set_attribute("feed.candidates", len(posts))

        author_ids = {p.user_id for p in posts}
        outfit_ids = {p.outfit_id for p in posts if p.outfit_id}
        item_ids = {p.clothing_item_id for p in posts if p.clothing_item_id}

        with tracer.start_as_current_span("enrich") as span:
            authors, styles, outfits, items = await asyncio.gather(
                self._degradable("authors", self._store.fetch_authors, author_ids),
                self._degradable("style_tags", self._affinity.lookup, author_ids),
                self._degradable("outfits", self._store.fetch_outfits, outfit_ids),
                self._degradable(
                    "clothing_items", self._store.fetch_clothing_items, item_ids
                ),
            )
            span.set_attribute("feed.authors", len(authors))
            span.set_attribute("feed.outfits", len(outfits))
            span.set_attribute("feed.clothing_items", len(items))

        pool: list[ScoredPost] = []
        for post in posts:
            author = authors.get(post.user_id) or AuthorProfile.placeholder(post.user_id)
            author = author.model_copy(
                update={"style_tags": set(styles.get(post.user_id, set()))}
            )
            pool.append(
                ScoredPost(
                    **post.model_dump(),
                    author=author,
                    outfit=outfits.get(post.outfit_id) if post.outfit_id else None,
                    clothing_item=(
                        items.get(post.clothing_item_id) if post.clothing_item_id else None
                    ),
                )
            )
        return pool

    def compose(
        self,
        pool: list[ScoredPost],
        viewer: ViewerContext,
        mode: FeedMode,
        query: str = "",
        underlying_mode: FeedMode = FeedMode.FOR_YOU,
    ) -> list[ScoredPost]:
        """Stage 3 with this assembler's scorer, clock and display limit."""
        with tracer.start_as_current_span("compose") as span:
            posts = compose_feed(
                pool,
                viewer,
                mode,
                query,
                underlying_mode=underlying_mode,
                scorer=self.scorer,
                now=self.clock(),
                limit=self.display_limit,
            )
            span.set_attribute("feed.mode", mode.value)
            span.set_attribute("feed.posts", len(posts))
            return posts

    async def assemble(
        self,
        viewer: ViewerContext,
        mode: FeedMode,
        query: str = "",
        underlying_mode: FeedMode = FeedMode.FOR_YOU,
    ) -> list[ScoredPost]:
        pool = await self.fetch_pool(fetch_order_for(mode))
        return self.compose(pool, viewer, mode, query, underlying_mode)

    async def _degradable(
        self,
        source: str,
        lookup: Callable[[set[str]], Awaitable[dict[str, V]]],
        ids: set[str],
    ) -> dict[str, V]:
        if not ids:
            return {}
        try:
            return await lookup(ids)
        except Exception as exc:
            logger.warning(
                "Enrichment '%s' failed for %d ids: %s — degrading", source, len(ids), exc
            )
            ENRICHMENT_FAILURES_TOTAL.labels(source=source).inc()
            return {}
