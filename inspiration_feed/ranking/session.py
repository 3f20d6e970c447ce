"""
Per-viewer feed session.

A session owns two pieces of state, the enriched candidate pool and the
viewer context, and derives everything visible from them. Any input change
(tab, query, refresh, completed like/save) re-runs the pure compose step, so
annotations can never go stale.

Loads are ticketed: each call to load_feed() takes the next sequence number,
and when the fetch returns only the latest ticket may install its pool. Older
results are dropped with FeedLoadSuperseded; the store is never told.

Every load rebuilds the viewer context from the store alongside the candidate
fetch. Like/save writes still in flight are tracked per post and re-applied
over the fresh state until the store shows them.
"""
import asyncio
import logging
import time
from collections import OrderedDict
from typing import Callable, Optional

from inspiration_feed.clients.seed_client import SeedClient, SeedStats
from inspiration_feed.errors import FeedError, FeedLoadError, FeedLoadSuperseded
from inspiration_feed.ranking.ads import AdInterleaver
from inspiration_feed.ranking.affinity import StyleAffinityIndex
from inspiration_feed.ranking.assembler import FeedAssembler
from inspiration_feed.ranking.mutations import MutationKind, MutationOutcome, MutationPipeline
from inspiration_feed.ranking.sorter import fetch_order_for
from inspiration_feed.ranking.types import FeedMode, FeedView, ScoredPost, ViewerContext
from inspiration_feed.store import FeedStore
from inspiration_feed.telemetry import (
    FEED_CANDIDATES_TOTAL,
    FEED_LATENCY,
    FEED_LOADS_SUPERSEDED_TOTAL,
)

logger = logging.getLogger(__name__)

SESSION_IDLE_TTL = 30 * 60      # seconds
MAX_SESSIONS = 10_000


async def build_viewer_context(
    store: FeedStore,
    affinity: StyleAffinityIndex,
    viewer_id: str,
    bypass_cache: bool = False,
) -> ViewerContext:
    """
    Fetch the viewer's style tags and likes/saves in one batch.

    Missing style tags only cost personalisation; missing interactions would
    mis-stamp every post, so that failure is fatal.
    """
    styles, interactions = await asyncio.gather(
        affinity.lookup([viewer_id], bypass_cache=bypass_cache),
        store.fetch_interactions(viewer_id),
        return_exceptions=True,
    )
    if isinstance(interactions, BaseException):
        raise FeedLoadError("failed to load viewer interactions") from interactions
    if isinstance(styles, BaseException):
        logger.warning("Viewer %s style tags unavailable: %s", viewer_id, styles)
        styles = {}

    liked, saved = interactions
    return ViewerContext(
        user_id=viewer_id,
        style_tags=styles.get(viewer_id, set()),
        liked_ids=set(liked),
        saved_ids=set(saved),
    )


class FeedSession:
    def __init__(
        self,
        viewer_id: str,
        store: FeedStore,
        affinity: StyleAffinityIndex,
        assembler: FeedAssembler,
        mutations: MutationPipeline,
        interleaver: AdInterleaver,
        seed_client: Optional[SeedClient] = None,
    ) -> None:
        self.viewer_id = viewer_id
        self._store = store
        self._affinity = affinity
        self._assembler = assembler
        self._mutations = mutations
        self._interleaver = interleaver
        self._seed_client = seed_client

        self.viewer: Optional[ViewerContext] = None
        self.mode = FeedMode.FOR_YOU
        self.underlying_mode = FeedMode.FOR_YOU
        self.query = ""
        self.view: Optional[FeedView] = None
        self._pool: Optional[list[ScoredPost]] = None
        self._pool_index: dict[str, int] = {}
        self._ticket = 0
        # (kind, post_id) -> (target state, write sequence number)
        self._pending: dict[tuple[MutationKind, str], tuple[bool, int]] = {}
        self._write_seq = 0

    @property
    def is_loaded(self) -> bool:
        return self._pool is not None and self.viewer is not None

    async def ensure_viewer(self) -> ViewerContext:
        if self.viewer is None:
            self._reconcile(
                await build_viewer_context(self._store, self._affinity, self.viewer_id)
            )
        return self.viewer

    async def refresh_viewer(self) -> ViewerContext:
        self._reconcile(
            await build_viewer_context(
                self._store, self._affinity, self.viewer_id, bypass_cache=True
            )
        )
        return self.viewer

    # ── Loading ───────────────────────────────────────────────────────────

    async def load_feed(
        self,
        mode: Optional[FeedMode] = None,
        query: Optional[str] = None,
    ) -> FeedView:
        mode = mode or self.mode
        query = self.query if query is None else query

        self._ticket += 1
        ticket = self._ticket
        start_time = time.perf_counter()

        viewer, pool = await asyncio.gather(
            build_viewer_context(self._store, self._affinity, self.viewer_id),
            self._assembler.fetch_pool(fetch_order_for(mode)),
        )

        if ticket != self._ticket:
            FEED_LOADS_SUPERSEDED_TOTAL.inc()
            logger.info(
                "Discarding feed load #%d for %s (latest is #%d)",
                ticket, self.viewer_id, self._ticket,
            )
            raise FeedLoadSuperseded(ticket, self._ticket)

        self._reconcile(viewer, pool)
        self.mode = mode
        self.query = query
        if mode is not FeedMode.SAVED:
            self.underlying_mode = mode

        FEED_CANDIDATES_TOTAL.labels(mode=mode.value).inc(len(pool))
        view = self.render()
        FEED_LATENCY.observe(time.perf_counter() - start_time)
        return view

    def render(self) -> FeedView:
        """Recompute the view from the pool and the live viewer context."""
        if self._pool is None or self.viewer is None:
            raise FeedError("feed has not been loaded")
        posts = self._assembler.compose(
            self._pool, self.viewer, self.mode, self.query, self.underlying_mode
        )
        self.view = FeedView(
            mode=self.mode,
            query=self.query,
            posts=posts,
            entries=self._interleaver.interleave(posts),
        )
        return self.view

    def _reconcile(
        self, viewer: ViewerContext, pool: Optional[list[ScoredPost]] = None
    ) -> None:
        """
        Adopt store state, then replay toggles the store does not show yet.

        A fresh pool carries store like counts, so an unlanded like/unlike is
        re-applied to the count as well. Without a pool only the id sets change.
        """
        if pool is not None:
            self._pool = pool
            self._pool_index = {p.id: i for i, p in enumerate(pool)}
        self.viewer = viewer

        for (kind, post_id), (active, _) in self._pending.items():
            ids = self._ids_for(kind)
            if (post_id in ids) == active:
                continue
            if pool is not None:
                self.apply_toggle(kind, post_id, active)
            elif active:
                ids.add(post_id)
            else:
                ids.discard(post_id)

    # ── Toggle state, driven by the mutation pipeline ─────────────────────

    def _ids_for(self, kind: MutationKind) -> set[str]:
        return self.viewer.liked_ids if kind is MutationKind.LIKE else self.viewer.saved_ids

    def likes_of(self, post_id: str) -> Optional[int]:
        idx = self._pool_index.get(post_id)
        if idx is None or self._pool is None:
            return None
        return self._pool[idx].likes_count

    def _shift_likes(self, post_id: str, delta: int) -> None:
        idx = self._pool_index.get(post_id)
        if idx is None or self._pool is None:
            return
        post = self._pool[idx]
        self._pool[idx] = post.model_copy(
            update={"likes_count": max(0, post.likes_count + delta)}
        )

    def apply_toggle(self, kind: MutationKind, post_id: str, active: bool) -> None:
        """Move one post to liked/unliked or saved/unsaved; a no-op when already there."""
        ids = self._ids_for(kind)
        if (post_id in ids) == active:
            return
        if active:
            ids.add(post_id)
        else:
            ids.discard(post_id)
        if kind is MutationKind.LIKE:
            self._shift_likes(post_id, 1 if active else -1)

    def begin_write(self, kind: MutationKind, post_id: str, active: bool) -> int:
        self._write_seq += 1
        self._pending[(kind, post_id)] = (active, self._write_seq)
        return self._write_seq

    def end_write(self, kind: MutationKind, post_id: str, seq: int) -> None:
        # a later toggle of the same post owns the entry now
        if self._pending.get((kind, post_id), (None, None))[1] == seq:
            del self._pending[(kind, post_id)]

    # ── Inbound operations ────────────────────────────────────────────────

    async def toggle_like(self, post_id: str) -> MutationOutcome:
        return await self._mutations.toggle_like(self, post_id)

    async def toggle_save(self, post_id: str) -> MutationOutcome:
        return await self._mutations.toggle_save(self, post_id)

    async def refresh_personalization(self, access_token: Optional[str] = None) -> SeedStats:
        """Ask the seeding service for new posts, then reload the current tab."""
        if self._seed_client is None:
            raise FeedError("no content-seeding service configured")
        viewer = await self.refresh_viewer()
        stats = await self._seed_client.seed(
            self.viewer_id, sorted(viewer.style_tags), access_token=access_token
        )
        try:
            await self.load_feed(self.mode, self.query)
        except FeedLoadSuperseded:
            pass  # a newer load is already installing fresher results
        return stats


class FeedSessionRegistry:
    """
    One FeedSession per viewer, created on first use.

    Sessions idle for longer than idle_ttl seconds are evicted, and beyond
    max_sessions the least recently used one goes first.
    """

    def __init__(
        self,
        factory: Callable[[str], FeedSession],
        idle_ttl: float = SESSION_IDLE_TTL,
        max_sessions: int = MAX_SESSIONS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._factory = factory
        self.idle_ttl = idle_ttl
        self.max_sessions = max_sessions
        self._clock = clock
        # viewer_id -> (session, last used), least recently used first
        self._sessions: OrderedDict[str, tuple[FeedSession, float]] = OrderedDict()

    def get(self, viewer_id: str) -> FeedSession:
        now = self._clock()
        self._evict_idle(now)

        entry = self._sessions.pop(viewer_id, None)
        session = entry[0] if entry else self._factory(viewer_id)
        self._sessions[viewer_id] = (session, now)

        while len(self._sessions) > self.max_sessions:
            evicted, _ = self._sessions.popitem(last=False)
            logger.debug("Evicted feed session %s (registry full)", evicted)
        return session

    def _evict_idle(self, now: float) -> None:
        while self._sessions:
            viewer_id, (_, last_used) = next(iter(self._sessions.items()))
            if now - last_used < self.idle_ttl:
                break
            del self._sessions[viewer_id]
            logger.debug("Evicted idle feed session %s", viewer_id)

    def drop(self, viewer_id: str) -> None:
        self._sessions.pop(viewer_id, None)

    def __len__(self) -> int:
        return len(self._sessions)
