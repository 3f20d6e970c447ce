"""
Pytest configuration and shared fixtures for the inspiration feed tests.
"""
import os

# Configure the service before any inspiration_feed module reads settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("OTEL_SDK_DISABLED", "true")

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import pytest

from inspiration_feed.ranking.types import (
    AuthorProfile,
    ClothingItemPayload,
    FetchOrder,
    OutfitPayload,
    Post,
    PostKind,
    ScoredPost,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


# ============================================================================
# In-memory content store
# ============================================================================

class FakeFeedStore:
    """
    FeedStore backed by dicts.

    Put a method name in `fail` to make it raise ConnectionError; every call
    is recorded in `calls` as (method, argument).
    """

    def __init__(self) -> None:
        self.posts: dict[str, Post] = {}
        self.authors: dict[str, AuthorProfile] = {}
        self.style_tags: dict[str, list[str]] = {}
        self.outfits: dict[str, OutfitPayload] = {}
        self.items: dict[str, ClothingItemPayload] = {}
        self.likes: set[tuple[str, str]] = set()     # (viewer_id, post_id)
        self.saves: set[tuple[str, str]] = set()
        self.fail: set[str] = set()
        self.calls: list[tuple[str, object]] = []

    def _record(self, method: str, arg: object) -> None:
        self.calls.append((method, arg))
        if method in self.fail:
            raise ConnectionError(f"{method} unavailable")

    def calls_to(self, method: str) -> list[object]:
        return [arg for name, arg in self.calls if name == method]

    def add_post(self, post: Post) -> Post:
        self.posts[post.id] = post
        return post

    async def fetch_posts(self, order: FetchOrder, limit: int) -> list[Post]:
        self._record("fetch_posts", (order, limit))
        by_id = sorted(self.posts.values(), key=lambda p: p.id)
        if order is FetchOrder.BY_LIKES_DESC:
            ordered = sorted(by_id, key=lambda p: p.likes_count, reverse=True)
        else:
            ordered = sorted(by_id, key=lambda p: p.created_at, reverse=True)
        return ordered[:limit]

    async def fetch_authors(self, user_ids: set[str]) -> dict[str, AuthorProfile]:
        self._record("fetch_authors", set(user_ids))
        return {uid: self.authors[uid] for uid in user_ids if uid in self.authors}

    async def fetch_style_tags(self, user_ids: set[str]) -> dict[str, list[str]]:
        self._record("fetch_style_tags", set(user_ids))
        return {uid: self.style_tags[uid] for uid in user_ids if uid in self.style_tags}

    async def fetch_outfits(self, outfit_ids: set[str]) -> dict[str, OutfitPayload]:
        self._record("fetch_outfits", set(outfit_ids))
        return {oid: self.outfits[oid] for oid in outfit_ids if oid in self.outfits}

    async def fetch_clothing_items(
        self, item_ids: set[str]
    ) -> dict[str, ClothingItemPayload]:
        self._record("fetch_clothing_items", set(item_ids))
        return {iid: self.items[iid] for iid in item_ids if iid in self.items}

    async def fetch_interactions(self, viewer_id: str) -> tuple[set[str], set[str]]:
        self._record("fetch_interactions", viewer_id)
        liked = {pid for uid, pid in self.likes if uid == viewer_id}
        saved = {pid for uid, pid in self.saves if uid == viewer_id}
        return liked, saved

    def _bump(self, post_id: str, delta: int) -> None:
        post = self.posts.get(post_id)
        if post is not None:
            self.posts[post_id] = post.model_copy(
                update={"likes_count": max(0, post.likes_count + delta)}
            )

    async def insert_like(self, post_id: str, viewer_id: str) -> None:
        self._record("insert_like", post_id)
        if (viewer_id, post_id) not in self.likes:
            self.likes.add((viewer_id, post_id))
            self._bump(post_id, +1)

    async def delete_like(self, post_id: str, viewer_id: str) -> None:
        self._record("delete_like", post_id)
        if (viewer_id, post_id) in self.likes:
            self.likes.discard((viewer_id, post_id))
            self._bump(post_id, -1)

    async def insert_save(self, post_id: str, viewer_id: str) -> None:
        self._record("insert_save", post_id)
        self.saves.add((viewer_id, post_id))

    async def delete_save(self, post_id: str, viewer_id: str) -> None:
        self._record("delete_save", post_id)
        self.saves.discard((viewer_id, post_id))


# ============================================================================
# Fixtures: Test Data Factories
# ============================================================================

@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_post() -> Callable[..., Post]:
    """Factory for Post values; defaults to a ten-day-old fit check."""

    def _make(
        post_id: str,
        user_id: str = "author-1",
        likes: int = 10,
        age: timedelta = timedelta(days=10),
        caption: Optional[str] = None,
        kind: PostKind = PostKind.FIT_CHECK,
        outfit_id: Optional[str] = None,
        clothing_item_id: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> Post:
        return Post(
            id=post_id,
            user_id=user_id,
            post_type=kind,
            caption=caption,
            outfit_id=outfit_id,
            clothing_item_id=clothing_item_id,
            image_url=image_url,
            likes_count=likes,
            created_at=NOW - age,
        )

    return _make


@pytest.fixture
def make_scored(make_post) -> Callable[..., ScoredPost]:
    """Factory for pooled ScoredPost values with an author attached."""

    def _make(
        post_id: str,
        username: Optional[str] = None,
        author_styles: Optional[set[str]] = None,
        outfit: Optional[OutfitPayload] = None,
        clothing_item: Optional[ClothingItemPayload] = None,
        **post_kwargs,
    ) -> ScoredPost:
        post = make_post(post_id, **post_kwargs)
        return ScoredPost(
            **post.model_dump(),
            author=AuthorProfile(
                user_id=post.user_id,
                username=username,
                style_tags=author_styles or set(),
            ),
            outfit=outfit,
            clothing_item=clothing_item,
        )

    return _make


@pytest.fixture
def fake_store() -> FakeFeedStore:
    return FakeFeedStore()


@pytest.fixture
def seeded_store(fake_store: FakeFeedStore, make_post) -> FakeFeedStore:
    """
    A small community feed:

      p-outfit   by "mina" (minimalist), outfit "Clean Minimal Look", 120 likes, 12h old
      p-item     by "rio"  (streetwear), clothing item "Blue Denim Jacket", 60 likes, 2d old
      p-fit      by "kai"  (bohemian),   fit check "feeling BLUE today", 10 likes, 10d old
    """
    fake_store.authors = {
        "mina": AuthorProfile(user_id="mina", username="mina.fits", avatar_url="a.png"),
        "rio": AuthorProfile(user_id="rio", username="rio_street"),
        "kai": AuthorProfile(user_id="kai", username="kai"),
    }
    fake_store.style_tags = {
        "viewer": ["Minimalist", "streetwear "],
        "mina": ["minimalist"],
        "rio": ["Streetwear", "urban"],
        "kai": ["bohemian"],
    }
    fake_store.outfits = {
        "o-1": OutfitPayload(
            id="o-1",
            name="Clean Minimal Look",
            tags=["Minimalist", "2024"],
            items=[ClothingItemPayload(id="i-9", name="White Oversized Tee")],
        )
    }
    fake_store.items = {
        "i-1": ClothingItemPayload(id="i-1", name="Blue Denim Jacket", brand="Levi's"),
    }
    fake_store.add_post(make_post(
        "p-outfit", user_id="mina", likes=120, age=timedelta(hours=12),
        caption="Today's fit", kind=PostKind.OUTFIT, outfit_id="o-1",
    ))
    fake_store.add_post(make_post(
        "p-item", user_id="rio", likes=60, age=timedelta(days=2),
        caption="New pickup", kind=PostKind.CLOTHING_ITEM, clothing_item_id="i-1",
    ))
    fake_store.add_post(make_post(
        "p-fit", user_id="kai", likes=10, age=timedelta(days=10),
        caption="feeling BLUE today", image_url="https://img/fit.jpg",
    ))
    return fake_store


# ============================================================================
# Markers
# ============================================================================

def pytest_configure(config):
    config.addinivalue_line("markers", "unit: pure ranking-engine tests")
    config.addinivalue_line("markers", "integration: SQL store or HTTP app tests")
