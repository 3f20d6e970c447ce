"""
Outbound contract of the feed engine.

Everything the engine reads or writes goes through a FeedStore. The SQL
implementation lives in inspiration_feed.repository; tests use an in-memory
fake. Every bulk lookup takes a set of ids and answers in a single round
trip; implementations must not fan out one query per id.
"""
from typing import Protocol

from inspiration_feed.ranking.types import (
    AuthorProfile,
    ClothingItemPayload,
    FetchOrder,
    OutfitPayload,
    Post,
)


class FeedStore(Protocol):
    async def fetch_posts(self, order: FetchOrder, limit: int) -> list[Post]:
        """Candidate posts in `order`, post id as the final tie-break."""
        ...

    async def fetch_authors(self, user_ids: set[str]) -> dict[str, AuthorProfile]:
        ...

    async def fetch_style_tags(self, user_ids: set[str]) -> dict[str, list[str]]:
        """Raw declared style-tag names per user; users without tags may be absent."""
        ...

    async def fetch_outfits(self, outfit_ids: set[str]) -> dict[str, OutfitPayload]:
        """Outfits with their member clothing items attached."""
        ...

    async def fetch_clothing_items(
        self, item_ids: set[str]
    ) -> dict[str, ClothingItemPayload]:
        ...

    async def fetch_interactions(self, viewer_id: str) -> tuple[set[str], set[str]]:
        """(liked post ids, saved post ids) for the viewer."""
        ...

    async def insert_like(self, post_id: str, viewer_id: str) -> None:
        ...

    async def delete_like(self, post_id: str, viewer_id: str) -> None:
        ...

    async def insert_save(self, post_id: str, viewer_id: str) -> None:
        ...

    async def delete_save(self, post_id: str, viewer_id: str) -> None:
        ...
