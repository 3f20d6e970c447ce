"""
SQL implementation of the FeedStore contract.

Every method opens its own short-lived AsyncSession: the assembler issues
its enrichment lookups concurrently, and an AsyncSession must not be shared
between concurrent tasks. Bulk lookups are single `IN (...)` queries.
"""
import logging
from collections import defaultdict

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from inspiration_feed.errors import MutationError
from inspiration_feed.models import (
    ClothingItem,
    InspirationPost,
    Outfit,
    OutfitItem,
    PostLike,
    Profile,
    SavedPost,
    StyleTag,
    UserStyleTag,
)
from inspiration_feed.ranking.types import (
    AuthorProfile,
    ClothingItemPayload,
    FetchOrder,
    OutfitPayload,
    Post,
)

logger = logging.getLogger(__name__)


def _to_post(row: InspirationPost) -> Post:
    return Post(
        id=row.id,
        user_id=row.user_id,
        post_type=row.post_type,
        caption=row.caption,
        outfit_id=row.outfit_id,
        clothing_item_id=row.clothing_item_id,
        image_url=row.image_url,
        likes_count=max(0, row.likes_count or 0),
        created_at=row.created_at,
    )


def _to_item(row: ClothingItem) -> ClothingItemPayload:
    return ClothingItemPayload(
        id=row.id, name=row.name, image_url=row.image_url, brand=row.brand
    )


class SqlFeedStore:
    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        self._sessionmaker = sessionmaker

    # ── Reads ─────────────────────────────────────────────────────────────

    async def fetch_posts(self, order: FetchOrder, limit: int) -> list[Post]:
        stmt = select(InspirationPost)
        if order is FetchOrder.BY_LIKES_DESC:
            stmt = stmt.order_by(
                InspirationPost.likes_count.desc(),
                InspirationPost.created_at.desc(),
                InspirationPost.id,
            )
        else:
            stmt = stmt.order_by(InspirationPost.created_at.desc(), InspirationPost.id)

        async with self._sessionmaker() as session:
            rows = await session.execute(stmt.limit(limit))
            return [_to_post(r) for r in rows.scalars().all()]

    async def fetch_authors(self, user_ids: set[str]) -> dict[str, AuthorProfile]:
        if not user_ids:
            return {}
        async with self._sessionmaker() as session:
            rows = await session.execute(
                select(Profile).where(Profile.user_id.in_(user_ids))
            )
            return {
                p.user_id: AuthorProfile(
                    user_id=p.user_id,
                    username=p.username,
                    display_name=p.display_name,
                    avatar_url=p.avatar_url,
                )
                for p in rows.scalars().all()
            }

    async def fetch_style_tags(self, user_ids: set[str]) -> dict[str, list[str]]:
        if not user_ids:
            return {}
        async with self._sessionmaker() as session:
            rows = await session.execute(
                select(UserStyleTag.user_id, StyleTag.name)
                .join(StyleTag, StyleTag.id == UserStyleTag.style_tag_id)
                .where(UserStyleTag.user_id.in_(user_ids))
            )
            tags: dict[str, list[str]] = defaultdict(list)
            for user_id, name in rows.all():
                tags[user_id].append(name)
            return dict(tags)

    async def fetch_outfits(self, outfit_ids: set[str]) -> dict[str, OutfitPayload]:
        if not outfit_ids:
            return {}
        async with self._sessionmaker() as session:
            outfits = (
                await session.execute(select(Outfit).where(Outfit.id.in_(outfit_ids)))
            ).scalars().all()
            members = await session.execute(
                select(OutfitItem.outfit_id, ClothingItem)
                .join(ClothingItem, ClothingItem.id == OutfitItem.clothing_item_id)
                .where(OutfitItem.outfit_id.in_(outfit_ids))
                .order_by(OutfitItem.outfit_id, ClothingItem.id)
            )
            items_by_outfit: dict[str, list[ClothingItemPayload]] = defaultdict(list)
            for outfit_id, item in members.all():
                items_by_outfit[outfit_id].append(_to_item(item))

            return {
                o.id: OutfitPayload(
                    id=o.id,
                    name=o.name,
                    photo_url=o.photo_url,
                    tags=list(o.tags or []),
                    items=items_by_outfit.get(o.id, []),
                )
                for o in outfits
            }

    async def fetch_clothing_items(
        self, item_ids: set[str]
    ) -> dict[str, ClothingItemPayload]:
        if not item_ids:
            return {}
        async with self._sessionmaker() as session:
            rows = await session.execute(
                select(ClothingItem).where(ClothingItem.id.in_(item_ids))
            )
            return {i.id: _to_item(i) for i in rows.scalars().all()}

    async def fetch_interactions(self, viewer_id: str) -> tuple[set[str], set[str]]:
        async with self._sessionmaker() as session:
            liked = await session.execute(
                select(PostLike.post_id).where(PostLike.user_id == viewer_id)
            )
            saved = await session.execute(
                select(SavedPost.post_id).where(SavedPost.user_id == viewer_id)
            )
            return {r[0] for r in liked.all()}, {r[0] for r in saved.all()}

    # ── Writes ────────────────────────────────────────────────────────────

    async def insert_like(self, post_id: str, viewer_id: str) -> None:
        """Record a like and bump the aggregate; a repeated like is a no-op."""
        async with self._sessionmaker() as session:
            async with session.begin():
                post = await session.get(InspirationPost, post_id)
                if post is None:
                    raise MutationError(f"post {post_id} not found")
                existing = await session.get(PostLike, (viewer_id, post_id))
                if existing is not None:
                    logger.debug("Duplicate like ignored (post=%s, user=%s)", post_id, viewer_id)
                    return
                session.add(PostLike(user_id=viewer_id, post_id=post_id))
                post.likes_count = (post.likes_count or 0) + 1

    async def delete_like(self, post_id: str, viewer_id: str) -> None:
        async with self._sessionmaker() as session:
            async with session.begin():
                result = await session.execute(
                    delete(PostLike).where(
                        PostLike.user_id == viewer_id, PostLike.post_id == post_id
                    )
                )
                if result.rowcount:
                    post = await session.get(InspirationPost, post_id)
                    if post is not None:
                        post.likes_count = max(0, (post.likes_count or 0) - 1)

    async def insert_save(self, post_id: str, viewer_id: str) -> None:
        async with self._sessionmaker() as session:
            async with session.begin():
                if await session.get(InspirationPost, post_id) is None:
                    raise MutationError(f"post {post_id} not found")
                if await session.get(SavedPost, (viewer_id, post_id)) is None:
                    session.add(SavedPost(user_id=viewer_id, post_id=post_id))

    async def delete_save(self, post_id: str, viewer_id: str) -> None:
        async with self._sessionmaker() as session:
            async with session.begin():
                await session.execute(
                    delete(SavedPost).where(
                        SavedPost.user_id == viewer_id, SavedPost.post_id == post_id
                    )
                )
