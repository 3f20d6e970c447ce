"""
Pydantic response schemas for the HTTP layer.
Kept separate from the ranking types to avoid coupling transport to the engine.
"""
from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from inspiration_feed.ranking.types import (
    AdSlot,
    ClothingItemPayload,
    FeedMode,
    FeedView,
    OutfitPayload,
    ScoredPost,
)


# ──────────────────────────── Feed ────────────────────────────────────────

class AuthorOut(BaseModel):
    user_id: str
    username: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None


class FeedPostEntry(BaseModel):
    """A ranked post as rendered on a card."""
    kind: Literal["post"] = "post"
    post_id: str
    post_type: str
    caption: Optional[str]
    image_url: Optional[str]
    author: AuthorOut
    outfit: Optional[OutfitPayload] = None
    clothing_item: Optional[ClothingItemPayload] = None
    likes_count: int
    created_at: datetime
    has_liked: bool
    has_saved: bool
    # Ranking signal exposed for debugging
    relevance_score: int


class AdEntry(BaseModel):
    kind: Literal["ad"] = "ad"
    ad_id: str
    brand: str
    title: str
    description: str
    image_url: str
    cta_text: str
    link: str


FeedEntryOut = Annotated[Union[FeedPostEntry, AdEntry], Field(discriminator="kind")]


class FeedResponse(BaseModel):
    user_id: str
    mode: FeedMode
    query: str
    entries: list[FeedEntryOut]
    post_count: int
    latency_ms: float


def post_entry(post: ScoredPost) -> FeedPostEntry:
    return FeedPostEntry(
        post_id=post.id,
        post_type=post.post_type.value,
        caption=post.caption,
        image_url=post.image_url,
        author=AuthorOut(
            user_id=post.author.user_id,
            username=post.author.username or "anonymous",
            display_name=post.author.display_name,
            avatar_url=post.author.avatar_url,
        ),
        outfit=post.outfit,
        clothing_item=post.clothing_item,
        likes_count=post.likes_count,
        created_at=post.created_at,
        has_liked=post.has_liked,
        has_saved=post.has_saved,
        relevance_score=post.relevance_score,
    )


def ad_entry(slot: AdSlot) -> AdEntry:
    ad = slot.ad
    return AdEntry(
        ad_id=ad.id,
        brand=ad.brand,
        title=ad.title,
        description=ad.description,
        image_url=ad.image_url,
        cta_text=ad.cta_text,
        link=ad.link,
    )


def feed_response(user_id: str, view: FeedView, latency_ms: float) -> FeedResponse:
    entries: list[FeedEntryOut] = [
        ad_entry(e) if isinstance(e, AdSlot) else post_entry(e) for e in view.entries
    ]
    return FeedResponse(
        user_id=user_id,
        mode=view.mode,
        query=view.query,
        entries=entries,
        post_count=len(view.posts),
        latency_ms=round(latency_ms, 2),
    )


# ──────────────────────────── Interactions ────────────────────────────────

class MutationResponse(BaseModel):
    post_id: str
    kind: str                  # 'like' | 'save'
    active: bool
    likes_count: Optional[int]
    persisted: bool
    notice: Optional[str] = None


class RefreshResponse(BaseModel):
    posts: int
