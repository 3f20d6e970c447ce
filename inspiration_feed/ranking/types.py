"""
Value types shared by the ranking pipeline.

Kept separate from the ORM models: the engine only ever sees these, whatever
store produced them.
"""
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field, model_validator


class FeedMode(str, Enum):
    FOR_YOU = "foryou"
    TRENDING = "trending"
    RECENT = "recent"
    SAVED = "saved"


class FetchOrder(str, Enum):
    BY_LIKES_DESC = "by_likes_desc"
    BY_RECENCY_DESC = "by_recency_desc"


class PostKind(str, Enum):
    FIT_CHECK = "fit_check"
    OUTFIT = "outfit"
    CLOTHING_ITEM = "clothing_item"


# ──────────────────────────── Content ─────────────────────────────────────

class ClothingItemPayload(BaseModel):
    id: str
    name: str
    image_url: Optional[str] = None
    brand: Optional[str] = None


class OutfitPayload(BaseModel):
    id: str
    name: str
    photo_url: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    items: list[ClothingItemPayload] = Field(default_factory=list)


class AuthorProfile(BaseModel):
    user_id: str
    username: Optional[str] = None
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    style_tags: set[str] = Field(default_factory=set)

    @classmethod
    def placeholder(cls, user_id: str) -> "AuthorProfile":
        """Stand-in used when the author lookup failed or found nothing."""
        return cls(user_id=user_id)


class Post(BaseModel):
    id: str
    user_id: str
    post_type: PostKind
    caption: Optional[str] = None
    outfit_id: Optional[str] = None
    clothing_item_id: Optional[str] = None
    image_url: Optional[str] = None
    likes_count: int = Field(0, ge=0)
    created_at: datetime

    @model_validator(mode="after")
    def _single_binding(self) -> "Post":
        bound = [b for b in (self.outfit_id, self.clothing_item_id, self.image_url) if b]
        if len(bound) > 1:
            raise ValueError(
                "a post binds at most one of outfit_id, clothing_item_id, image_url"
            )
        return self


class ScoredPost(Post):
    """
    A candidate post with its enrichment and derived fields.

    The same type is used for the cached candidate pool (flags unset) and for
    composed feed entries; derived fields are always recomputed from the pool.
    """
    author: AuthorProfile
    outfit: Optional[OutfitPayload] = None
    clothing_item: Optional[ClothingItemPayload] = None
    relevance_score: int = 0
    has_liked: bool = False
    has_saved: bool = False

    @property
    def linked_name(self) -> Optional[str]:
        if self.outfit is not None:
            return self.outfit.name
        if self.clothing_item is not None:
            return self.clothing_item.name
        return None


# ──────────────────────────── Viewer ──────────────────────────────────────

class ViewerContext(BaseModel):
    """
    The requesting user's affinity and interaction state.

    Built once per feed session. Only the mutation pipeline writes to
    liked_ids / saved_ids.
    """
    user_id: str
    style_tags: set[str] = Field(default_factory=set)
    liked_ids: set[str] = Field(default_factory=set)
    saved_ids: set[str] = Field(default_factory=set)


# ──────────────────────────── Display ─────────────────────────────────────

class SponsoredAd(BaseModel):
    id: str
    brand: str
    title: str
    description: str
    image_url: str
    cta_text: str
    link: str = "#"


class AdSlot(BaseModel):
    ad: SponsoredAd


FeedEntry = Union[ScoredPost, AdSlot]


class FeedView(BaseModel):
    mode: FeedMode
    query: str = ""
    # Canonical, un-interleaved order; mutations and re-sorts work on this
    posts: list[ScoredPost]
    entries: list[FeedEntry]
