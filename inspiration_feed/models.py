"""
SQLAlchemy ORM models for the content store.

Tables:
  profiles           — user handle, display name, avatar
  style_tags         — style vocabulary ("minimalist", "streetwear", …)
  user_style_tags    — user × declared style
  clothing_items     — catalogued pieces
  outfits            — named sets of clothing items + free-form tags
  outfit_items       — outfit × clothing item
  inspiration_posts  — feed posts (at most one linked outfit/item/image)
  post_likes         — user × post like, unique per pair
  saved_posts        — user × post save, unique per pair
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from inspiration_feed.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Profile(Base):
    __tablename__ = "profiles"

    user_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    username: Mapped[Optional[str]] = mapped_column(String(100), unique=True)
    display_name: Mapped[Optional[str]] = mapped_column(String(255))
    avatar_url: Mapped[Optional[str]] = mapped_column(String(500))
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )


class StyleTag(Base):
    __tablename__ = "style_tags"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)


class UserStyleTag(Base):
    __tablename__ = "user_style_tags"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.user_id"), primary_key=True
    )
    style_tag_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("style_tags.id"), primary_key=True
    )


class ClothingItem(Base):
    __tablename__ = "clothing_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.user_id"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(String(500))
    brand: Mapped[Optional[str]] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )


class Outfit(Base):
    __tablename__ = "outfits"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.user_id"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    photo_url: Mapped[Optional[str]] = mapped_column(String(500))
    tags: Mapped[Optional[list]] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )


class OutfitItem(Base):
    __tablename__ = "outfit_items"

    outfit_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("outfits.id"), primary_key=True
    )
    clothing_item_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("clothing_items.id"), primary_key=True
    )

    __table_args__ = (Index("idx_outfit_items_outfit", "outfit_id"),)


class InspirationPost(Base):
    __tablename__ = "inspiration_posts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.user_id"), nullable=False
    )
    post_type: Mapped[str] = mapped_column(String(20), nullable=False)
    caption: Mapped[Optional[str]] = mapped_column(Text)
    outfit_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("outfits.id"))
    clothing_item_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("clothing_items.id")
    )
    image_url: Mapped[Optional[str]] = mapped_column(String(500))
    # Maintained by like insert/delete only
    likes_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint("likes_count >= 0", name="ck_posts_likes_nonneg"),
        CheckConstraint(
            "(CASE WHEN outfit_id IS NULL THEN 0 ELSE 1 END)"
            " + (CASE WHEN clothing_item_id IS NULL THEN 0 ELSE 1 END)"
            " + (CASE WHEN image_url IS NULL THEN 0 ELSE 1 END) <= 1",
            name="ck_posts_single_binding",
        ),
        Index("idx_posts_created", "created_at"),
        Index("idx_posts_likes", "likes_count"),
    )


class PostLike(Base):
    __tablename__ = "post_likes"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.user_id"), primary_key=True
    )
    post_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("inspiration_posts.id"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )


class SavedPost(Base):
    __tablename__ = "saved_posts"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.user_id"), primary_key=True
    )
    post_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("inspiration_posts.id"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )
