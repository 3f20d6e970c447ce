#!/usr/bin/env python3
"""
Seed script — fills the content store with a small wardrobe community.

Creates:
  • 8 users, each with 1-3 declared style tags
  • 3 clothing items and 1 outfit per user
  • 4 inspiration posts per user (outfit, clothing item, or plain fit check),
    spread over the last two weeks
  • Some likes and saves across posts

Writes straight to the database named by DATABASE_URL (or the DB_* settings):
  python scripts/seed_data.py --seed 7

All IDs are printed so you can use them in curl commands.
"""
import argparse
import asyncio
import random
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from inspiration_feed.database import AsyncSessionLocal, engine, init_db
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

STYLES = ["minimalist", "streetwear", "bohemian", "vintage", "preppy", "athleisure"]

BASE_USERS = [
    ("mina.fits", "Mina Park"),
    ("rio_street", "Rio Alvarez"),
    ("kai.thrifts", "Kai Moreno"),
    ("noor_wears", "Noor Haddad"),
    ("jules.layers", "Jules Laurent"),
    ("ana_capsule", "Ana Costa"),
    ("teo.denim", "Teo Rossi"),
    ("lena_linen", "Lena Vogel"),
]

PIECES = [
    ("White Oversized Tee", "Uniqlo"),
    ("Blue Denim Jacket", "Levi's"),
    ("Black Wide Trousers", "COS"),
    ("Cream Knit Cardigan", None),
    ("Chunky Loafers", "Dr. Martens"),
    ("Olive Cargo Pants", "Carhartt"),
    ("Linen Button-Down", "Arket"),
    ("Silver Hoops", None),
    ("Tan Trench Coat", "Burberry"),
    ("Grey Hoodie", "Champion"),
]

CAPTIONS = [
    "Today's fit",
    "Capsule wardrobe, day 12",
    "New pickup, obsessed",
    "Thrifted this for $8",
    "Layering season is here",
    "Monochrome Monday",
    "feeling BLUE today",
    "Weekend errands uniform",
    "Wore this to the gallery opening",
    None,
]


async def seed(
    sessionmaker: async_sessionmaker[AsyncSession],
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> dict[str, list[str]]:
    """Insert the demo dataset; returns the created ids by kind."""
    rng = rng or random.Random()
    now = now or datetime.now(timezone.utc).replace(tzinfo=None)
    created: dict[str, list[str]] = {"users": [], "posts": [], "likes": [], "saves": []}

    async with sessionmaker() as session:
        async with session.begin():
            # ── Style vocabulary ─────────────────────────────────────────
            tags = [StyleTag(name=name) for name in STYLES]
            session.add_all(tags)

            # ── Users, wardrobes and outfits ─────────────────────────────
            users = [Profile(username=u, display_name=d) for u, d in BASE_USERS]
            session.add_all(users)
            await session.flush()

            posts: list[InspirationPost] = []
            for user in users:
                created["users"].append(user.user_id)
                user_tags = rng.sample(tags, k=rng.randint(1, 3))
                session.add_all(
                    UserStyleTag(user_id=user.user_id, style_tag_id=t.id) for t in user_tags
                )

                items = [
                    ClothingItem(user_id=user.user_id, name=name, brand=brand)
                    for name, brand in rng.sample(PIECES, k=3)
                ]
                outfit = Outfit(
                    user_id=user.user_id,
                    name=f"{user_tags[0].name.title()} Look",
                    tags=[t.name for t in user_tags],
                )
                session.add_all([*items, outfit])
                await session.flush()
                session.add_all(
                    OutfitItem(outfit_id=outfit.id, clothing_item_id=i.id) for i in items
                )

                # ── Posts: one per binding, plus a bare fit check ───────
                bindings = [
                    {"post_type": "outfit", "outfit_id": outfit.id},
                    {"post_type": "clothing_item", "clothing_item_id": items[0].id},
                    {"post_type": "fit_check", "image_url": f"https://img.example/{user.username}.jpg"},
                    {"post_type": "fit_check"},
                ]
                for binding in bindings:
                    posts.append(InspirationPost(
                        user_id=user.user_id,
                        caption=rng.choice(CAPTIONS),
                        created_at=now - timedelta(hours=rng.randint(1, 14 * 24)),
                        **binding,
                    ))
            session.add_all(posts)
            await session.flush()

            # ── Likes and saves ──────────────────────────────────────────
            for post in posts:
                created["posts"].append(post.id)
                # Each post gets 0-5 random likes
                likers = rng.sample(users, k=rng.randint(0, 5))
                for liker in likers:
                    session.add(PostLike(user_id=liker.user_id, post_id=post.id))
                    created["likes"].append(post.id)
                post.likes_count = len(likers)

                if rng.random() < 0.2:
                    saver = rng.choice(users)
                    session.add(SavedPost(user_id=saver.user_id, post_id=post.id))
                    created["saves"].append(post.id)

    return created


async def main(rng_seed: Optional[int]) -> None:
    await init_db()
    created = await seed(AsyncSessionLocal, random.Random(rng_seed))
    await engine.dispose()

    print("Users:")
    for (username, _), uid in zip(BASE_USERS, created["users"]):
        print(f"  ✓ {username} ({uid})")
    print(f"\n  ✓ {len(created['posts'])} posts created")
    print(f"  ✓ {len(created['likes'])} likes, {len(created['saves'])} saves added")

    # ── Print summary ─────────────────────────────────────────────────────
    u = created["users"][0]
    print("\n" + "=" * 60)
    print("Seed complete! Here are some commands to try:\n")
    print(f"# Get the For You feed for '{BASE_USERS[0][0]}':")
    print(f"  curl -s 'http://localhost:8000/feed/?user_id={u}' | python3 -m json.tool\n")
    print("# Trending tab, searching for denim:")
    print(f"  curl -s 'http://localhost:8000/feed/?user_id={u}&mode=trending&q=denim'\n")
    print("# Like a post:")
    print(f"  curl -s -X POST 'http://localhost:8000/feed/posts/{created['posts'][0]}/like?user_id={u}'")
    print("=" * 60)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the inspiration feed content store")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for a repeatable dataset")
    args = parser.parse_args()
    asyncio.run(main(args.seed))
