"""
Redis client wrapper.

Responsibilities:
  • Style-tag cache — STRING (JSON list) keyed by st:{user_id}
                       value = the user's normalised style-tag names

The style-affinity index reads through this cache before hitting the
content store; entries expire after redis_style_tag_ttl seconds.
"""
import json
import logging
from typing import Optional

import redis.asyncio as aioredis

from inspiration_feed.config import settings

logger = logging.getLogger(__name__)

_redis: Optional[aioredis.Redis] = None


async def init_redis() -> aioredis.Redis:
    global _redis
    _redis = aioredis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        decode_responses=True,
    )
    await _redis.ping()
    logger.info("Redis connected at %s:%s", settings.redis_host, settings.redis_port)
    return _redis


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None


def get_redis() -> aioredis.Redis:
    if _redis is None:
        raise RuntimeError("Redis not initialised — call init_redis() at startup")
    return _redis


# ─────────────────────── Style-tag cache (STRING) ─────────────────────────

def style_tag_key(user_id: str) -> str:
    return f"st:{user_id}"


class StyleTagCache:
    def __init__(
        self,
        redis: Optional[aioredis.Redis] = None,
        ttl: Optional[int] = None,
    ) -> None:
        self._redis = redis
        self.ttl = ttl or settings.redis_style_tag_ttl

    @property
    def client(self) -> aioredis.Redis:
        return self._redis if self._redis is not None else get_redis()

    async def get_many(self, user_ids: list[str]) -> dict[str, set[str]]:
        """Return cached tag sets; users missing from the cache are absent."""
        if not user_ids:
            return {}
        raw = await self.client.mget([style_tag_key(uid) for uid in user_ids])
        return {
            uid: set(json.loads(value))
            for uid, value in zip(user_ids, raw)
            if value is not None
        }

    async def set_many(self, tags: dict[str, set[str]]) -> None:
        if not tags:
            return
        pipe = self.client.pipeline()
        for uid, names in tags.items():
            pipe.set(style_tag_key(uid), json.dumps(sorted(names)), ex=self.ttl)
        await pipe.execute()
