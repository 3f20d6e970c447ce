"""
Style-affinity lookups.

Maps user ids to their declared style tags, normalised to lower-case,
whitespace-stripped, de-duplicated sets. A user without tags maps to an empty
set. Reads through an optional Redis cache; cache errors are logged and the
store is queried instead.
"""
import logging
from typing import Iterable, Optional

from inspiration_feed.clients.redis_client import StyleTagCache
from inspiration_feed.errors import StyleAffinityUnavailable
from inspiration_feed.store import FeedStore

logger = logging.getLogger(__name__)


def normalise_tags(names: Iterable[str]) -> set[str]:
    return {n.strip().lower() for n in names if n and n.strip()}


class StyleAffinityIndex:
    def __init__(self, store: FeedStore, cache: Optional[StyleTagCache] = None) -> None:
        self._store = store
        self._cache = cache

    async def lookup(
        self, user_ids: Iterable[str], *, bypass_cache: bool = False
    ) -> dict[str, set[str]]:
        """
        Return {user_id: style tag set} for every requested user.

        With bypass_cache the store is always read and the cache rewritten.

        Raises StyleAffinityUnavailable when the backing store fails; callers
        treat that as "no affinity data" rather than failing the feed.
        """
        wanted = sorted(set(user_ids))
        if not wanted:
            return {}

        found: dict[str, set[str]] = {}
        if self._cache is not None and not bypass_cache:
            try:
                found = await self._cache.get_many(wanted)
            except Exception as exc:
                logger.warning("Style-tag cache read failed: %s — using store", exc)

        missing = {uid for uid in wanted if uid not in found}
        if missing:
            try:
                raw = await self._store.fetch_style_tags(missing)
            except Exception as exc:
                raise StyleAffinityUnavailable(exc) from exc

            fetched = {uid: normalise_tags(raw.get(uid, ())) for uid in missing}
            found.update(fetched)

            if self._cache is not None:
                try:
                    await self._cache.set_many(fetched)
                except Exception as exc:
                    logger.warning("Style-tag cache write failed: %s", exc)

        return {uid: found.get(uid, set()) for uid in wanted}
