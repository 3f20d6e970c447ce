"""
Content-seeding service client.

The seeding service generates fresh inspiration posts tuned to a viewer's
declared styles (it owns its own retry/backoff against the generative
backend). The feed only needs to know how many new posts became available
so it can reload.

Request:   POST /seed-inspiration
           Authorization: Bearer <viewer access token or service token>
           { "userStyles": [...], "refreshMode": true }
Response:  { "stats": { "posts": <int>, ... }, ... }
           or { "skipped": true, ... } when the content already exists
"""
import logging
from typing import Optional

import httpx
from pydantic import BaseModel

from inspiration_feed.config import settings
from inspiration_feed.errors import SeedServiceError

logger = logging.getLogger(__name__)


class SeedStats(BaseModel):
    posts: int = 0


class SeedClient:
    def __init__(
        self,
        http: Optional[httpx.AsyncClient] = None,
        service_token: Optional[str] = None,
    ) -> None:
        self._http = http
        self._service_token = service_token

    async def start(self) -> None:
        if self._http is None:
            self._http = httpx.AsyncClient(
                base_url=settings.seed_service_url, timeout=settings.seed_timeout
            )
        if self._service_token is None:
            self._service_token = settings.seed_service_token

    async def stop(self) -> None:
        if self._http:
            await self._http.aclose()

    async def seed(
        self,
        user_id: str,
        styles: list[str],
        access_token: Optional[str] = None,
    ) -> SeedStats:
        """Request refresh-mode seeding; the service identifies the user by the token."""
        if self._http is None:
            raise SeedServiceError("seed client not started")
        headers = {}
        token = access_token or self._service_token
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            resp = await self._http.post(
                "/seed-inspiration",
                json={"userStyles": styles, "refreshMode": True},
                headers=headers,
            )
            resp.raise_for_status()
            body = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Seeding failed for user %s: %s", user_id, exc)
            raise SeedServiceError(str(exc)) from exc

        if body.get("skipped"):
            logger.info("Seeding skipped for user %s: content already exists", user_id)
            return SeedStats(posts=0)
        stats = body.get("stats") or {}
        result = SeedStats(posts=int(stats.get("posts", 0)))
        logger.info("Seeded %d posts for user %s", result.posts, user_id)
        return result


# Singleton — started/stopped in app lifespan (main.py)
seed_client = SeedClient()
