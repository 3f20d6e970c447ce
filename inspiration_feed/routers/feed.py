"""
Feed endpoints:
  GET  /feed                       — load a tab (foryou | trending | recent | saved)
  POST /feed/posts/{id}/like       — toggle like
  POST /feed/posts/{id}/save       — toggle save
  POST /feed/refresh               — seed personalised posts, then reload

The viewer is identified by the `user_id` query parameter; authentication
happens upstream. Each viewer gets a FeedSession held in the registry on
app.state, so tab switches and toggles reuse the fetched pool.
"""
import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status
from opentelemetry import trace

from inspiration_feed.errors import (
    FeedError,
    FeedLoadError,
    FeedLoadSuperseded,
    SeedServiceError,
)
from inspiration_feed.ranking.session import FeedSessionRegistry
from inspiration_feed.ranking.types import FeedMode
from inspiration_feed.schemas import (
    FeedResponse,
    MutationResponse,
    RefreshResponse,
    feed_response,
)

logger = logging.getLogger(__name__)
router = APIRouter()
tracer = trace.get_tracer(__name__)


def get_registry(request: Request) -> FeedSessionRegistry:
    """FastAPI dependency returning the session registry built at startup."""
    return request.app.state.registry


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Forwarded viewer token for the seeding service, if any."""
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer "):]
    return None


@router.get("/", response_model=FeedResponse)
async def get_feed(
    user_id: str = Query(..., description="ID of the requesting user"),
    mode: FeedMode = Query(FeedMode.FOR_YOU, description="Feed tab"),
    q: str = Query("", max_length=200, description="Case-insensitive text search"),
    registry: FeedSessionRegistry = Depends(get_registry),
):
    start_time = time.perf_counter()

    with tracer.start_as_current_span("get_feed") as span:
        span.set_attribute("user.id", user_id)
        span.set_attribute("feed.mode", mode.value)

        session = registry.get(user_id)
        try:
            view = await session.load_feed(mode, q)
        except FeedLoadSuperseded as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Superseded by a newer feed request",
            ) from exc
        except FeedLoadError as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Failed to load feed, please retry",
                headers={"Retry-After": "1"},
            ) from exc

        latency_ms = (time.perf_counter() - start_time) * 1000
        span.set_attribute("feed.posts_returned", len(view.posts))
        return feed_response(user_id, view, latency_ms)


@router.post("/posts/{post_id}/like", response_model=MutationResponse)
async def toggle_like(
    post_id: str,
    user_id: str = Query(...),
    registry: FeedSessionRegistry = Depends(get_registry),
):
    with tracer.start_as_current_span("toggle_like"):
        try:
            outcome = await registry.get(user_id).toggle_like(post_id)
        except FeedLoadError as exc:
            raise HTTPException(status_code=503, detail="Viewer state unavailable") from exc
        return MutationResponse(**outcome.model_dump(mode="json"))


@router.post("/posts/{post_id}/save", response_model=MutationResponse)
async def toggle_save(
    post_id: str,
    user_id: str = Query(...),
    registry: FeedSessionRegistry = Depends(get_registry),
):
    with tracer.start_as_current_span("toggle_save"):
        try:
            outcome = await registry.get(user_id).toggle_save(post_id)
        except FeedLoadError as exc:
            raise HTTPException(status_code=503, detail="Viewer state unavailable") from exc
        return MutationResponse(**outcome.model_dump(mode="json"))


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_personalization(
    user_id: str = Query(...),
    authorization: Optional[str] = Header(None),
    registry: FeedSessionRegistry = Depends(get_registry),
):
    """Generate posts matching the viewer's styles, then reload the current tab."""
    with tracer.start_as_current_span("refresh_personalization"):
        try:
            stats = await registry.get(user_id).refresh_personalization(
                access_token=bearer_token(authorization)
            )
        except SeedServiceError as exc:
            raise HTTPException(status_code=502, detail="Content seeding failed") from exc
        except FeedLoadError as exc:
            raise HTTPException(status_code=503, detail="Failed to load feed") from exc
        except FeedError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        logger.info("Refreshed feed for %s (%d new posts)", user_id, stats.posts)
        return RefreshResponse(posts=stats.posts)
