"""
Inspiration Feed API — entry point.

Startup sequence:
  1. Configure OTel tracing (→ Jaeger via OTLP)
  2. Create content-store tables if not present
  3. Connect to Redis (style-tag cache; skipped when disabled or unreachable)
  4. Start the content-seeding HTTP client
  5. Build the per-viewer feed session registry
  6. Expose Prometheus /metrics endpoint
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from prometheus_client import make_asgi_app

from inspiration_feed.clients.redis_client import StyleTagCache, close_redis, init_redis
from inspiration_feed.clients.seed_client import SeedClient, seed_client
from inspiration_feed.config import Settings, settings
from inspiration_feed.database import AsyncSessionLocal, init_db
from inspiration_feed.ranking.ads import AdInterleaver
from inspiration_feed.ranking.affinity import StyleAffinityIndex
from inspiration_feed.ranking.assembler import FeedAssembler
from inspiration_feed.ranking.mutations import MutationPipeline
from inspiration_feed.ranking.scorer import RelevanceScorer, ScoringWeights
from inspiration_feed.ranking.session import FeedSession, FeedSessionRegistry
from inspiration_feed.repository import SqlFeedStore
from inspiration_feed.routers import feed
from inspiration_feed.store import FeedStore
from inspiration_feed.telemetry import instrument_app, setup_tracing

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)

# Set up tracing before the app is created so all imports are instrumented
setup_tracing()


def build_registry(
    store: FeedStore,
    cache: Optional[StyleTagCache] = None,
    seed: Optional[SeedClient] = None,
    cfg: Settings = settings,
) -> FeedSessionRegistry:
    """Wire the ranking pipeline around a store; shared by the app and tests."""
    affinity = StyleAffinityIndex(store, cache)
    assembler = FeedAssembler(
        store,
        affinity,
        scorer=RelevanceScorer(ScoringWeights.from_settings(cfg)),
        candidate_limit=cfg.feed_candidate_limit,
        display_limit=cfg.feed_display_limit,
    )
    mutations = MutationPipeline(store, rollback_on_failure=cfg.rollback_failed_mutations)

    def new_session(viewer_id: str) -> FeedSession:
        return FeedSession(
            viewer_id,
            store,
            affinity,
            assembler,
            mutations,
            AdInterleaver(interval=cfg.ad_interval),
            seed_client=seed,
        )

    return FeedSessionRegistry(
        new_session,
        idle_ttl=cfg.feed_session_idle_ttl,
        max_sessions=cfg.feed_session_limit,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage startup and shutdown of all external connections."""
    logger.info("Starting Inspiration Feed API (env=%s)", settings.environment)

    await init_db()

    cache: Optional[StyleTagCache] = None
    if settings.redis_enabled:
        try:
            cache = StyleTagCache(await init_redis())
        except Exception as exc:
            logger.warning("Redis unavailable (%s) — style tags will not be cached", exc)

    await seed_client.start()

    app.state.registry = build_registry(SqlFeedStore(AsyncSessionLocal), cache, seed_client)

    logger.info("All services connected. API ready.")
    yield

    logger.info("Shutting down...")
    await seed_client.stop()
    await close_redis()


app = FastAPI(
    title="Inspiration Feed API",
    description=(
        "Outfit-inspiration feed: style-affinity ranking, trending and recent "
        "tabs, saved posts and optimistic likes."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

# ── Routers ────────────────────────────────────────────────────────────────
app.include_router(feed.router, prefix="/feed", tags=["Feed"])

# ── Prometheus metrics endpoint ────────────────────────────────────────────
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# ── OTel FastAPI instrumentation ──────────────────────────────────────────
instrument_app(app)


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok", "service": settings.service_name}
