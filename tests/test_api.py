"""
HTTP-level tests for the feed API, run in-process over ASGITransport with an
in-memory store (the app lifespan is not started).
"""
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from inspiration_feed.clients.seed_client import SeedStats
from inspiration_feed.config import Settings
from inspiration_feed.errors import SeedServiceError
from inspiration_feed.main import app, build_registry

pytestmark = pytest.mark.integration


@pytest.fixture
def seed():
    client = AsyncMock()
    client.seed.return_value = SeedStats(posts=2)
    return client


@pytest.fixture
async def client(seeded_store, seed):
    app.state.registry = build_registry(seeded_store, seed=seed)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    del app.state.registry


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


async def test_get_feed(client):
    resp = await client.get("/feed/", params={"user_id": "viewer"})
    assert resp.status_code == 200

    body = resp.json()
    assert body["mode"] == "foryou"
    assert body["post_count"] == 3
    first = body["entries"][0]
    assert first["kind"] == "post"
    assert first["post_id"] == "p-outfit"
    assert first["author"]["username"] == "mina.fits"
    assert first["outfit"]["name"] == "Clean Minimal Look"


async def test_search_and_tab(client):
    resp = await client.get(
        "/feed/", params={"user_id": "viewer", "mode": "trending", "q": "BLUE"}
    )
    body = resp.json()
    assert [e["post_id"] for e in body["entries"]] == ["p-item", "p-fit"]
    assert body["query"] == "BLUE"


async def test_ads_in_response(client, seeded_store, make_post):
    for i in range(10):
        seeded_store.add_post(make_post(f"extra-{i}"))

    body = (await client.get("/feed/", params={"user_id": "viewer"})).json()

    kinds = [e["kind"] for e in body["entries"]]
    assert body["post_count"] == 13
    assert kinds.count("ad") == 2
    assert kinds[6] == "ad" and kinds[13] == "ad"


async def test_unknown_mode_rejected(client):
    resp = await client.get("/feed/", params={"user_id": "viewer", "mode": "popular"})
    assert resp.status_code == 422


async def test_store_outage_is_503(client, seeded_store):
    seeded_store.fail.add("fetch_posts")
    resp = await client.get("/feed/", params={"user_id": "viewer"})
    assert resp.status_code == 503
    assert resp.headers["retry-after"] == "1"


async def test_degraded_authors_render_as_anonymous(client, seeded_store):
    seeded_store.fail.add("fetch_authors")
    body = (await client.get("/feed/", params={"user_id": "viewer"})).json()
    assert {e["author"]["username"] for e in body["entries"]} == {"anonymous"}


async def test_like_then_saved_tab(client):
    await client.get("/feed/", params={"user_id": "viewer"})

    like = await client.post("/feed/posts/p-item/like", params={"user_id": "viewer"})
    save = await client.post("/feed/posts/p-item/save", params={"user_id": "viewer"})
    saved = await client.get("/feed/", params={"user_id": "viewer", "mode": "saved"})

    assert like.json() == {
        "post_id": "p-item",
        "kind": "like",
        "active": True,
        "likes_count": 61,
        "persisted": True,
        "notice": None,
    }
    assert save.json()["active"] is True
    [entry] = saved.json()["entries"]
    assert entry["post_id"] == "p-item"
    assert entry["has_liked"] and entry["has_saved"]


async def test_failed_like_reports_not_persisted(client, seeded_store):
    seeded_store.fail.add("insert_like")
    resp = await client.post("/feed/posts/p-fit/like", params={"user_id": "viewer"})
    assert resp.status_code == 200
    assert resp.json()["persisted"] is False


async def test_rollback_setting_reverts(seeded_store):
    app.state.registry = build_registry(
        seeded_store, cfg=Settings(rollback_failed_mutations=True)
    )
    seeded_store.fail.add("insert_save")
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            resp = await ac.post("/feed/posts/p-fit/save", params={"user_id": "viewer"})
    finally:
        del app.state.registry

    body = resp.json()
    assert body["active"] is False
    assert body["notice"] == "Couldn't save this post, please try again"


async def test_refresh(client, seed):
    await client.get("/feed/", params={"user_id": "viewer", "mode": "recent"})
    resp = await client.post("/feed/refresh", params={"user_id": "viewer"})

    assert resp.status_code == 200
    assert resp.json() == {"posts": 2}
    seed.seed.assert_awaited_once_with(
        "viewer", ["minimalist", "streetwear"], access_token=None
    )


async def test_refresh_forwards_bearer_token(client, seed):
    resp = await client.post(
        "/feed/refresh",
        params={"user_id": "viewer"},
        headers={"Authorization": "Bearer tok-123"},
    )

    assert resp.status_code == 200
    assert seed.seed.await_args.kwargs == {"access_token": "tok-123"}


async def test_refresh_seed_failure_is_502(client, seed):
    seed.seed.side_effect = SeedServiceError("down")
    resp = await client.post("/feed/refresh", params={"user_id": "viewer"})
    assert resp.status_code == 502
