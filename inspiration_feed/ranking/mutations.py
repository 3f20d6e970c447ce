"""
Optimistic like/save toggles.

Like and save are independent two-state machines per post:

    neutral ──toggle──▶ liked ──toggle──▶ neutral
    neutral ──toggle──▶ saved ──toggle──▶ neutral

A toggle is applied to the session first (viewer id sets, and the pooled
likes_count for likes), then written to the store. While the write is in
flight the session keeps replaying it over any reload. When the write fails the
optimistic state is kept unless the pipeline was built with
rollback_on_failure=True, in which case it is reverted and the outcome
carries a notice for the user. Either way the session view is re-rendered
once the write settles.
"""
import logging
from enum import Enum
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

from pydantic import BaseModel

from inspiration_feed.store import FeedStore
from inspiration_feed.telemetry import MUTATION_FAILURES_TOTAL

if TYPE_CHECKING:
    from inspiration_feed.ranking.session import FeedSession

logger = logging.getLogger(__name__)


class MutationKind(str, Enum):
    LIKE = "like"
    SAVE = "save"


class MutationOutcome(BaseModel):
    post_id: str
    kind: MutationKind
    active: bool                        # liked / saved after the toggle settled
    likes_count: Optional[int] = None   # None when the post is not in the pool
    persisted: bool = True
    notice: Optional[str] = None


class MutationPipeline:
    def __init__(self, store: FeedStore, rollback_on_failure: bool = False) -> None:
        self._store = store
        self.rollback_on_failure = rollback_on_failure

    async def toggle_like(self, session: "FeedSession", post_id: str) -> MutationOutcome:
        viewer = await session.ensure_viewer()
        liking = post_id not in viewer.liked_ids
        write = self._store.insert_like if liking else self._store.delete_like
        return await self._toggle(session, MutationKind.LIKE, post_id, liking, write)

    async def toggle_save(self, session: "FeedSession", post_id: str) -> MutationOutcome:
        viewer = await session.ensure_viewer()
        saving = post_id not in viewer.saved_ids
        write = self._store.insert_save if saving else self._store.delete_save
        return await self._toggle(session, MutationKind.SAVE, post_id, saving, write)

    async def _toggle(
        self,
        session: "FeedSession",
        kind: MutationKind,
        post_id: str,
        active: bool,
        write: Callable[[str, str], Awaitable[None]],
    ) -> MutationOutcome:
        # optimistic; the session replays it over reloads until end_write()
        session.apply_toggle(kind, post_id, active)
        seq = session.begin_write(kind, post_id, active)

        outcome = MutationOutcome(post_id=post_id, kind=kind, active=active)
        try:
            await write(post_id, session.viewer_id)
        except Exception as exc:
            MUTATION_FAILURES_TOTAL.labels(kind=kind.value).inc()
            outcome.persisted = False
            if self.rollback_on_failure:
                # inverse toggle, so a pool installed meanwhile is not overwritten
                session.apply_toggle(kind, post_id, not active)
                outcome.active = not active
                outcome.notice = f"Couldn't {kind.value} this post, please try again"
                logger.warning(
                    "%s write failed (post=%s, user=%s): %s — reverted",
                    kind.value, post_id, session.viewer_id, exc,
                )
            else:
                logger.warning(
                    "%s write failed (post=%s, user=%s): %s — keeping local state",
                    kind.value, post_id, session.viewer_id, exc,
                )
        finally:
            session.end_write(kind, post_id, seq)

        outcome.likes_count = session.likes_of(post_id)
        if session.is_loaded:
            session.render()
        return outcome
