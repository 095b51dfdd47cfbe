# services/game_state/remote_sync.py
"""
Best-effort mirroring of local scores to the `userscores` collection.

Local state is always updated first and unconditionally. Remote writes are
scheduled on the running event loop and never awaited by the caller; a
failed write is logged and forgotten. Nothing remote happens without a
signed-in user.

Remote documents:
    {userId}_global          {userId, type: "global", score, accuracy, ...}
    {userId}_quiz_{quizId}   {userId, type: "quiz", quizId, ..., is_completed}
"""

from __future__ import annotations
from typing import Any, Callable, Coroutine, Dict, Optional, Set
import asyncio
import logging

from .document_store import USERSCORES, DocumentStore, global_doc_id, quiz_doc_id
from .persistent_state import PersistentState, to_plain
from .schema import ACTIVE_QUIZZES, GLOBAL_STATS, stats_from

logger = logging.getLogger(__name__)

UserIdProvider = Callable[[], Optional[str]]


def _no_user() -> Optional[str]:
    return None


class RemoteSync:
    def __init__(
        self,
        state: PersistentState,
        store: Optional[DocumentStore] = None,
        get_user_id: Optional[UserIdProvider] = None,
    ):
        self.state = state
        self.store = store
        self._get_user_id = get_user_id or _no_user
        self._pending: Set[asyncio.Task] = set()

    @property
    def user_id(self) -> Optional[str]:
        if self.store is None:
            return None
        return self._get_user_id()

    # ------------------------------------------------------------------
    # Background writes
    # ------------------------------------------------------------------

    def _schedule(self, coro: Coroutine, what: str) -> Optional[asyncio.Task]:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.warning("No running event loop; skipped remote %s", what)
            return None
        task = loop.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _write(self, doc_id: str, data: Dict[str, Any], merge: bool, what: str) -> bool:
        try:
            await self.store.set(USERSCORES, doc_id, data, merge=merge)
            return True
        except Exception:
            logger.exception("Error %s", what)
            return False

    async def drain(self) -> None:
        """Wait for every remote write scheduled so far."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ------------------------------------------------------------------
    # Global stats
    # ------------------------------------------------------------------

    async def sync_global_stats(self) -> None:
        """
        Reconcile local global stats with the remote document.

        Remote wins only when it has answered strictly more questions;
        a missing remote document is seeded from local state.
        """
        user_id = self.user_id
        if not user_id:
            return

        doc_id = global_doc_id(user_id)
        try:
            remote = await self.store.get(USERSCORES, doc_id)
            # Re-read after the await: another handler may have written meanwhile
            local = to_plain(self.state.get(GLOBAL_STATS))

            if remote is not None:
                if (remote.get("totalQuestionsAnswered") or 0) > (local.get("totalQuestionsAnswered") or 0):
                    self.state.set(GLOBAL_STATS, stats_from(remote))
                    logger.info("Adopted remote global stats for %s", user_id)
            else:
                await self.store.set(USERSCORES, doc_id, {"userId": user_id, "type": "global", **local})
        except Exception:
            logger.exception("Error syncing global stats")

    def update_global_stats(self, update: Dict[str, Any]) -> Optional[asyncio.Task]:
        merged = {**to_plain(self.state.get(GLOBAL_STATS)), **to_plain(update)}
        self.state.set(GLOBAL_STATS, merged)

        user_id = self.user_id
        if not user_id:
            return None
        data = {"userId": user_id, "type": "global", **stats_from(merged)}
        return self._schedule(
            self._write(global_doc_id(user_id), data, merge=False, what="updating global stats"),
            "global stats update",
        )

    # ------------------------------------------------------------------
    # Per-quiz progress
    # ------------------------------------------------------------------

    async def get_quiz_progress(self, quiz_id: str) -> Optional[Dict[str, Any]]:
        quiz_id = str(quiz_id)
        user_id = self.user_id
        if not user_id:
            return None
        try:
            return await self.store.get(USERSCORES, quiz_doc_id(user_id, quiz_id))
        except Exception:
            logger.exception("Error getting quiz progress")
            return None

    def update_quiz_progress(self, quiz_id: str, update: Dict[str, Any]) -> Optional[asyncio.Task]:
        quiz_id = str(quiz_id)
        active = to_plain(self.state.get(ACTIVE_QUIZZES))
        merged = {**(active.get(quiz_id) or {}), **to_plain(update)}
        active[quiz_id] = merged
        self.state.set(ACTIVE_QUIZZES, active)

        user_id = self.user_id
        if not user_id:
            return None
        data = {
            "userId": user_id,
            "type": "quiz",
            "quizId": quiz_id,
            **stats_from(merged),
            "is_completed": False,
        }
        return self._schedule(
            self._write(quiz_doc_id(user_id, quiz_id), data, merge=True, what="updating quiz progress"),
            "quiz progress update",
        )

    def push_completed_quiz(self, quiz_id: str, final: Dict[str, Any]) -> Optional[asyncio.Task]:
        """Overwrite the remote quiz document with its final, completed state."""
        quiz_id = str(quiz_id)
        user_id = self.user_id
        if not user_id:
            return None
        data = {
            "userId": user_id,
            "type": "quiz",
            "quizId": quiz_id,
            **stats_from(final),
            "is_completed": True,
        }
        return self._schedule(
            self._write(quiz_doc_id(user_id, quiz_id), data, merge=False, what="completing quiz"),
            "quiz completion",
        )
