# services/game_state/game_state.py
"""
Wiring for the quiz-play client state.

    game = create_game_state(window, store=FirestoreDocumentStore(), get_user_id=...)
    game.progression.initialize_quiz(quiz_id, quiz)
    await game.remote.sync_global_stats()
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .browser import Window
from .document_store import DocumentStore
from .persistent_state import PersistentState, Watcher, to_plain, watch
from .quiz_progress import QuizProgression
from .remote_sync import RemoteSync
from .schema import ACTIVE_QUIZZES, COMPLETED_QUIZZES, CURRENT_QUIZ, GAME_STATE_CONFIG, GLOBAL_STATS


@dataclass
class GameState:
    state: PersistentState
    remote: RemoteSync
    progression: QuizProgression

    @property
    def active_quizzes(self) -> dict:
        return to_plain(self.state.get(ACTIVE_QUIZZES))

    @property
    def completed_quizzes(self) -> dict:
        return to_plain(self.state.get(COMPLETED_QUIZZES))

    @property
    def global_stats(self) -> dict:
        return to_plain(self.state.get(GLOBAL_STATS))

    @property
    def current_quiz(self) -> Optional[dict]:
        return to_plain(self.state.get(CURRENT_QUIZ))

    def watch(self, fn: Callable[["GameState"], Any]) -> Watcher:
        """Run `fn(game)` now and again after every state change."""
        return watch(lambda: fn(self))


def create_game_state(
    window: Optional[Window] = None,
    store: Optional[DocumentStore] = None,
    get_user_id: Optional[Callable[[], Optional[str]]] = None,
) -> GameState:
    state = PersistentState(GAME_STATE_CONFIG, window)
    remote = RemoteSync(state, store, get_user_id)
    return GameState(state=state, remote=remote, progression=QuizProgression(state, remote))
