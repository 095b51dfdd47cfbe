# services/game_state/quiz_progress.py
"""
Quiz progression on top of the persistent game state.

One quiz is "current" for play at a time; any number may sit in
`activeQuizzes` with saved progress. Finishing a quiz moves its progress to
`completedQuizzes` and pushes the final result remotely.

Scoring: each question is worth difficulty * 10, minus 5 per wrong guess,
never below zero.
"""

from __future__ import annotations
from typing import Any, Dict, Optional
import asyncio
import logging
import math

from .persistent_state import PersistentState, to_plain
from .remote_sync import RemoteSync
from .schema import (
    ACTIVE_QUIZZES, COMPLETED_QUIZZES, CURRENT_QUIZ, GLOBAL_STATS, empty_progress,
)

logger = logging.getLogger(__name__)

POINTS_PER_DIFFICULTY = 10
WRONG_ATTEMPT_PENALTY = 5


def calculate_question_score(difficulty: int, wrong_attempts: int) -> int:
    """Points for one answered question: 3, 0 -> 30; 3, 2 -> 20; 3, 10 -> 0."""
    base = difficulty * POINTS_PER_DIFFICULTY
    penalty = min(base, wrong_attempts * WRONG_ATTEMPT_PENALTY)
    score = math.floor(max(0, base - penalty))
    logger.debug("Question score: %s", score)
    return score


def accuracy_of(answered: int, attempts: int) -> float:
    if attempts <= 0:
        return 0
    return round(answered / attempts, 4)


class QuizProgression:
    def __init__(self, state: PersistentState, remote: RemoteSync):
        self.state = state
        self.remote = remote

    # ------------------------------------------------------------------
    # Current quiz
    # ------------------------------------------------------------------

    @property
    def current_quiz(self) -> Optional[Dict[str, Any]]:
        value = self.state.get(CURRENT_QUIZ)
        return to_plain(value) if value else None

    def _is_active(self, quiz_id: str) -> bool:
        # Completed progress is frozen; only active quizzes take answers
        return quiz_id in self.state.get(ACTIVE_QUIZZES)

    def initialize_quiz(self, quiz_id: str, quiz: Dict[str, Any]) -> Dict[str, Any]:
        """
        Make `quiz_id` the current quiz, resuming at its saved question.

        `quiz` is the quiz document with its `movies` map (as served by
        /api/quizzes/<id>).
        """
        quiz_id = str(quiz_id)
        quiz = to_plain(quiz)
        active = to_plain(self.state.get(ACTIVE_QUIZZES))
        saved = active.get(quiz_id)
        index = int(saved.get("currentQuestionIndex", 0)) if saved else 0

        self.state.set(CURRENT_QUIZ, {
            "quizId": quiz_id,
            "quiz": quiz,
            "currentQuestionIndex": index,
            "totalQuestions": len(quiz.get("questions") or []),
            "currentMovie": None,
            "currentQuestion": None,
            "isLastQuestion": False,
        })
        self.update_current_question()

        if saved is None:
            active[quiz_id] = empty_progress()
            self.state.set(ACTIVE_QUIZZES, active)
            logger.info("Started quiz %s", quiz_id)

        return self.current_quiz

    def update_current_question(self) -> None:
        """Re-derive the current question, movie and last-question flag from the index."""
        current = self.current_quiz
        if not current or not current.get("quiz"):
            return

        quiz = current["quiz"]
        questions = quiz.get("questions") or []
        index = current.get("currentQuestionIndex", 0)
        if not 0 <= index < len(questions):
            return

        question = questions[index]
        movies = quiz.get("movies") or {}
        current["currentQuestion"] = question
        current["currentMovie"] = movies.get(str(question.get("movie_id")))
        current["isLastQuestion"] = index == len(questions) - 1
        self.state.set(CURRENT_QUIZ, current)

    def advance_question(self) -> bool:
        """Move to the next question. Stays put on the last one; returns whether it moved."""
        current = self.current_quiz
        if not current or not self._is_active(current["quizId"]):
            return False
        index = current.get("currentQuestionIndex", 0)
        if index >= current.get("totalQuestions", 0) - 1:
            return False

        quiz_id = current["quizId"]
        current["currentQuestionIndex"] = index + 1
        self.state.set(CURRENT_QUIZ, current)

        self.state.get(ACTIVE_QUIZZES)[quiz_id]["currentQuestionIndex"] = index + 1

        self.update_current_question()
        return True

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def record_answer(self, wrong_attempts: int, difficulty: Optional[int] = None) -> int:
        """
        Score the current question once it has been guessed correctly.

        Difficulty defaults to the question's plot index. Updates both the
        quiz's progress and the global stats; returns the points earned.
        """
        current = self.current_quiz
        if not current or not current.get("currentQuestion") or not self._is_active(current["quizId"]):
            return 0
        if difficulty is None:
            difficulty = int(current["currentQuestion"].get("plot_index") or 1)

        points = calculate_question_score(difficulty, wrong_attempts)
        attempts = wrong_attempts + 1
        quiz_id = current["quizId"]

        progress = to_plain(self.state.get(ACTIVE_QUIZZES))[quiz_id]
        answered = progress.get("totalQuestionsAnswered", 0) + 1
        total_attempts = progress.get("totalAttempts", 0) + attempts
        self.remote.update_quiz_progress(quiz_id, {
            "score": progress.get("score", 0) + points,
            "totalAttempts": total_attempts,
            "totalQuestionsAnswered": answered,
            "accuracy": accuracy_of(answered, total_attempts),
        })

        stats = to_plain(self.state.get(GLOBAL_STATS))
        answered = stats.get("totalQuestionsAnswered", 0) + 1
        total_attempts = stats.get("totalAttempts", 0) + attempts
        self.remote.update_global_stats({
            "score": stats.get("score", 0) + points,
            "totalAttempts": total_attempts,
            "totalQuestionsAnswered": answered,
            "accuracy": accuracy_of(answered, total_attempts),
        })
        return points

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def complete_quiz(self, quiz_id: str) -> Optional[asyncio.Task]:
        """Move a quiz's progress from active to completed; no-op if it isn't active."""
        quiz_id = str(quiz_id)
        active = to_plain(self.state.get(ACTIVE_QUIZZES))
        final = active.pop(quiz_id, None)
        if final is None:
            return None

        completed = to_plain(self.state.get(COMPLETED_QUIZZES))
        completed[quiz_id] = final
        self.state.set(COMPLETED_QUIZZES, completed)
        self.state.set(ACTIVE_QUIZZES, active)
        current = self.current_quiz
        if current and current.get("quizId") == quiz_id:
            self.state.set(CURRENT_QUIZ, None)
        logger.info("Completed quiz %s with score %s", quiz_id, final.get("score"))

        return self.remote.push_completed_quiz(quiz_id, final)
