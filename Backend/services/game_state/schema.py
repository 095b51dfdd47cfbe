# services/game_state/schema.py
"""Persisted keys of the game state and the shape of their values."""

from typing import Any, Dict

from .storage import KeyConfig

ACTIVE_QUIZZES = "activeQuizzes"        # { quizId: QuizProgress }
GLOBAL_STATS = "globalStats"            # GlobalStats
COMPLETED_QUIZZES = "completedQuizzes"  # { quizId: QuizProgress }
CURRENT_QUIZ = "currentQuiz"            # CurrentQuiz or None

STAT_FIELDS = ("score", "accuracy", "totalAttempts", "totalQuestionsAnswered")


def empty_stats() -> Dict[str, Any]:
    return {"score": 0, "accuracy": 0, "totalAttempts": 0, "totalQuestionsAnswered": 0}


def empty_progress() -> Dict[str, Any]:
    return {"currentQuestionIndex": 0, **empty_stats()}


def stats_from(data: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only the score fields of a stats-like document."""
    stats = empty_stats()
    for field in STAT_FIELDS:
        if data.get(field) is not None:
            stats[field] = data[field]
    return stats


GAME_STATE_CONFIG = {
    ACTIVE_QUIZZES: KeyConfig.local({}),
    GLOBAL_STATS: KeyConfig.local(empty_stats()),
    COMPLETED_QUIZZES: KeyConfig.local({}),
    CURRENT_QUIZ: KeyConfig.local(None),
}
