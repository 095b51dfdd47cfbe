# services/catalog.py
"""
Firestore access for the HTTP API: quizzes, movies and user score documents.

Collections:
    movies/{movieId}       {id, title, overview, poster_path, ..., plots: [{difficulty, plot}]}
    quizzes/{quizId}       {title, difficulty, questions: [{movie_id, plot_index}]}
    userscores/{userId}_global
"""

from __future__ import annotations
from typing import Dict, Any, List, Optional

from services.firebase import get_db

MOVIES = "movies"
QUIZZES = "quizzes"
USERSCORES = "userscores"

DEFAULT_GLOBAL_STATS = {
    "score": 0,
    "accuracy": 0,
    "totalAttempts": 0,
    "totalQuestionsAnswered": 0,
}

# ============================================================================
# Quizzes
# ============================================================================

def list_quizzes() -> List[Dict[str, Any]]:
    docs = get_db().collection(QUIZZES).stream()
    return [{"id": d.id, **(d.to_dict() or {})} for d in docs]


def get_quiz(quiz_id: str) -> Optional[Dict[str, Any]]:
    """
    Quiz document plus a `movies` map keyed by movie id, so the client can
    render every question without further lookups. None if the quiz is missing.
    """
    db = get_db()
    snap = db.collection(QUIZZES).document(quiz_id).get()
    if not snap.exists:
        return None

    quiz = snap.to_dict() or {}
    movies_ref = db.collection(MOVIES)
    movies: Dict[str, Any] = {}
    for q in quiz.get("questions") or []:
        movie_id = str(q.get("movie_id"))
        if movie_id in movies:
            continue
        movie_snap = movies_ref.document(movie_id).get()
        if movie_snap.exists:
            movies[movie_snap.id] = movie_snap.to_dict() or {}

    return {"id": quiz_id, **quiz, "movies": movies}

# ============================================================================
# User scores
# ============================================================================

def _global_ref(uid: str):
    return get_db().collection(USERSCORES).document(f"{uid}_global")


def get_global_stats(uid: str) -> Dict[str, Any]:
    snap = _global_ref(uid).get()
    if not snap.exists:
        return dict(DEFAULT_GLOBAL_STATS)
    return snap.to_dict() or {}


def merge_global_stats(uid: str, data: Dict[str, Any]) -> None:
    payload = {**data, "userId": uid, "type": "global"}
    _global_ref(uid).set(payload, merge=True)
