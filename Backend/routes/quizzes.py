# routes/quizzes.py
"""
Quiz API routes.
"""
import logging

from flask import Blueprint, jsonify

from services import catalog

logger = logging.getLogger(__name__)

quizzes_bp = Blueprint("quizzes", __name__)


@quizzes_bp.get("")
def list_quizzes():
    """
    GET /api/quizzes

    Every quiz document with its id.
    """
    try:
        return jsonify({"quizzes": catalog.list_quizzes()}), 200
    except Exception:
        logger.exception("Error fetching quizzes")
        return jsonify({"error": "Failed to fetch quizzes"}), 500


@quizzes_bp.get("/<quiz_id>")
def get_quiz(quiz_id):
    """
    GET /api/quizzes/<quiz_id>

    The quiz plus a `movies` map keyed by movie id.
    """
    try:
        quiz = catalog.get_quiz(quiz_id)
    except Exception:
        logger.exception("Error fetching quiz %s", quiz_id)
        return jsonify({"error": "Failed to fetch quiz"}), 500

    if quiz is None:
        return jsonify({"error": "Quiz not found"}), 404
    return jsonify({"quiz": quiz}), 200
