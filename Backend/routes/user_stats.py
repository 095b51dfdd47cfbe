# routes/user_stats.py
import logging

from flask import Blueprint, request, jsonify

from auth_middleware import require_user_id
from services import catalog

logger = logging.getLogger(__name__)

user_stats_bp = Blueprint("user_stats", __name__)


@user_stats_bp.get("/stats")
@require_user_id
def get_stats():
    """Global score document for the caller, zeroed if they have none yet."""
    uid = request.user["uid"]
    try:
        return jsonify(catalog.get_global_stats(uid)), 200
    except Exception:
        logger.exception("Error fetching user stats for %s", uid)
        return jsonify({"error": "Failed to fetch user stats"}), 500


@user_stats_bp.post("/stats")
@require_user_id
def update_stats():
    """Merge the posted fields into the caller's global score document."""
    uid = request.user["uid"]
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "JSON object body required"}), 400
    try:
        catalog.merge_global_stats(uid, data)
        return jsonify({"success": True}), 200
    except Exception:
        logger.exception("Error updating user stats for %s", uid)
        return jsonify({"error": "Failed to update user stats"}), 500
