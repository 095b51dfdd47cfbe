# routes/site_stats.py
import logging
import time

import requests
from flask import Blueprint, jsonify

from config import Config

logger = logging.getLogger(__name__)

site_stats_bp = Blueprint("site_stats", __name__)


@site_stats_bp.get("")
def website_stats():
    """
    GET /api/stats

    All-time website analytics from Umami.
    """
    end_at = int(time.time() * 1000)
    url = f"{Config.UMAMI_API_URL}/websites/{Config.UMAMI_WEBSITE_ID}/stats"
    try:
        resp = requests.get(
            url,
            params={"startAt": 0, "endAt": end_at},
            headers={"Accept": "application/json", "x-umami-api-key": Config.UMAMI_API_KEY or ""},
            timeout=Config.HTTP_TIMEOUT,
        )
        resp.raise_for_status()
        return jsonify(resp.json()), 200
    except (requests.RequestException, ValueError):
        logger.exception("Error fetching stats")
        return jsonify({"error": "Failed to fetch stats"}), 500
