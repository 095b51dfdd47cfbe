# routes/movies.py
"""
Movie API routes.
"""
import logging

import requests
from flask import Blueprint, jsonify

from config import Config

logger = logging.getLogger(__name__)

movies_bp = Blueprint("movies", __name__)


@movies_bp.get("/random")
def random_movie():
    """
    GET /api/movies/random

    Proxies the getRandomMovie function and returns its movie document.
    """
    try:
        resp = requests.get(Config.RANDOM_MOVIE_FUNCTION_URL, timeout=Config.HTTP_TIMEOUT)
        if not resp.ok:
            logger.warning("Random movie function answered %s", resp.status_code)
            return jsonify({"error": "Failed to fetch random movie"}), resp.status_code
        return jsonify(resp.json()), 200
    except (requests.RequestException, ValueError):
        logger.exception("Error fetching random movie")
        return jsonify({"error": "Failed to fetch random movie"}), 500
