# functions/main.py
"""Cloud Function: one random movie document from the `movies` collection."""

import json
import logging
import random

from firebase_admin import firestore, initialize_app
from firebase_functions import https_fn, options

initialize_app()

logger = logging.getLogger(__name__)


def _json_response(payload, status=200):
    return https_fn.Response(json.dumps(payload), status=status, mimetype="application/json")


@https_fn.on_request(
    cors=options.CorsOptions(cors_origins="*", cors_methods=["get"]),
    max_instances=10,
    invoker="public",
)
def getRandomMovie(req: https_fn.Request) -> https_fn.Response:
    try:
        movies = list(firestore.client().collection("movies").stream())
        if not movies:
            return _json_response({"error": "No movies found"}, 404)
        return _json_response(random.choice(movies).to_dict())
    except Exception:
        logger.exception("Error getting random movie")
        return _json_response({"error": "Failed to get random movie"}, 500)
