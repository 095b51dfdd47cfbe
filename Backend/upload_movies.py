#!/usr/bin/env python3
"""
Upload Movies to Firestore
Writes every movie from a movies JSON file ({"movies": [...]}) to
movies/<id>, replacing existing documents.

Usage:
    python upload_movies.py [path/to/movies.json]
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

# Add this directory to path to import config/services
sys.path.insert(0, str(Path(__file__).parent))

from config import Config, configure_logging

logger = logging.getLogger("upload_movies")

# ============================================================================
# Configuration
# ============================================================================

MOVIES_COLLECTION = "movies"
BATCH_SIZE = 400  # Firestore allows at most 500 writes per batch

# ============================================================================
# Upload
# ============================================================================

def load_movies(path: Path) -> List[Dict[str, Any]]:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return data.get("movies") or []


def upload_movies(db, movies: List[Dict[str, Any]]) -> int:
    """Write movies in batches; returns how many were written."""
    col = db.collection(MOVIES_COLLECTION)
    written = 0
    batch = db.batch()
    pending = 0

    for movie in movies:
        if movie.get("id") is None:
            logger.warning("Skipping movie without id: %s", movie.get("title"))
            continue
        batch.set(col.document(str(movie["id"])), movie)
        pending += 1
        if pending == BATCH_SIZE:
            batch.commit()
            written += pending
            batch = db.batch()
            pending = 0

    if pending:
        batch.commit()
        written += pending
    return written


def main():
    configure_logging()
    path = Path(sys.argv[1] if len(sys.argv) > 1 else Config.MOVIES_JSON_PATH)
    movies = load_movies(path)
    logger.info("Uploading %d movies from %s...", len(movies), path)

    from services.firebase import get_db
    try:
        count = upload_movies(get_db(), movies)
    except Exception:
        logger.exception("Error uploading movies")
        sys.exit(1)
    logger.info("Uploaded %d movies", count)


if __name__ == "__main__":
    main()
