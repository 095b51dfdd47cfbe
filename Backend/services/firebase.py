# services/firebase.py
import json
import logging

import firebase_admin
from firebase_admin import credentials, firestore, firestore_async

from config import Config

logger = logging.getLogger(__name__)

_db = None
_async_db = None


def _resolve_cred():
    json_blob = Config.FIREBASE_SERVICE_ACCOUNT_JSON
    if json_blob:
        return credentials.Certificate(json.loads(json_blob))

    path = Config.firebase_cred_path()
    if path:
        return credentials.Certificate(path)
    return None


def _ensure_app():
    """Initialize the default Firebase app once per process."""
    try:
        return firebase_admin.get_app()
    except ValueError:
        cred = _resolve_cred()
        if cred is not None:
            logger.info("Initializing Firebase with service account credentials")
            return firebase_admin.initialize_app(cred)
        logger.info("Initializing Firebase with default credentials")
        return firebase_admin.initialize_app()


def get_db():
    global _db
    if _db is not None:
        return _db
    _db = firestore.client(app=_ensure_app())
    return _db


def get_async_db():
    """Async Firestore client used by background score sync."""
    global _async_db
    if _async_db is not None:
        return _async_db
    _async_db = firestore_async.client(app=_ensure_app())
    return _async_db
