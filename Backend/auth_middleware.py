# auth_middleware.py
from functools import wraps
from flask import request, jsonify

USER_ID_HEADER = "X-User-Id"


def require_user_id(fn):
    """
    Require the caller's user id in the 'X-User-Id' header.
    Sets request.user = {"uid": ...}
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        uid = (request.headers.get(USER_ID_HEADER) or "").strip()
        if not uid:
            return jsonify({"error": "Unauthorized"}), 401
        request.user = {"uid": uid}
        return fn(*args, **kwargs)
    return wrapper
