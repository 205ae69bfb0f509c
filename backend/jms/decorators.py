# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

ACTOR_HEADER = "X-User-Id"


def require_actor(f):
    """
    Require the caller identity established by the upstream auth layer.

    Sets g.current_user_id from the X-User-Id header. Returns 401 when the
    header is missing or not a positive integer.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        raw = (request.headers.get(ACTOR_HEADER) or "").strip()

        if not raw.isdigit() or int(raw) <= 0:
            return jsonify({"message": "Authentication required"}), 401

        g.current_user_id = int(raw)
        return f(*args, **kwargs)

    return decorated_function


def current_user_id() -> int | None:
    return getattr(g, "current_user_id", None)
