# Overview: Request decorators for back-office API routes.

from functools import wraps
from flask import request, jsonify, g, current_app


def _admin_tokens() -> dict[str, str]:
    """Parse ADMIN_API_TOKENS ("token:actor_id" entries) into token -> actor_id."""
    tokens: dict[str, str] = {}
    for entry in current_app.config.get("ADMIN_API_TOKENS") or []:
        token, _, actor_id = entry.partition(":")
        token = token.strip()
        if token:
            tokens[token] = actor_id.strip() or "admin"
    return tokens


def require_admin(f):
    """
    Require a configured back-office bearer token.

    Users authenticate with the hosted identity provider upstream; this
    service only distinguishes admin callers so writes and queues are
    guarded and the audit trail records who acted.

    Sets:
    - g.actor_id: the actor id paired with the presented token

    Returns 401 if the header is missing or the token is not configured.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1].strip()
        actor_id = _admin_tokens().get(token)

        if actor_id is None:
            current_app.logger.warning("Rejected admin request to %s: unknown token", request.path)
            return jsonify({"error": "Invalid or expired token"}), 401

        g.actor_id = actor_id
        return f(*args, **kwargs)

    return decorated_function
