"""Authentication decorator for the connector's JSON endpoints."""
from __future__ import annotations
import hashlib
import hmac
import logging
from functools import wraps

from flask import abort, current_app, request

logger = logging.getLogger(__name__)


def _token_fingerprint(token: str) -> str:
    """Short SHA256 prefix so tokens can be correlated in logs without leaking."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()[:12]


def require_api_token(view):
    """Require ``Authorization: Bearer <CONNECTOR_API_TOKEN>``.

    Endpoints stay closed (403) until a token has been configured.
    """

    @wraps(view)
    def wrapper(*args, **kwargs):
        cfg = current_app.config["CONNECTOR_CONFIG"]
        if not cfg.api_token:
            logger.warning("Connector API called but CONNECTOR_API_TOKEN is not configured")
            abort(403, description="Connector API token is not configured")

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            logger.warning("Connector API request missing Bearer token")
            abort(401)

        provided = auth_header[len("Bearer "):].strip()
        if not hmac.compare_digest(provided, cfg.api_token):
            logger.warning(f"Connector API request with invalid token {_token_fingerprint(provided)}")
            abort(401)

        return view(*args, **kwargs)

    return wrapper
