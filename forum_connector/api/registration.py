"""Forum account registration endpoint."""
from __future__ import annotations

from flask import Blueprint, jsonify, request

from forum_connector.api.decorators import require_api_token
from forum_connector.api.directory import get_directory, synchronized
from forum_connector.core.registration import register_account

bp = Blueprint("registration", __name__)


@bp.route("/registration", methods=["POST"])
@require_api_token
@synchronized
def register():
    """Create a forum account for the host user described in the JSON body.

    Body: ``{"name": "...", "email": "..."}``. The response carries the new
    connector id and the temporary password to hand over to the user.
    """
    payload = request.get_json(silent=True) or {}
    result = register_account(
        get_directory(),
        name=(payload.get("name") or "").strip(),
        email=(payload.get("email") or "").strip(),
        ip_address=request.remote_addr or "",
        operator=request.headers.get("X-Operator", "api"),
    )
    return jsonify({
        "connector_id": result.connector_id,
        "unique_id": result.unique_id,
        "connector_name": result.connector_name,
        "password": result.password,
    }), 201
