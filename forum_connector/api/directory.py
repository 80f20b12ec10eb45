"""Forum directory endpoints (read paths, membership writes, reset)."""
from __future__ import annotations
from functools import wraps

from flask import Blueprint, abort, current_app, jsonify, request

from forum_connector.api.decorators import require_api_token
from forum_connector.core.forum import DirectoryClient, ForumGroup, ForumUser

bp = Blueprint("forums", __name__)

EXTENSION_KEY = "forum_directory"
LOCK_KEY = "forum_directory_lock"


def directory_lock():
    """Re-entrant lock guarding the shared directory client and its caches."""
    return current_app.extensions[LOCK_KEY]


def synchronized(view):
    """Run the view while holding the directory lock.

    Sweeps and read-modify-write membership updates must not interleave
    across request threads.
    """

    @wraps(view)
    def wrapper(*args, **kwargs):
        with directory_lock():
            return view(*args, **kwargs)

    return wrapper


def get_directory() -> DirectoryClient:
    """Directory client of the current app, built from settings on first use.

    Raises:
        SettingsError: If the connector is not configured
    """
    with directory_lock():
        directory = current_app.extensions.get(EXTENSION_KEY)
        if directory is None:
            directory = DirectoryClient.from_settings(
                current_app.config["CONNECTOR_CONFIG"],
                session=current_app.config.get("FORUM_HTTP_SESSION"),
            )
            current_app.extensions[EXTENSION_KEY] = directory
        return directory


def reset_directory() -> None:
    """Tear down the directory client and reload settings."""
    with directory_lock():
        current_app.extensions.pop(EXTENSION_KEY, None)
        current_app.config["CONNECTOR_CONFIG"] = current_app.config["CONNECTOR_SETTINGS_LOADER"]()


def _operator() -> str:
    return request.headers.get("X-Operator", "api")


def _id_order(value: str) -> tuple:
    """Shorter ids first, then lexical; numeric order for plain forum ids."""
    return (len(value), value)


def _user_to_dict(user: ForumUser) -> dict:
    return {
        "id": user.id,
        "email": user.unique_id,
        "name": user.name,
        "groups": sorted(user.group_ids, key=_id_order),
    }


def _group_to_dict(group: ForumGroup, with_members: bool = False) -> dict:
    payload = {"id": group.id, "name": group.name}
    if with_members:
        payload["members"] = sorted((user.id for user in group.get_members()), key=_id_order)
    return payload


def _require_group(group_id: str) -> ForumGroup:
    group = get_directory().get_set(group_id)
    if group is None:
        abort(404, description=f"Group {group_id} does not exist")
    return group


@bp.route("/users", methods=["GET"])
@require_api_token
@synchronized
def list_users():
    return jsonify([_user_to_dict(user) for user in get_directory().get_users()]), 200


@bp.route("/users/<user_id>", methods=["GET"])
@require_api_token
@synchronized
def get_user(user_id: str):
    return jsonify(_user_to_dict(get_directory().get_user(user_id))), 200


@bp.route("/users/<user_id>", methods=["PATCH"])
@require_api_token
@synchronized
def rename_user(user_id: str):
    payload = request.get_json(silent=True) or {}
    name = (payload.get("name") or "").strip()
    if not name:
        abort(400, description="name is required")

    user = get_directory().get_user(user_id)
    user.set_name(name, operator=_operator())
    return jsonify(_user_to_dict(user)), 200


@bp.route("/groups", methods=["GET"])
@require_api_token
@synchronized
def list_groups():
    return jsonify([_group_to_dict(group) for group in get_directory().get_sets()]), 200


@bp.route("/groups/<group_id>", methods=["GET"])
@require_api_token
@synchronized
def get_group(group_id: str):
    return jsonify(_group_to_dict(_require_group(group_id), with_members=True)), 200


@bp.route("/groups/<group_id>/members/<user_id>", methods=["PUT"])
@require_api_token
@synchronized
def add_member(group_id: str, user_id: str):
    group = _require_group(group_id)
    user = get_directory().get_user(user_id)
    group.add_member(user, operator=_operator())
    return jsonify(_user_to_dict(user)), 200


@bp.route("/groups/<group_id>/members/<user_id>", methods=["DELETE"])
@require_api_token
@synchronized
def remove_member(group_id: str, user_id: str):
    group = _require_group(group_id)
    user = get_directory().get_user(user_id)
    group.remove_member(user, operator=_operator())
    return jsonify(_user_to_dict(user)), 200


@bp.route("/reset", methods=["POST"])
@require_api_token
@synchronized
def reset():
    reset_directory()
    return jsonify({"status": "reset"}), 200
