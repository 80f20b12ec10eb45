"""Tests for the connector HTTP API (token guard, directory routes, registration)."""
import threading

import pytest

from forum_connector.api.directory import EXTENSION_KEY, LOCK_KEY, _id_order
from forum_connector.config import ConnectorConfig
from forum_connector.flask_app import create_app
from tests.conftest import API_ROOT, API_TOKEN, GROUPS, member_record, not_found_error, page

AUTH = {"Authorization": f"Bearer {API_TOKEN}"}


@pytest.fixture
def app(connector_config, forum_session):
    app = create_app(connector_config, http_session=forum_session)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


# ─────────────────────────────────────────────────────────────────────────────
# Health
# ─────────────────────────────────────────────────────────────────────────────
def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.data == b"ok"


def test_ready_when_configured(client):
    assert client.get("/ready").status_code == 200


def test_ready_reports_missing_settings(forum_session):
    app = create_app(ConnectorConfig(api_token=API_TOKEN), http_session=forum_session)
    resp = app.test_client().get("/ready")
    assert resp.status_code == 503
    assert resp.data == b"not configured"


# ─────────────────────────────────────────────────────────────────────────────
# Token guard
# ─────────────────────────────────────────────────────────────────────────────
def test_missing_token_is_rejected(client, forum_session):
    resp = client.get("/forums/users")
    assert resp.status_code == 401
    assert forum_session.calls == []


def test_wrong_token_is_rejected(client):
    resp = client.get("/forums/users", headers={"Authorization": "Bearer nope"})
    assert resp.status_code == 401


def test_endpoints_closed_without_configured_token(connector_config, forum_session):
    connector_config.api_token = ""
    app = create_app(connector_config, http_session=forum_session)
    resp = app.test_client().get("/forums/users", headers=AUTH)
    assert resp.status_code == 403


def test_unconfigured_connector_returns_503(forum_session):
    app = create_app(ConnectorConfig(api_token=API_TOKEN), http_session=forum_session)
    resp = app.test_client().get("/forums/users", headers=AUTH)
    assert resp.status_code == 503
    assert "community_url" in resp.get_json()["message"]


# ─────────────────────────────────────────────────────────────────────────────
# Directory reads
# ─────────────────────────────────────────────────────────────────────────────
def test_list_users(client, forum_session):
    forum_session.queue(page([
        member_record(2, "Mike", "mike@example.com", primary=11, secondary=[20]),
        member_record(1, "Nelly", "nelly@example.com", primary=3),
    ], 1))

    resp = client.get("/forums/users", headers=AUTH)

    assert resp.status_code == 200
    body = {user["id"]: user for user in resp.get_json()}
    assert body["2"] == {"id": "2", "email": "mike@example.com", "name": "Mike", "groups": ["11", "20"]}
    assert body["1"]["groups"] == ["3"]
    assert forum_session.calls[0].params == {"page": 1, "perPage": 50}


def test_directory_is_reused_between_requests(app, client, forum_session):
    forum_session.queue(page([member_record(1)], 1))

    client.get("/forums/users", headers=AUTH)
    client.get("/forums/users", headers=AUTH)

    assert len(forum_session.calls) == 1
    assert EXTENSION_KEY in app.extensions


def test_get_user(client, forum_session):
    forum_session.queue(member_record(5, "Nelly", "nelly@example.com", primary=3, secondary=[21]))

    resp = client.get("/forums/users/5", headers=AUTH)

    assert resp.status_code == 200
    assert resp.get_json()["groups"] == ["3", "21"]
    assert forum_session.calls[0].url == f"{API_ROOT}core/members/5"


def test_get_unknown_user_returns_404(client, forum_session):
    forum_session.queue(not_found_error(), status_code=404, reason="Not Found")

    resp = client.get("/forums/users/999", headers=AUTH)

    assert resp.status_code == 404
    assert resp.get_json()["message"] == "User ID 999 is not found."


def test_forum_outage_returns_502(client, forum_session):
    forum_session.queue({"errorCode": "EX0"}, status_code=500, reason="Server Error")

    resp = client.get("/forums/groups", headers=AUTH)

    assert resp.status_code == 502
    assert resp.get_json()["message"] == "Unable to retrieve page 1 of /core/groups."


def test_list_groups(client, forum_session):
    forum_session.queue(page(GROUPS, 1))

    resp = client.get("/forums/groups", headers=AUTH)

    assert resp.status_code == 200
    assert {"id": "11", "name": "Alliance"} in resp.get_json()


def test_get_group_with_members(client, forum_session):
    forum_session.queue(page(GROUPS, 1))
    forum_session.queue(page([
        member_record(1, primary=3, secondary=[20]),
        member_record(2, primary=11, secondary=[20]),
        member_record(3, primary=3),
    ], 1))

    resp = client.get("/forums/groups/20", headers=AUTH)

    assert resp.status_code == 200
    assert resp.get_json() == {"id": "20", "name": "Pilots", "members": ["1", "2"]}


def test_get_unknown_group_returns_404(client, forum_session):
    forum_session.queue(page(GROUPS, 1))

    resp = client.get("/forums/groups/404", headers=AUTH)

    assert resp.status_code == 404


# ─────────────────────────────────────────────────────────────────────────────
# Directory writes
# ─────────────────────────────────────────────────────────────────────────────
def test_add_member(client, forum_session):
    forum_session.queue(page(GROUPS, 1))
    forum_session.queue(member_record(5, "Nelly", primary=3, secondary=[20]))
    forum_session.queue(member_record(5, "Nelly", primary=3, secondary=[20]))
    forum_session.queue(member_record(5, "Nelly", primary=11, secondary=[20]))

    resp = client.put("/forums/groups/11/members/5", headers=AUTH)

    assert resp.status_code == 200
    assert resp.get_json()["groups"] == ["11", "20"]
    write = forum_session.calls[-1]
    assert write.method == "POST"
    assert write.data == {"group": "11", "secondaryGroups[0]": "20"}


def test_remove_member(client, forum_session):
    forum_session.queue(page(GROUPS, 1))
    forum_session.queue(member_record(5, "Nelly", primary=3, secondary=[20, 21]))
    forum_session.queue(member_record(5, "Nelly", primary=3, secondary=[20, 21]))
    forum_session.queue(member_record(5, "Nelly", primary=3, secondary=[21]))

    resp = client.delete("/forums/groups/20/members/5", headers=AUTH)

    assert resp.status_code == 200
    assert resp.get_json()["groups"] == ["3", "21"]


def test_add_member_write_failure_returns_502(client, forum_session):
    forum_session.queue(page(GROUPS, 1))
    forum_session.queue(member_record(5, "Nelly", primary=3))
    forum_session.queue(member_record(5, "Nelly", primary=3))
    forum_session.queue({"errorCode": "EX0"}, status_code=500, reason="Server Error")

    resp = client.put("/forums/groups/21/members/5", headers=AUTH)

    assert resp.status_code == 502
    assert resp.get_json()["message"] == "Unable to add user Nelly as a member of set Industry."


def test_membership_write_waits_for_directory_lock(app, forum_session):
    forum_session.queue(page(GROUPS, 1))
    forum_session.queue(member_record(5, "Nelly", primary=3))
    forum_session.queue(member_record(5, "Nelly", primary=3))
    forum_session.queue(member_record(5, "Nelly", primary=3, secondary=[21]))
    responses = []

    def put_member():
        responses.append(app.test_client().put("/forums/groups/21/members/5", headers=AUTH))

    with app.extensions[LOCK_KEY]:
        worker = threading.Thread(target=put_member)
        worker.start()
        worker.join(timeout=0.2)
        assert worker.is_alive()
        assert forum_session.calls == []

    worker.join(timeout=5)
    assert responses[0].status_code == 200
    assert len(forum_session.calls) == 4


def test_rename_user(client, forum_session):
    forum_session.queue(member_record(5, "Nelly", primary=3))
    forum_session.queue(member_record(5, "Nelly Bly", primary=3))

    resp = client.patch("/forums/users/5", json={"name": "Nelly Bly"}, headers=AUTH)

    assert resp.status_code == 200
    assert resp.get_json()["name"] == "Nelly Bly"
    assert forum_session.calls[-1].data == {"name": "Nelly Bly"}


def test_rename_requires_name(client, forum_session):
    resp = client.patch("/forums/users/5", json={}, headers=AUTH)

    assert resp.status_code == 400
    assert forum_session.calls == []


def test_reset_drops_directory(app, client, forum_session):
    forum_session.queue(page([member_record(1)], 1))
    client.get("/forums/users", headers=AUTH)

    resp = client.post("/forums/reset", headers=AUTH)

    assert resp.status_code == 200
    assert EXTENSION_KEY not in app.extensions

    forum_session.queue(page([member_record(1), member_record(2)], 1))
    resp = client.get("/forums/users", headers=AUTH)
    assert len(resp.get_json()) == 2


# ─────────────────────────────────────────────────────────────────────────────
# Registration
# ─────────────────────────────────────────────────────────────────────────────
def test_registration_created(client, forum_session):
    forum_session.queue({"totalResults": 0, "results": []})
    forum_session.queue(member_record(77, "Nelly", "nelly@example.com"))

    resp = client.post(
        "/forums/registration",
        json={"name": "Nelly", "email": "nelly@example.com"},
        headers=AUTH,
    )

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["connector_id"] == "77"
    assert body["unique_id"] == "nelly@example.com"
    assert body["connector_name"] == "Nelly"
    assert body["password"]
    assert forum_session.calls[-1].data["registrationIpAddress"] == "127.0.0.1"


def test_registration_existing_account_conflict(client, forum_session):
    forum_session.queue({"totalResults": 1, "results": [member_record(5)]})

    resp = client.post(
        "/forums/registration",
        json={"name": "Nelly", "email": "nelly@example.com"},
        headers=AUTH,
    )

    assert resp.status_code == 409


def test_registration_invalid_email(client, forum_session):
    resp = client.post("/forums/registration", json={"name": "Nelly", "email": "nope"}, headers=AUTH)

    assert resp.status_code == 400
    assert forum_session.calls == []


def test_group_ids_sort_by_length_then_text():
    assert sorted(["100", "9", "20", "x7", "11"], key=_id_order) == ["9", "11", "20", "x7", "100"]
