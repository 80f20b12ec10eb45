"""Pytest shared fixtures for the forum connector."""
import json
import pathlib
import sys
from types import SimpleNamespace
from typing import Any, Iterable, Optional

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from forum_connector.config import ConnectorConfig
from forum_connector.core import audit
from forum_connector.core.forum import DirectoryClient

COMMUNITY_URL = "https://example.com/community/"
API_ROOT = "https://example.com/community/api/"
API_TOKEN = "test-connector-token"


# ─────────────────────────────────────────────────────────────────────────────
# Fake forum transport
# ─────────────────────────────────────────────────────────────────────────────
class StubResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, payload: Any = None, status_code: int = 200, reason: str = "OK", text: Optional[str] = None):
        self.status_code = status_code
        self.reason = reason
        self.text = text if text is not None else json.dumps(payload)
        self.url = ""

    def json(self):
        return json.loads(self.text)


class FakeSession:
    """Queue of canned responses; records every request made through it."""

    def __init__(self):
        self.auth = None
        self.headers = {}
        self.responses: list = []
        self.calls: list = []

    def queue(self, payload: Any = None, status_code: int = 200, reason: str = "OK", text: Optional[str] = None):
        self.responses.append(StubResponse(payload, status_code, reason, text))
        return self

    def queue_error(self, exc: Exception):
        self.responses.append(exc)
        return self

    def request(self, method, url, params=None, data=None, timeout=None):
        self.calls.append(SimpleNamespace(method=method, url=url, params=params, data=data, timeout=timeout))
        if not self.responses:
            raise AssertionError(f"Unexpected forum call in test: {method} {url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        response.url = url
        return response

    def calls_for(self, method: str) -> list:
        return [call for call in self.calls if call.method == method]


# ─────────────────────────────────────────────────────────────────────────────
# Forum payload builders
# ─────────────────────────────────────────────────────────────────────────────
def member_record(
    user_id,
    name: Optional[str] = None,
    email: Optional[str] = None,
    primary="3",
    secondary: Iterable = (),
) -> dict:
    """Member record as returned by core/members (ids are integers on the wire)."""
    return {
        "id": int(user_id),
        "name": name or f"Member {user_id}",
        "email": email or f"member{user_id}@example.com",
        "primaryGroup": {"id": int(primary), "name": f"Group {primary}"},
        "secondaryGroups": [{"id": int(gid), "name": f"Group {gid}"} for gid in secondary],
    }


def group_record(group_id, name: Optional[str] = None) -> dict:
    return {"id": int(group_id), "name": name or f"Group {group_id}"}


def page(results: list, total_pages: int, page_number: int = 1) -> dict:
    return {
        "page": page_number,
        "perPage": 50,
        "totalResults": len(results),
        "totalPages": total_pages,
        "results": results,
    }


def not_found_error() -> dict:
    return {"errorCode": "1C292/2", "errorMessage": "INVALID_ID"}


GROUPS = [
    group_record(2, "Guests"),
    group_record(3, "Members"),
    group_record(4, "Administrators"),
    group_record(11, "Alliance"),
    group_record(20, "Pilots"),
    group_record(21, "Industry"),
]


# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _isolated_audit_log(monkeypatch, tmp_path):
    """Keep audit events out of the working tree."""
    audit_dir = tmp_path / "audit"
    monkeypatch.setattr(audit, "AUDIT_LOG_DIR", audit_dir)
    monkeypatch.setattr(audit, "AUDIT_LOG_FILE", audit_dir / "forum-events.jsonl")
    monkeypatch.setattr(audit, "AUDIT_SIGNING_KEY_FILE", tmp_path / "audit_log_signing_key")
    monkeypatch.delenv("AUDIT_LOG_SIGNING_KEY", raising=False)
    return audit_dir


@pytest.fixture()
def connector_config() -> ConnectorConfig:
    return ConnectorConfig(
        community_url=COMMUNITY_URL,
        api_key="abcde-4fs8s7f51sq654g",
        default_group_id="3",
        primary_group_ids=("11",),
        special_group_ids=("2", "4", "7", "9"),
        api_token=API_TOKEN,
    )


@pytest.fixture()
def forum_session() -> FakeSession:
    return FakeSession()


@pytest.fixture()
def directory(connector_config, forum_session) -> DirectoryClient:
    return DirectoryClient.from_settings(connector_config, session=forum_session)


@pytest.fixture()
def seeded_directory(directory, forum_session) -> DirectoryClient:
    """Directory with the group cache already swept (one request, consumed here)."""
    forum_session.queue(page(GROUPS, 1))
    directory.get_sets()
    forum_session.calls.clear()
    return directory
