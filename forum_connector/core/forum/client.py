"""Low-level HTTP client for the forum REST API.

Handles API key authentication and HTTP error mapping. Request building
(path placeholders, query vs. form encoding, JSON decoding) lives in
``dispatcher.py``.
"""
from __future__ import annotations
from typing import Optional, Dict, Any

import requests

from .exceptions import TransportError

REQUEST_TIMEOUT = 10
CLIENT_VERSION = "1.0.0"


class ForumHTTPClient:
    """HTTP client for the forum REST API.

    The API key is sent as the basic-auth username with an empty password,
    which is how the platform authenticates REST API keys.

    Usage:
        client = ForumHTTPClient("https://forum.example.com/", "api-key")
        response = client.request("GET", "core/members", params={"page": 1})
    """

    def __init__(
        self,
        community_url: str,
        api_key: str,
        timeout: float = REQUEST_TIMEOUT,
        version: str = CLIENT_VERSION,
        session: Optional[requests.Session] = None,
    ):
        """Initialize forum client.

        Args:
            community_url: Public community URL (the API lives under /api/)
            api_key: REST API key
            timeout: Per-request timeout in seconds
            version: Connector version advertised in the User-Agent
            session: Optional pre-built session (tests inject a fake one)
        """
        self.base_url = community_url.rstrip("/") + "/api/"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.auth = (api_key, "")
        self.session.headers.update({
            "Accept": "application/json",
            "User-Agent": f"forum-connector/{version}",
        })

    def request(
        self,
        method: str,
        uri: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        """Execute an HTTP request against the API.

        Args:
            method: HTTP verb
            uri: Path relative to the API root (e.g., "core/members/1")
            params: Query parameters
            data: Form-encoded body fields

        Returns:
            Response object

        Raises:
            TransportError: On network failure or HTTP error status
        """
        url = f"{self.base_url}{uri.lstrip('/')}"
        try:
            resp = self.session.request(method, url, params=params, data=data, timeout=self.timeout)
        except requests.RequestException as exc:
            raise TransportError(None, str(exc), url) from exc
        self._handle_error(resp)
        return resp

    def _handle_error(self, resp: requests.Response) -> None:
        """Centralized error handling for HTTP responses.

        Raises:
            TransportError: If response status indicates error
        """
        if resp.status_code < 400:
            return

        error_code = None
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            error_code = body.get("errorCode")

        raise TransportError(resp.status_code, resp.text, resp.url, error_code=error_code)
