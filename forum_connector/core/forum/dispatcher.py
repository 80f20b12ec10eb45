"""API call dispatcher: path templating, argument encoding, JSON decoding."""
from __future__ import annotations
import logging
from typing import Any, Dict, Optional

from .client import ForumHTTPClient
from .exceptions import TransportError

logger = logging.getLogger(__name__)


def _encode_form(arguments: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten list values into indexed keys (``secondaryGroups[0]=..``).

    The forum is PHP based; repeated plain keys would collapse to the last
    value. An empty list is written as an empty string so the field still
    reaches the server.
    """
    encoded: Dict[str, Any] = {}
    for key, value in arguments.items():
        if isinstance(value, (list, tuple, set)):
            values = list(value)
            if not values:
                encoded[key] = ""
                continue
            for index, item in enumerate(values):
                encoded[f"{key}[{index}]"] = item
        else:
            encoded[key] = value
    return encoded


class ApiDispatcher:
    """Builds and issues forum API calls.

    Usage:
        dispatcher = ApiDispatcher(ForumHTTPClient(url, key))
        member = dispatcher.send("GET", "/core/members/{user.id}", {"user.id": "42"})
    """

    def __init__(self, http: ForumHTTPClient):
        self.http = http

    def send(self, method: str, endpoint: str, arguments: Optional[Dict[str, Any]] = None) -> Any:
        """Send an API call and return the decoded JSON body.

        Placeholders such as ``{user.id}`` in ``endpoint`` are replaced by
        the matching argument, which is then dropped from the argument set.
        What remains is sent as query parameters for GET and as form fields
        for every other verb.

        Raises:
            TransportError: On network/HTTP failure or undecodable body
        """
        method = method.upper()
        remaining = dict(arguments or {})
        uri = endpoint.lstrip("/")

        for name in list(remaining):
            placeholder = "{%s}" % name
            if placeholder not in uri:
                continue
            uri = uri.replace(placeholder, str(remaining.pop(name)))

        if method == "GET":
            resp = self.http.request(method, uri, params=remaining)
        else:
            resp = self.http.request(method, uri, data=_encode_form(remaining))

        logger.debug(f"[forums] [http {resp.status_code}, {resp.reason}] {method} -> /{uri}")

        try:
            return resp.json()
        except ValueError as exc:
            raise TransportError(resp.status_code, f"Invalid JSON body: {exc}", uri) from exc
