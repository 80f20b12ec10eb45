"""Forum connector exceptions for error handling."""
from __future__ import annotations
from typing import Optional


class ForumError(Exception):
    """Base exception for all forum connector operations."""
    pass


class TransportError(ForumError):
    """HTTP or network failure talking to the forum REST API.

    Attributes:
        status_code: HTTP status code (None for network-level failures)
        message: Error message or response body
        endpoint: API endpoint that failed
        error_code: Platform error code from the JSON error envelope, if any
    """

    def __init__(self, status_code: Optional[int], message: str, endpoint: str, error_code: Optional[str] = None):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        self.error_code = error_code
        label = status_code if status_code is not None else "network"
        super().__init__(f"[{label}] {endpoint}: {message}")


class DirectoryError(ForumError):
    """A directory read or mutation failed.

    The message always describes the attempted action, e.g.
    "Unable to add set Members to the user alice."
    """

    def __init__(self, action: str):
        self.action = action
        super().__init__(action)


class IdentityNotFoundError(ForumError):
    """The forum confirmed that the requested member does not exist."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User ID {user_id} is not found.")


class SettingsError(ForumError):
    """Connector configuration is missing or invalid."""
    pass


class RegistrationError(ForumError):
    """Registration request is invalid."""
    pass


class AccountExistsError(RegistrationError):
    """A forum account already exists for the requested name or email."""
    pass
