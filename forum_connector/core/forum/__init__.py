"""Forum REST API synchronization client.

Architecture:
- client.py: HTTP transport with API key authentication
- dispatcher.py: Path templating, query/form encoding, JSON decoding
- directory.py: Member/group caches, paginated sweeps, membership writes
- members.py: Forum member entity
- groups.py: Forum group entity
- membership.py: Primary/secondary membership planning
- exceptions.py: Typed exceptions for error handling

Usage:
    from forum_connector.config import load_settings
    from forum_connector.core.forum import DirectoryClient

    directory = DirectoryClient.from_settings(load_settings())
    for group in directory.get_user("42").get_sets():
        print(group.name)
"""
from .client import ForumHTTPClient, REQUEST_TIMEOUT
from .dispatcher import ApiDispatcher
from .directory import DirectoryClient, MEMBER_NOT_FOUND_ERROR_CODE
from .exceptions import (
    ForumError,
    TransportError,
    DirectoryError,
    IdentityNotFoundError,
    SettingsError,
    RegistrationError,
    AccountExistsError,
)
from .groups import ForumGroup
from .members import ForumUser
from .membership import Membership, MembershipPolicy, plan_addition, plan_removal

__all__ = [
    # Transport
    "ForumHTTPClient",
    "REQUEST_TIMEOUT",
    "ApiDispatcher",

    # Directory
    "DirectoryClient",
    "MEMBER_NOT_FOUND_ERROR_CODE",
    "ForumUser",
    "ForumGroup",

    # Membership
    "Membership",
    "MembershipPolicy",
    "plan_addition",
    "plan_removal",

    # Exceptions
    "ForumError",
    "TransportError",
    "DirectoryError",
    "IdentityNotFoundError",
    "SettingsError",
    "RegistrationError",
    "AccountExistsError",
]
