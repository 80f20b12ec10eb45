"""
Forum account registration.

Creates a forum account for a host user who does not have one yet. The
host is responsible for remembering the returned connector id; this module
only talks to the forum.

Flow:
    validate name/email ──> look for an existing account ──> create account
        ──> cache the new member ──> audit "registration"
"""

from __future__ import annotations
import logging
import re
import secrets
import string
from dataclasses import dataclass, field
from typing import Optional

from forum_connector.core.audit import safe_log_event
from forum_connector.core.forum import (
    AccountExistsError,
    DirectoryClient,
    DirectoryError,
    RegistrationError,
    TransportError,
)

logger = logging.getLogger(__name__)

EMAIL_MAX_LENGTH = 254
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PASSWORD_LENGTH = 16


@dataclass
class RegistrationResult:
    """Identity data the host stores to link its user to the forum account."""
    connector_id: str
    unique_id: str
    connector_name: str
    password: str = field(repr=False)


def generate_temp_password(length: int = PASSWORD_LENGTH) -> str:
    """Random temporary password (letters, digits, symbols)."""
    alphabet = string.ascii_letters + string.digits + "!@#$%^&*"
    return "".join(secrets.choice(alphabet) for _ in range(length))


def validate_registration(name: str, email: str) -> None:
    """Reject blank names and missing or malformed email addresses."""
    if not name or not name.strip():
        raise RegistrationError("You cannot create a forum account without a name.")
    if not email:
        raise RegistrationError(
            "You cannot create a forum account without an email address. "
            "Make sure you have entered your email address on your profile."
        )
    if len(email) > EMAIL_MAX_LENGTH or not EMAIL_PATTERN.match(email):
        raise RegistrationError(f"Email address {email!r} is not valid.")


def register_account(
    directory: DirectoryClient,
    name: str,
    email: str,
    ip_address: str,
    password: Optional[str] = None,
    operator: str = "system",
) -> RegistrationResult:
    """Create a forum account in the default group.

    Args:
        directory: Directory client the new member is cached in
        name: Display name of the new account
        email: Email address (also the account's unique id)
        ip_address: Registration IP reported to the forum
        password: Initial password (a temporary one is generated if omitted)
        operator: Who requested the registration (for the audit trail)

    Returns:
        RegistrationResult with the new account id and temporary password

    Raises:
        RegistrationError: Invalid name or email
        AccountExistsError: The forum already has an account for this name/email
        DirectoryError: The forum could not be reached or rejected the request
    """
    validate_registration(name, email)

    try:
        existing = directory.count_members(name=name, email=email)
    except TransportError as exc:
        logger.error(f"[forums] Registration lookup for {email} failed: {exc}")
        raise DirectoryError(
            "We could not communicate with the forums to check your registration."
        ) from exc

    if existing > 0:
        raise AccountExistsError("You already have a forum account and cannot register a new one.")

    password = password or generate_temp_password()

    try:
        member = directory.create_member({
            "name": name,
            "email": email,
            "password": password,
            "group": directory.policy.default_group_id,
            "registrationIpAddress": ip_address,
            "validated": 0,
        })
    except TransportError as exc:
        logger.error(f"[forums] Registration of {email} failed: {exc}")
        safe_log_event("registration", email, operator=operator, details={"name": name}, success=False)
        raise DirectoryError(
            "We could not communicate with the forums to complete your registration."
        ) from exc

    logger.info(f"[forums] User {name} has been registered with ID {member.id} and UID {email}")
    safe_log_event("registration", member.id, operator=operator, details={"name": name, "email": email})

    return RegistrationResult(
        connector_id=member.id,
        unique_id=email,
        connector_name=name,
        password=password,
    )
