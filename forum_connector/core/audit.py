"""Audit trail for forum directory mutations (membership, rename, registration)."""

from __future__ import annotations
import datetime
import hashlib
import hmac
import json
import logging
import os
from pathlib import Path
from typing import Any, Literal

logger = logging.getLogger(__name__)

AUDIT_LOG_DIR = Path(os.environ.get("AUDIT_LOG_DIR", ".runtime/audit"))
AUDIT_LOG_FILE = AUDIT_LOG_DIR / "forum-events.jsonl"
AUDIT_SIGNING_KEY_FILE = Path(
    os.environ.get("AUDIT_LOG_SIGNING_KEY_FILE", "/run/secrets/audit_log_signing_key")
)

EventType = Literal["registration", "set_added", "set_removed", "rename"]


def _get_signing_key() -> bytes:
    """Signing key from the environment, else the Docker secret file.

    Read on every event so a rotated key applies without a restart. An empty
    key means events stay unsigned.
    """
    if "AUDIT_LOG_SIGNING_KEY" in os.environ:
        return os.environ["AUDIT_LOG_SIGNING_KEY"].strip().encode("utf-8")
    if AUDIT_SIGNING_KEY_FILE.is_file():
        try:
            return AUDIT_SIGNING_KEY_FILE.read_text(encoding="utf-8").strip().encode("utf-8")
        except OSError as e:
            logger.warning(f"[audit] Failed to read {AUDIT_SIGNING_KEY_FILE}: {e}")
    return b""


def _sign_event(event: dict[str, Any]) -> str:
    """Generate HMAC-SHA256 signature for audit event."""
    signing_key = _get_signing_key()
    if not signing_key:
        return ""
    canonical = json.dumps(event, sort_keys=True, separators=(",", ":"))
    return hmac.new(signing_key, canonical.encode("utf-8"), hashlib.sha256).hexdigest()


def log_event(
    event_type: EventType,
    user_id: str,
    *,
    operator: str = "system",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> None:
    """Append a signed event to the audit trail.

    Args:
        event_type: Kind of mutation
        user_id: Forum member the mutation targeted
        operator: Who triggered it (host user, "cli", "api", ...)
        details: Group ids, names and other context
        success: Whether the remote write was confirmed
    """
    AUDIT_LOG_DIR.mkdir(parents=True, exist_ok=True)

    event = {
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "event_type": event_type,
        "user_id": user_id,
        "operator": operator,
        "success": success,
        "details": details or {},
    }

    signature = _sign_event(event)
    if signature:
        event["signature"] = signature

    with AUDIT_LOG_FILE.open("a", encoding="utf-8") as f:
        f.write(json.dumps(event, ensure_ascii=False) + "\n")

    AUDIT_LOG_FILE.chmod(0o600)


def safe_log_event(
    event_type: EventType,
    user_id: str,
    *,
    operator: str = "system",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> bool:
    """Like log_event() but never raises; returns False when writing failed."""
    try:
        log_event(event_type, user_id, operator=operator, details=details, success=success)
        return True
    except OSError as e:
        logger.warning(f"[audit] Failed to log {event_type} event for {user_id}: {e}")
        return False


def verify_audit_log() -> tuple[int, int]:
    """Verify all signatures in the audit log.

    Returns:
        Tuple of (total_events, valid_signatures)
    """
    if not AUDIT_LOG_FILE.exists():
        return 0, 0

    total = 0
    valid = 0

    with AUDIT_LOG_FILE.open("r", encoding="utf-8") as f:
        for line in f:
            if not line.strip():
                continue
            total += 1
            try:
                event = json.loads(line)
            except json.JSONDecodeError:
                continue
            stored_sig = event.pop("signature", "")
            if stored_sig and hmac.compare_digest(stored_sig, _sign_event(event)):
                valid += 1

    return total, valid
