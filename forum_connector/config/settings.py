"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_GROUP_ID = "3"  # Members
PRIMARY_GROUP_IDS = ("11",)
SPECIAL_GROUP_IDS = ("2", "4", "7", "9")  # Guests, Administrators, Awaiting validation, Banned
PAGE_SIZE = 50


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                print(f"[settings] ✓ Loaded {secret_name} from /run/secrets")
                return secret_value
        except OSError as e:
            print(f"[settings] ✗ Failed to read /run/secrets/{secret_name}: {e}")

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            print(f"[settings] ✓ Loaded {env_var} from environment (fallback)")
            return secret_value

    return None


def _split_ids(raw: str | None, default: tuple[str, ...]) -> tuple[str, ...]:
    """Parse a comma separated id list ("2, 4,7") into a tuple of strings."""
    if raw is None:
        return default
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass
class ConnectorConfig:
    """Forum connector configuration container."""
    # Forum API
    community_url: str = ""
    api_key: str = field(default="", repr=False)

    # Group rules
    default_group_id: str = DEFAULT_GROUP_ID
    primary_group_ids: tuple[str, ...] = PRIMARY_GROUP_IDS
    special_group_ids: tuple[str, ...] = SPECIAL_GROUP_IDS

    # Transport
    page_size: int = PAGE_SIZE
    request_timeout: float = 10
    version: str = "1.0.0"

    # Web API bearer token (endpoints are disabled while empty)
    api_token: str = field(default="", repr=False)

    @property
    def is_configured(self) -> bool:
        return bool(self.community_url and self.api_key)


def load_settings() -> ConnectorConfig:
    """Load connector settings from environment and /run/secrets.

    Missing connector values are not an error here; the directory client
    refuses to start until community URL and API key are provided.
    """
    community_url = os.environ.get("FORUM_COMMUNITY_URL", "").strip()
    api_key = _load_secret_from_file("forum_api_key", "FORUM_API_KEY") or ""

    default_group_id = os.environ.get("FORUM_DEFAULT_GROUP", DEFAULT_GROUP_ID).strip()
    primary_group_ids = _split_ids(os.environ.get("FORUM_PRIMARY_GROUPS"), PRIMARY_GROUP_IDS)
    special_group_ids = _split_ids(os.environ.get("FORUM_SPECIAL_GROUPS"), SPECIAL_GROUP_IDS)

    timeout_raw = os.environ.get("FORUM_REQUEST_TIMEOUT", "10")
    try:
        request_timeout = float(timeout_raw)
    except ValueError:
        print(f"[settings] WARNING: invalid FORUM_REQUEST_TIMEOUT={timeout_raw!r}, using 10s")
        request_timeout = 10

    api_token = _load_secret_from_file("connector_api_token", "CONNECTOR_API_TOKEN") or ""

    print(
        f"[settings] community_url={community_url or 'UNSET'}; "
        f"api_key={'***' if api_key else 'EMPTY'}; default_group={default_group_id}"
    )

    return ConnectorConfig(
        community_url=community_url,
        api_key=api_key,
        default_group_id=default_group_id,
        primary_group_ids=primary_group_ids,
        special_group_ids=special_group_ids,
        request_timeout=request_timeout,
        api_token=api_token,
    )
