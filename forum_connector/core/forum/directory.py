"""Forum directory client: user/group caches, pagination and membership writes."""
from __future__ import annotations
import logging
from typing import Any, Callable, Dict, Optional

import requests

from forum_connector.config.settings import ConnectorConfig, PAGE_SIZE
from forum_connector.core.audit import safe_log_event

from .client import ForumHTTPClient
from .dispatcher import ApiDispatcher
from .exceptions import (
    DirectoryError,
    IdentityNotFoundError,
    SettingsError,
    TransportError,
)
from .groups import ForumGroup
from .members import ForumUser
from .membership import Membership, MembershipPolicy, plan_addition, plan_removal

logger = logging.getLogger(__name__)

# "The member ID does not exist" on GET core/members/{id}
MEMBER_NOT_FOUND_ERROR_CODE = "1C292/2"


class DirectoryClient:
    """Process-lifetime view of the forum's members and groups.

    Both caches are seeded lazily by a full paginated sweep on first access.
    Members missing from a warm cache are fetched individually. Entities call
    back into this client for every remote mutation so that the user and
    group views are updated together.

    Usage:
        directory = DirectoryClient.from_settings(load_settings())
        user = directory.get_user("42")
        user.add_set(directory.get_set("11"))
    """

    def __init__(self, dispatcher: ApiDispatcher, policy: MembershipPolicy, page_size: int = PAGE_SIZE):
        self.dispatcher = dispatcher
        self.policy = policy
        self.page_size = page_size
        self.users: Dict[str, ForumUser] = {}
        self.groups: Dict[str, ForumGroup] = {}
        # self.users also holds point lookups; only a completed sweep sets this
        self._users_swept = False

    @classmethod
    def from_settings(
        cls,
        config: Optional[ConnectorConfig],
        session: Optional[requests.Session] = None,
    ) -> "DirectoryClient":
        """Validate settings and build a ready-to-use directory client.

        Raises:
            SettingsError: If the connector has not been configured or a
                required parameter is missing
        """
        if config is None:
            raise SettingsError("The connector has not been configured yet.")
        if not config.community_url:
            raise SettingsError("Parameter community_url is missing.")
        if not config.api_key:
            raise SettingsError("Parameter apikey is missing.")
        if not config.community_url.startswith(("http://", "https://")):
            raise SettingsError(f"Parameter community_url is not a valid URL: {config.community_url}")
        if config.page_size < 1:
            raise SettingsError(f"Parameter page_size must be positive, got {config.page_size}.")
        group_ids = [config.default_group_id, *config.primary_group_ids, *config.special_group_ids]
        for gid in group_ids:
            if not str(gid).strip().isdigit():
                raise SettingsError(f"Group id {gid!r} is not a numeric forum group id.")

        http = ForumHTTPClient(
            config.community_url,
            config.api_key,
            timeout=config.request_timeout,
            version=config.version,
            session=session,
        )
        policy = MembershipPolicy(
            default_group_id=str(config.default_group_id),
            primary_group_ids=frozenset(str(gid) for gid in config.primary_group_ids),
            special_group_ids=frozenset(str(gid) for gid in config.special_group_ids),
        )
        return cls(ApiDispatcher(http), policy, page_size=config.page_size)

    def reset(self) -> None:
        """Drop both caches; the next read re-seeds them from the forum."""
        self.users.clear()
        self.groups.clear()
        self._users_swept = False

    def send_call(self, method: str, endpoint: str, arguments: Optional[Dict[str, Any]] = None) -> Any:
        return self.dispatcher.send(method, endpoint, arguments)

    # ─────────────────────────────────────────────────────────────────────
    # Read paths
    # ─────────────────────────────────────────────────────────────────────
    def get_users(self) -> list[ForumUser]:
        """Return all members, seeding the cache by a full sweep on first use."""
        if not self._users_swept:
            self._sweep("/core/members", lambda record: ForumUser(self, record), self.users)
            self._users_swept = True
        return list(self.users.values())

    def get_user(self, user_id: str) -> ForumUser:
        """Return a member from cache, or fetch it individually.

        Raises:
            IdentityNotFoundError: The forum reports that the member does not exist
            DirectoryError: Any other failure
        """
        user_id = str(user_id)
        member = self.users.get(user_id)
        if member is not None:
            return member

        try:
            record = self.send_call("GET", "/core/members/{user.id}", {"user.id": user_id})
        except TransportError as exc:
            logger.error(f"[forums] Lookup of user {user_id} failed: {exc}")
            if exc.error_code == MEMBER_NOT_FOUND_ERROR_CODE:
                raise IdentityNotFoundError(user_id) from exc
            raise DirectoryError(f"Unable to retrieve user {user_id}.") from exc

        member = ForumUser(self, record)
        self.users[member.id] = member
        return member

    def get_sets(self) -> list[ForumGroup]:
        """Return all groups, seeding the cache by a full sweep if empty."""
        self._ensure_groups()
        return list(self.groups.values())

    def get_set(self, group_id: str) -> Optional[ForumGroup]:
        """Return a group by id, or None if the forum has no such group."""
        self._ensure_groups()
        return self.groups.get(str(group_id))

    def _ensure_groups(self) -> None:
        if not self.groups:
            self._sweep("/core/groups", lambda record: ForumGroup(self, record), self.groups)

    def _sweep(self, endpoint: str, build: Callable[[Dict[str, Any]], Any], cache: Dict[str, Any]) -> None:
        """Load every page of a list endpoint into ``cache``.

        Stops on an empty page or once the current page reaches the reported
        total. Entries are committed only once the whole sweep succeeded.
        """
        loaded: Dict[str, Any] = {}
        current_page = 1

        while True:
            try:
                page = self.send_call("GET", endpoint, {"page": current_page, "perPage": self.page_size})
            except TransportError as exc:
                logger.error(f"[forums] Sweep of {endpoint} failed on page {current_page}: {exc}")
                raise DirectoryError(f"Unable to retrieve page {current_page} of {endpoint}.") from exc

            results = (page or {}).get("results") or []
            if not results:
                break

            for record in results:
                entity = build(record)
                loaded[entity.id] = entity

            try:
                total_pages = int(page.get("totalPages") or 0)
            except (TypeError, ValueError):
                total_pages = 0

            if current_page >= total_pages:
                break
            current_page += 1

        logger.info(f"[forums] Loaded {len(loaded)} entries from {endpoint} in {current_page} request(s)")
        for key, entity in loaded.items():
            cache.setdefault(key, entity)

    # ─────────────────────────────────────────────────────────────────────
    # Write paths
    # ─────────────────────────────────────────────────────────────────────
    def fetch_membership(self, user_id: str) -> Membership:
        """Fresh remote read of a member's primary and secondary groups.

        Raises:
            TransportError: On network/HTTP failure
        """
        record = self.send_call("GET", "/core/members/{user.id}", {"user.id": user_id})
        return Membership.from_record(record)

    def reconcile_membership(
        self,
        user: ForumUser,
        group: ForumGroup,
        adding: bool,
        action: str,
        operator: str = "system",
    ) -> Optional[Membership]:
        """Add or remove one group on the forum and mirror the result locally.

        Reads the member's current membership, computes the target
        primary/secondary groups and writes them back in one call. Local
        state (user group ids, user group cache, group member caches) only
        changes after the write succeeded.

        Returns:
            The membership written, or None when nothing could be written

        Raises:
            DirectoryError: On any transport failure, with ``action`` as message
        """
        event = "set_added" if adding else "set_removed"
        details = {"group_id": group.id, "group_name": group.name}

        try:
            current = self.fetch_membership(user.id)
            if adding:
                target = plan_addition(current, group.id, self.policy)
            else:
                target = plan_removal(current, group.id, self.policy)

            if target is None:
                logger.warning(
                    f"[forums] Not removing default group {group.id} from user {user.id}: it is the primary group"
                )
                return None

            if target != current:
                self.send_call("POST", "/core/members/{user.id}", {
                    "user.id": user.id,
                    "group": target.primary_id,
                    "secondaryGroups": list(target.secondary_ids),
                })
        except TransportError as exc:
            logger.error(f"[forums] {action} user={user.id} group={group.id}: {exc}")
            safe_log_event(event, user.id, operator=operator, details=details, success=False)
            raise DirectoryError(action) from exc

        self._apply_membership(user, group, target)
        safe_log_event(event, user.id, operator=operator, details={
            **details,
            "primary_group": target.primary_id,
            "secondary_groups": list(target.secondary_ids),
        })
        return target

    def _apply_membership(self, user: ForumUser, group: ForumGroup, target: Membership) -> None:
        """Mirror a confirmed membership write on both entity views."""
        changed = user.group_ids ^ target.group_ids
        user.apply_membership(target)

        if group.id in target.group_ids:
            user.groups[group.id] = group
            group.cache_member(user)
        else:
            group.forget_member(user)

        # e.g. a primary replaced by a primary-eligible group
        for gid in changed - {group.id}:
            other = self.groups.get(gid)
            if other is not None:
                other.invalidate_members()

    def update_user(self, user_id: str, fields: Dict[str, Any], action: str, operator: str = "system") -> Any:
        """Write member fields (e.g. name) in a single update call.

        Raises:
            DirectoryError: On any transport failure
        """
        try:
            record = self.send_call("POST", "/core/members/{user.id}", {"user.id": user_id, **fields})
        except TransportError as exc:
            logger.error(f"[forums] {action} user={user_id}: {exc}")
            safe_log_event("rename", user_id, operator=operator, details=fields, success=False)
            raise DirectoryError(action) from exc

        safe_log_event("rename", user_id, operator=operator, details=fields)
        return record

    def count_members(self, **filters: str) -> int:
        """Number of forum members matching the given filters (name, email)."""
        response = self.send_call("GET", "/core/members", dict(filters))
        return int((response or {}).get("totalResults") or 0)

    def create_member(self, fields: Dict[str, Any]) -> ForumUser:
        """Create a forum member and add it to the cache.

        Raises:
            TransportError: On network/HTTP failure
        """
        record = self.send_call("POST", "/core/members", fields)
        member = ForumUser(self, record)
        self.users[member.id] = member
        return member
