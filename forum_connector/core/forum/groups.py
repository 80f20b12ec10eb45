"""Forum group entity."""
from __future__ import annotations
from typing import Any, Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .directory import DirectoryClient
    from .members import ForumUser


class ForumGroup:
    """One forum group.

    Members are not returned by the group endpoints; they are derived by
    scanning the directory's member cache once, then kept up to date by
    add_member()/remove_member() until invalidated.
    """

    def __init__(self, directory: "DirectoryClient", attributes: Dict[str, Any]):
        self.directory = directory
        self._members: Optional[Dict[str, "ForumUser"]] = None
        self.hydrate(attributes)

    def __repr__(self) -> str:
        return f"ForumGroup(id={self.id!r}, name={self.name!r})"

    def hydrate(self, attributes: Dict[str, Any]) -> "ForumGroup":
        self.id = str(attributes["id"])
        self.name = attributes.get("name") or ""
        return self

    def get_members(self) -> list["ForumUser"]:
        """Return every known member holding this group."""
        if self._members is None:
            self._members = {
                user.id: user
                for user in self.directory.get_users()
                if self.id in user.group_ids
            }
        return list(self._members.values())

    def invalidate_members(self) -> None:
        self._members = None

    def cache_member(self, user: "ForumUser") -> None:
        if self._members is not None:
            self._members[user.id] = user

    def forget_member(self, user: "ForumUser") -> None:
        if self._members is not None:
            self._members.pop(user.id, None)

    def add_member(self, user: "ForumUser", operator: str = "system") -> None:
        """Add ``user`` to this group (no-op when already a member).

        Raises:
            DirectoryError: If the forum could not be read or updated
        """
        if self.id in user.group_ids:
            return

        self.directory.reconcile_membership(
            user,
            self,
            adding=True,
            action=f"Unable to add user {user.name} as a member of set {self.name}.",
            operator=operator,
        )

    def remove_member(self, user: "ForumUser", operator: str = "system") -> None:
        """Remove ``user`` from this group.

        Special groups never lose members through the connector.

        Raises:
            DirectoryError: If the forum could not be read or updated
        """
        if self.id not in user.group_ids or self.directory.policy.is_special(self.id):
            return

        self.directory.reconcile_membership(
            user,
            self,
            adding=False,
            action=f"Unable to remove user {user.name} from set {self.name}.",
            operator=operator,
        )
