"""Forum member entity."""
from __future__ import annotations
from typing import Any, Dict, TYPE_CHECKING

from .membership import Membership

if TYPE_CHECKING:
    from .directory import DirectoryClient
    from .groups import ForumGroup


class ForumUser:
    """One forum account and its group memberships.

    ``group_ids`` holds the primary group and every secondary group.
    ``groups`` resolves those ids to group entities lazily (see get_sets()).
    """

    def __init__(self, directory: "DirectoryClient", attributes: Dict[str, Any]):
        self.directory = directory
        self.group_ids: set[str] = set()
        self.groups: Dict[str, "ForumGroup"] = {}
        self.hydrate(attributes)

    def __repr__(self) -> str:
        return f"ForumUser(id={self.id!r}, name={self.name!r})"

    def hydrate(self, attributes: Dict[str, Any]) -> "ForumUser":
        """Load identity, name and memberships from a member record."""
        self.id = str(attributes["id"])
        self.unique_id = attributes.get("email") or ""
        self.name = attributes.get("name") or ""
        self.group_ids = Membership.from_record(attributes).group_ids
        return self

    @property
    def client_id(self) -> str:
        return self.id

    def apply_membership(self, membership: Membership) -> None:
        """Replace group ids with a confirmed membership, pruning stale groups."""
        self.group_ids = membership.group_ids
        for gid in list(self.groups):
            if gid not in self.group_ids:
                del self.groups[gid]

    def get_sets(self) -> list["ForumGroup"]:
        """Resolve group ids to groups; ids unknown to the forum are skipped."""
        for gid in self.group_ids:
            if gid in self.groups:
                continue
            group = self.directory.get_set(gid)
            if group is None:
                continue
            self.groups[gid] = group
        return list(self.groups.values())

    def set_name(self, name: str, operator: str = "system") -> bool:
        """Rename the forum account.

        Raises:
            DirectoryError: If the forum rejected the update
        """
        self.directory.update_user(
            self.id,
            {"name": name},
            action=f"Unable to change user name from {self.name} to {name}.",
            operator=operator,
        )
        self.name = name
        return True

    def add_set(self, group: "ForumGroup", operator: str = "system") -> None:
        """Add the user to ``group`` (no-op when already a member).

        Raises:
            DirectoryError: If the forum could not be read or updated
        """
        if group.id in self.group_ids:
            return

        self.directory.reconcile_membership(
            self,
            group,
            adding=True,
            action=f"Unable to add set {group.name} to the user {self.name}.",
            operator=operator,
        )

    def remove_set(self, group: "ForumGroup", operator: str = "system") -> None:
        """Remove the user from ``group``.

        No-op when the user is not a member or the group is a special group.

        Raises:
            DirectoryError: If the forum could not be read or updated
        """
        if group.id not in self.group_ids or self.directory.policy.is_special(group.id):
            return

        self.directory.reconcile_membership(
            self,
            group,
            adding=False,
            action=f"Unable to remove set {group.name} from the user {self.name}.",
            operator=operator,
        )
