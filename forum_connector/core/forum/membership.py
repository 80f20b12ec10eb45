"""Primary/secondary group membership planning.

A forum member always holds exactly one primary group and any number of
secondary groups. These helpers compute the membership to write back for
an addition or a removal; they never talk to the network.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional, Tuple


@dataclass(frozen=True)
class Membership:
    """Remote membership of one member."""
    primary_id: str
    secondary_ids: Tuple[str, ...] = ()

    @property
    def group_ids(self) -> set[str]:
        return {self.primary_id, *self.secondary_ids}

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Membership":
        """Parse a member record (``primaryGroup`` + ``secondaryGroups``)."""
        primary_id = str(record["primaryGroup"]["id"])
        secondary_ids = _dedupe(
            str(group["id"]) for group in record.get("secondaryGroups") or []
        )
        return cls(primary_id, tuple(gid for gid in secondary_ids if gid != primary_id))


@dataclass(frozen=True)
class MembershipPolicy:
    """Group rules taken from connector settings."""
    default_group_id: str
    primary_group_ids: FrozenSet[str] = field(default_factory=frozenset)
    special_group_ids: FrozenSet[str] = field(default_factory=frozenset)

    def is_primary_eligible(self, group_id: str) -> bool:
        return group_id in self.primary_group_ids

    def is_special(self, group_id: str) -> bool:
        return group_id in self.special_group_ids


def _dedupe(ids) -> list[str]:
    seen: list[str] = []
    for gid in ids:
        if gid not in seen:
            seen.append(gid)
    return seen


def plan_addition(current: Membership, group_id: str, policy: MembershipPolicy) -> Membership:
    """Membership after adding ``group_id``.

    A primary-eligible group replaces the current primary (the old primary is
    dropped, not kept as secondary). Any other group is appended to the
    secondaries.
    """
    if policy.is_primary_eligible(group_id):
        secondaries = [gid for gid in current.secondary_ids if gid != group_id]
        return Membership(group_id, tuple(secondaries))

    if group_id == current.primary_id:
        return current
    return Membership(current.primary_id, tuple(_dedupe([*current.secondary_ids, group_id])))


def plan_removal(current: Membership, group_id: str, policy: MembershipPolicy) -> Optional[Membership]:
    """Membership after removing ``group_id``.

    Removing the current primary demotes the member to the default group.
    Returns None when the group is the default group and also the primary,
    since the member cannot be left without a primary.
    """
    if group_id == current.primary_id:
        if group_id == policy.default_group_id:
            return None
        secondaries = [gid for gid in current.secondary_ids if gid != policy.default_group_id]
        return Membership(policy.default_group_id, tuple(secondaries))

    secondaries = [gid for gid in current.secondary_ids if gid != group_id]
    return Membership(current.primary_id, tuple(secondaries))
