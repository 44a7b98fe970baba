"""Pending-member staging for the group creation workflow.

Candidates live only in memory, keyed by account id and kept in the order
they were staged. Nothing here touches the store.
"""
from collections.abc import Iterator

from group_reminders.schemas.profile import AccountProfile


class PendingMembers:
    """Insertion-ordered set of candidate accounts, unique by id."""

    def __init__(self) -> None:
        self._members: dict[str, AccountProfile] = {}

    def stage(self, candidate: AccountProfile) -> bool:
        """Add a candidate unless one with the same id is already staged."""
        if candidate.id in self._members:
            return False
        self._members[candidate.id] = candidate
        return True

    def unstage(self, account_id: str) -> bool:
        return self._members.pop(account_id, None) is not None

    def clear(self) -> None:
        self._members.clear()

    def __iter__(self) -> Iterator[AccountProfile]:
        return iter(list(self._members.values()))

    def __len__(self) -> int:
        return len(self._members)

    def __contains__(self, account_id: object) -> bool:
        return account_id in self._members
