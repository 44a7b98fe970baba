"""Helpers shared by the group services."""
from typing import Any

from group_reminders.models.group import GroupRole
from group_reminders.schemas.profile import AccountProfile


def describe_error(exc: Exception, fallback: str = "Unknown error") -> str:
    """Best user-facing text for a failed store call."""
    return getattr(exc, "message", "") or str(exc) or fallback


def membership_row(group_id: str, account: AccountProfile, role: GroupRole) -> dict[str, Any]:
    """Membership insert values, with email and name denormalized from the account."""
    return {
        "group_id": group_id,
        "user_id": account.id,
        "email": account.email,
        "name": account.display_name,
        "role": role,
    }
