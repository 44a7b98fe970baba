"""Account directory lookups used to pick group members."""
import logging
from typing import Optional

from group_reminders.config import settings
from group_reminders.schemas.profile import AccountProfile
from group_reminders.store import RemoteStore, StoreError

logger = logging.getLogger(__name__)


def search_accounts(
    store: RemoteStore,
    term: str,
    exclude_id: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[AccountProfile]:
    """Find accounts whose e-mail contains ``term``, skipping the acting account."""
    term = term.strip()
    if len(term) < settings.ACCOUNT_SEARCH_MIN_CHARS:
        return []
    limit = limit or settings.ACCOUNT_SEARCH_LIMIT
    try:
        # Fetch one extra so excluding the acting account still fills the page.
        rows = store.search("profiles", "email", term, limit=limit + 1)
    except StoreError as exc:
        logger.error("Failed to search accounts for %r: %s", term, exc)
        return []
    profiles = [AccountProfile.model_validate(row) for row in rows if row["id"] != exclude_id]
    return profiles[:limit]


def find_account_by_email(store: RemoteStore, email: str) -> Optional[AccountProfile]:
    """Exact, case-insensitive e-mail lookup."""
    email = email.strip()
    if not email:
        return None
    try:
        rows = store.search("profiles", "email", email)
    except StoreError as exc:
        logger.error("Failed to find account by email %r: %s", email, exc)
        return None
    for row in rows:
        if row["email"].lower() == email.lower():
            return AccountProfile.model_validate(row)
    return None
