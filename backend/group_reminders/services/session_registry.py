"""One GroupSession per acting account, bounded to the most recently used."""
import logging
import threading
from collections import OrderedDict
from typing import Optional

from group_reminders.config import settings
from group_reminders.schemas.profile import AccountProfile
from group_reminders.services.group_session import GroupSession
from group_reminders.store import RemoteStore

logger = logging.getLogger(__name__)


class SessionRegistry:
    def __init__(self, store: RemoteStore, max_sessions: Optional[int] = None):
        self.store = store
        self.max_sessions = max_sessions or settings.SESSION_CACHE_SIZE
        self._sessions: "OrderedDict[str, GroupSession]" = OrderedDict()
        self._lock = threading.Lock()

    def get_or_create(self, actor: AccountProfile, timezone: Optional[str] = None) -> GroupSession:
        """Return the account's session, updated with its current profile."""
        with self._lock:
            session = self._sessions.get(actor.id)
            if session is None:
                session = GroupSession(self.store, actor, timezone=timezone)
                self._sessions[actor.id] = session
                logger.info("Opened group session for account %s", actor.id)
                self._evict()
                created = True
            else:
                self._sessions.move_to_end(actor.id)
                session.actor = actor
                session.timezone = timezone or settings.DEFAULT_TIMEZONE
                created = False
        if created:
            session.refresh_groups()
        return session

    def _evict(self) -> None:
        """Drop least recently used idle sessions beyond the bound."""
        for account_id in list(self._sessions):
            if len(self._sessions) <= self.max_sessions:
                return
            if self._sessions[account_id].busy:
                continue
            del self._sessions[account_id]
            logger.info("Evicted group session for account %s", account_id)

    def __contains__(self, account_id: str) -> bool:
        return account_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
