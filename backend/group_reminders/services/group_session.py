"""Per-account group session state and the membership / reminder lifecycle.

A session owns what one acting account currently sees: the list of groups it
belongs to, the selected group with its members, and that group's reminders.
Every mutation is a single store call followed by a re-fetch that replaces
the affected slice wholesale; nothing is patched locally.

Failures that the user must act on are pushed to ``alerts``; read failures
are only logged and leave the previous (stale) state in place.

Re-fetches are serialized on their own blocking lock, so a read request and
a mutation's re-fetch never overwrite the same state concurrently. A group
whose membership list does not include the acting account is treated as not
found.
"""
import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from group_reminders.config import settings
from group_reminders.models.group import GroupRole
from group_reminders.schemas.group import GroupOut, MembershipOut, SessionStateOut
from group_reminders.schemas.group_reminder import GroupReminderCreate, GroupReminderOut
from group_reminders.schemas.profile import AccountProfile
from group_reminders.services.common import describe_error, membership_row
from group_reminders.services.creation_workflow import GroupCreationWorkflow
from group_reminders.services.scheduling import compute_next_trigger
from group_reminders.store import AdminRetentionError, DuplicateRowError, RemoteStore, StoreError

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]


class OperationInProgress(Exception):
    """Another mutation on this session has not settled yet."""


class GroupSession:
    """Group state and operations for one acting account."""

    def __init__(
        self,
        store: RemoteStore,
        actor: AccountProfile,
        confirm: Optional[Confirm] = None,
        timezone: Optional[str] = None,
    ):
        self.store = store
        self.actor = actor
        self.timezone = timezone or settings.DEFAULT_TIMEZONE
        self._confirm = confirm
        self._lock = threading.Lock()
        self._fetch_lock = threading.Lock()

        self.groups: list[GroupOut] = []
        self.selected_group: Optional[GroupOut] = None
        self.reminders: list[GroupReminderOut] = []
        self.selected_candidate: Optional[AccountProfile] = None
        self.reminder_draft = GroupReminderCreate()
        self.alerts: list[str] = []

        self.creation = GroupCreationWorkflow(self)

    # ── Plumbing ───────────────────────────────────────────────────

    @contextmanager
    def mutation(self) -> Iterator[None]:
        """Hold the session busy for the duration of a store mutation."""
        if not self._lock.acquire(blocking=False):
            raise OperationInProgress("Another operation is still in progress")
        try:
            yield
        finally:
            self._lock.release()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @property
    def members(self) -> list[MembershipOut]:
        if self.selected_group is None or self.selected_group.members is None:
            return []
        return self.selected_group.members

    @property
    def role(self) -> Optional[GroupRole]:
        """The acting account's role in the selected group, if it is a member."""
        own = next((m for m in self.members if m.user_id == self.actor.id), None)
        return own.role if own else None

    def alert(self, message: str) -> None:
        logger.warning("Alert for account %s: %s", self.actor.id, message)
        self.alerts.append(message)

    def pop_alert(self) -> Optional[str]:
        """Return the latest alert and clear the queue."""
        message = self.alerts[-1] if self.alerts else None
        self.alerts.clear()
        return message

    def _confirmed(self, prompt: str, confirmed: Optional[bool]) -> bool:
        if confirmed is not None:
            return confirmed
        if self._confirm is None:
            return False
        return self._confirm(prompt)

    # ── Reads ──────────────────────────────────────────────────────

    def refresh_groups(self) -> bool:
        """Re-fetch the groups the acting account belongs to."""
        with self._fetch_lock:
            try:
                memberships = self.store.select("memberships", columns=["group_id"], user_id=self.actor.id)
                group_ids = [row["group_id"] for row in memberships]
                rows = self.store.select("groups", id=group_ids, order_by="created_at") if group_ids else []
            except StoreError as exc:
                logger.error("Failed to fetch groups for account %s: %s", self.actor.id, exc)
                return False
            self.groups = [GroupOut.model_validate(row) for row in rows]
        return True

    def refresh_group_details(self, group_id: Optional[str] = None) -> bool:
        """Re-fetch members and reminders of a group and make it the selected one.

        Returns False, deselecting the group, when it is gone or the acting
        account is not among its members.
        """
        if group_id is None:
            if self.selected_group is None:
                return False
            group_id = self.selected_group.id
        with self._fetch_lock:
            try:
                group_rows = self.store.select("groups", id=group_id)
                member_rows = self.store.select("memberships", group_id=group_id, order_by="joined_at")
                if not group_rows or all(row["user_id"] != self.actor.id for row in member_rows):
                    reminder_rows = None
                else:
                    reminder_rows = self.store.select("group_reminders", group_id=group_id)
            except StoreError as exc:
                logger.error("Failed to fetch details of group %s: %s", group_id, exc)
                return False
            if reminder_rows is None:
                logger.info("Group %s not found for account %s", group_id, self.actor.id)
                if self.selected_group is not None and self.selected_group.id == group_id:
                    self.deselect_group()
                return False

            members = [MembershipOut.model_validate(row) for row in member_rows]
            self.reminders = [GroupReminderOut.model_validate(row) for row in reminder_rows]
            self.selected_group = GroupOut.model_validate({
                **group_rows[0],
                "members": members,
                "member_count": len(members),
                "reminder_count": len(self.reminders),
            })
        return True

    def select_group(self, group_id: str) -> bool:
        self.selected_candidate = None
        return self.refresh_group_details(group_id)

    def deselect_group(self) -> None:
        self.selected_group = None
        self.reminders = []
        self.selected_candidate = None

    # ── Membership lifecycle ───────────────────────────────────────

    def choose_candidate(self, candidate: Optional[AccountProfile]) -> None:
        self.selected_candidate = candidate

    def add_member(self, candidate: Optional[AccountProfile] = None) -> bool:
        """Add the chosen candidate to the selected group as a member."""
        if candidate is not None:
            self.selected_candidate = candidate
        candidate = self.selected_candidate
        if self.selected_group is None or candidate is None:
            return False
        group_id = self.selected_group.id
        if self.role != GroupRole.admin:
            self.alert("Only group admins can add members")
            return False

        with self.mutation():
            try:
                self.store.insert("memberships", membership_row(group_id, candidate, GroupRole.member))
            except DuplicateRowError:
                self.alert(f"{candidate.email} is already a member of this group")
                return False
            except StoreError as exc:
                logger.error("Failed to add member %s to group %s: %s", candidate.email, group_id, exc)
                self.alert(describe_error(exc, "Failed to add member. Please try again."))
                return False
            self.selected_candidate = None
            logger.info("Added %s to group %s", candidate.email, group_id)
            self.refresh_group_details(group_id)
        return True

    def remove_member(self, membership_id: str, confirmed: Optional[bool] = None) -> bool:
        """Remove a non-admin member from the selected group."""
        if self.selected_group is None:
            return False
        group_id = self.selected_group.id
        target = next((m for m in self.members if m.id == membership_id), None)
        if target is not None and target.user_id == self.actor.id:
            self.alert("Leave the group to remove your own membership")
            return False
        if target is not None and target.role == GroupRole.admin:
            self.alert("Admins can't be removed from a group")
            return False
        if self.role != GroupRole.admin:
            self.alert("Only group admins can remove members")
            return False
        if not self._confirmed("Are you sure you want to remove this member?", confirmed):
            return False

        with self.mutation():
            try:
                self.store.delete("memberships", id=membership_id, group_id=group_id)
            except AdminRetentionError as exc:
                self.alert(exc.message)
                return False
            except StoreError as exc:
                logger.error("Failed to remove membership %s: %s", membership_id, exc)
                return False
            logger.info("Removed membership %s from group %s", membership_id, group_id)
            self.refresh_group_details(group_id)
        return True

    def leave_group(self, group_id: str, confirmed: Optional[bool] = None) -> bool:
        """Drop the acting account's own membership of a group."""
        if not self._confirmed("Are you sure you want to leave this group?", confirmed):
            return False

        with self.mutation():
            try:
                self.store.delete("memberships", group_id=group_id, user_id=self.actor.id)
            except AdminRetentionError:
                self.alert("You are the only admin of this group. Remove the other members before leaving.")
                return False
            except StoreError as exc:
                logger.error("Failed to leave group %s: %s", group_id, exc)
                return False
            logger.info("Account %s left group %s", self.actor.id, group_id)
            self.deselect_group()
            self.refresh_groups()
        return True

    # ── Group reminder lifecycle ───────────────────────────────────

    def create_reminder(self, draft: Optional[GroupReminderCreate] = None) -> bool:
        """Create a reminder in the selected group from ``draft`` (or the session's form)."""
        draft = draft or self.reminder_draft
        title = draft.title.strip()
        if self.selected_group is None or not title or self.role is None:
            return False
        group_id = self.selected_group.id
        values = {
            "group_id": group_id,
            "title": title,
            "why": (draft.why or "").strip() or None,
            "time": draft.time,
            "repeat": draft.repeat,
            "active": True,
            "next_trigger": compute_next_trigger(draft.time, draft.repeat, self.timezone),
            "created_by": self.actor.id,
        }

        with self.mutation():
            try:
                self.store.insert("group_reminders", values)
            except StoreError as exc:
                logger.error("Failed to create reminder in group %s: %s", group_id, exc)
                self.alert(f"Failed to create reminder: {describe_error(exc, 'please try again')}")
                return False
            self.reminder_draft = GroupReminderCreate()
            logger.info("Created reminder %r in group %s", title, group_id)
            self.refresh_group_details(group_id)
        return True

    def delete_reminder(self, reminder_id: str, confirmed: Optional[bool] = None) -> bool:
        """Delete a reminder of the selected group; any member may do so."""
        if self.selected_group is None or self.role is None:
            return False
        group_id = self.selected_group.id
        if not self._confirmed("Are you sure you want to delete this reminder?", confirmed):
            return False

        with self.mutation():
            try:
                self.store.delete("group_reminders", id=reminder_id, group_id=group_id)
            except StoreError as exc:
                logger.error("Failed to delete reminder %s: %s", reminder_id, exc)
                return False
            self.refresh_group_details(group_id)
        return True

    # ── Snapshot ───────────────────────────────────────────────────

    def snapshot(self) -> SessionStateOut:
        return SessionStateOut(
            account_id=self.actor.id,
            groups=self.groups,
            selected_group=self.selected_group,
            reminders=self.reminders,
            selected_candidate=self.selected_candidate,
            busy=self.busy,
            creation=self.creation.snapshot(),
        )
