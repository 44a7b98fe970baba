"""Two-phase group creation.

    idle ──open()──▶ details ──submit_details()──▶ members ──commit/skip──▶ idle
                        │                             │
                        └──cancel()──▶ idle           └──cancel()──▶ finish ──▶ idle

Phase 1 inserts the group and then the creator's admin membership. The two
inserts are separate store calls; if the second fails the group row is
deleted again so no admin-less group is left behind.

Phase 2 works on the in-memory pending set until the user commits. Commit
inserts one membership per candidate in staging order and keeps going past
individual failures (logged only). Cancelling once the group exists finishes
the workflow instead of abandoning it.
"""
import enum
import logging
from typing import TYPE_CHECKING, Optional

from group_reminders.models.group import GroupRole
from group_reminders.schemas.group import CreationStateOut
from group_reminders.schemas.profile import AccountProfile
from group_reminders.services.common import describe_error, membership_row
from group_reminders.services.staging import PendingMembers
from group_reminders.store import StoreError

if TYPE_CHECKING:
    from group_reminders.services.group_session import GroupSession

logger = logging.getLogger(__name__)


class CreationStep(str, enum.Enum):
    idle = "idle"
    details = "details"
    members = "members"


class WorkflowStateError(Exception):
    """An operation was invoked in a step that does not allow it."""


class GroupCreationWorkflow:
    def __init__(self, session: "GroupSession"):
        self.session = session
        self.pending = PendingMembers()
        self.step = CreationStep.idle
        self.name = ""
        self.description: Optional[str] = None
        self.group_id: Optional[str] = None

    def _require(self, step: CreationStep) -> None:
        if self.step != step:
            raise WorkflowStateError(
                f"Group creation is in step '{self.step.value}', expected '{step.value}'"
            )

    def _reset(self) -> None:
        self.step = CreationStep.idle
        self.name = ""
        self.description = None
        self.group_id = None

    def open(self) -> None:
        if self.step == CreationStep.idle:
            self.step = CreationStep.details

    # ── Phase 1 ────────────────────────────────────────────────────

    def submit_details(self, name: str, description: Optional[str] = None) -> Optional[str]:
        """Create the group with the acting account as admin; returns the new group id."""
        self._require(CreationStep.details)
        self.name, self.description = name, description
        name = name.strip()
        description = (description or "").strip() or None
        if not name:
            return None

        session = self.session
        actor = session.actor
        with session.mutation():
            try:
                group = session.store.insert("groups", {
                    "name": name,
                    "description": description,
                    "created_by": actor.id,
                })
            except StoreError as exc:
                logger.error("Failed to create group %r: %s", name, exc)
                session.alert(f"Failed to create group: {describe_error(exc)}")
                return None

            try:
                session.store.insert("memberships", membership_row(group["id"], actor, GroupRole.admin))
            except StoreError as exc:
                logger.error("Failed to add creator %s as admin of group %s: %s", actor.id, group["id"], exc)
                self._discard_group(group["id"])
                session.alert(f"Failed to create group: {describe_error(exc)}")
                return None

            self.group_id = group["id"]
            self.step = CreationStep.members
            logger.info("Created group '%s' (%s) by account %s", name, self.group_id, actor.id)
            session.refresh_groups()
        return self.group_id

    def _discard_group(self, group_id: str) -> None:
        """Compensate for a group whose admin membership could not be written."""
        try:
            self.session.store.delete("groups", id=group_id)
        except StoreError as exc:
            logger.error("Failed to remove admin-less group %s: %s", group_id, exc)
        else:
            logger.info("Removed group %s after its admin membership failed", group_id)

    # ── Phase 2 ────────────────────────────────────────────────────

    def stage(self, candidate: AccountProfile) -> bool:
        self._require(CreationStep.members)
        return self.pending.stage(candidate)

    def unstage(self, account_id: str) -> bool:
        self._require(CreationStep.members)
        return self.pending.unstage(account_id)

    def commit_members(self) -> int:
        """Insert every staged candidate as a member, then finish. Returns how many were added."""
        self._require(CreationStep.members)
        if not len(self.pending):
            self.skip()
            return 0

        added = 0
        with self.session.mutation():
            for candidate in self.pending:
                try:
                    self.session.store.insert(
                        "memberships", membership_row(self.group_id, candidate, GroupRole.member)
                    )
                except StoreError as exc:
                    logger.error("Failed to add member %s to group %s: %s", candidate.email, self.group_id, exc)
                    continue
                added += 1
            logger.info("Added %d of %d staged members to group %s", added, len(self.pending), self.group_id)
            self._finish()
        return added

    def skip(self) -> None:
        self._require(CreationStep.members)
        with self.session.mutation():
            self._finish()

    def cancel(self) -> None:
        """Close the workflow; once the group exists this finishes instead."""
        if self.step == CreationStep.members:
            self.skip()
        elif self.step == CreationStep.details:
            self._reset()

    def _finish(self) -> None:
        group_id = self.group_id
        self.pending.clear()
        self._reset()
        self.session.refresh_groups()
        if group_id is not None:
            self.session.select_group(group_id)

    def snapshot(self) -> CreationStateOut:
        return CreationStateOut(
            step=self.step.value,
            name=self.name,
            description=self.description,
            group_id=self.group_id,
            pending_members=list(self.pending),
        )
