"""Group, membership and group reminder API routes.

Every route acts through the caller's GroupSession, so responses are the
session state after the operation's re-fetch.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from group_reminders.dependencies import get_session
from group_reminders.schemas.group import GroupOut, SessionStateOut
from group_reminders.schemas.group_reminder import GroupReminderCreate
from group_reminders.schemas.profile import AccountProfile
from group_reminders.services.group_session import GroupSession

router = APIRouter()


def _state_or_fail(ok: bool, session: GroupSession, fallback: str) -> SessionStateOut:
    """Turn a failed session operation into a 400 carrying its alert."""
    if not ok:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=session.pop_alert() or fallback)
    return session.snapshot()


def _select(session: GroupSession, group_id: str) -> None:
    """Re-fetch the group as the selected one; 404 unless the caller is a member."""
    if not session.select_group(group_id):
        raise HTTPException(status_code=404, detail="Group not found")


@router.get("/", response_model=list[GroupOut])
def list_groups(session: GroupSession = Depends(get_session)):
    """Re-fetch and list the groups the acting account belongs to."""
    session.refresh_groups()
    return session.groups


@router.get("/state", response_model=SessionStateOut)
def get_state(session: GroupSession = Depends(get_session)):
    """Current session state without re-fetching."""
    return session.snapshot()


@router.delete("/selection", response_model=SessionStateOut)
def deselect_group(session: GroupSession = Depends(get_session)):
    session.deselect_group()
    return session.snapshot()


@router.post("/{group_id}/select", response_model=SessionStateOut)
def select_group(group_id: str, session: GroupSession = Depends(get_session)):
    """Select a group and fetch its members and reminders."""
    _select(session, group_id)
    return session.snapshot()


@router.post("/{group_id}/members", response_model=SessionStateOut, status_code=status.HTTP_201_CREATED)
def add_member(group_id: str, payload: AccountProfile, session: GroupSession = Depends(get_session)):
    """Add an account from the directory to the group."""
    _select(session, group_id)
    session.choose_candidate(payload)
    return _state_or_fail(session.add_member(), session, "Failed to add member. Please try again.")


@router.delete("/{group_id}/members/{membership_id}", response_model=SessionStateOut)
def remove_member(
    group_id: str,
    membership_id: str,
    confirm: bool = Query(False),
    session: GroupSession = Depends(get_session),
):
    """Remove a member (confirmation required; admins cannot be removed)."""
    _select(session, group_id)
    ok = session.remove_member(membership_id, confirmed=confirm)
    return _state_or_fail(ok, session, "Failed to remove member" if confirm else "Confirmation required")


@router.post("/{group_id}/leave", response_model=SessionStateOut)
def leave_group(group_id: str, confirm: bool = Query(False), session: GroupSession = Depends(get_session)):
    """Leave the group as the acting account."""
    ok = session.leave_group(group_id, confirmed=confirm)
    return _state_or_fail(ok, session, "Failed to leave group" if confirm else "Confirmation required")


@router.post("/{group_id}/reminders", response_model=SessionStateOut, status_code=status.HTTP_201_CREATED)
def create_reminder(
    group_id: str,
    payload: GroupReminderCreate,
    response: Response,
    session: GroupSession = Depends(get_session),
):
    """Create a reminder shared with every member of the group (blank titles change nothing)."""
    _select(session, group_id)
    if not payload.title.strip():
        response.status_code = status.HTTP_200_OK
        return session.snapshot()
    return _state_or_fail(session.create_reminder(payload), session, "Failed to create reminder. Please try again.")


@router.delete("/{group_id}/reminders/{reminder_id}", response_model=SessionStateOut)
def delete_reminder(
    group_id: str,
    reminder_id: str,
    confirm: bool = Query(False),
    session: GroupSession = Depends(get_session),
):
    _select(session, group_id)
    ok = session.delete_reminder(reminder_id, confirmed=confirm)
    return _state_or_fail(ok, session, "Failed to delete reminder" if confirm else "Confirmation required")
