"""Group creation workflow API routes."""
from fastapi import APIRouter, Depends, HTTPException, Response, status

from group_reminders.dependencies import get_session
from group_reminders.schemas.group import CreationStateOut, GroupDetails, SessionStateOut
from group_reminders.schemas.profile import AccountProfile
from group_reminders.services.group_session import GroupSession

router = APIRouter()


@router.get("/", response_model=CreationStateOut)
def get_creation(session: GroupSession = Depends(get_session)):
    return session.creation.snapshot()


@router.post("/open", response_model=CreationStateOut)
def open_creation(session: GroupSession = Depends(get_session)):
    """Start creating a group (no-op if already under way)."""
    session.creation.open()
    return session.creation.snapshot()


@router.post("/details", response_model=CreationStateOut, status_code=status.HTTP_201_CREATED)
def submit_details(payload: GroupDetails, response: Response, session: GroupSession = Depends(get_session)):
    """Phase 1: create the group with the acting account as admin.

    A blank name changes nothing and returns the workflow as it was.
    """
    group_id = session.creation.submit_details(payload.name, payload.description)
    if group_id is None:
        if not payload.name.strip():
            response.status_code = status.HTTP_200_OK
            return session.creation.snapshot()
        raise HTTPException(status_code=400, detail=session.pop_alert() or "Failed to create group")
    return session.creation.snapshot()


@router.post("/pending", response_model=CreationStateOut)
def stage_member(payload: AccountProfile, session: GroupSession = Depends(get_session)):
    """Stage an account to be added when the group is committed."""
    session.creation.stage(payload)
    return session.creation.snapshot()


@router.delete("/pending/{candidate_id}", response_model=CreationStateOut)
def unstage_member(candidate_id: str, session: GroupSession = Depends(get_session)):
    session.creation.unstage(candidate_id)
    return session.creation.snapshot()


@router.post("/commit", response_model=SessionStateOut)
def commit_members(session: GroupSession = Depends(get_session)):
    """Phase 2: add all staged members (best effort) and finish."""
    session.creation.commit_members()
    return session.snapshot()


@router.post("/skip", response_model=SessionStateOut)
def skip_members(session: GroupSession = Depends(get_session)):
    session.creation.skip()
    return session.snapshot()


@router.post("/close", response_model=SessionStateOut)
def close_creation(session: GroupSession = Depends(get_session)):
    """Cancel before the group exists, or finish once it does."""
    session.creation.cancel()
    return session.snapshot()
