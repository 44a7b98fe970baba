"""FastAPI dependencies: the store, the session registry and the acting session."""
from functools import lru_cache

from fastapi import Depends, HTTPException, Query
from sqlalchemy.orm import Session

from group_reminders.database import SessionLocal, get_db
from group_reminders.models.profile import Profile
from group_reminders.schemas.profile import AccountProfile
from group_reminders.services.group_session import GroupSession
from group_reminders.services.session_registry import SessionRegistry
from group_reminders.store import RemoteStore


def get_store() -> RemoteStore:
    return RemoteStore(SessionLocal)


@lru_cache
def _default_registry() -> SessionRegistry:
    return SessionRegistry(get_store())


def get_registry() -> SessionRegistry:
    return _default_registry()


def get_session(
    account_id: str = Query(..., description="ID of the acting account"),
    db: Session = Depends(get_db),
    registry: SessionRegistry = Depends(get_registry),
) -> GroupSession:
    """Resolve the acting account and return its group session."""
    profile = db.query(Profile).filter(Profile.id == account_id).first()
    if not profile:
        raise HTTPException(status_code=404, detail="Account not found")
    return registry.get_or_create(AccountProfile.model_validate(profile), timezone=profile.timezone)
