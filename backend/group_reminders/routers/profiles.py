"""Profile / account directory API routes."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from group_reminders.database import get_db
from group_reminders.dependencies import get_store
from group_reminders.models.profile import Profile
from group_reminders.schemas.profile import AccountProfile, ProfileCreate, ProfileOut
from group_reminders.services import account_directory
from group_reminders.store import RemoteStore

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=ProfileOut, status_code=status.HTTP_201_CREATED)
def create_profile(payload: ProfileCreate, db: Session = Depends(get_db)):
    """Register an account in the directory."""
    profile = Profile(**payload.model_dump())
    db.add(profile)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="An account with this email already exists")
    db.refresh(profile)
    logger.info("Created profile %s (%s)", profile.id, profile.email)
    return profile


@router.get("/search", response_model=list[AccountProfile])
def search_profiles(
    q: str = Query(..., description="Part of an email address"),
    exclude: Optional[str] = Query(None, description="Account to leave out, usually the caller"),
    store: RemoteStore = Depends(get_store),
):
    """Find accounts by email fragment."""
    return account_directory.search_accounts(store, q, exclude_id=exclude)


@router.get("/lookup", response_model=AccountProfile)
def lookup_profile(email: str = Query(...), store: RemoteStore = Depends(get_store)):
    """Find an account by its exact email."""
    profile = account_directory.find_account_by_email(store, email)
    if not profile:
        raise HTTPException(status_code=404, detail="Account not found")
    return profile


@router.get("/{profile_id}", response_model=ProfileOut)
def get_profile(profile_id: str, db: Session = Depends(get_db)):
    """Fetch a single profile by ID."""
    profile = db.query(Profile).filter(Profile.id == profile_id).first()
    if not profile:
        raise HTTPException(status_code=404, detail="Account not found")
    return profile
