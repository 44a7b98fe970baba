"""Pydantic schemas for Profiles and account candidates."""
from __future__ import annotations
from datetime import datetime
from typing import Optional

import pytz
from pydantic import BaseModel, Field, field_validator

from group_reminders.config import settings


class AccountProfile(BaseModel):
    """An account as the directory hands it to group operations."""

    id: str
    email: str
    full_name: Optional[str] = None

    model_config = {"from_attributes": True}

    @property
    def display_name(self) -> str:
        return self.full_name or self.email.split("@")[0]


class ProfileCreate(BaseModel):
    email: str
    full_name: Optional[str] = None
    timezone: str = Field(default_factory=lambda: settings.DEFAULT_TIMEZONE)

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        if value not in pytz.all_timezones_set:
            raise ValueError(f"Unknown time zone: {value!r}")
        return value


class ProfileOut(AccountProfile):
    timezone: str
    created_at: datetime
