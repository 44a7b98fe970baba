"""Pydantic schemas for group reminders."""
from __future__ import annotations
import re
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, field_validator

from group_reminders.config import settings
from group_reminders.models.group import RepeatPolicy

TIME_OF_DAY = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class GroupReminderCreate(BaseModel):
    title: str = ""
    why: Optional[str] = None
    time: str = settings.DEFAULT_REMINDER_TIME
    repeat: RepeatPolicy = RepeatPolicy(settings.DEFAULT_REMINDER_REPEAT)

    @field_validator("time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        if not TIME_OF_DAY.match(value):
            raise ValueError(f"Invalid time of day: {value!r} (expected HH:MM)")
        return value


class GroupReminderOut(BaseModel):
    id: str
    group_id: str
    title: str
    why: Optional[str] = None
    time: str
    repeat: RepeatPolicy
    active: bool
    next_trigger: Optional[int] = None
    created_by: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
