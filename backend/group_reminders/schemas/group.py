"""Pydantic schemas for Groups, Memberships and session snapshots."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from group_reminders.models.group import GroupRole
from group_reminders.schemas.group_reminder import GroupReminderOut
from group_reminders.schemas.profile import AccountProfile


class GroupDetails(BaseModel):
    name: str
    description: Optional[str] = None


class MembershipOut(BaseModel):
    id: str
    group_id: str
    user_id: str
    email: str
    name: Optional[str] = None
    role: GroupRole
    joined_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class GroupOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    created_by: str
    created_at: Optional[datetime] = None
    member_count: int = 0
    reminder_count: int = 0
    members: Optional[list[MembershipOut]] = None

    model_config = {"from_attributes": True}


class CreationStateOut(BaseModel):
    step: str
    name: str = ""
    description: Optional[str] = None
    group_id: Optional[str] = None
    pending_members: list[AccountProfile] = []


class SessionStateOut(BaseModel):
    account_id: str
    groups: list[GroupOut] = []
    selected_group: Optional[GroupOut] = None
    reminders: list[GroupReminderOut] = []
    selected_candidate: Optional[AccountProfile] = None
    busy: bool = False
    creation: CreationStateOut
