"""Group, Membership and GroupReminder ORM models."""
import enum
import uuid
from sqlalchemy import (
    BigInteger, Boolean, Column, DateTime, ForeignKey, String, Text, UniqueConstraint,
    Enum as SAEnum, func, select,
)
from sqlalchemy.orm import column_property, relationship
from group_reminders.database import Base


class GroupRole(str, enum.Enum):
    admin = "admin"
    member = "member"


class RepeatPolicy(str, enum.Enum):
    once = "once"
    daily = "daily"
    weekly = "weekly"


def _new_id() -> str:
    return str(uuid.uuid4())


class Membership(Base):
    __tablename__ = "memberships"
    __table_args__ = (UniqueConstraint("group_id", "user_id", name="uq_memberships_group_user"),)

    id = Column(String(36), primary_key=True, default=_new_id)
    group_id = Column(String(36), ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    email = Column(String(255), nullable=False)
    name = Column(String(100), nullable=True)
    role = Column(SAEnum(GroupRole, native_enum=False), nullable=False, default=GroupRole.member)
    joined_at = Column(DateTime(timezone=True), server_default=func.now())

    group = relationship("Group", back_populates="members")


class GroupReminder(Base):
    __tablename__ = "group_reminders"

    id = Column(String(36), primary_key=True, default=_new_id)
    group_id = Column(String(36), ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    why = Column(Text, nullable=True)
    time = Column(String(5), nullable=False)  # HH:MM, sorts lexically
    repeat = Column(SAEnum(RepeatPolicy, native_enum=False), nullable=False, default=RepeatPolicy.daily)
    next_trigger = Column(BigInteger, nullable=True)  # UTC epoch ms
    active = Column(Boolean, nullable=False, default=True)
    created_by = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    group = relationship("Group", back_populates="reminders")


class Group(Base):
    __tablename__ = "groups"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    created_by = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    member_count = column_property(
        select(func.count(Membership.id))
        .where(Membership.group_id == id)
        .correlate_except(Membership)
        .scalar_subquery()
    )
    reminder_count = column_property(
        select(func.count(GroupReminder.id))
        .where(GroupReminder.group_id == id)
        .correlate_except(GroupReminder)
        .scalar_subquery()
    )

    members = relationship("Membership", back_populates="group", cascade="all, delete-orphan")
    reminders = relationship("GroupReminder", back_populates="group", cascade="all, delete-orphan")
