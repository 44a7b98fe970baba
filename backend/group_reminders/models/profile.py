"""Profile ORM model — the account directory."""
import uuid
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from group_reminders.config import settings
from group_reminders.database import Base


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), nullable=False, unique=True)
    full_name = Column(String(100), nullable=True)
    timezone = Column(String(50), nullable=False, default=lambda: settings.DEFAULT_TIMEZONE)  # IANA tz
    created_at = Column(DateTime(timezone=True), server_default=func.now())
