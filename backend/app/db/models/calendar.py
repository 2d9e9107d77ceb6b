"""Calendar and calendar membership ORM models."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, Column, ForeignKey, Index, String, Text, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base
from app.db.types import UTCDateTime


class Calendar(Base):
    __tablename__ = "calendars"
    __table_args__ = (Index("ix_calendars_context", "context_type", "context_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(Text, nullable=False)
    # PERSONAL calendars use the owning user id as context_id, BUSINESS ones the business id.
    context_type = Column(String(20), nullable=False)
    context_id = Column(UUID(as_uuid=True), nullable=False)
    is_primary = Column(Boolean, nullable=False, server_default=sa_text("false"), default=False)
    created_at = Column(UTCDateTime, nullable=False, server_default=func.now())


class CalendarMember(Base):
    __tablename__ = "calendar_members"
    __table_args__ = (
        Index("ix_calendar_members_user_id", "user_id"),
        Index("ix_calendar_members_calendar_id", "calendar_id"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    calendar_id = Column(UUID(as_uuid=True), ForeignKey("calendars.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role = Column(String(20), nullable=False)
    created_at = Column(UTCDateTime, nullable=False, server_default=func.now())
