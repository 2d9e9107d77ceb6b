"""Calendar event ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, Column, ForeignKey, Index, String, Text, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base
from app.db.types import UTCDateTime


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (Index("ix_events_calendar_id_start_at", "calendar_id", "start_at"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    calendar_id = Column(UUID(as_uuid=True), ForeignKey("calendars.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    start_at = Column(UTCDateTime, nullable=False)
    end_at = Column(UTCDateTime, nullable=False)
    all_day = Column(Boolean, nullable=False, server_default=sa_text("false"), default=False)
    status = Column(String(20), nullable=False, server_default=sa_text("'CONFIRMED'"), default="CONFIRMED")
    trashed_at = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, server_default=func.now())
