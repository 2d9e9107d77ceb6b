"""User ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base
from app.db.types import UTCDateTime


class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    display_name = Column(Text, nullable=True)
    # IANA zone name, e.g. "Europe/Berlin"; NULL means the deployment default.
    timezone = Column(String(64), nullable=True)
    created_at = Column(UTCDateTime, nullable=False, server_default=func.now())
