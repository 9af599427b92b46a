import uuid
from datetime import datetime, timezone

from database import Base
from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Link(Base):
    __tablename__ = "links"
    __table_args__ = (UniqueConstraint("short_code", name="unique_short_code"),)

    id = Column(String(36), primary_key=True, default=new_id)
    original_url = Column(Text, nullable=False)
    short_code = Column(String(64), nullable=False, index=True)
    access_count = Column(Integer, nullable=False, default=0, server_default="0")
    # Set in Python so the stored precision matches what cursors carry back
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
