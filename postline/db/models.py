"""ORM models. These map 1:1 to the Pydantic types but are SQLAlchemy models.

Tables: history
"""

import uuid

from sqlalchemy import Column, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase

from postline.types import utcnow


class Base(DeclarativeBase):
    pass


class HistoryEntryModel(Base):
    __tablename__ = "history"
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    request_id = Column(String, nullable=False, index=True)
    request_name = Column(String, nullable=False)
    method = Column(String, nullable=False)
    url = Column(Text, nullable=False)
    workspace_id = Column(String, nullable=False, index=True)
    status_code = Column(Integer, nullable=True)     # NULL when the send failed
    duration_ms = Column(Integer, default=0)
    response_size = Column(Integer, default=0)
    timestamp = Column(DateTime(timezone=True), default=utcnow, index=True)
    # lowercased copies for case-insensitive search
    searchable_url = Column(Text, nullable=False, default="")
    searchable_name = Column(String, nullable=False, default="")

    __table_args__ = (Index("ix_history_workspace_ts", "workspace_id", "timestamp"),)
