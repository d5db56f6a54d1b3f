"""
SQLAlchemy models for the profile and conversation stores.

Profiles and conversations are documents: the nested memory, stats and
message lists are kept as JSON columns in their camelCase serialised form,
with the lookup keys and timestamps promoted to real columns for indexing.
"""

from datetime import datetime

from sqlalchemy import (
    Column,
    Index,
    Integer,
    String,
    Text,
    DateTime,
    Boolean,
    JSON,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class UserProfileRecord(Base):
    """One row per user id."""

    __tablename__ = "user_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), unique=True, nullable=False, index=True)
    document = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.utcnow(), nullable=False)
    updated_at = Column(DateTime, default=lambda: datetime.utcnow(), nullable=False)

    def __repr__(self):
        return f"<UserProfileRecord(user_id='{self.user_id}')>"


class ConversationRecord(Base):
    """One row per (user id, session id)."""

    __tablename__ = "conversations"
    __table_args__ = (
        UniqueConstraint("user_id", "session_id", name="uq_conversations_user_session"),
        Index("idx_conversations_user_updated", "user_id", "updated_at"),
        Index("idx_conversations_inactive_updated", "is_active", "updated_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    session_id = Column(String(255), nullable=False, index=True)
    messages = Column(JSON, nullable=False, default=list)
    context = Column(JSON, nullable=False, default=dict)
    summary = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.utcnow(), nullable=False)
    updated_at = Column(DateTime, default=lambda: datetime.utcnow(), nullable=False, index=True)

    def __repr__(self):
        return f"<ConversationRecord(user_id='{self.user_id}', session_id='{self.session_id}')>"
