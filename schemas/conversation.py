"""Conversation schemas."""

from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional

from pydantic import Field

from schemas.base import CamelSchema
from schemas.profile import CommunicationStyle


class Emotion(str, Enum):
    HAPPY = "happy"
    SAD = "sad"
    ANGRY = "angry"
    EXCITED = "excited"
    CURIOUS = "curious"
    NEUTRAL = "neutral"
    FRUSTRATED = "frustrated"


class MessageSchema(CamelSchema):
    """A single message within a session."""

    role: Literal["user", "assistant"] = Field(..., description="Message role")
    content: str = Field(..., min_length=1, description="Message content")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    emotion: Optional[Emotion] = None
    sentiment: Optional[float] = Field(default=None, ge=-1.0, le=1.0)


class ConversationContextSchema(CamelSchema):
    current_topic: Optional[str] = None
    user_mood: Optional[str] = None
    conversation_style: CommunicationStyle = CommunicationStyle.CASUAL
    last_interaction: Optional[datetime] = None


class ConversationSchema(CamelSchema):
    """One session's record, keyed by (user_id, session_id)."""

    user_id: str = Field(..., min_length=1)
    session_id: str = Field(..., min_length=1)
    messages: List[MessageSchema] = Field(default_factory=list)
    context: ConversationContextSchema = Field(default_factory=ConversationContextSchema)
    summary: Optional[str] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def add_message(self, message: MessageSchema) -> None:
        """Append a message. Messages are never edited or removed individually."""
        self.messages.append(message)
        self.context.last_interaction = message.timestamp
        self.is_active = True
        self.updated_at = datetime.utcnow()

    def recent_messages(self, limit: int = 10) -> List[MessageSchema]:
        """Most recent `limit` messages, oldest first.

        Sorted by timestamp rather than trusting insertion order, since
        concurrent writers can interleave appends. The sort is stable so
        equal timestamps keep their stored order.
        """
        if limit <= 0:
            return []
        ordered = sorted(self.messages, key=lambda m: m.timestamp)
        return ordered[-limit:]
