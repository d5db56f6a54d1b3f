"""Request and response bodies for the HTTP API."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from schemas.analysis import EmotionAnalysisSchema
from schemas.base import CamelSchema
from schemas.conversation import MessageSchema
from schemas.profile import ChatbotPersonaSchema


class ChatMessageRequest(CamelSchema):
    """Body of POST /api/chat/message. Required fields are checked by the route for a 400."""

    message: Optional[str] = None
    user_id: Optional[str] = None
    session_id: Optional[str] = None


class ResponseContext(CamelSchema):
    user_mood: str
    conversation_length: int
    conversation_style: str


class ChatMessageResponse(CamelSchema):
    message: str
    response: str = Field(..., description="Same text as `message`")
    session_id: str
    timestamp: datetime
    emotion_analysis: EmotionAnalysisSchema
    context: ResponseContext
    note: Optional[str] = None


class HistoryResponse(CamelSchema):
    messages: List[MessageSchema]
    count: int
    session_id: Optional[str] = None


class ClearConversationResponse(CamelSchema):
    message: str
    cleared: bool
    session_id: Optional[str] = None


class EmotionalTrendSchema(CamelSchema):
    emotion: str
    count: int


class TopicTrendSchema(CamelSchema):
    topic: str
    count: int


class ConversationAnalyticsSchema(CamelSchema):
    total_sessions: int = 0
    total_messages: int = 0
    average_session_length: int = 0
    emotional_trends: List[EmotionalTrendSchema] = Field(default_factory=list)
    frequent_topics: List[TopicTrendSchema] = Field(default_factory=list)


class AnalyticsResponse(CamelSchema):
    analytics: ConversationAnalyticsSchema
    time_range: str
    user_id: str


class PersonaResponse(CamelSchema):
    persona: ChatbotPersonaSchema
    user_id: str
    generated: datetime


class HealthResponse(CamelSchema):
    status: str
    timestamp: datetime
    environment: str
    services: dict
