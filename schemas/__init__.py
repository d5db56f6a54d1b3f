"""
Pydantic schemas for type-safe data transfer.
"""

from schemas.base import CamelSchema
from schemas.profile import (
    CommunicationStyle,
    ConversationLength,
    ResponseStyle,
    ReminderFrequency,
    GoalStatus,
    ImportantFactSchema,
    RelationshipSchema,
    ExperienceSchema,
    GoalSchema,
    IdentitySchema,
    PreferencesSchema,
    MemorySchema,
    ConversationStatsSchema,
    ChatbotPersonaSchema,
    UserProfileSchema,
    ContextualMemorySchema,
)
from schemas.conversation import (
    Emotion,
    MessageSchema,
    ConversationContextSchema,
    ConversationSchema,
)
from schemas.analysis import EmotionAnalysisSchema, ExtractedMemorySchema
from schemas.api import (
    ChatMessageRequest,
    ChatMessageResponse,
    ResponseContext,
    HistoryResponse,
    ClearConversationResponse,
    EmotionalTrendSchema,
    TopicTrendSchema,
    ConversationAnalyticsSchema,
    AnalyticsResponse,
    PersonaResponse,
    HealthResponse,
)

__all__ = [
    "CamelSchema",
    "CommunicationStyle",
    "ConversationLength",
    "ResponseStyle",
    "ReminderFrequency",
    "GoalStatus",
    "ImportantFactSchema",
    "RelationshipSchema",
    "ExperienceSchema",
    "GoalSchema",
    "IdentitySchema",
    "PreferencesSchema",
    "MemorySchema",
    "ConversationStatsSchema",
    "ChatbotPersonaSchema",
    "UserProfileSchema",
    "ContextualMemorySchema",
    "Emotion",
    "MessageSchema",
    "ConversationContextSchema",
    "ConversationSchema",
    "EmotionAnalysisSchema",
    "ExtractedMemorySchema",
    "ChatMessageRequest",
    "ChatMessageResponse",
    "ResponseContext",
    "HistoryResponse",
    "ClearConversationResponse",
    "EmotionalTrendSchema",
    "TopicTrendSchema",
    "ConversationAnalyticsSchema",
    "AnalyticsResponse",
    "PersonaResponse",
    "HealthResponse",
]
