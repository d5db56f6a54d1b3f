"""User profile schemas: identity, preferences, accumulated memory and stats."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from core.exceptions import InvalidInputError
from schemas.base import CamelSchema


class CommunicationStyle(str, Enum):
    FORMAL = "formal"
    CASUAL = "casual"
    PLAYFUL = "playful"
    SERIOUS = "serious"


class ConversationLength(str, Enum):
    BRIEF = "brief"
    MODERATE = "moderate"
    DETAILED = "detailed"


class ResponseStyle(str, Enum):
    DIRECT = "direct"
    EMPATHETIC = "empathetic"
    HUMOROUS = "humorous"
    ANALYTICAL = "analytical"


class ReminderFrequency(str, Enum):
    NEVER = "never"
    OCCASIONALLY = "occasionally"
    FREQUENTLY = "frequently"


class GoalStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"
    ABANDONED = "abandoned"


# ==================== Memory entries ====================


class ImportantFactSchema(CamelSchema):
    """A short statement about the user, deduplicated by text."""

    fact: str = Field(..., min_length=1, description="Fact text, e.g. 'Name is John'")
    confidence: float = Field(default=1.0, ge=0.0, le=1.0, description="Confidence score (0.0 to 1.0)")
    last_mentioned: datetime = Field(default_factory=datetime.utcnow)
    category: str = Field(default="general", max_length=100)

    @field_validator("fact", "category")
    @classmethod
    def validate_no_whitespace(cls, v: str) -> str:
        """Ensure no leading/trailing whitespace."""
        return v.strip()


class RelationshipSchema(CamelSchema):
    """A person in the user's life."""

    name: str = Field(..., min_length=1)
    relationship: Optional[str] = Field(default=None, description="e.g. 'sister', 'coworker'")
    details: Optional[str] = None


class ExperienceSchema(CamelSchema):
    """Something that happened to the user."""

    event: str = Field(..., min_length=1)
    date: datetime = Field(default_factory=datetime.utcnow)
    emotion: str = Field(default="neutral")
    importance: int = Field(default=5, ge=1, le=10)


class GoalSchema(CamelSchema):
    goal: str = Field(..., min_length=1)
    status: GoalStatus = GoalStatus.ACTIVE
    deadline: Optional[datetime] = None
    progress: int = Field(default=0, ge=0, le=100)


# ==================== Profile sections ====================


class IdentitySchema(CamelSchema):
    """Static attributes of the user (serialised under the "profile" key)."""

    name: Optional[str] = Field(default=None, max_length=255)
    preferred_name: Optional[str] = Field(default=None, max_length=255)
    age: Optional[int] = Field(default=None, ge=0, le=150)
    location: Optional[str] = None
    occupation: Optional[str] = None
    interests: List[str] = Field(default_factory=list)
    hobbies: List[str] = Field(default_factory=list)
    personality_traits: List[str] = Field(default_factory=list)
    communication_style: CommunicationStyle = CommunicationStyle.CASUAL

    @property
    def display_name(self) -> Optional[str]:
        return self.preferred_name or self.name


class PreferencesSchema(CamelSchema):
    topics: List[str] = Field(default_factory=list)
    conversation_length: ConversationLength = ConversationLength.MODERATE
    response_style: ResponseStyle = ResponseStyle.EMPATHETIC
    reminder_frequency: ReminderFrequency = ReminderFrequency.OCCASIONALLY


class MemorySchema(CamelSchema):
    important_facts: List[ImportantFactSchema] = Field(default_factory=list)
    relationships: List[RelationshipSchema] = Field(default_factory=list)
    experiences: List[ExperienceSchema] = Field(default_factory=list)
    goals: List[GoalSchema] = Field(default_factory=list)


class TopicCountSchema(CamelSchema):
    topic: str
    count: int = Field(default=0, ge=0)


class EmotionalPatternSchema(CamelSchema):
    emotion: str
    frequency: int = Field(default=0, ge=0)
    contexts: List[str] = Field(default_factory=list)


class ConversationStatsSchema(CamelSchema):
    """Aggregate conversation statistics (serialised under "conversationHistory")."""

    total_sessions: int = Field(default=0, ge=0)
    total_messages: int = Field(default=0, ge=0)
    average_session_length: float = Field(default=0.0, ge=0.0)
    last_active: Optional[datetime] = None
    frequent_topics: List[TopicCountSchema] = Field(default_factory=list)
    emotional_patterns: List[EmotionalPatternSchema] = Field(default_factory=list)


class ChatbotPersonaSchema(CamelSchema):
    """The identity the assistant presents to this user."""

    name: str = "Alex"
    personality: str = "Warm, empathetic, and genuinely interested in people"
    backstory: str = "A thoughtful person who loves meaningful conversations and connecting with others"
    relationship_with_user: str = "A caring friend who remembers what matters to you"


# Keys that the partial-update merge must never touch
_PROTECTED_KEYS = {"userId", "isTemporary", "createdAt", "updatedAt"}
_SECTION_KEYS = {"profile", "preferences", "memory", "conversationHistory", "chatbotPersona"}
_IDENTITY_KEYS = {to_camel(name) for name in IdentitySchema.model_fields}
_PREFERENCE_KEYS = {to_camel(name) for name in PreferencesSchema.model_fields}


def _camel_key(key: str) -> str:
    return to_camel(key) if "_" in key else key


class UserProfileSchema(CamelSchema):
    """Complete per-user profile document."""

    user_id: str = Field(..., min_length=1, description="External user identifier")
    profile: IdentitySchema = Field(default_factory=IdentitySchema)
    preferences: PreferencesSchema = Field(default_factory=PreferencesSchema)
    memory: MemorySchema = Field(default_factory=MemorySchema)
    conversation_history: ConversationStatsSchema = Field(default_factory=ConversationStatsSchema)
    chatbot_persona: Optional[ChatbotPersonaSchema] = None
    is_temporary: bool = Field(
        default=False,
        description="True when the store was unreachable and this profile will not be persisted",
    )
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # ==================== Memory mutations ====================

    def add_important_fact(
        self,
        fact: str,
        category: str = "general",
        confidence: float = 1.0,
        now: Optional[datetime] = None,
    ) -> ImportantFactSchema:
        """
        Add a fact, or refresh it if the same text (case-insensitive) is known.

        A repeated fact gets its last_mentioned bumped and its confidence raised
        to the larger of the old and new values; it is never duplicated.
        """
        now = now or datetime.utcnow()
        needle = fact.strip().lower()
        for existing in self.memory.important_facts:
            if existing.fact.lower() == needle:
                existing.last_mentioned = now
                existing.confidence = max(existing.confidence, confidence)
                return existing

        entry = ImportantFactSchema(
            fact=fact,
            category=category,
            confidence=confidence,
            last_mentioned=now,
        )
        self.memory.important_facts.append(entry)
        return entry

    def add_experience(
        self, event: str, emotion: str = "neutral", importance: int = 5
    ) -> ExperienceSchema:
        entry = ExperienceSchema(event=event, emotion=emotion, importance=importance)
        self.memory.experiences.append(entry)
        return entry

    def add_interests(self, interests: Iterable[str]) -> List[str]:
        """Union interests case-insensitively, keeping first-seen order. Returns the new ones."""
        known = {i.lower() for i in self.profile.interests}
        added = []
        for interest in interests:
            interest = interest.strip()
            if interest and interest.lower() not in known:
                self.profile.interests.append(interest)
                known.add(interest.lower())
                added.append(interest)
        return added

    def add_relationship(self, relationship: RelationshipSchema) -> bool:
        """Add a relationship unless one with the same name exists."""
        name = relationship.name.lower()
        if any(r.name.lower() == name for r in self.memory.relationships):
            return False
        self.memory.relationships.append(relationship)
        return True

    def increment_stats(self, message_count: int, new_session: bool = True) -> None:
        """Record messages (and optionally a new session); average length is always derived."""
        stats = self.conversation_history
        if new_session:
            stats.total_sessions += 1
        stats.total_messages += message_count
        stats.last_active = datetime.utcnow()
        if stats.total_sessions > 0:
            stats.average_session_length = stats.total_messages / stats.total_sessions

    def record_emotion(self, emotion: str, context: Optional[str] = None) -> None:
        for pattern in self.conversation_history.emotional_patterns:
            if pattern.emotion == emotion:
                pattern.frequency += 1
                if context:
                    pattern.contexts = (pattern.contexts + [context])[-5:]
                return
        self.conversation_history.emotional_patterns.append(
            EmotionalPatternSchema(emotion=emotion, frequency=1, contexts=[context] if context else [])
        )

    def record_topic(self, topic: str) -> None:
        for entry in self.conversation_history.frequent_topics:
            if entry.topic.lower() == topic.lower():
                entry.count += 1
                return
        self.conversation_history.frequent_topics.append(TopicCountSchema(topic=topic, count=1))

    # ==================== Partial updates ====================

    def with_updates(self, updates: Dict[str, Any]) -> "UserProfileSchema":
        """
        Return a validated copy with partial fields merged in.

        Accepts whole sections ({"preferences": {...}}) and bare identity or
        preference fields ({"responseStyle": "direct"}), in camelCase or
        snake_case.

        Raises:
            InvalidInputError: unknown field or a value the schema rejects
        """
        doc = self.to_document()
        for raw_key, value in updates.items():
            key = _camel_key(raw_key)
            if key in _PROTECTED_KEYS:
                continue
            if key in _SECTION_KEYS:
                if not isinstance(value, dict):
                    raise InvalidInputError(key, "expected an object")
                section = doc.get(key) or {}
                section.update({_camel_key(k): v for k, v in value.items()})
                doc[key] = section
            elif key in _IDENTITY_KEYS:
                doc["profile"][key] = value
            elif key in _PREFERENCE_KEYS:
                doc["preferences"][key] = value
            else:
                raise InvalidInputError(raw_key, "unknown profile field")

        doc["updatedAt"] = datetime.utcnow().isoformat()
        try:
            return UserProfileSchema.model_validate(doc)
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(p) for p in first.get("loc", ())) or "profile"
            raise InvalidInputError(field, first.get("msg", "invalid value"))

    # ==================== Read helpers ====================

    def personality_insights(self) -> Dict[str, Any]:
        return {
            "communicationStyle": self.profile.communication_style.value,
            "interests": list(self.profile.interests),
            "recentExperiences": sorted(
                self.memory.experiences, key=lambda e: e.date, reverse=True
            )[:5],
            "importantFacts": sorted(
                self.memory.important_facts, key=lambda f: f.confidence, reverse=True
            )[:10],
            "emotionalPatterns": list(self.conversation_history.emotional_patterns),
        }

    @classmethod
    def default(cls, user_id: str, temporary: bool = False) -> "UserProfileSchema":
        """Fresh profile: casual style, empathetic responses, moderate length, empty memory."""
        return cls(user_id=user_id, is_temporary=temporary)


class ContextualMemorySchema(CamelSchema):
    """Memory selected as relevant to the current message."""

    facts: List[ImportantFactSchema] = Field(default_factory=list)
    experiences: List[ExperienceSchema] = Field(default_factory=list)
    interests: List[str] = Field(default_factory=list)
    relationships: List[RelationshipSchema] = Field(default_factory=list)
