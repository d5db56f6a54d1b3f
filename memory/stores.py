"""
Store interfaces for profiles and conversations, plus the in-memory backend.

Services talk to these interfaces only. The in-memory backend keeps its
state on the instance (never at module level) and hands out deep copies so
callers cannot mutate stored records behind the store's back.
"""

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from core import DatabaseException
from schemas import ConversationSchema, UserProfileSchema

# Failures that mean "the store is unreachable right now"; services degrade on these.
STORE_ERRORS = (DatabaseException, OSError, asyncio.TimeoutError)


class ProfileStore(ABC):
    """Authoritative storage for user profiles."""

    @abstractmethod
    async def get(self, user_id: str) -> Optional[UserProfileSchema]:
        """Return the stored profile or None."""

    @abstractmethod
    async def save(self, profile: UserProfileSchema) -> UserProfileSchema:
        """Insert or replace the profile for profile.user_id."""


class ConversationStore(ABC):
    """Authoritative storage for conversation records."""

    @abstractmethod
    async def get(self, user_id: str, session_id: str) -> Optional[ConversationSchema]:
        """Return one session's record or None."""

    @abstractmethod
    async def save(self, conversation: ConversationSchema) -> ConversationSchema:
        """Insert or replace the record for (user_id, session_id)."""

    @abstractmethod
    async def find(
        self,
        user_id: str,
        session_id: Optional[str] = None,
        updated_since: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[ConversationSchema]:
        """Return a user's records, most recently updated first."""

    @abstractmethod
    async def delete(self, user_id: str, session_id: Optional[str] = None) -> int:
        """Delete one session, or every session of the user. Returns rows removed."""

    @abstractmethod
    async def deactivate_others(self, user_id: str, session_id: str) -> int:
        """Mark every other session of the user inactive. Returns rows changed."""

    @abstractmethod
    async def delete_inactive_before(self, cutoff: datetime) -> int:
        """Delete inactive records last updated before cutoff. Returns rows removed."""


class InMemoryProfileStore(ProfileStore):
    def __init__(self):
        self._profiles: Dict[str, UserProfileSchema] = {}

    async def get(self, user_id: str) -> Optional[UserProfileSchema]:
        profile = self._profiles.get(user_id)
        return profile.model_copy(deep=True) if profile else None

    async def save(self, profile: UserProfileSchema) -> UserProfileSchema:
        self._profiles[profile.user_id] = profile.model_copy(deep=True)
        return profile


class InMemoryConversationStore(ConversationStore):
    def __init__(self):
        self._conversations: Dict[Tuple[str, str], ConversationSchema] = {}

    async def get(self, user_id: str, session_id: str) -> Optional[ConversationSchema]:
        conversation = self._conversations.get((user_id, session_id))
        return conversation.model_copy(deep=True) if conversation else None

    async def save(self, conversation: ConversationSchema) -> ConversationSchema:
        key = (conversation.user_id, conversation.session_id)
        self._conversations[key] = conversation.model_copy(deep=True)
        return conversation

    async def find(
        self,
        user_id: str,
        session_id: Optional[str] = None,
        updated_since: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[ConversationSchema]:
        matches = [
            c.model_copy(deep=True)
            for (uid, sid), c in self._conversations.items()
            if uid == user_id
            and (session_id is None or sid == session_id)
            and (updated_since is None or c.updated_at >= updated_since)
        ]
        matches.sort(key=lambda c: c.updated_at, reverse=True)
        return matches[:limit] if limit else matches

    async def delete(self, user_id: str, session_id: Optional[str] = None) -> int:
        keys = [
            key for key in self._conversations
            if key[0] == user_id and (session_id is None or key[1] == session_id)
        ]
        for key in keys:
            del self._conversations[key]
        return len(keys)

    async def deactivate_others(self, user_id: str, session_id: str) -> int:
        changed = 0
        for (uid, sid), c in self._conversations.items():
            if uid == user_id and sid != session_id and c.is_active:
                c.is_active = False
                changed += 1
        return changed

    async def delete_inactive_before(self, cutoff: datetime) -> int:
        keys = [
            key for key, c in self._conversations.items()
            if not c.is_active and c.updated_at < cutoff
        ]
        for key in keys:
            del self._conversations[key]
        return len(keys)
