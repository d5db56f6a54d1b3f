"""
Async database backend for the profile and conversation stores.
Async SQLAlchemy with retry on transient errors and structured logging.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, List, Optional

from sqlalchemy import delete, desc, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from core import DatabaseException, get_logger
from memory.models import Base, ConversationRecord, UserProfileRecord
from memory.stores import ConversationStore, ProfileStore
from schemas import ConversationSchema, UserProfileSchema

logger = get_logger(__name__)

_db_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
    retry=retry_if_exception_type(SQLAlchemyError),
    reraise=True,
)


class AsyncDatabase:
    """
    Async engine and session factory shared by the SQL stores.

    - Connection pooling with pre-ping for PostgreSQL
    - Commit on success, rollback on error
    """

    def __init__(self, db_url: str, echo: bool = False):
        """Initialize async database engine and session factory."""
        engine_kwargs = {"echo": echo}
        if db_url.startswith("postgresql"):
            engine_kwargs.update(
                pool_size=10,
                max_overflow=20,
                pool_pre_ping=True,  # Verify connections before use
                pool_recycle=3600,  # Recycle connections after 1 hour
            )

        self.engine: AsyncEngine = create_async_engine(db_url, **engine_kwargs)
        self.async_session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        logger.info("Async database engine initialized", db_url=db_url.split("@")[-1])

    @asynccontextmanager
    async def get_session(self) -> AsyncIterator[AsyncSession]:
        """
        Context manager for database sessions with automatic cleanup.

        Yields:
            AsyncSession instance
        """
        async with self.async_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception as e:
                await session.rollback()
                logger.error("Session rolled back", error=str(e))
                raise

    async def create_tables(self) -> None:
        """Create all database tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

    async def dispose(self) -> None:
        await self.engine.dispose()


def _conversation_from_record(record: ConversationRecord) -> ConversationSchema:
    return ConversationSchema.model_validate(
        {
            "userId": record.user_id,
            "sessionId": record.session_id,
            "messages": record.messages or [],
            "context": record.context or {},
            "summary": record.summary,
            "isActive": record.is_active,
            "createdAt": record.created_at,
            "updatedAt": record.updated_at,
        }
    )


class SQLProfileStore(ProfileStore):
    """Profile store backed by the user_profiles table."""

    def __init__(self, db: AsyncDatabase):
        self.db = db

    @_db_retry
    async def _get(self, user_id: str) -> Optional[UserProfileSchema]:
        async with self.db.get_session() as session:
            result = await session.execute(
                select(UserProfileRecord).where(UserProfileRecord.user_id == user_id)
            )
            record = result.scalar_one_or_none()
            return UserProfileSchema.model_validate(record.document) if record else None

    async def get(self, user_id: str) -> Optional[UserProfileSchema]:
        try:
            return await self._get(user_id)
        except SQLAlchemyError as e:
            logger.error("Failed to get profile", user_id=user_id, error=str(e))
            raise DatabaseException(f"Failed to get profile: {e}")

    @_db_retry
    async def _save(self, profile: UserProfileSchema) -> None:
        async with self.db.get_session() as session:
            result = await session.execute(
                select(UserProfileRecord).where(UserProfileRecord.user_id == profile.user_id)
            )
            record = result.scalar_one_or_none()
            if record is None:
                record = UserProfileRecord(
                    user_id=profile.user_id,
                    created_at=profile.created_at,
                )
                session.add(record)
            record.document = profile.to_document()
            record.updated_at = profile.updated_at

    async def save(self, profile: UserProfileSchema) -> UserProfileSchema:
        try:
            await self._save(profile)
            logger.debug("Saved profile", user_id=profile.user_id)
            return profile
        except SQLAlchemyError as e:
            logger.error("Failed to save profile", user_id=profile.user_id, error=str(e))
            raise DatabaseException(f"Failed to save profile: {e}")


class SQLConversationStore(ConversationStore):
    """Conversation store backed by the conversations table."""

    def __init__(self, db: AsyncDatabase):
        self.db = db

    @_db_retry
    async def _get(self, user_id: str, session_id: str) -> Optional[ConversationSchema]:
        async with self.db.get_session() as session:
            result = await session.execute(
                select(ConversationRecord).where(
                    ConversationRecord.user_id == user_id,
                    ConversationRecord.session_id == session_id,
                )
            )
            record = result.scalar_one_or_none()
            return _conversation_from_record(record) if record else None

    async def get(self, user_id: str, session_id: str) -> Optional[ConversationSchema]:
        try:
            return await self._get(user_id, session_id)
        except SQLAlchemyError as e:
            logger.error("Failed to get conversation", user_id=user_id, session_id=session_id, error=str(e))
            raise DatabaseException(f"Failed to get conversation: {e}")

    @_db_retry
    async def _save(self, conversation: ConversationSchema) -> None:
        doc = conversation.to_document()
        async with self.db.get_session() as session:
            result = await session.execute(
                select(ConversationRecord).where(
                    ConversationRecord.user_id == conversation.user_id,
                    ConversationRecord.session_id == conversation.session_id,
                )
            )
            record = result.scalar_one_or_none()
            if record is None:
                record = ConversationRecord(
                    user_id=conversation.user_id,
                    session_id=conversation.session_id,
                    created_at=conversation.created_at,
                )
                session.add(record)
            record.messages = doc["messages"]
            record.context = doc["context"]
            record.summary = conversation.summary
            record.is_active = conversation.is_active
            record.updated_at = conversation.updated_at

    async def save(self, conversation: ConversationSchema) -> ConversationSchema:
        try:
            await self._save(conversation)
            return conversation
        except SQLAlchemyError as e:
            logger.error(
                "Failed to save conversation",
                user_id=conversation.user_id,
                session_id=conversation.session_id,
                error=str(e),
            )
            raise DatabaseException(f"Failed to save conversation: {e}")

    async def find(
        self,
        user_id: str,
        session_id: Optional[str] = None,
        updated_since: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[ConversationSchema]:
        query = select(ConversationRecord).where(ConversationRecord.user_id == user_id)
        if session_id is not None:
            query = query.where(ConversationRecord.session_id == session_id)
        if updated_since is not None:
            query = query.where(ConversationRecord.updated_at >= updated_since)
        query = query.order_by(desc(ConversationRecord.updated_at))
        if limit:
            query = query.limit(limit)

        try:
            async with self.db.get_session() as session:
                result = await session.execute(query)
                return [_conversation_from_record(r) for r in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("Failed to find conversations", user_id=user_id, error=str(e))
            raise DatabaseException(f"Failed to find conversations: {e}")

    async def delete(self, user_id: str, session_id: Optional[str] = None) -> int:
        stmt = delete(ConversationRecord).where(ConversationRecord.user_id == user_id)
        if session_id is not None:
            stmt = stmt.where(ConversationRecord.session_id == session_id)

        try:
            async with self.db.get_session() as session:
                result = await session.execute(stmt)
                return result.rowcount or 0
        except SQLAlchemyError as e:
            logger.error("Failed to delete conversations", user_id=user_id, error=str(e))
            raise DatabaseException(f"Failed to delete conversations: {e}")

    async def deactivate_others(self, user_id: str, session_id: str) -> int:
        stmt = (
            update(ConversationRecord)
            .where(
                ConversationRecord.user_id == user_id,
                ConversationRecord.session_id != session_id,
                ConversationRecord.is_active == True,  # noqa: E712
            )
            .values(is_active=False)
        )
        try:
            async with self.db.get_session() as session:
                result = await session.execute(stmt)
                return result.rowcount or 0
        except SQLAlchemyError as e:
            logger.error("Failed to deactivate conversations", user_id=user_id, error=str(e))
            raise DatabaseException(f"Failed to deactivate conversations: {e}")

    async def delete_inactive_before(self, cutoff: datetime) -> int:
        stmt = delete(ConversationRecord).where(
            ConversationRecord.is_active == False,  # noqa: E712
            ConversationRecord.updated_at < cutoff,
        )
        try:
            async with self.db.get_session() as session:
                result = await session.execute(stmt)
                return result.rowcount or 0
        except SQLAlchemyError as e:
            logger.error("Failed to clean up conversations", error=str(e))
            raise DatabaseException(f"Failed to clean up conversations: {e}")
