"""Persistence of word progress and learner profiles."""
import asyncio
import logging
import weakref
from typing import Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from linguamentor.errors import InvalidArgument, StorageUnavailable
from linguamentor.models.models import UserProfile, WordProgressRecord
from linguamentor.models.vocabulary_models import ProgressStats, WordProgress, WordStatus
from linguamentor.monitoring import storage_errors, storage_retries

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Errors that mean another writer got there first
CONFLICT_ERRORS = (StaleDataError, IntegrityError, OperationalError)

# Profile columns that may be set through upsert_user_profile
PROFILE_FIELDS = frozenset({"name", "level", "goals", "weak_points"})


class Storage:
    """Async storage for word progress, partitioned by user and language."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        max_retries: int = 5,
        retry_delay: float = 0.05,
    ):
        """Initialize the storage with a session factory."""
        self.session_factory = session_factory
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._locks: "weakref.WeakValueDictionary[Tuple[str, str, str], asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, user_id: str, language: str, word: str) -> asyncio.Lock:
        key = (user_id, language, word)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def _read(self, operation: str, fn: Callable[[AsyncSession], Awaitable[T]]) -> T:
        try:
            async with self.session_factory() as session:
                return await fn(session)
        except SQLAlchemyError as e:
            storage_errors.labels(operation=operation).inc()
            logger.error(f"Storage read '{operation}' failed: {e}")
            raise StorageUnavailable(f"Storage read '{operation}' failed") from e

    async def get(self, user_id: str, language: str, word: str) -> Optional[WordProgress]:
        """Get the stored progress of one word, if any."""
        async def _get(session: AsyncSession) -> Optional[WordProgress]:
            row = await session.scalar(
                select(WordProgressRecord).where(
                    WordProgressRecord.user_id == user_id,
                    WordProgressRecord.language == language,
                    WordProgressRecord.word == word,
                )
            )
            return row.to_progress() if row else None

        return await self._read("get", _get)

    async def list_all(self, user_id: str, language: str) -> List[WordProgress]:
        """Get the full progress snapshot of a user for one language."""
        async def _list(session: AsyncSession) -> List[WordProgress]:
            rows = await session.scalars(
                select(WordProgressRecord).where(
                    WordProgressRecord.user_id == user_id,
                    WordProgressRecord.language == language,
                )
            )
            return [row.to_progress() for row in rows]

        return await self._read("list_all", _list)

    async def count_by_status(self, user_id: str, language: str) -> ProgressStats:
        """Count stored words per status."""
        async def _count(session: AsyncSession) -> Dict[str, int]:
            result = await session.execute(
                select(WordProgressRecord.status, func.count())
                .where(
                    WordProgressRecord.user_id == user_id,
                    WordProgressRecord.language == language,
                )
                .group_by(WordProgressRecord.status)
            )
            return {status: count for status, count in result.all()}

        counts = await self._read("count_by_status", _count)
        return ProgressStats(
            known=counts.get(WordStatus.KNOWN.value, 0),
            learning=counts.get(WordStatus.LEARNING.value, 0),
            weak=counts.get(WordStatus.WEAK.value, 0),
        )

    async def run_transaction(self, fn: Callable[[AsyncSession], Awaitable[T]]) -> T:
        """Run ``fn`` in a transaction, retrying it on write conflicts.

        ``fn`` may run more than once and must derive everything it writes
        from what it reads inside the session it is given.
        """
        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_retries + 1):
            try:
                async with self.session_factory() as session:
                    async with session.begin():
                        return await fn(session)
            except CONFLICT_ERRORS as e:
                last_error = e
                storage_retries.inc()
                logger.warning(f"Transaction conflict (attempt {attempt}/{self.max_retries}): {e}")
                await asyncio.sleep(self.retry_delay * attempt)
            except SQLAlchemyError as e:
                last_error = e
                break

        storage_errors.labels(operation="transaction").inc()
        logger.error(f"Transaction failed: {last_error}")
        raise StorageUnavailable("Storage transaction failed") from last_error

    async def update_progress(
        self,
        user_id: str,
        language: str,
        word: str,
        mutate: Callable[[WordProgress], WordProgress],
    ) -> WordProgress:
        """Atomically replace the progress of a word with ``mutate(current)``.

        Words without a stored row start from the virtual New record.
        """
        async def _update(session: AsyncSession) -> WordProgress:
            row = await session.scalar(
                select(WordProgressRecord).where(
                    WordProgressRecord.user_id == user_id,
                    WordProgressRecord.language == language,
                    WordProgressRecord.word == word,
                )
            )
            current = row.to_progress() if row else WordProgress.new(word)
            updated = mutate(current)
            if row is None:
                row = WordProgressRecord(user_id=user_id, language=language, word=word)
                session.add(row)
            row.apply(updated)
            await session.flush()
            return updated

        async with self._lock_for(user_id, language, word):
            return await self.run_transaction(_update)

    async def get_user_profile(self, user_id: str) -> Optional[UserProfile]:
        """Get a learner profile."""
        return await self._read("get_user_profile", lambda session: session.get(UserProfile, user_id))

    async def upsert_user_profile(self, user_id: str, **fields) -> UserProfile:
        """Create a learner profile or merge ``fields`` into the existing one."""
        unknown = set(fields) - PROFILE_FIELDS
        if unknown:
            raise InvalidArgument(f"Unknown profile fields: {sorted(unknown)}")

        async def _upsert(session: AsyncSession) -> UserProfile:
            profile = await session.get(UserProfile, user_id)
            if profile is None:
                profile = UserProfile(user_id=user_id)
                session.add(profile)
            for key, value in fields.items():
                setattr(profile, key, value)
            await session.flush()
            return profile

        return await self.run_transaction(_upsert)
