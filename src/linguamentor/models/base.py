"""Base model configuration."""
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator

from linguamentor.config import DatabaseSettings

# Create declarative base class
Base = declarative_base()


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime that comes back as UTC even from SQLite."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value


class TimestampMixin:
    """Mixin to add timestamp columns to models."""
    created_at = Column(UTCDateTime(), default=lambda: datetime.now(UTC))
    updated_at = Column(
        UTCDateTime(),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )


def make_engine(settings: DatabaseSettings) -> AsyncEngine:
    """Create the async engine for the configured database."""
    return create_async_engine(settings.url, echo=settings.echo)


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Create a session factory bound to ``engine``."""
    return async_sessionmaker(engine, autoflush=False, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    """Initialize database."""
    # Import models so they are registered on Base.metadata
    from linguamentor.models import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)  # Create tables if they don't exist
