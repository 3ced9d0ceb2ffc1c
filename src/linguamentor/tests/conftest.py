"""Test configuration."""
import os
import random
from datetime import UTC, datetime
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Set test environment before any imports
os.environ["ENV"] = "test"

# Load test environment variables
test_env_path = Path(__file__).parents[3] / ".env.test"
load_dotenv(test_env_path)

# Import after environment setup
from linguamentor.config import DatabaseSettings, Settings
from linguamentor.models.base import init_db, make_engine, make_session_factory
from linguamentor.models.vocabulary_models import CatalogEntry
from linguamentor.services.catalog import Catalog
from linguamentor.services.storage import Storage

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def make_catalog(*entries: tuple, language: str = "en") -> Catalog:
    """Build a catalog from ``(word, level, tags)`` tuples."""
    return Catalog(
        language,
        [CatalogEntry(word=word, level=level, tags=frozenset(tags)) for word, level, tags in entries],
    )


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def rng() -> random.Random:
    return random.Random(20240501)


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def catalog() -> Catalog:
    """A small catalog with easy and hard words across a few topics."""
    return make_catalog(
        ("hello", "A1", ["greetings"]),
        ("goodbye", "A1", ["greetings"]),
        ("ticket", "A1", ["travel"]),
        ("luggage", "A2", ["travel"]),
        ("layover", "B1", ["travel"]),
        ("itinerary", "B2", ["travel", "business"]),
        ("deadline", "B1", ["business"]),
        ("leverage", "C1", ["business"]),
        ("ubiquitous", "C1", ["tech"]),
        ("encryption", "C1", ["Tech"]),
        ("liquidity", "C2", ["finance"]),
        ("computer", "A1", ["tech"]),
    )


@pytest.fixture
async def storage(tmp_path):
    """Storage over a fresh SQLite file."""
    engine = make_engine(DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"))
    await init_db(engine)
    yield Storage(make_session_factory(engine), max_retries=5, retry_delay=0)
    await engine.dispose()


@pytest.fixture
def build_catalog():
    """Factory for catalogs built from ``(word, level, tags)`` tuples."""
    return make_catalog
