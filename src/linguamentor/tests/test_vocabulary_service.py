"""Tests for the vocabulary service."""
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from linguamentor.config import LearningSettings
from linguamentor.errors import InvalidArgument, NotFound, StorageUnavailable
from linguamentor.models.vocabulary_models import (
    AnswerRequest,
    DailyWordsRequest,
    ProgressStats,
    WordProgress,
    WordStatus,
)
from linguamentor.services.catalog import CatalogRegistry
from linguamentor.services.storage import Storage
from linguamentor.services.vocabulary_service import VocabularyService


@pytest.fixture
def learning_settings() -> LearningSettings:
    return LearningSettings(languages=["en"], default_language="en")


@pytest.fixture
def service(catalog, storage: Storage, learning_settings, rng, now) -> VocabularyService:
    return VocabularyService(CatalogRegistry([catalog]), storage, learning_settings, rng=rng, clock=lambda: now)


def answer(word: str, is_correct: bool, user_id: str = "1") -> AnswerRequest:
    return AnswerRequest(user_id=user_id, language="en", word=word, is_correct=is_correct)


@pytest.mark.asyncio
async def test_new_user_gets_full_set_of_new_words(service: VocabularyService) -> None:
    result = await service.request_daily_words(DailyWordsRequest(user_id="1", language="en"))

    assert len(result.words) == 8
    assert all(word.status is WordStatus.NEW for word in result.words)
    assert result.stats == ProgressStats()


@pytest.mark.asyncio
async def test_submit_answer_records_progress(service: VocabularyService, now) -> None:
    result = await service.submit_answer(answer("hello", True))

    assert result.success is True
    assert result.progress == WordProgress("hello", WordStatus.LEARNING, correct_streak=1, wrong_count=0, last_seen=now)
    assert await service.storage.get("1", "en", "hello") == result.progress


@pytest.mark.asyncio
async def test_weak_word_recovers_after_correct_answer(service: VocabularyService) -> None:
    """A word answered wrongly once is Learning again after a correct answer."""
    await service.submit_answer(answer("hello", False))
    result = await service.submit_answer(answer("hello", True))

    assert result.progress.status is WordStatus.LEARNING
    assert result.progress.correct_streak == 1
    assert result.progress.wrong_count == 1


@pytest.mark.asyncio
async def test_answers_are_reflected_in_next_selection(service: VocabularyService, now) -> None:
    for word in ("hello", "goodbye", "ticket"):
        await service.submit_answer(answer(word, False))
    for _ in range(3):
        await service.submit_answer(answer("computer", True))
    await service.submit_answer(answer("luggage", True))

    result = await service.request_daily_words(DailyWordsRequest(user_id="1", language="en"))

    assert result.stats == ProgressStats(known=1, learning=1, weak=3)
    statuses = [word.status for word in result.words]
    assert statuses.count(WordStatus.WEAK) == 2
    # "luggage" was seen just now and is still cooling down
    assert "luggage" not in {word.word for word in result.words}


@pytest.mark.asyncio
async def test_cooled_down_learning_word_is_reviewed(catalog, storage, learning_settings, rng, now) -> None:
    answered_at = now - timedelta(hours=21)
    early = VocabularyService(CatalogRegistry([catalog]), storage, learning_settings, rng=rng, clock=lambda: answered_at)
    await early.submit_answer(answer("luggage", True))

    service = VocabularyService(CatalogRegistry([catalog]), storage, learning_settings, rng=rng, clock=lambda: now)
    result = await service.request_daily_words(DailyWordsRequest(user_id="1", language="en"))

    assert "luggage" in {word.word for word in result.words}


@pytest.mark.asyncio
async def test_topic_request_only_returns_tagged_words(service: VocabularyService) -> None:
    result = await service.request_daily_words(DailyWordsRequest(user_id="1", language="en", topic="Travel"))

    assert {word.word for word in result.words} == {"ticket", "luggage", "layover", "itinerary"}


@pytest.mark.asyncio
async def test_answer_for_unknown_word_is_rejected(service: VocabularyService) -> None:
    with pytest.raises(NotFound):
        await service.submit_answer(answer("serendipity", True))

    assert await service.storage.list_all("1", "en") == []


@pytest.mark.asyncio
async def test_unsupported_language_is_rejected(service: VocabularyService) -> None:
    with pytest.raises(InvalidArgument):
        await service.request_daily_words(DailyWordsRequest(user_id="1", language="xx"))


@pytest.mark.asyncio
async def test_storage_failure_propagates_from_selection(catalog, learning_settings, rng) -> None:
    """No fallback list is produced when the snapshot cannot be read."""
    storage = AsyncMock(spec=Storage)
    storage.list_all.side_effect = StorageUnavailable("down")
    service = VocabularyService(CatalogRegistry([catalog]), storage, learning_settings, rng=rng)

    with pytest.raises(StorageUnavailable):
        await service.request_daily_words(DailyWordsRequest(user_id="1", language="en"))


@pytest.mark.asyncio
async def test_storage_failure_propagates_from_answer(catalog, learning_settings, rng) -> None:
    storage = AsyncMock(spec=Storage)
    storage.update_progress.side_effect = StorageUnavailable("down")
    service = VocabularyService(CatalogRegistry([catalog]), storage, learning_settings, rng=rng)

    with pytest.raises(StorageUnavailable):
        await service.submit_answer(answer("hello", True))


@pytest.mark.asyncio
async def test_daily_word_count_setting_is_used(catalog, storage, rng, now) -> None:
    settings = LearningSettings(daily_word_count=3, languages=["en"], default_language="en")
    service = VocabularyService(CatalogRegistry([catalog]), storage, settings, rng=rng, clock=lambda: now)

    result = await service.request_daily_words(DailyWordsRequest(user_id="1", language="en"))

    assert len(result.words) == 3
