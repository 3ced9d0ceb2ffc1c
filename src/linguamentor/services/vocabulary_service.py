"""Service for daily vocabulary practice."""
import logging
import random
from datetime import UTC, datetime, timedelta
from typing import Callable, Optional

from linguamentor.config import LearningSettings
from linguamentor.errors import NotFound
from linguamentor.models.vocabulary_models import (
    AnswerRequest,
    AnswerResult,
    DailyWordsRequest,
    DailyWordsResult,
    WordProgress,
)
from linguamentor.monitoring import answers_submitted, daily_selections, mastery_transitions
from linguamentor.services.catalog import CatalogRegistry
from linguamentor.services.mastery import apply_answer
from linguamentor.services.selection import RandomSource, select_daily
from linguamentor.services.storage import Storage

logger = logging.getLogger(__name__)


class VocabularyService:
    """Builds daily practice sets and records answers."""

    def __init__(
        self,
        catalogs: CatalogRegistry,
        storage: Storage,
        settings: LearningSettings,
        rng: Optional[RandomSource] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ):
        self.catalogs = catalogs
        self.storage = storage
        self.settings = settings
        self.rng = rng or random.Random()
        self.clock = clock

    async def request_daily_words(self, request: DailyWordsRequest) -> DailyWordsResult:
        """Choose today's words for a learner, with their progress counts."""
        catalog = self.catalogs.get(request.language)
        snapshot = await self.storage.list_all(request.user_id, request.language)
        stats = await self.storage.count_by_status(request.user_id, request.language)

        words = select_daily(
            catalog,
            snapshot,
            topic=request.topic,
            target_count=self.settings.daily_word_count,
            rng=self.rng,
            now=self.clock(),
            cooldown=timedelta(hours=self.settings.review_cooldown_hours),
            weak_quota=self.settings.weak_words_quota,
            review_quota=self.settings.review_words_quota,
            hard_levels=self.settings.hard_levels,
        )
        daily_selections.labels(mode="topic" if request.topic else "balanced").inc()
        logger.info(
            f"Selected {len(words)} words for user {request.user_id} "
            f"({request.language}, topic={request.topic!r})"
        )
        return DailyWordsResult(words=words, stats=stats)

    async def submit_answer(self, request: AnswerRequest) -> AnswerResult:
        """Record an answer and move the word through its mastery states."""
        catalog = self.catalogs.get(request.language)
        if request.word not in catalog:
            raise NotFound(f"{request.word!r} is not in the {request.language} catalog")

        transition = {}

        def _answer(current: WordProgress) -> WordProgress:
            updated = apply_answer(current, request.is_correct, self.clock())
            transition["from"], transition["to"] = current.status, updated.status
            return updated

        progress = await self.storage.update_progress(
            request.user_id, request.language, request.word, _answer
        )
        answers_submitted.labels(result="correct" if request.is_correct else "wrong").inc()
        mastery_transitions.labels(
            from_status=transition["from"].value, to_status=transition["to"].value
        ).inc()
        logger.info(
            f"User {request.user_id} answered {request.word!r} "
            f"{'correctly' if request.is_correct else 'wrongly'}: "
            f"{transition['from'].value} -> {progress.status.value}"
        )
        return AnswerResult(progress=progress)
