"""Daily practice set selection."""
import logging
import random
from datetime import UTC, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, TypeVar

from linguamentor.config import HARD_LEVELS
from linguamentor.models.vocabulary_models import WordProgress, WordStatus
from linguamentor.services.catalog import Catalog

logger = logging.getLogger(__name__)

T = TypeVar("T")

DAILY_WORD_COUNT = 8
REVIEW_COOLDOWN = timedelta(hours=20)
WEAK_WORDS_QUOTA = 2
REVIEW_WORDS_QUOTA = 2


class RandomSource(Protocol):
    """The part of ``random.Random`` the selection relies on."""

    def sample(self, population: Sequence[T], k: int) -> List[T]: ...

    def shuffle(self, x: List[T]) -> None: ...


def is_cool(progress: WordProgress, now: datetime, cooldown: timedelta = REVIEW_COOLDOWN) -> bool:
    """Check whether a word was last seen long enough ago to be reviewed again."""
    return progress.last_seen is None or now - progress.last_seen > cooldown


def _take(rng: RandomSource, pool: List[T], count: int) -> List[T]:
    count = min(count, len(pool))
    if count <= 0:
        return []
    return rng.sample(pool, count)


def _index_snapshot(catalog: Catalog, snapshot: Iterable[WordProgress]) -> Dict[str, WordProgress]:
    progress_by_word = {}
    for progress in snapshot:
        if progress.word not in catalog:
            logger.debug(f"Skipping {progress.word!r}: not in the {catalog.language} catalog")
            continue
        if progress.status is WordStatus.NEW:
            continue
        progress_by_word[progress.word] = progress
    return progress_by_word


def select_daily(
    catalog: Catalog,
    snapshot: Iterable[WordProgress],
    topic: Optional[str] = None,
    target_count: int = DAILY_WORD_COUNT,
    rng: Optional[RandomSource] = None,
    now: Optional[datetime] = None,
    cooldown: timedelta = REVIEW_COOLDOWN,
    weak_quota: int = WEAK_WORDS_QUOTA,
    review_quota: int = REVIEW_WORDS_QUOTA,
    hard_levels: Iterable[str] = HARD_LEVELS,
) -> List[WordProgress]:
    """Choose at most ``target_count`` distinct words to practice.

    Words the learner has never answered come back as synthesized entries with
    status New. Snapshot records for words missing from the catalog are
    ignored. Nothing here touches storage.
    """
    rng = rng or random.Random()
    now = now or datetime.now(UTC)
    progress_by_word = _index_snapshot(catalog, snapshot)

    if target_count <= 0:
        return []

    if topic:
        return _select_for_topic(catalog, progress_by_word, topic, target_count, rng, now, cooldown)
    return _select_balanced(
        catalog, progress_by_word, target_count, rng, now, cooldown,
        weak_quota, review_quota, frozenset(hard_levels),
    )


def _select_balanced(
    catalog: Catalog,
    progress_by_word: Dict[str, WordProgress],
    target_count: int,
    rng: RandomSource,
    now: datetime,
    cooldown: timedelta,
    weak_quota: int,
    review_quota: int,
    hard_levels: frozenset[str],
) -> List[WordProgress]:
    new_words = []
    hard_new_words = []
    for entry in catalog:
        if entry.word in progress_by_word:
            continue
        new_words.append(WordProgress.new(entry.word))
        if entry.level in hard_levels:
            hard_new_words.append(new_words[-1])

    weak = [p for p in progress_by_word.values() if p.status is WordStatus.WEAK]
    review = [
        p for p in progress_by_word.values()
        if p.status is WordStatus.LEARNING and is_cool(p, now, cooldown)
    ]
    known = [p for p in progress_by_word.values() if p.status is WordStatus.KNOWN]
    logger.debug(
        f"Buckets: new={len(new_words)} (hard={len(hard_new_words)}), "
        f"weak={len(weak)}, review={len(review)}, known={len(known)}"
    )

    selected = _take(rng, weak, min(weak_quota, target_count))
    selected += _take(rng, review, min(review_quota, target_count - len(selected)))

    needed = target_count - len(selected)
    new_pool = hard_new_words if len(hard_new_words) >= needed else new_words
    selected += _take(rng, new_pool, needed)
    selected += _take(rng, known, target_count - len(selected))

    # Quotas are soft once New and Known run dry
    chosen = {p.word for p in selected}
    for bucket in (weak, review):
        leftovers = [p for p in bucket if p.word not in chosen]
        selected += _take(rng, leftovers, target_count - len(selected))

    rng.shuffle(selected)
    return selected


def _select_for_topic(
    catalog: Catalog,
    progress_by_word: Dict[str, WordProgress],
    topic: str,
    target_count: int,
    rng: RandomSource,
    now: datetime,
    cooldown: timedelta,
) -> List[WordProgress]:
    new_words, review, review_fallback, known = [], [], [], []
    for entry in catalog.with_topic(topic):
        progress = progress_by_word.get(entry.word)
        if progress is None:
            new_words.append(WordProgress.new(entry.word))
        elif progress.status is WordStatus.LEARNING:
            if is_cool(progress, now, cooldown):
                review.append(progress)
            else:
                review_fallback.append(progress)
        elif progress.status is WordStatus.KNOWN:
            known.append(progress)
    logger.debug(
        f"Topic {topic!r} buckets: new={len(new_words)}, review={len(review)}, "
        f"review_fallback={len(review_fallback)}, known={len(known)}"
    )

    selected: List[WordProgress] = []
    for bucket in (new_words, review, review_fallback, known):
        selected += _take(rng, bucket, target_count - len(selected))
    return selected
