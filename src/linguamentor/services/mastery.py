"""Per-word mastery state machine."""
from datetime import datetime

from linguamentor.models.vocabulary_models import WordProgress, WordStatus

KNOWN_STREAK = 3

# Every wrong answer currently reaches this threshold, so the Learning
# downgrade below is never taken. Raising it is a product decision.
WEAK_AFTER_WRONG_ANSWERS = 1


def apply_answer(
    record: WordProgress,
    is_correct: bool,
    now: datetime,
    known_streak: int = KNOWN_STREAK,
) -> WordProgress:
    """Return the progress that follows ``record`` after one answer.

    Pure: the stored record is replaced by the caller, inside the storage
    transaction that read ``record``.
    """
    last_seen = now if record.last_seen is None or now > record.last_seen else record.last_seen

    if is_correct:
        streak = record.correct_streak + 1
        status = record.status
        if streak >= known_streak:
            status = WordStatus.KNOWN
        elif record.status in (WordStatus.NEW, WordStatus.WEAK):
            status = WordStatus.LEARNING
        return record.evolve(status=status, correct_streak=streak, last_seen=last_seen)

    wrong_count = record.wrong_count + 1
    if wrong_count >= WEAK_AFTER_WRONG_ANSWERS:
        status = WordStatus.WEAK
    else:
        status = WordStatus.LEARNING
    return record.evolve(
        status=status,
        correct_streak=0,
        wrong_count=wrong_count,
        last_seen=last_seen,
    )
