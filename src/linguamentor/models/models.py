"""Database models for the vocabulary backend."""
from sqlalchemy import JSON, Column, Integer, String, UniqueConstraint

from linguamentor.models.base import Base, TimestampMixin, UTCDateTime
from linguamentor.models.vocabulary_models import WordProgress, WordStatus


class UserProfile(Base, TimestampMixin):
    """Learner profile."""

    __tablename__ = "user_profiles"

    user_id = Column(String, primary_key=True)  # Telegram ID as text
    name = Column(String, nullable=True)
    level = Column(String, nullable=True)
    goals = Column(String, nullable=True)
    weak_points = Column(JSON, default=list)

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "name": self.name,
            "level": self.level,
            "goals": self.goals,
            "weakPoints": list(self.weak_points or []),
        }


class WordProgressRecord(Base, TimestampMixin):
    """Stored progress of one user on one word of one language."""

    __tablename__ = "word_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "language", "word", name="uq_word_progress_user_language_word"),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    language = Column(String, nullable=False)
    word = Column(String, nullable=False)
    status = Column(String, nullable=False)
    correct_streak = Column(Integer, nullable=False, default=0)
    wrong_count = Column(Integer, nullable=False, default=0)
    last_seen = Column(UTCDateTime(), nullable=True)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def to_progress(self) -> WordProgress:
        """Convert the row to its immutable value."""
        return WordProgress(
            word=self.word,
            status=WordStatus(self.status),
            correct_streak=self.correct_streak,
            wrong_count=self.wrong_count,
            last_seen=self.last_seen,
        )

    def apply(self, progress: WordProgress) -> None:
        """Copy a new state onto the row."""
        if progress.status is WordStatus.NEW:
            raise ValueError("Words with status New are never stored")
        self.status = progress.status.value
        self.correct_streak = progress.correct_streak
        self.wrong_count = progress.wrong_count
        self.last_seen = progress.last_seen
