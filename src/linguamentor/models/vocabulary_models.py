"""Models for vocabulary practice data structures."""
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from linguamentor.errors import InvalidArgument


class WordStatus(str, Enum):
    """Mastery status of a word for one learner."""
    NEW = "New"  # No stored record yet
    LEARNING = "Learning"  # Answered correctly, streak not long enough
    WEAK = "Weak"  # Last answer was wrong
    KNOWN = "Known"  # Long enough correct streak


@dataclass(frozen=True)
class CatalogEntry:
    """A learnable word or phrase from the static catalog."""
    word: str
    level: str
    tags: frozenset[str] = frozenset()

    def has_tag(self, topic: str) -> bool:
        """Check whether the entry is tagged with ``topic``, ignoring case."""
        wanted = topic.casefold()
        return any(tag.casefold() == wanted for tag in self.tags)


@dataclass(frozen=True)
class WordProgress:
    """Progress of one learner on one word."""
    word: str
    status: WordStatus = WordStatus.NEW
    correct_streak: int = 0
    wrong_count: int = 0
    last_seen: Optional[datetime] = None

    @classmethod
    def new(cls, word: str) -> "WordProgress":
        """Synthesize the virtual record of a word that was never answered."""
        return cls(word=word)

    def evolve(self, **changes: Any) -> "WordProgress":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for the client."""
        return {
            "word": self.word,
            "status": self.status.value,
            "correctStreak": self.correct_streak,
            "wrongCount": self.wrong_count,
            "lastSeen": self.last_seen.isoformat() if self.last_seen else None,
        }


@dataclass(frozen=True)
class ProgressStats:
    """Counts of stored words per status."""
    known: int = 0
    learning: int = 0
    weak: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"known": self.known, "learning": self.learning, "weak": self.weak}


def _require_text(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument(f"'{key}' is required")
    return value.strip()


def _optional_text(payload: Mapping[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidArgument(f"'{key}' must be a string")
    return value.strip() or None


@dataclass(frozen=True)
class DailyWordsRequest:
    """Request for today's practice set."""
    user_id: str
    language: str
    topic: Optional[str] = None

    def __post_init__(self):
        if not self.user_id:
            raise InvalidArgument("'userId' is required")
        if not self.language:
            raise InvalidArgument("'language' is required")

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "DailyWordsRequest":
        """Build a request from a client JSON body."""
        if not isinstance(payload, Mapping):
            raise InvalidArgument("Request body must be an object")
        return cls(
            user_id=_require_text(payload, "userId"),
            language=_require_text(payload, "language"),
            topic=_optional_text(payload, "topic"),
        )


@dataclass(frozen=True)
class AnswerRequest:
    """A learner's answer for one word."""
    user_id: str
    language: str
    word: str
    is_correct: bool

    def __post_init__(self):
        if not self.user_id:
            raise InvalidArgument("'userId' is required")
        if not self.language:
            raise InvalidArgument("'language' is required")
        if not self.word:
            raise InvalidArgument("'word' is required")
        if not isinstance(self.is_correct, bool):
            raise InvalidArgument("'isCorrect' must be a boolean")

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "AnswerRequest":
        """Build a request from a client JSON body."""
        if not isinstance(payload, Mapping):
            raise InvalidArgument("Request body must be an object")
        return cls(
            user_id=_require_text(payload, "userId"),
            language=_require_text(payload, "language"),
            word=_require_text(payload, "word"),
            is_correct=payload.get("isCorrect"),
        )


@dataclass
class DailyWordsResult:
    """Practice set returned to the client together with progress counts."""
    words: List[WordProgress] = field(default_factory=list)
    stats: ProgressStats = field(default_factory=ProgressStats)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "words": [word.to_dict() for word in self.words],
            "stats": self.stats.to_dict(),
        }


@dataclass
class AnswerResult:
    """Outcome of a recorded answer."""
    progress: WordProgress
    success: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "progress": self.progress.to_dict()}
