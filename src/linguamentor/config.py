"""Configuration settings for the vocabulary backend."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Define base directory
BASE_DIR = Path(__file__).parent.parent.parent
PACKAGE_DIR = Path(__file__).parent

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)

CEFR_LEVELS = ("A1", "A2", "B1", "B2", "C1", "C2")
HARD_LEVELS = ("B1", "B2", "C1", "C2")


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def get_owner_ids() -> list[int]:
    """Get owner Telegram IDs from environment variable."""
    return [int(id_) for id_ in _split_list(os.getenv("OWNER_TELEGRAM_IDS", ""))]


@dataclass
class PathSettings:
    """Path configuration settings."""
    base_dir: Path = BASE_DIR
    data_dir: Path = field(default_factory=lambda: Path(os.getenv("DATA_DIR", "./data")))
    catalogs_dir: Path = field(
        default_factory=lambda: Path(os.getenv("CATALOGS_DIR", str(PACKAGE_DIR / "data" / "catalogs")))
    )


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = field(default_factory=lambda: os.getenv("DATABASE_URL", "sqlite+aiosqlite:///linguamentor.db"))
    echo: bool = field(default_factory=lambda: os.getenv("DATABASE_ECHO", "false").lower() == "true")
    max_retries: int = field(default_factory=lambda: int(os.getenv("DATABASE_MAX_RETRIES", "5")))
    retry_delay: float = field(default_factory=lambda: float(os.getenv("DATABASE_RETRY_DELAY", "0.05")))


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = field(default_factory=lambda: os.getenv("LOG_DIR", None))
    rotation: str = field(default_factory=lambda: os.getenv("LOG_ROTATION", "midnight"))
    interval: int = field(default_factory=lambda: int(os.getenv("LOG_INTERVAL", "1")))
    backup_count: int = field(default_factory=lambda: int(os.getenv("LOG_BACKUP_COUNT", "7")))


@dataclass
class BotSettings:
    """Telegram client settings."""
    token: str = field(default_factory=lambda: os.getenv("TELEGRAM_BOT_TOKEN", ""))
    owner_ids: list[int] = field(default_factory=get_owner_ids)


@dataclass
class LearningSettings:
    """Daily practice settings."""
    daily_word_count: int = field(default_factory=lambda: int(os.getenv("DAILY_WORD_COUNT", "8")))
    review_cooldown_hours: float = field(default_factory=lambda: float(os.getenv("REVIEW_COOLDOWN_HOURS", "20")))
    weak_words_quota: int = field(default_factory=lambda: int(os.getenv("WEAK_WORDS_QUOTA", "2")))
    review_words_quota: int = field(default_factory=lambda: int(os.getenv("REVIEW_WORDS_QUOTA", "2")))
    hard_levels: tuple[str, ...] = HARD_LEVELS
    default_language: str = field(default_factory=lambda: os.getenv("DEFAULT_LANGUAGE", "en"))
    languages: list[str] = field(default_factory=lambda: _split_list(os.getenv("LANGUAGES", "en")))


@dataclass
class MonitoringSettings:
    """Prometheus metrics settings."""
    enabled: bool = field(default_factory=lambda: os.getenv("METRICS_ENABLED", "false").lower() == "true")
    port: int = field(default_factory=lambda: int(os.getenv("METRICS_PORT", "9090")))


@dataclass
class ProfileSettings:
    """Owner profile values written by the seed command."""
    name: str = field(default_factory=lambda: os.getenv("OWNER_NAME", "Merab"))
    level: str = field(default_factory=lambda: os.getenv("OWNER_LEVEL", "Intermediate"))
    goals: str = field(
        default_factory=lambda: os.getenv("OWNER_GOALS", "Improve fluency and business vocabulary")
    )
    weak_points: list[str] = field(
        default_factory=lambda: _split_list(
            os.getenv("OWNER_WEAK_POINTS", "Prepositions,Articles,Complex Tenses")
        )
    )


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    paths: PathSettings = field(default_factory=PathSettings)
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    bot: BotSettings = field(default_factory=BotSettings)
    learning: LearningSettings = field(default_factory=LearningSettings)
    monitoring: MonitoringSettings = field(default_factory=MonitoringSettings)
    profile: ProfileSettings = field(default_factory=ProfileSettings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if self.learning.daily_word_count < 1:
            raise ValueError("DAILY_WORD_COUNT must be positive")

        if self.learning.review_cooldown_hours < 0:
            raise ValueError("REVIEW_COOLDOWN_HOURS cannot be negative")

        if self.learning.weak_words_quota < 0 or self.learning.review_words_quota < 0:
            raise ValueError("WEAK_WORDS_QUOTA and REVIEW_WORDS_QUOTA cannot be negative")

        if not self.learning.languages:
            raise ValueError("LANGUAGES must name at least one language")

        if self.learning.default_language not in self.learning.languages:
            raise ValueError("DEFAULT_LANGUAGE must be one of LANGUAGES")

        unknown = set(self.learning.hard_levels) - set(CEFR_LEVELS)
        if unknown:
            raise ValueError(f"Unknown CEFR levels: {sorted(unknown)}")

        if self.database.max_retries < 1:
            raise ValueError("DATABASE_MAX_RETRIES must be positive")

    def validate_bot(self) -> None:
        """Validate settings needed to run the Telegram client."""
        if not self.bot.token:
            raise ValueError("TELEGRAM_BOT_TOKEN is required")

        if not self.bot.owner_ids:
            raise ValueError("OWNER_TELEGRAM_IDS is required")


def ensure_directories(settings: Settings) -> None:
    """Ensure all required directories exist."""
    settings.paths.data_dir.mkdir(parents=True, exist_ok=True)
    if settings.logging.dir:
        Path(settings.logging.dir).mkdir(parents=True, exist_ok=True)


def load_settings() -> Settings:
    """Build settings from the environment and validate them."""
    settings = Settings()
    settings.validate()
    return settings
