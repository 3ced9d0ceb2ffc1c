"""Static vocabulary catalogs."""
import json
import logging
from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional, Tuple

from linguamentor.config import CEFR_LEVELS
from linguamentor.errors import InvalidArgument
from linguamentor.models.vocabulary_models import CatalogEntry

logger = logging.getLogger(__name__)

# Words and tags travel in Telegram callback data ("answer:yes:<word>",
# "topic:<tag>"), which is limited to 64 bytes
MAX_WORD_BYTES = 64 - len("answer:yes:")
MAX_TAG_BYTES = 64 - len("topic:")


class Catalog:
    """Immutable list of learnable words for one language."""

    def __init__(self, language: str, entries: Iterable[CatalogEntry], version: str = "1"):
        self.language = language
        self.version = version
        self._entries: Tuple[CatalogEntry, ...] = tuple(entries)
        self._by_word: Dict[str, CatalogEntry] = {}
        for entry in self._entries:
            if entry.level not in CEFR_LEVELS:
                raise ValueError(f"Unknown level {entry.level!r} for word {entry.word!r}")
            if entry.word in self._by_word:
                raise ValueError(f"Duplicate word {entry.word!r} in {language} catalog")
            if len(entry.word.encode("utf-8")) > MAX_WORD_BYTES:
                raise ValueError(f"Word {entry.word!r} is longer than {MAX_WORD_BYTES} bytes")
            for tag in entry.tags:
                if len(tag.encode("utf-8")) > MAX_TAG_BYTES:
                    raise ValueError(f"Tag {tag!r} of word {entry.word!r} is longer than {MAX_TAG_BYTES} bytes")
            self._by_word[entry.word] = entry

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self._entries)

    def __contains__(self, word: object) -> bool:
        return word in self._by_word

    @property
    def entries(self) -> Tuple[CatalogEntry, ...]:
        return self._entries

    def get(self, word: str) -> Optional[CatalogEntry]:
        return self._by_word.get(word)

    def with_topic(self, topic: str) -> Tuple[CatalogEntry, ...]:
        """Entries tagged with ``topic`` (case-insensitive)."""
        return tuple(entry for entry in self._entries if entry.has_tag(topic))

    def topics(self) -> list[str]:
        """All tags used by the catalog, sorted."""
        return sorted({tag for entry in self._entries for tag in entry.tags})

    @classmethod
    def from_dict(cls, data: dict) -> "Catalog":
        entries = [
            CatalogEntry(
                word=item["word"],
                level=item["level"],
                tags=frozenset(item.get("tags", [])),
            )
            for item in data["entries"]
        ]
        return cls(data["language"], entries, version=str(data.get("version", "1")))


def load_catalog(language: str, directory: Path) -> Catalog:
    """Load the catalog of ``language`` from ``<directory>/<language>.json``."""
    path = Path(directory) / f"{language}.json"
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if data.get("language") != language:
        raise ValueError(f"{path} holds the {data.get('language')!r} catalog, expected {language!r}")
    catalog = Catalog.from_dict(data)
    logger.info(f"Loaded {language} catalog v{catalog.version} with {len(catalog)} entries")
    return catalog


class CatalogRegistry:
    """Catalogs of every configured language, loaded once at startup."""

    def __init__(self, catalogs: Iterable[Catalog]):
        self._catalogs: Dict[str, Catalog] = {catalog.language: catalog for catalog in catalogs}

    @classmethod
    def load(cls, languages: Iterable[str], directory: Path) -> "CatalogRegistry":
        return cls(load_catalog(language, directory) for language in languages)

    @property
    def languages(self) -> list[str]:
        return sorted(self._catalogs)

    def get(self, language: str) -> Catalog:
        catalog = self._catalogs.get(language)
        if catalog is None:
            raise InvalidArgument(f"Unsupported language {language!r}")
        return catalog
