"""Vocabulary loading, normalization and lookup."""

import logging
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

from n2vocab.core.errors import VocabularyImportError
from n2vocab.core.models import WordEntry
from n2vocab.storage.files import read_json


logger = logging.getLogger(__name__)


# Accepted source field names per WordEntry field, first non-empty match wins
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "word": ("word", "kana", "reading"),
    "kanji": ("kanji", "kanji_word"),
    "part_of_speech": ("partOfSpeech", "pos", "part_of_speech"),
    "translation": ("translation", "cn", "zh", "definition", "meaning", "中文", "释义"),
    "example": ("example", "例句"),
    "related": ("related",),
}

ALL_PARTS_OF_SPEECH = "all"

SAMPLE = [
    WordEntry(word="あいじょう", kanji="愛情", part_of_speech="名",
              translation="爱;爱情;热爱", example="母の愛情(母爱)"),
    WordEntry(word="あいづち", kanji="相槌", part_of_speech="名",
              translation="随声附和;帮腔", example="相槌を打つ(打帮腔)"),
    WordEntry(word="あかじ", kanji="赤字", part_of_speech="名",
              translation="赤字;亏空", example="赤字を出す(出现赤字)"),
    WordEntry(word="いざかや", kanji="居酒屋", part_of_speech="名",
              translation="日式小酒馆"),
    WordEntry(word="いしき", kanji="意識", part_of_speech="名",
              translation="意识", example="意識を失う(失去知觉)"),
]


class InvalidRecord(ValueError):
    """A vocabulary record was rejected during normalization."""
    pass


def _resolve(record: dict, aliases: tuple[str, ...]) -> Optional[str]:
    """Get the first non-empty value among `aliases`, stringified and trimmed."""
    for name in aliases:
        value = record.get(name)
        if value is None or value is False:
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def normalize_record(record: Any) -> WordEntry:
    """Turn one loosely typed record into a WordEntry.

    Raises:
        InvalidRecord: If the record is not a mapping or lacks a word or
            translation
    """
    if not isinstance(record, dict):
        raise InvalidRecord(f"not an object: {type(record).__name__}")

    fields = {name: _resolve(record, aliases) for name, aliases in FIELD_ALIASES.items()}
    if not fields["word"]:
        raise InvalidRecord("missing word")
    if not fields["translation"]:
        raise InvalidRecord("missing translation")
    return WordEntry(**fields)


def normalize_records(payload: Any) -> list[WordEntry]:
    """Normalize an imported payload, dropping records that do not resolve.

    Raises:
        VocabularyImportError: If the payload is not a list or nothing survives
    """
    if not isinstance(payload, list):
        raise VocabularyImportError("Vocabulary file must contain a JSON array")

    entries = []
    for i, record in enumerate(payload):
        try:
            entries.append(normalize_record(record))
        except InvalidRecord as e:
            logger.debug("Dropping record %d: %s", i, e)

    if not entries:
        raise VocabularyImportError("No valid vocabulary entries found")
    return entries


def parts_of_speech(entries: Iterable[WordEntry]) -> list[str]:
    """Get the part-of-speech filter options, 'all' first."""
    found = {e.part_of_speech for e in entries if e.part_of_speech}
    return [ALL_PARTS_OF_SPEECH, *sorted(found)]


def filter_entries(
    entries: Iterable[WordEntry],
    query: str = "",
    part_of_speech: str = ALL_PARTS_OF_SPEECH,
) -> list[WordEntry]:
    """Filter entries by part of speech and case-insensitive substring."""
    q = query.strip().lower()
    result = []
    for entry in entries:
        if part_of_speech != ALL_PARTS_OF_SPEECH and (entry.part_of_speech or "") != part_of_speech:
            continue
        if q and q not in entry.haystack():
            continue
        result.append(entry)
    return result


class VocabularyStore:
    """Holds the current word list."""

    def __init__(self, entries: Optional[list[WordEntry]] = None):
        self._entries: list[WordEntry] = list(entries) if entries else list(SAMPLE)

    @property
    def entries(self) -> list[WordEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def load_records(
        self,
        payload: Any,
        before_swap: Optional[Callable[[list[WordEntry]], Any]] = None,
    ) -> list[WordEntry]:
        """Replace the word list with a normalized payload.

        `before_swap` is called with the new entries before they replace the
        current list. The current list is kept if normalization or
        `before_swap` raises.
        """
        entries = normalize_records(payload)
        if before_swap is not None:
            before_swap(entries)
        self._entries = entries
        logger.info("Loaded %d vocabulary entries", len(entries))
        return entries

    def load_file(
        self,
        path: str | Path,
        before_swap: Optional[Callable[[list[WordEntry]], Any]] = None,
    ) -> list[WordEntry]:
        """Replace the word list with the contents of a JSON file.

        Raises:
            VocabularyImportError: If the file cannot be read or parsed
        """
        try:
            payload = read_json(path)
        except (OSError, ValueError) as e:
            raise VocabularyImportError(f"Could not read {path}: {e}") from e
        return self.load_records(payload, before_swap)

    def search(
        self, query: str = "", part_of_speech: str = ALL_PARTS_OF_SPEECH
    ) -> list[WordEntry]:
        """Search the word list."""
        return filter_entries(self._entries, query, part_of_speech)

    def parts_of_speech(self) -> list[str]:
        return parts_of_speech(self._entries)
