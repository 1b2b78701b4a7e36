"""Data models for the vocabulary trainer."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional


class ReviewResult(Enum):
    """Outcome of a single review."""
    PASS = "pass"
    FAIL = "fail"


@dataclass(frozen=True)
class WordEntry:
    """A vocabulary item."""
    word: str
    translation: str
    kanji: Optional[str] = None
    part_of_speech: Optional[str] = None
    example: Optional[str] = None
    related: Optional[str] = None

    @property
    def identity(self) -> str:
        """Composite key that keeps same-reading/different-kanji entries apart."""
        return f"{self.kanji or self.word}|{self.word}"

    def title(self, show_kanji: bool = True) -> str:
        """Display title, e.g. '愛情（あいじょう）'."""
        if show_kanji and self.kanji:
            return f"{self.kanji}（{self.word}）"
        return self.word

    def haystack(self) -> str:
        """Lowercased text searched by the dictionary filter."""
        parts = [
            self.word,
            self.kanji,
            self.translation,
            self.part_of_speech,
            self.example,
            self.related,
        ]
        return " ".join(p for p in parts if p).lower()


def identity(entry: WordEntry) -> str:
    """Get the store key for an entry."""
    return entry.identity


@dataclass(frozen=True)
class ReviewRecord:
    """One line of a review history."""
    date: date
    result: ReviewResult

    def to_dict(self) -> dict:
        return {"date": self.date.isoformat(), "result": self.result.value}

    @classmethod
    def from_dict(cls, data: dict) -> "ReviewRecord":
        return cls(
            date=date.fromisoformat(data["date"]),
            result=ReviewResult(data["result"]),
        )


@dataclass(frozen=True)
class ReviewState:
    """Spaced-repetition progress for one word identity.

    Instances are immutable; the scheduler returns a new state for every
    review and the store replaces its entry.
    """
    level: int
    due: date
    history: tuple[ReviewRecord, ...] = field(default_factory=tuple)

    @classmethod
    def new(cls, today: date) -> "ReviewState":
        """Create the state of a word that has never been reviewed."""
        return cls(level=0, due=today)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "level": self.level,
            "due": self.due.isoformat(),
            "history": [r.to_dict() for r in self.history],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ReviewState":
        """Create from dictionary.

        Raises:
            KeyError, TypeError, ValueError: If the record is malformed
        """
        return cls(
            level=int(data["level"]),
            due=date.fromisoformat(data["due"]),
            history=tuple(
                ReviewRecord.from_dict(r) for r in data.get("history") or []
            ),
        )


@dataclass(frozen=True)
class ProgressStats:
    """Summary of review progress over a vocabulary."""
    levels: tuple[int, ...]
    due: int
    learned: int
    total: int
    rate: int
