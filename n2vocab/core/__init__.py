"""Core learning engine - UI independent."""
from .errors import N2VocabError, PersistenceError, VocabularyImportError
from .models import ProgressStats, ReviewRecord, ReviewResult, ReviewState, WordEntry, identity

# Note: VocabularyStore and the review store are imported directly
# where needed to avoid circular imports with the storage module

__all__ = [
    "N2VocabError",
    "PersistenceError",
    "VocabularyImportError",
    "ProgressStats",
    "ReviewRecord",
    "ReviewResult",
    "ReviewState",
    "WordEntry",
    "identity",
]
