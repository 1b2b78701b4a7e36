"""Review state store with pluggable persistence."""

import logging
from abc import ABC, abstractmethod
from datetime import date, datetime
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from n2vocab.core.errors import PersistenceError
from n2vocab.core.models import ReviewResult, ReviewState, WordEntry
from n2vocab.core.scheduler import advance


logger = logging.getLogger(__name__)


class ReviewStateBackend(ABC):
    """Where review state lives between sessions.

    Implementations:
    - JsonFileBackend: a single JSON document on disk
    - SqliteBackend: an SQLite database
    """

    @abstractmethod
    def load(self) -> dict[str, ReviewState]:
        """Read the full mapping of identity to state.

        Raises:
            PersistenceError: If the storage cannot be read
        """
        pass

    @abstractmethod
    def save(self, states: Mapping[str, ReviewState]) -> None:
        """Replace the stored mapping with `states`.

        Raises:
            PersistenceError: If the storage cannot be written
        """
        pass


class ReviewStateStore:
    """In-memory review state, persisted in full on every change.

    The mapping is never mutated in place: every change builds a new
    snapshot and hands it to `update`.
    """

    def __init__(self, backend: ReviewStateBackend):
        self.backend = backend
        self._states: Mapping[str, ReviewState] = MappingProxyType({})

    def load(self) -> None:
        """Load state from the backend; an unreadable backend means a cold start."""
        try:
            states = self.backend.load()
        except PersistenceError as e:
            logger.warning("Could not load review state, starting empty: %s", e)
            states = {}
        self._states = MappingProxyType(dict(states))
        logger.info("Loaded review state for %d words", len(self._states))

    @property
    def states(self) -> Mapping[str, ReviewState]:
        """Read-only view of the current snapshot."""
        return self._states

    def get(self, identity: str) -> Optional[ReviewState]:
        """Get the state for an identity, if it was ever seen."""
        return self._states.get(identity)

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, identity: str) -> bool:
        return identity in self._states

    def update(self, snapshot: Mapping[str, ReviewState]) -> None:
        """Replace the current snapshot and persist it.

        Raises:
            PersistenceError: If the backend write fails; the in-memory
                snapshot is still replaced
        """
        self._states = MappingProxyType(dict(snapshot))
        self.backend.save(self._states)

    def record(
        self,
        entry: WordEntry,
        outcome: ReviewResult,
        now: date | datetime,
    ) -> ReviewState:
        """Apply a review outcome for `entry` and persist the result."""
        key = entry.identity
        state = advance(self._states.get(key), outcome, now)
        self.update({**self._states, key: state})
        return state

    def ensure(self, entries: Iterable[WordEntry], today: date) -> int:
        """Create fresh states for entries seen for the first time.

        Returns:
            Number of states created
        """
        snapshot = dict(self._states)
        created = 0
        for entry in entries:
            if entry.identity not in snapshot:
                snapshot[entry.identity] = ReviewState.new(today)
                created += 1
        if created:
            self.update(snapshot)
        return created

    def replace(self, snapshot: Mapping[str, ReviewState]) -> None:
        """Replace all state wholesale, e.g. from an imported progress file."""
        self.update(snapshot)
        logger.info("Replaced review state with %d imported words", len(snapshot))

    def reset(self) -> None:
        """Forget all review progress."""
        self.update({})
        logger.info("Review state reset")
