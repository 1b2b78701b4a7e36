"""Quiz modes over a fixed practice session.

Every quiz walks one session sequence by index. Moving forward stops at the
last item, moving back stops at the first; an empty session has no current
item and ignores every action.
"""

import random
from datetime import date
from enum import Enum
from typing import Callable, Optional, Sequence

from n2vocab.core.models import ReviewResult, ReviewState, WordEntry
from n2vocab.core.progress import percent
from n2vocab.core.review_store import ReviewStateStore
from n2vocab.core.session import shuffled


class QuizMode(Enum):
    """Available practice modes."""
    FLASHCARD = "flash"
    MULTIPLE_CHOICE = "mc"
    TYPING = "typing"


class AnswerStatus(Enum):
    """Display status of a typed answer."""
    IDLE = "idle"
    RIGHT = "right"
    WRONG = "wrong"


def normalize_answer(text: str) -> str:
    """Drop all whitespace and case-fold for answer comparison."""
    return "".join(text.split()).casefold()


class _SessionQuiz:
    """Index bookkeeping shared by the quiz modes."""

    def __init__(self, items: Sequence[WordEntry]):
        self.items = list(items)
        self.index = 0

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def current(self) -> Optional[WordEntry]:
        if not self.items:
            return None
        return self.items[self.index]

    @property
    def at_end(self) -> bool:
        return self.index >= self.total - 1

    def _move_to(self, index: int) -> bool:
        """Move to `index` clamped into the session. Returns True if it changed."""
        if not self.items:
            return False
        index = max(0, min(index, self.total - 1))
        if index == self.index:
            return False
        self.index = index
        self._on_index_change()
        return True

    def _on_index_change(self) -> None:
        pass

    def next(self) -> bool:
        return self._move_to(self.index + 1)


class FlashcardQuiz(_SessionQuiz):
    """Self-graded cards; the only mode that updates review state."""

    def __init__(
        self,
        items: Sequence[WordEntry],
        store: ReviewStateStore,
        today: Callable[[], date] = date.today,
    ):
        super().__init__(items)
        self.store = store
        self._today = today
        self.revealed = False

    @property
    def progress(self) -> int:
        """Percentage of the session passed so far."""
        return percent(self.index, self.total)

    def reveal(self) -> None:
        """Show translation and example. Has no effect on grading."""
        if self.items:
            self.revealed = True

    def _on_index_change(self) -> None:
        self.revealed = False

    def grade(self, outcome: ReviewResult) -> Optional[ReviewState]:
        """Record the outcome for the current card and move on.

        Raises:
            PersistenceError: If the new state cannot be saved
        """
        entry = self.current
        if entry is None:
            return None
        state = self.store.record(entry, outcome, self._today())
        self.next()
        return state


class MultipleChoiceQuiz(_SessionQuiz):
    """Pick the right translation among up to four options.

    The option set of an index is generated when the index becomes current
    and cached until the index changes, so redrawing never reshuffles it.
    """

    DISTRACTORS = 3

    def __init__(self, items: Sequence[WordEntry], rng: Optional[random.Random] = None):
        super().__init__(items)
        self.rng = rng or random.Random()
        self.picked: Optional[int] = None
        self._options: dict[int, tuple[list[WordEntry], int]] = {}
        self._generate()

    def _generate(self) -> None:
        self._options.clear()
        self.picked = None
        if not self.items:
            return
        others = [e for i, e in enumerate(self.items) if i != self.index]
        distractors = self.rng.sample(others, min(self.DISTRACTORS, len(others)))
        # Positions into the combined list keep duplicates apart
        order = shuffled(range(len(distractors) + 1), self.rng)
        combined = [self.items[self.index], *distractors]
        options = [combined[i] for i in order]
        self._options[self.index] = (options, order.index(0))

    def _on_index_change(self) -> None:
        self._generate()

    @property
    def options(self) -> list[WordEntry]:
        if self.index not in self._options:
            return []
        return list(self._options[self.index][0])

    @property
    def correct_index(self) -> int:
        if self.index not in self._options:
            return -1
        return self._options[self.index][1]

    @property
    def answered(self) -> bool:
        return self.picked is not None

    @property
    def is_correct(self) -> bool:
        return self.answered and self.picked == self.correct_index

    def pick(self, choice: int) -> bool:
        """Answer the current question.

        Returns:
            False if the answer was rejected (already answered or no such
            option), True otherwise
        """
        if self.answered or not 0 <= choice < len(self.options):
            return False
        self.picked = choice
        return True

    def previous(self) -> bool:
        """Go back one question with a fresh option set."""
        return self._move_to(self.index - 1)


class TypingQuiz(_SessionQuiz):
    """Type the translation; graded by normalized exact match.

    Results are only displayed and never written to the review store.
    """

    def __init__(self, items: Sequence[WordEntry]):
        super().__init__(items)
        self.answer = ""
        self.status = AnswerStatus.IDLE

    def submit(self, answer: str) -> AnswerStatus:
        entry = self.current
        if entry is None:
            return self.status
        self.answer = answer
        if normalize_answer(answer) == normalize_answer(entry.translation):
            self.status = AnswerStatus.RIGHT
        else:
            self.status = AnswerStatus.WRONG
        return self.status

    def _on_index_change(self) -> None:
        self.answer = ""
        self.status = AnswerStatus.IDLE

    def next(self) -> bool:
        moved = super().next()
        # Status clears even on the last item
        self._on_index_change()
        return moved
