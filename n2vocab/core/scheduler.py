"""Spaced-repetition scheduling.

A fixed interval ladder maps each mastery level to the number of days until
the next review. Passing a review climbs one rung, failing drops back to
level 0. All functions are pure and never raise.
"""

from datetime import date, datetime, timedelta
from typing import Iterable, Mapping, Optional

from n2vocab.core.models import ReviewRecord, ReviewResult, ReviewState, WordEntry


# Days until the next review, indexed by mastery level
INTERVALS = (0, 1, 3, 7, 14)

MAX_LEVEL = len(INTERVALS) - 1


def _as_date(value: date | datetime) -> date:
    """Discard the time of day."""
    if isinstance(value, datetime):
        return value.date()
    return value


def clamp_level(level: int) -> int:
    """Clamp a level into the range covered by the ladder."""
    return max(0, min(level, MAX_LEVEL))


def compute_due(reference: date | datetime, level: int) -> date:
    """Get the due date for a word reviewed on `reference` at `level`."""
    return _as_date(reference) + timedelta(days=INTERVALS[clamp_level(level)])


def advance(
    previous: Optional[ReviewState],
    outcome: ReviewResult,
    now: date | datetime,
) -> ReviewState:
    """Apply a review outcome and return the new state.

    Args:
        previous: Current state, or None if the word was never seen
        outcome: Result of the review
        now: Moment of the review

    Returns:
        A new ReviewState; `previous` is left untouched
    """
    today = _as_date(now)
    if previous is None:
        previous = ReviewState.new(today)

    if outcome is ReviewResult.PASS:
        level = min(MAX_LEVEL, clamp_level(previous.level) + 1)
    else:
        level = 0

    return ReviewState(
        level=level,
        due=compute_due(today, level),
        history=previous.history + (ReviewRecord(date=today, result=outcome),),
    )


def is_due(state: Optional[ReviewState], reference: date | datetime) -> bool:
    """Check whether a word should be reviewed on `reference`.

    Words without a state have never been reviewed and are always due.
    """
    if state is None:
        return True
    return state.due <= _as_date(reference)


def due_entries(
    entries: Iterable[WordEntry],
    states: Mapping[str, ReviewState],
    reference: date | datetime,
) -> list[WordEntry]:
    """Get the entries due on `reference`, in vocabulary order."""
    return [e for e in entries if is_due(states.get(e.identity), reference)]
