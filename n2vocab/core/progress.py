"""Progress statistics over the vocabulary."""

from datetime import date
from typing import Mapping, Sequence

from n2vocab.core.models import ProgressStats, ReviewState, WordEntry
from n2vocab.core.scheduler import INTERVALS, clamp_level, is_due


def percent(part: int, total: int) -> int:
    """Integer percentage rounded half up; 0 for an empty total."""
    if total <= 0:
        return 0
    return (part * 200 + total) // (total * 2)


def summarize(
    entries: Sequence[WordEntry],
    states: Mapping[str, ReviewState],
    reference: date,
) -> ProgressStats:
    """Count entries per level and how many are due on `reference`.

    Entries without a state count as level 0 and as due.
    """
    levels = [0] * len(INTERVALS)
    due = 0
    for entry in entries:
        state = states.get(entry.identity)
        levels[clamp_level(state.level) if state else 0] += 1
        if is_due(state, reference):
            due += 1

    learned = sum(levels[1:])
    return ProgressStats(
        levels=tuple(levels),
        due=due,
        learned=learned,
        total=len(entries),
        rate=percent(learned, len(entries)),
    )
