"""Practice session assembly."""

import random
from typing import Optional, Sequence, TypeVar

from n2vocab.core.models import WordEntry


T = TypeVar("T")

# Session sizes offered in the practice view
SESSION_SIZES = (10, 20, 30, 50)


def shuffled(items: Sequence[T], rng: Optional[random.Random] = None) -> list[T]:
    """Return a uniformly shuffled copy of `items`.

    `random.Random.shuffle` is a Fisher-Yates shuffle, so every permutation
    is equally likely.
    """
    result = list(items)
    (rng or random).shuffle(result)
    return result


def build_session(
    due_pool: Sequence[WordEntry],
    fallback_pool: Sequence[WordEntry],
    count: int,
    rng: Optional[random.Random] = None,
) -> list[WordEntry]:
    """Build a shuffled practice session.

    Uses the due pool when it has anything in it, otherwise the fallback
    pool (normally the whole vocabulary). The result holds at most `count`
    entries; a short pool is returned whole, without padding.
    """
    source = due_pool if due_pool else fallback_pool
    return shuffled(source, rng)[:max(0, count)]
