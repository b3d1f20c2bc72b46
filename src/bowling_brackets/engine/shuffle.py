"""Fisher–Yates shuffling used by bracket assignment and pairing."""

from __future__ import annotations

import random
from collections.abc import Sequence
from typing import TypeVar

_T = TypeVar("_T")


def shuffle(items: Sequence[_T], rng: random.Random | None = None) -> list[_T]:
    """Return a uniformly random permutation of *items*.

    The input is left untouched.  Without *rng* the module-level generator is
    used, so results are not reproducible; pass a seeded ``random.Random``
    where determinism is wanted (tests).
    """
    draw = rng.randrange if rng is not None else random.randrange
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = draw(i + 1)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled
