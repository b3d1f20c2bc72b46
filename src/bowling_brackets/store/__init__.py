"""Persisted entities and the repository abstraction."""

from __future__ import annotations

from bowling_brackets.store.repository import InMemoryRepository, JsonRepository, Repository
from bowling_brackets.store.schema import (
    BRACKET_SIZE,
    N_ROUNDS,
    ROUND_SIZES,
    Bracket,
    BracketStructure,
    Cohort,
    CohortStatus,
    CohortType,
    Game,
    Match,
    Payout,
    PayoutPosition,
    Player,
    PlayerEntry,
)

__all__ = [
    "BRACKET_SIZE",
    "N_ROUNDS",
    "ROUND_SIZES",
    "Bracket",
    "BracketStructure",
    "Cohort",
    "CohortStatus",
    "CohortType",
    "Game",
    "InMemoryRepository",
    "JsonRepository",
    "Match",
    "Payout",
    "PayoutPosition",
    "Player",
    "PlayerEntry",
    "Repository",
]
