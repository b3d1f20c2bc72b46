"""Shared pytest fixtures for the bowling_brackets test suite.

Fixtures defined here are available to all tests without explicit imports.
"""

from __future__ import annotations

import datetime
import logging
import random
from collections.abc import Iterator
from pathlib import Path

import pytest

from bowling_brackets.engine.tree import build_tree
from bowling_brackets.service.tournament import TournamentService
from bowling_brackets.store.repository import InMemoryRepository, JsonRepository
from bowling_brackets.store.schema import Bracket, Cohort, CohortStatus, CohortType, Player

PAYOUT_DAY = datetime.date(2024, 3, 5)


def _make_player(index: int, *, handicap: int = 0, default_entries: int = 1) -> Player:
    """Build a player with a predictable id (``p{index}``) and name."""
    return Player(
        id=f"p{index}",
        name=f"Bowler {index}",
        handicap=handicap,
        default_entries=default_entries,
    )


def _make_bracket(
    players: list[Player],
    *,
    cohort_id: str = "c1",
    number: int = 1,
    rng: random.Random | None = None,
) -> Bracket:
    """Build an unplayed bracket for eight players."""
    return Bracket(
        id=f"{cohort_id}_bracket_{number - 1}",
        cohort_id=cohort_id,
        bracket_number=number,
        players=tuple(players),
        structure=build_tree(players, rng or random.Random(0)),
    )


@pytest.fixture
def temp_data_dir(tmp_path: Path) -> Path:
    """Provide an isolated temporary directory for the JSON store.

    Args:
        tmp_path: pytest built-in temporary directory fixture.

    Returns:
        Path: A temporary directory that exists for the duration of the test.
    """
    data_dir = tmp_path / "test_data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture(autouse=True)
def _reset_project_logger() -> Iterator[None]:
    """Undo any logging configuration a test (or the CLI callback) applied."""
    yield
    root = logging.getLogger("bowling_brackets")
    root.handlers.clear()
    root.setLevel(logging.NOTSET)
    root.propagate = True


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source so draws are reproducible."""
    return random.Random(1234)


@pytest.fixture
def eight_players() -> list[Player]:
    """Eight distinct players ``p0``..``p7``."""
    return [_make_player(i) for i in range(8)]


@pytest.fixture
def memory_repo() -> InMemoryRepository:
    """An empty in-memory store."""
    return InMemoryRepository()


@pytest.fixture
def json_repo(temp_data_dir: Path) -> JsonRepository:
    """An empty JSON store rooted in a temporary directory."""
    return JsonRepository(base_path=temp_data_dir)


@pytest.fixture
def active_cohort(memory_repo: InMemoryRepository, eight_players: list[Player]) -> Iterator[tuple[Cohort, Bracket]]:
    """A deployed scratch cohort holding one bracket of ``eight_players``."""
    cohort = Cohort(id="c1", name="Tuesday Scratch", type=CohortType.SCRATCH, status=CohortStatus.ACTIVE)
    bracket = _make_bracket(eight_players)
    for player in eight_players:
        memory_repo.save_player(player)
    memory_repo.save_cohort(cohort)
    memory_repo.save_brackets([bracket])
    yield cohort, bracket


@pytest.fixture
def service(memory_repo: InMemoryRepository) -> TournamentService:
    """A tournament service over an empty in-memory store."""
    return TournamentService(memory_repo, rng=random.Random(99), today=lambda: PAYOUT_DAY)
