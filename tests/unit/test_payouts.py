"""Unit tests for bowling_brackets.service.payouts."""

from __future__ import annotations

import datetime
import random

import pytest

from bowling_brackets.config import TournamentConfig
from bowling_brackets.engine.progression import advance
from bowling_brackets.engine.tree import build_tree
from bowling_brackets.errors import CohortNotFoundError
from bowling_brackets.service.payouts import PayoutTrigger, payout_id
from bowling_brackets.store.repository import InMemoryRepository
from bowling_brackets.store.schema import Bracket, Cohort, CohortStatus, PayoutPosition, Player

_DAY = datetime.date(2024, 3, 5)


def _bracket(number: int = 1, cohort_id: str = "c1") -> Bracket:
    players = [Player(id=f"p{i}", name=f"Bowler {i}") for i in range(8)]
    return Bracket(
        id=f"{cohort_id}_bracket_{number - 1}",
        cohort_id=cohort_id,
        bracket_number=number,
        players=tuple(players),
        structure=build_tree(players, random.Random(number)),
    )


def _finish(bracket: Bracket) -> Bracket:
    """Play every match out with player1 winning."""
    structure = bracket.structure
    for round_index, size in enumerate((4, 2, 1)):
        for match_index in range(size):
            winner = structure.match(round_index, match_index).player1
            assert winner is not None
            structure = advance(structure, round_index, match_index, winner)
    return bracket.model_copy(update={"structure": structure})


@pytest.fixture
def repo() -> InMemoryRepository:
    repo = InMemoryRepository()
    repo.save_cohort(Cohort(id="c1", name="Tuesday Scratch", status=CohortStatus.ACTIVE))
    return repo


@pytest.fixture
def trigger(repo: InMemoryRepository) -> PayoutTrigger:
    return PayoutTrigger(repo, today=lambda: _DAY)


class TestPayoutId:
    def test_deterministic_ids(self) -> None:
        assert payout_id("c1_bracket_0", PayoutPosition.FIRST) == "c1_bracket_0_first"
        assert payout_id("c1_bracket_0", PayoutPosition.SECOND) == "c1_bracket_0_second"
        assert payout_id("c1_bracket_0", PayoutPosition.OPERATOR) == "c1_bracket_0_operator"


class TestOnBracketCompleted:
    @pytest.mark.smoke
    def test_creates_three_payouts(self, repo: InMemoryRepository, trigger: PayoutTrigger) -> None:
        done = _finish(_bracket())
        repo.save_bracket(done)
        created = trigger.on_bracket_completed(done)
        by_position = {p.position: p for p in created}
        assert set(by_position) == {PayoutPosition.FIRST, PayoutPosition.SECOND, PayoutPosition.OPERATOR}

        winner = done.structure.winner
        runner_up = done.structure.final_match.loser()
        assert winner is not None
        assert runner_up is not None
        assert by_position[PayoutPosition.FIRST].player_id == winner.id
        assert by_position[PayoutPosition.FIRST].amount == 25.0
        assert by_position[PayoutPosition.SECOND].player_id == runner_up.id
        assert by_position[PayoutPosition.SECOND].amount == 10.0
        assert by_position[PayoutPosition.OPERATOR].player_id is None
        assert by_position[PayoutPosition.OPERATOR].amount == 5.0
        assert all(p.date == _DAY for p in created)
        assert all(p.cohort_name == "Tuesday Scratch" for p in created)

    def test_idempotent(self, repo: InMemoryRepository, trigger: PayoutTrigger) -> None:
        done = _finish(_bracket())
        repo.save_bracket(done)
        trigger.on_bracket_completed(done)
        assert trigger.on_bracket_completed(done) == []
        assert len(repo.get_payouts_for_bracket(done.id)) == 3

    def test_incomplete_bracket_pays_nothing(self, repo: InMemoryRepository, trigger: PayoutTrigger) -> None:
        bracket = _bracket()
        repo.save_bracket(bracket)
        assert trigger.on_bracket_completed(bracket) == []
        assert repo.get_payouts() == []

    def test_missing_cohort(self, trigger: PayoutTrigger) -> None:
        with pytest.raises(CohortNotFoundError):
            trigger.on_bracket_completed(_finish(_bracket(cohort_id="nope")))

    def test_configured_amounts(self, repo: InMemoryRepository) -> None:
        config = TournamentConfig(first_place_amount=40, second_place_amount=15, operator_cut=0)
        done = _finish(_bracket())
        repo.save_bracket(done)
        created = PayoutTrigger(repo, config, today=lambda: _DAY).on_bracket_completed(done)
        assert sorted(p.amount for p in created) == [0, 15, 40]


class TestCohortPromotion:
    def test_promoted_only_after_last_bracket(self, repo: InMemoryRepository, trigger: PayoutTrigger) -> None:
        first, second = _finish(_bracket(1)), _bracket(2)
        repo.save_brackets([first, second])
        trigger.on_bracket_completed(first)
        cohort = repo.get_cohort("c1")
        assert cohort is not None
        assert cohort.status is CohortStatus.ACTIVE

        second = _finish(second)
        repo.save_bracket(second)
        trigger.on_bracket_completed(second)
        cohort = repo.get_cohort("c1")
        assert cohort is not None
        assert cohort.status is CohortStatus.COMPLETE

    def test_promotion_happens_once(self, repo: InMemoryRepository, trigger: PayoutTrigger) -> None:
        done = _finish(_bracket())
        repo.save_bracket(done)
        assert trigger.promote_cohort("c1") is True
        assert trigger.promote_cohort("c1") is False

    def test_cohort_without_brackets_not_promoted(self, trigger: PayoutTrigger) -> None:
        assert trigger.promote_cohort("c1") is False
