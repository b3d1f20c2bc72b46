"""Unit tests for bowling_brackets.service.stats."""

from __future__ import annotations

import datetime
import random

import pytest

from bowling_brackets.engine.progression import advance
from bowling_brackets.engine.tree import build_tree
from bowling_brackets.service.stats import LedgerSummary, active_brackets, player_ledger
from bowling_brackets.store.repository import InMemoryRepository
from bowling_brackets.store.schema import Bracket, Cohort, CohortStatus, Payout, PayoutPosition, Player

_MONDAY = datetime.datetime(2024, 3, 4, 19, 0, tzinfo=datetime.timezone.utc)
_TUESDAY = datetime.datetime(2024, 3, 5, 19, 0, tzinfo=datetime.timezone.utc)


def _players() -> list[Player]:
    return [Player(id=f"p{i}", name=f"Bowler {i}") for i in range(8)]


def _bracket(cohort_id: str, number: int) -> Bracket:
    players = _players()
    return Bracket(
        id=f"{cohort_id}_bracket_{number - 1}",
        cohort_id=cohort_id,
        bracket_number=number,
        players=tuple(players),
        structure=build_tree(players, random.Random(number)),
    )


def _payout(
    bracket_id: str,
    cohort_id: str,
    player_id: str | None,
    position: PayoutPosition,
    amount: float,
) -> Payout:
    return Payout(
        id=f"{bracket_id}_{position.name.lower()}",
        cohort_id=cohort_id,
        bracket_id=bracket_id,
        player_id=player_id,
        player_name=player_id or "Operator",
        amount=amount,
        position=position,
        date=datetime.date(2024, 3, 5),
    )


@pytest.fixture
def repo() -> InMemoryRepository:
    """Two cohorts on consecutive days; p0 is in three brackets and wins one."""
    repo = InMemoryRepository()
    repo.save_cohort(Cohort(id="mon", name="Monday", status=CohortStatus.ACTIVE, created_at=_MONDAY))
    repo.save_cohort(Cohort(id="tue", name="Tuesday", status=CohortStatus.ACTIVE, created_at=_TUESDAY))
    repo.save_brackets([_bracket("mon", 1), _bracket("mon", 2), _bracket("tue", 1)])
    repo.save_payouts(
        [
            _payout("mon_bracket_0", "mon", "p0", PayoutPosition.FIRST, 25.0),
            _payout("mon_bracket_0", "mon", "p1", PayoutPosition.SECOND, 10.0),
            _payout("mon_bracket_0", "mon", None, PayoutPosition.OPERATOR, 5.0),
        ]
    )
    return repo


class TestPlayerLedger:
    @pytest.mark.smoke
    def test_daily_rows(self, repo: InMemoryRepository) -> None:
        ledger, _ = player_ledger(repo, "p0", entry_fee=5.0)
        assert list(ledger.columns) == ["date", "entries", "cost", "revenue", "pnl"]
        assert ledger["date"].tolist() == [datetime.date(2024, 3, 4), datetime.date(2024, 3, 5)]
        assert ledger["entries"].tolist() == [2, 1]
        assert ledger["cost"].tolist() == [10.0, 5.0]
        assert ledger["revenue"].tolist() == [0.0, 25.0]
        assert ledger["pnl"].tolist() == [-10.0, 20.0]

    def test_summary(self, repo: InMemoryRepository) -> None:
        _, summary = player_ledger(repo, "p0", entry_fee=5.0)
        assert summary.total_entries == 3
        assert summary.total_cost == 15.0
        assert summary.total_revenue == 25.0
        assert summary.net_pnl == 10.0
        assert summary.roi_pct == pytest.approx(66.7)
        assert summary.cash_rate_pct == pytest.approx(33.3)

    def test_operator_cut_not_counted_as_revenue(self, repo: InMemoryRepository) -> None:
        _, summary = player_ledger(repo, "p1", entry_fee=5.0)
        assert summary.total_revenue == 10.0

    def test_unknown_player_gets_empty_ledger(self, repo: InMemoryRepository) -> None:
        ledger, summary = player_ledger(repo, "ghost")
        assert ledger.empty
        assert list(ledger.columns) == ["date", "entries", "cost", "revenue", "pnl"]
        assert summary == LedgerSummary(0, 0.0, 0.0, 0)
        assert summary.roi_pct == 0.0
        assert summary.cash_rate_pct == 0.0


class TestActiveBrackets:
    def test_lists_uncompleted_brackets_with_round(self, repo: InMemoryRepository) -> None:
        found = active_brackets(repo, "p0")
        assert [(a.cohort_name, a.bracket_number, a.current_round) for a in found] == [
            ("Monday", 1, 1),
            ("Monday", 2, 1),
            ("Tuesday", 1, 1),
        ]
        assert all(a.potential == 25.0 for a in found)

    def test_round_moves_after_a_win(self, repo: InMemoryRepository) -> None:
        bracket = repo.get_bracket("tue_bracket_0")
        assert bracket is not None
        r, m = next((r, m) for r, m, match in bracket.structure.iter_matches() if match.involves("p0"))
        structure = advance(bracket.structure, r, m, next(p for p in bracket.players if p.id == "p0"))
        repo.save_bracket(bracket.model_copy(update={"structure": structure}))
        rounds = {a.bracket_id: a.current_round for a in active_brackets(repo, "p0")}
        assert rounds["tue_bracket_0"] == 2
