"""Unit tests for bowling_brackets.store.schema models."""

from __future__ import annotations

import datetime

import pytest
from pydantic import ValidationError

from bowling_brackets.store.schema import (
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
)


def _player(index: int) -> Player:
    return Player(id=f"p{index}", name=f"Bowler {index}")


def _empty_rounds() -> tuple[tuple[Match, ...], ...]:
    first = tuple(Match(player1=_player(2 * i), player2=_player(2 * i + 1)) for i in range(4))
    return (first, (Match(), Match()), (Match(),))


class TestPlayer:
    @pytest.mark.smoke
    def test_defaults(self) -> None:
        player = Player(id="p1", name="Ann")
        assert player.handicap == 0
        assert player.default_entries == 1
        assert player.created_at.tzinfo is not None

    def test_accepts_persisted_aliases(self) -> None:
        player = Player.model_validate({"id": "p1", "name": "Ann", "numBrackets": 3})
        assert player.default_entries == 3

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Player(id="p1", name="")

    def test_zero_entries_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Player(id="p1", name="Ann", default_entries=0)

    def test_frozen(self) -> None:
        player = Player(id="p1", name="Ann")
        with pytest.raises(ValidationError):
            player.name = "Bob"  # type: ignore[misc]


class TestMatch:
    def test_tbd_match(self) -> None:
        match = Match()
        assert not match.is_populated
        assert match.player_ids == ()

    def test_completed_requires_winner(self) -> None:
        with pytest.raises(ValidationError, match="must have a winner"):
            Match(player1=_player(0), player2=_player(1), completed=True)

    def test_winner_requires_completed(self) -> None:
        with pytest.raises(ValidationError, match="must be completed"):
            Match(player1=_player(0), player2=_player(1), winner=_player(0))

    def test_winner_must_be_in_match(self) -> None:
        with pytest.raises(ValidationError, match="not one of the match players"):
            Match(player1=_player(0), player2=_player(1), completed=True, winner=_player(5))

    def test_loser(self) -> None:
        match = Match(player1=_player(0), player2=_player(1), completed=True, winner=_player(1))
        loser = match.loser()
        assert loser is not None
        assert loser.id == "p0"

    def test_loser_of_undecided_match_is_none(self) -> None:
        assert Match(player1=_player(0), player2=_player(1)).loser() is None

    def test_self_paired(self) -> None:
        assert Match(player1=_player(0), player2=_player(0)).is_self_paired
        assert not Match(player1=_player(0), player2=_player(1)).is_self_paired

    def test_involves(self) -> None:
        match = Match(player1=_player(0))
        assert match.involves("p0")
        assert not match.involves("p1")


class TestBracketStructure:
    def test_round_sizes_enforced(self) -> None:
        rounds = _empty_rounds()
        with pytest.raises(ValidationError, match="sizes"):
            BracketStructure(rounds=(rounds[0], rounds[1]))

    def test_completed_needs_winner(self) -> None:
        with pytest.raises(ValidationError, match="completed exactly when"):
            BracketStructure(rounds=_empty_rounds(), completed=True)

    def test_winner_must_match_final(self) -> None:
        rounds = _empty_rounds()
        final = Match(player1=_player(0), player2=_player(4), completed=True, winner=_player(4))
        with pytest.raises(ValidationError, match="winner of the final"):
            BracketStructure(rounds=(rounds[0], rounds[1], (final,)), completed=True, winner=_player(0))

    def test_iter_matches_in_play_order(self) -> None:
        structure = BracketStructure(rounds=_empty_rounds())
        positions = [(r, m) for r, m, _ in structure.iter_matches()]
        assert positions == [(0, 0), (0, 1), (0, 2), (0, 3), (1, 0), (1, 1), (2, 0)]
        assert structure.final_match is structure.match(2, 0)


class TestBracket:
    def _bracket(self, players: list[Player]) -> Bracket:
        return Bracket(
            id="c1_bracket_0",
            cohort_id="c1",
            bracket_number=1,
            players=tuple(players),
            structure=BracketStructure(rounds=_empty_rounds()),
        )

    def test_valid_bracket(self) -> None:
        bracket = self._bracket([_player(i) for i in range(8)])
        assert not bracket.completed
        assert bracket.has_player("p7")
        assert not bracket.has_player("p8")

    def test_needs_eight_players(self) -> None:
        with pytest.raises(ValidationError, match="exactly 8"):
            self._bracket([_player(i) for i in range(7)])

    def test_players_distinct(self) -> None:
        with pytest.raises(ValidationError, match="only once"):
            self._bracket([_player(i) for i in range(7)] + [_player(0)])

    def test_dump_uses_camel_case(self) -> None:
        dumped = self._bracket([_player(i) for i in range(8)]).model_dump(by_alias=True)
        assert "cohortId" in dumped
        assert "bracketNumber" in dumped


class TestGame:
    @pytest.mark.parametrize("score", [-1, 301])
    def test_score_range(self, score: int) -> None:
        with pytest.raises(ValidationError):
            Game(cohort_id="c1", player_id="p1", game_number=1, score=score)

    @pytest.mark.parametrize("game_number", [0, 4])
    def test_game_number_range(self, game_number: int) -> None:
        with pytest.raises(ValidationError):
            Game(cohort_id="c1", player_id="p1", game_number=game_number, score=200)

    def test_key(self) -> None:
        game = Game(cohort_id="c1", player_id="p1", game_number=2, score=300)
        assert game.key == ("c1", "p1", 2)


class TestCohortAndPayout:
    def test_cohort_defaults(self) -> None:
        cohort = Cohort(id="c1", name="Friday")
        assert cohort.type is CohortType.SCRATCH
        assert cohort.status is CohortStatus.NOT_DEPLOYED
        assert not cohort.uses_handicap

    def test_status_only_moves_forward(self) -> None:
        assert CohortStatus.NOT_DEPLOYED.can_advance_to(CohortStatus.ACTIVE)
        assert CohortStatus.ACTIVE.can_advance_to(CohortStatus.COMPLETE)
        assert not CohortStatus.COMPLETE.can_advance_to(CohortStatus.ACTIVE)
        assert not CohortStatus.ACTIVE.can_advance_to(CohortStatus.ACTIVE)

    def test_cohort_type_from_persisted_value(self) -> None:
        cohort = Cohort.model_validate({"id": "c1", "name": "Friday", "type": "Handicap"})
        assert cohort.uses_handicap

    def test_operator_payout(self) -> None:
        payout = Payout(
            id="b_operator",
            cohort_id="c1",
            bracket_id="b",
            player_name="Operator",
            amount=5,
            position=PayoutPosition.OPERATOR,
            date=datetime.date(2024, 3, 5),
        )
        assert payout.is_operator
        assert payout.player_id is None
