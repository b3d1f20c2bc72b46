"""Pydantic v2 schema models for bowling bracket entities.

Defines the persisted shapes: Player, Bracket (with its BracketStructure and
Match tree), Game, Cohort and Payout, plus the PlayerEntry assignment input.
All engine and service code operates on these models regardless of the
storage backend.  Models are frozen: updates go through ``model_copy`` or
fresh construction, so no caller ever aliases another caller's state.

Field aliases use the camelCase keys of the persisted documents
(``cohortId``, ``bracketNumber``, ...); construction accepts either form.
"""

from __future__ import annotations

import datetime
from collections.abc import Iterator
from enum import Enum, IntEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator

BRACKET_SIZE: int = 8
"""Number of players in every bracket."""

ROUND_SIZES: tuple[int, ...] = (4, 2, 1)
"""Match count per round for an 8-player single-elimination bracket."""

N_ROUNDS: int = len(ROUND_SIZES)

_MODEL_CONFIG = ConfigDict(populate_by_name=True, frozen=True)


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class CohortType(str, Enum):
    """Scoring mode of a cohort."""

    SCRATCH = "Scratch"
    HANDICAP = "Handicap"


class CohortStatus(str, Enum):
    """Forward-only lifecycle of a cohort."""

    NOT_DEPLOYED = "not_deployed"
    ACTIVE = "active"
    COMPLETE = "complete"

    @property
    def rank(self) -> int:
        """Position of this status in the lifecycle (0, 1, 2)."""
        return list(CohortStatus).index(self)

    def can_advance_to(self, other: CohortStatus) -> bool:
        """Return ``True`` if moving to *other* goes strictly forward."""
        return other.rank > self.rank


class PayoutPosition(IntEnum):
    """Finishing position a payout is awarded for."""

    OPERATOR = 0
    FIRST = 1
    SECOND = 2


# ---------------------------------------------------------------------------
# Players
# ---------------------------------------------------------------------------


class Player(BaseModel):
    """A registered bowler.

    ``average`` and ``handicap`` only feed score adjustment; they are never
    used for seeding or pairing.
    """

    model_config = _MODEL_CONFIG

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    average: float = Field(default=0.0, ge=0, le=300)
    handicap: int = Field(default=0)
    default_entries: int = Field(default=1, ge=1, alias="numBrackets")
    created_at: datetime.datetime = Field(default_factory=_utcnow, alias="createdAt")


class PlayerEntry(BaseModel):
    """A player plus the number of bracket entries (tickets) they hold."""

    model_config = _MODEL_CONFIG

    player: Player
    entries: int = Field(default=1, ge=1)


# ---------------------------------------------------------------------------
# Bracket tree
# ---------------------------------------------------------------------------


class Match(BaseModel):
    """One head-to-head game between two bracket slots.

    A slot is ``None`` while it waits for a feeder match to resolve ("TBD").
    Once ``completed`` the winner is one of the two occupants and never
    changes.
    """

    model_config = _MODEL_CONFIG

    player1: Player | None = None
    player2: Player | None = None
    completed: bool = False
    winner: Player | None = None

    @model_validator(mode="after")
    def _check_result(self) -> Match:
        if self.completed and self.winner is None:
            msg = "a completed match must have a winner"
            raise ValueError(msg)
        if self.winner is not None:
            if not self.completed:
                msg = "a match with a winner must be completed"
                raise ValueError(msg)
            if self.winner.id not in self.player_ids:
                msg = f"winner {self.winner.id!r} is not one of the match players {self.player_ids}"
                raise ValueError(msg)
        return self

    @property
    def player_ids(self) -> tuple[str, ...]:
        """Ids of the populated slots, in slot order."""
        return tuple(p.id for p in (self.player1, self.player2) if p is not None)

    @property
    def is_populated(self) -> bool:
        """Return ``True`` when both slots hold a player."""
        return self.player1 is not None and self.player2 is not None

    @property
    def is_self_paired(self) -> bool:
        """Return ``True`` if both slots hold the same player."""
        return (
            self.player1 is not None
            and self.player2 is not None
            and self.player1.id == self.player2.id
        )

    def involves(self, player_id: str) -> bool:
        """Return ``True`` if *player_id* occupies either slot."""
        return player_id in self.player_ids

    def loser(self) -> Player | None:
        """Return the non-winning occupant of a completed match."""
        if self.winner is None:
            return None
        if self.player1 is not None and self.player1.id != self.winner.id:
            return self.player1
        if self.player2 is not None and self.player2.id != self.winner.id:
            return self.player2
        return None


class BracketStructure(BaseModel):
    """Three-round elimination tree: 4 matches, then 2, then the final."""

    model_config = _MODEL_CONFIG

    rounds: tuple[tuple[Match, ...], ...]
    completed: bool = False
    winner: Player | None = None

    @model_validator(mode="after")
    def _check_shape(self) -> BracketStructure:
        sizes = tuple(len(r) for r in self.rounds)
        if sizes != ROUND_SIZES:
            msg = f"bracket rounds must have sizes {ROUND_SIZES}, got {sizes}"
            raise ValueError(msg)
        if self.completed != (self.winner is not None):
            msg = "a bracket is completed exactly when it has a winner"
            raise ValueError(msg)
        if self.winner is not None:
            final = self.final_match
            if final.winner is None or final.winner.id != self.winner.id:
                msg = "bracket winner must be the winner of the final match"
                raise ValueError(msg)
        return self

    @property
    def final_match(self) -> Match:
        """The single round-3 match."""
        return self.rounds[-1][0]

    def match(self, round_index: int, match_index: int) -> Match:
        """Return the match at (*round_index*, *match_index*)."""
        return self.rounds[round_index][match_index]

    def iter_matches(self) -> Iterator[tuple[int, int, Match]]:
        """Yield ``(round_index, match_index, match)`` in play order."""
        for round_index, round_matches in enumerate(self.rounds):
            for match_index, match in enumerate(round_matches):
                yield round_index, match_index, match


class Bracket(BaseModel):
    """Eight distinct players and the elimination tree they compete in."""

    model_config = _MODEL_CONFIG

    id: str = Field(..., min_length=1)
    cohort_id: str = Field(..., min_length=1, alias="cohortId")
    bracket_number: int = Field(..., ge=1, alias="bracketNumber")
    players: tuple[Player, ...]
    structure: BracketStructure
    created_at: datetime.datetime = Field(default_factory=_utcnow, alias="createdAt")

    @model_validator(mode="after")
    def _check_players(self) -> Bracket:
        if len(self.players) != BRACKET_SIZE:
            msg = f"a bracket needs exactly {BRACKET_SIZE} players, got {len(self.players)}"
            raise ValueError(msg)
        ids = {p.id for p in self.players}
        if len(ids) != len(self.players):
            msg = "a player may appear only once per bracket"
            raise ValueError(msg)
        return self

    @property
    def completed(self) -> bool:
        """Return ``True`` once the final has been decided."""
        return self.structure.completed

    def has_player(self, player_id: str) -> bool:
        """Return ``True`` if *player_id* was assigned to this bracket."""
        return any(p.id == player_id for p in self.players)


# ---------------------------------------------------------------------------
# Scores, cohorts, payouts
# ---------------------------------------------------------------------------


class Game(BaseModel):
    """A raw score for one (cohort, player, game-number) triple.

    Game ``n`` is bowled for round ``n``; at most one score exists per triple
    and later writes overwrite earlier ones.
    """

    model_config = _MODEL_CONFIG

    cohort_id: str = Field(..., min_length=1, alias="cohortId")
    player_id: str = Field(..., min_length=1, alias="playerId")
    game_number: int = Field(..., ge=1, le=N_ROUNDS, alias="gameNumber")
    score: int = Field(..., ge=0, le=300)
    recorded_at: datetime.datetime = Field(default_factory=_utcnow, alias="recordedAt")

    @property
    def key(self) -> tuple[str, str, int]:
        """Natural key ``(cohort_id, player_id, game_number)``."""
        return (self.cohort_id, self.player_id, self.game_number)


class Cohort(BaseModel):
    """A named tournament event whose brackets are deployed together."""

    model_config = _MODEL_CONFIG

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    type: CohortType = CohortType.SCRATCH
    status: CohortStatus = CohortStatus.NOT_DEPLOYED
    selected_user_ids: tuple[str, ...] = Field(default=(), alias="selectedUserIds")
    user_bracket_counts: dict[str, int] = Field(default_factory=dict, alias="userBracketCounts")
    created_at: datetime.datetime = Field(default_factory=_utcnow, alias="createdAt")

    @property
    def uses_handicap(self) -> bool:
        """Return ``True`` if handicap is added to raw scores."""
        return self.type is CohortType.HANDICAP


class Payout(BaseModel):
    """A computed prize record for one completed bracket.

    Operator payouts carry no player id.
    """

    model_config = _MODEL_CONFIG

    id: str = Field(..., min_length=1)
    cohort_id: str = Field(..., min_length=1, alias="cohortId")
    cohort_name: str = Field(default="", alias="cohortName")
    bracket_id: str = Field(..., min_length=1, alias="bracketId")
    player_id: str | None = Field(default=None, alias="playerId")
    player_name: str = Field(default="", alias="playerName")
    amount: float = Field(..., ge=0)
    position: PayoutPosition
    date: datetime.date

    @property
    def is_operator(self) -> bool:
        """Return ``True`` for the operator's cut."""
        return self.position is PayoutPosition.OPERATOR
