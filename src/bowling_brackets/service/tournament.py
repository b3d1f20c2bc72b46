"""Tournament service: the in-process API that front ends call.

``TournamentService`` owns no state of its own.  It validates input, turns
requests into repository writes, and hands every score to the
:class:`ReconciliationDriver`, which in turn fires the
:class:`PayoutTrigger`.  Swap the injected repository to change where data
lives; nothing else changes.
"""

from __future__ import annotations

import datetime
import logging
import random
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from bowling_brackets.config import TournamentConfig
from bowling_brackets.engine import relevance
from bowling_brackets.engine.assignment import AssignmentResult, assign_brackets
from bowling_brackets.engine.progression import advance
from bowling_brackets.engine.tree import build_tree
from bowling_brackets.errors import (
    BracketNotFoundError,
    CohortNotFoundError,
    CohortStateError,
    DuplicateNameError,
    InputError,
    InsufficientEntriesError,
    InvalidGameNumberError,
    PlayerNotFoundError,
    ProgressionError,
    ScoreOutOfRangeError,
)
from bowling_brackets.service.payouts import PayoutTrigger
from bowling_brackets.service.reconcile import BracketListener, ReconcileResult, ReconciliationDriver
from bowling_brackets.store.repository import Repository
from bowling_brackets.store.schema import (
    BRACKET_SIZE,
    N_ROUNDS,
    ROUND_SIZES,
    Bracket,
    Cohort,
    CohortStatus,
    CohortType,
    Game,
    Match,
    Payout,
    Player,
    PlayerEntry,
)

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex


def _name_key(name: str) -> str:
    return name.strip().lower()


@dataclass(frozen=True)
class DeploymentResult:
    """Brackets created for a cohort plus how many entries were placed."""

    cohort: Cohort
    brackets: tuple[Bracket, ...]
    assignment: AssignmentResult

    @property
    def entries_requested(self) -> int:
        """Total tickets offered by the cohort's players."""
        return self.assignment.total_requested

    @property
    def entries_placed(self) -> int:
        """Tickets that made it into a bracket."""
        return self.assignment.total_placed

    @property
    def entries_dropped(self) -> int:
        """Tickets left over (not refunded here)."""
        return self.assignment.total_dropped


class TournamentService:
    """Facade over players, cohorts, scores, brackets and payouts.

    Args:
        repository: Injected store.
        config: Tournament constants; defaults to :class:`TournamentConfig`.
        rng: Random source for assignment and pairing (unseeded by default).
        today: Clock used to date payouts.
        id_factory: Generates ids for new players and cohorts.
    """

    def __init__(
        self,
        repository: Repository,
        config: TournamentConfig | None = None,
        *,
        rng: random.Random | None = None,
        today: Callable[[], datetime.date] = datetime.date.today,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self._repo = repository
        self._config = config or TournamentConfig()
        self._rng = rng
        self._new_id = id_factory
        self._payouts = PayoutTrigger(repository, self._config, today=today)
        self._driver = ReconciliationDriver(repository, self._config, self._payouts)

    @property
    def config(self) -> TournamentConfig:
        """The active tournament configuration."""
        return self._config

    @property
    def repository(self) -> Repository:
        """The injected store."""
        return self._repo

    def subscribe(self, listener: BracketListener) -> None:
        """Register a listener for bracket completion events."""
        self._driver.subscribe(listener)

    # ------------------------------------------------------------------
    # Players
    # ------------------------------------------------------------------

    def add_player(
        self,
        name: str,
        *,
        average: float = 0.0,
        handicap: int = 0,
        default_entries: int = 1,
    ) -> Player:
        """Register a new player.

        Raises:
            DuplicateNameError: If a player with the same name (ignoring case
                and surrounding whitespace) already exists.
        """
        self._check_unique_player_name(name)
        player = Player(
            id=self._new_id(),
            name=name.strip(),
            average=average,
            handicap=handicap,
            default_entries=default_entries,
        )
        self._repo.save_player(player)
        logger.info("players: registered %s", player.name)
        return player

    def update_player(self, player_id: str, **updates: Any) -> Player:
        """Apply field *updates* to a player and return the new record."""
        player = self.get_player(player_id)
        if "name" in updates:
            self._check_unique_player_name(updates["name"], exclude_id=player_id)
            updates["name"] = updates["name"].strip()
        data = player.model_dump()
        data.update(updates)
        updated = Player.model_validate(data)
        self._repo.save_player(updated)
        return updated

    def delete_player(self, player_id: str) -> None:
        """Remove a player.  Finished brackets keep their own snapshot of the player.

        Raises:
            CohortStateError: If the player still sits in a bracket of an
                active cohort.
        """
        player = self.get_player(player_id)
        for cohort in self.list_cohorts(CohortStatus.ACTIVE):
            if any(b.has_player(player_id) for b in self._repo.get_brackets(cohort.id)):
                msg = f"Cannot delete {player.name!r}: they are in an active bracket of {cohort.name!r}"
                raise CohortStateError(msg)
        self._repo.delete_player(player_id)

    def remove_duplicate_players(self) -> int:
        """Drop players whose name repeats an earlier one.

        Returns:
            Number of players removed.
        """
        seen: set[str] = set()
        removed = 0
        for player in self._repo.get_players():
            key = _name_key(player.name)
            if key in seen:
                self._repo.delete_player(player.id)
                removed += 1
            else:
                seen.add(key)
        if removed:
            logger.info("players: removed %d duplicate players", removed)
        return removed

    def get_player(self, player_id: str) -> Player:
        """Return the player or raise :class:`PlayerNotFoundError`."""
        player = self._repo.get_player(player_id)
        if player is None:
            msg = f"Player {player_id!r} not found"
            raise PlayerNotFoundError(msg)
        return player

    def find_player(self, name: str) -> Player | None:
        """Return the player whose name matches *name* ignoring case."""
        key = _name_key(name)
        return next((p for p in self._repo.get_players() if _name_key(p.name) == key), None)

    def list_players(self) -> list[Player]:
        """Return every registered player."""
        return self._repo.get_players()

    def _check_unique_player_name(self, name: str, exclude_id: str | None = None) -> None:
        key = _name_key(name)
        for player in self._repo.get_players():
            if player.id != exclude_id and _name_key(player.name) == key:
                msg = f"Player {name.strip()!r} already exists"
                raise DuplicateNameError(msg)

    # ------------------------------------------------------------------
    # Cohorts
    # ------------------------------------------------------------------

    def create_cohort(self, name: str, cohort_type: CohortType = CohortType.SCRATCH) -> Cohort:
        """Create an undeployed cohort.

        Raises:
            DuplicateNameError: If a cohort with the same name exists.
        """
        key = _name_key(name)
        if any(_name_key(c.name) == key for c in self._repo.get_cohorts()):
            msg = f"Cohort {name.strip()!r} already exists"
            raise DuplicateNameError(msg)
        cohort = Cohort(id=self._new_id(), name=name.strip(), type=cohort_type)
        self._repo.save_cohort(cohort)
        logger.info("cohorts: created %s (%s)", cohort.name, cohort.type.value)
        return cohort

    def get_cohort(self, cohort_id: str) -> Cohort:
        """Return the cohort or raise :class:`CohortNotFoundError`."""
        cohort = self._repo.get_cohort(cohort_id)
        if cohort is None:
            msg = f"Cohort {cohort_id!r} not found"
            raise CohortNotFoundError(msg)
        return cohort

    def find_cohort(self, name: str) -> Cohort:
        """Return the cohort named *name* (any case) or raise :class:`CohortNotFoundError`."""
        key = _name_key(name)
        for cohort in self._repo.get_cohorts():
            if _name_key(cohort.name) == key:
                return cohort
        msg = f"Cohort {name!r} not found"
        raise CohortNotFoundError(msg)

    def list_cohorts(self, status: CohortStatus | None = None) -> list[Cohort]:
        """Return cohorts, optionally filtered by *status*, newest first."""
        cohorts = [c for c in self._repo.get_cohorts() if status is None or c.status is status]
        return sorted(cohorts, key=lambda c: c.created_at, reverse=True)

    def cohort_brackets(self, cohort_id: str) -> list[Bracket]:
        """Return the cohort's brackets ordered by bracket number."""
        return self._repo.get_brackets(cohort_id)

    def set_entries(self, cohort_id: str, counts: Mapping[str, int]) -> Cohort:
        """Select players for an undeployed cohort with their entry counts.

        Raises:
            CohortStateError: If the cohort has already been deployed.
            InputError: If any count is below 1.
            PlayerNotFoundError: If a player id is unknown.
        """
        cohort = self.get_cohort(cohort_id)
        if cohort.status is not CohortStatus.NOT_DEPLOYED:
            msg = f"Cohort {cohort.name!r} is {cohort.status.value}; entries can no longer change"
            raise CohortStateError(msg)
        for player_id, count in counts.items():
            self.get_player(player_id)
            if count < 1:
                msg = f"Number of entries must be at least 1 (got {count} for {player_id!r})"
                raise InputError(msg)
        updated = cohort.model_copy(
            update={"selected_user_ids": tuple(counts), "user_bracket_counts": dict(counts)}
        )
        self._repo.save_cohort(updated)
        return updated

    def deploy_cohort(self, cohort_id: str) -> DeploymentResult:
        """Assign the cohort's entries to brackets and activate it.

        Raises:
            CohortStateError: If the cohort was already deployed.
            InputError: If no players are selected.
            InsufficientEntriesError: If not even one bracket can be formed.
        """
        cohort = self.get_cohort(cohort_id)
        if cohort.status is not CohortStatus.NOT_DEPLOYED:
            msg = f"Cohort {cohort.name!r} has already been deployed"
            raise CohortStateError(msg)
        if not cohort.selected_user_ids:
            msg = "No players selected for deployment"
            raise InputError(msg)

        entries: list[PlayerEntry] = []
        for player_id in cohort.selected_user_ids:
            player = self.get_player(player_id)
            count = cohort.user_bracket_counts.get(player_id, player.default_entries)
            entries.append(PlayerEntry(player=player, entries=count))

        total = sum(e.entries for e in entries)
        if total < BRACKET_SIZE:
            raise InsufficientEntriesError(total, BRACKET_SIZE - total)

        assignment = assign_brackets(entries, self._rng)
        if not assignment.groups:
            # Enough tickets but fewer than eight distinct players.
            raise InsufficientEntriesError(total, BRACKET_SIZE - len(entries))

        brackets = tuple(
            Bracket(
                id=f"{cohort.id}_bracket_{index}",
                cohort_id=cohort.id,
                bracket_number=index + 1,
                players=group,
                structure=build_tree(group, self._rng),
            )
            for index, group in enumerate(assignment.groups)
        )
        self._repo.save_brackets(list(brackets))
        active = cohort.model_copy(update={"status": CohortStatus.ACTIVE})
        self._repo.save_cohort(active)
        logger.info(
            "cohorts: deployed %s with %d brackets (%d of %d entries placed)",
            cohort.name,
            len(brackets),
            assignment.total_placed,
            assignment.total_requested,
        )
        return DeploymentResult(cohort=active, brackets=brackets, assignment=assignment)

    def delete_cohort(self, cohort_id: str) -> None:
        """Delete a cohort with its brackets, games and payouts."""
        cohort = self.get_cohort(cohort_id)
        self._repo.delete_brackets(cohort_id)
        self._repo.delete_games(cohort_id)
        self._repo.delete_payouts(cohort_id)
        self._repo.delete_cohort(cohort_id)
        logger.info("cohorts: deleted %s", cohort.name)

    # ------------------------------------------------------------------
    # Scores and progression
    # ------------------------------------------------------------------

    def record_score(self, cohort_id: str, player_id: str, game_number: int, raw_score: int) -> ReconcileResult:
        """Store a score and advance every bracket it unblocks.

        Raises:
            InvalidGameNumberError: If *game_number* is not 1 to 3.
            ScoreOutOfRangeError: If *raw_score* is outside the configured range.
            CohortStateError: If the cohort has not been deployed.
            InputError: If the player holds no bracket in the cohort.
        """
        if not 1 <= game_number <= N_ROUNDS:
            msg = f"Game number must be between 1 and {N_ROUNDS}, got {game_number}"
            raise InvalidGameNumberError(msg)
        if not self._config.min_score <= raw_score <= self._config.max_score:
            msg = f"Score must be between {self._config.min_score} and {self._config.max_score}, got {raw_score}"
            raise ScoreOutOfRangeError(msg)

        cohort = self.get_cohort(cohort_id)
        if cohort.status is CohortStatus.NOT_DEPLOYED:
            msg = f"Cohort {cohort.name!r} has not been deployed"
            raise CohortStateError(msg)
        if not any(b.has_player(player_id) for b in self._repo.get_brackets(cohort_id)):
            msg = f"Player {player_id!r} has no bracket in cohort {cohort.name!r}"
            raise InputError(msg)

        game = Game(cohort_id=cohort_id, player_id=player_id, game_number=game_number, score=raw_score)
        self._repo.save_game(game)
        logger.debug("scores: %s game %d = %d", player_id, game_number, raw_score)
        return self._driver.reconcile_cohort(cohort_id, override=game)

    def get_player_games(self, cohort_id: str, player_id: str) -> list[Game]:
        """Return the player's recorded games in the cohort by game number."""
        games = [g for g in self._repo.get_games(cohort_id) if g.player_id == player_id]
        return sorted(games, key=lambda g: g.game_number)

    def resync_cohort(self, cohort_id: str) -> ReconcileResult:
        """Re-scan every match of the cohort against its stored games."""
        self.get_cohort(cohort_id)
        return self._driver.resync_cohort(cohort_id)

    def declare_winner(self, bracket_id: str, round_index: int, match_index: int, winner_id: str) -> Bracket:
        """Manually decide a match, then let reconciliation continue from there.

        Raises:
            BracketNotFoundError: If *bracket_id* is unknown.
            ProgressionError: If the match cannot be decided for *winner_id*.
        """
        bracket = self._get_bracket(bracket_id)
        if not (0 <= round_index < N_ROUNDS and 0 <= match_index < ROUND_SIZES[round_index]):
            msg = f"Bracket {bracket.bracket_number} has no round {round_index + 1} match {match_index + 1}"
            raise ProgressionError(msg)
        match = bracket.structure.match(round_index, match_index)
        winner = next((p for p in (match.player1, match.player2) if p is not None and p.id == winner_id), None)
        if winner is None:
            msg = f"Player {winner_id!r} is not in round {round_index + 1} match {match_index + 1}"
            raise ProgressionError(msg)

        structure = advance(bracket.structure, round_index, match_index, winner)
        if structure is bracket.structure:
            return bracket
        updated = bracket.model_copy(update={"structure": structure})
        self._repo.save_bracket(updated)
        logger.info(
            "brackets: %s declared winner of bracket %d round %d match %d",
            winner.name,
            bracket.bracket_number,
            round_index + 1,
            match_index + 1,
        )
        if updated.completed:
            self._driver.complete_bracket(updated)
        else:
            self._driver.reconcile_cohort(bracket.cohort_id)
        return self._get_bracket(bracket_id)

    def _get_bracket(self, bracket_id: str) -> Bracket:
        bracket = self._repo.get_bracket(bracket_id)
        if bracket is None:
            msg = f"Bracket {bracket_id!r} not found"
            raise BracketNotFoundError(msg)
        return bracket

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_player_eliminated(self, bracket_id: str, player_id: str) -> bool:
        """Return ``True`` if the player has lost in the given bracket."""
        return relevance.is_player_eliminated(self._get_bracket(bracket_id), player_id)

    def is_player_live_in_cohort(self, cohort_id: str, player_id: str) -> bool:
        """Return ``True`` if the player is still alive in any cohort bracket."""
        return relevance.is_player_live_in_cohort(player_id, self._repo.get_brackets(cohort_id))

    def is_score_relevant(self, cohort_id: str, player_id: str, game_number: int) -> bool:
        """Return ``True`` if a score for *game_number* can still matter."""
        return relevance.is_score_relevant(player_id, game_number, self._repo.get_brackets(cohort_id))

    def current_match(self, bracket_id: str, player_id: str) -> tuple[int, int, Match] | None:
        """Return the player's earliest undecided match in the bracket."""
        return relevance.current_match(self._get_bracket(bracket_id), player_id)

    # ------------------------------------------------------------------
    # Payouts
    # ------------------------------------------------------------------

    def get_payouts_for_bracket(self, bracket_id: str) -> list[Payout]:
        """Return the payouts created for one bracket."""
        return self._repo.get_payouts_for_bracket(bracket_id)

    def get_payouts_for_cohort(self, cohort_id: str) -> list[Payout]:
        """Return the payouts created for every bracket of a cohort."""
        return self._repo.get_payouts_for_cohort(cohort_id)

    def get_player_payouts(self, player_name: str, date: datetime.date | None = None) -> list[Payout]:
        """Return player payouts whose name contains *player_name* (any case)."""
        needle = player_name.strip().lower()
        return [
            p
            for p in self._repo.get_payouts()
            if not p.is_operator and needle in p.player_name.lower() and (date is None or p.date == date)
        ]

    def get_operator_payouts(self, date: datetime.date | None = None) -> list[Payout]:
        """Return the operator's cut, optionally for one day."""
        return [p for p in self._repo.get_payouts() if p.is_operator and (date is None or p.date == date)]
