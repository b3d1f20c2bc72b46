"""Score reconciliation driver.

After every score write (and on an explicit resync) the driver walks each
bracket of the cohort and advances any match whose two players both have a
score for that round, repeating until a full pass changes nothing.

Per bracket, each pass is strictly serialized: read the latest bracket from
the store, pick one resolvable match, advance, persist, re-read.  Only
one match is advanced per pass because deciding it can make a next-round
match resolvable, and scores may have arrived in any order.

Eligibility is always derived from ``completed``/``winner`` state in the
stored structure, never from cached "live" flags.  Every pass is safe to
repeat, so an interrupted cascade is finished by simply running the driver
again (``resync_cohort``).

Failures are contained per bracket: an :class:`InvariantViolation`
(integrity problem, bad progression, pass limit hit) is logged and recorded
on the result, and the remaining brackets are still processed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from bowling_brackets.config import TournamentConfig
from bowling_brackets.engine.progression import advance, integrity_issues, ready_matches
from bowling_brackets.engine.scoring import decide_winner
from bowling_brackets.engine.tree import game_number_for_round
from bowling_brackets.errors import (
    BracketIntegrityError,
    CohortNotFoundError,
    InvariantViolation,
    ReconciliationStalledError,
)
from bowling_brackets.service.payouts import PayoutTrigger
from bowling_brackets.store.repository import Repository
from bowling_brackets.store.schema import Bracket, Cohort, Game, Player
from bowling_brackets.utils.logger import VERBOSE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BracketCompleted:
    """Event emitted when a bracket's final is decided."""

    cohort_id: str
    bracket_id: str
    bracket_number: int
    winner_id: str
    winner_name: str


BracketListener = Callable[[BracketCompleted], None]


@dataclass
class ReconcileResult:
    """Summary of one reconciliation run over a cohort."""

    cohort_id: str
    advancements: int = 0
    updated_bracket_ids: list[str] = field(default_factory=list)
    completed: list[BracketCompleted] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def brackets_updated(self) -> int:
        """Number of brackets that advanced at least one match."""
        return len(self.updated_bracket_ids)

    @property
    def ok(self) -> bool:
        """``True`` when no bracket was halted by an invariant violation."""
        return not self.failures

    def record_advancement(self, bracket_id: str) -> None:
        """Count one persisted match advancement in *bracket_id*."""
        self.advancements += 1
        if bracket_id not in self.updated_bracket_ids:
            self.updated_bracket_ids.append(bracket_id)


class ReconciliationDriver:
    """Drives bracket progression from recorded scores.

    Args:
        repository: Store with cohorts, brackets and games.
        config: Supplies the pass limit; defaults to :class:`TournamentConfig`.
        payout_trigger: Invoked on every bracket completion.  One is built
            from *repository* and *config* when omitted.
    """

    def __init__(
        self,
        repository: Repository,
        config: TournamentConfig | None = None,
        payout_trigger: PayoutTrigger | None = None,
    ) -> None:
        self._repo = repository
        self._config = config or TournamentConfig()
        self._payouts = payout_trigger or PayoutTrigger(repository, self._config)
        self._listeners: list[BracketListener] = []

    def subscribe(self, listener: BracketListener) -> None:
        """Register *listener* for :class:`BracketCompleted` events."""
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------

    def reconcile_cohort(
        self,
        cohort_id: str,
        override: Game | None = None,
        *,
        repair_payouts: bool = False,
    ) -> ReconcileResult:
        """Advance every resolvable match in the cohort until quiescent.

        Args:
            cohort_id: Cohort to scan.
            override: The score just written; it wins over the stored record
                for the same (cohort, player, game) triple.
            repair_payouts: Also re-run the (idempotent) payout trigger for
                brackets that were already complete.

        Returns:
            ReconcileResult describing advancements, completions and failures.

        Raises:
            CohortNotFoundError: If *cohort_id* is unknown.
        """
        cohort = self._repo.get_cohort(cohort_id)
        if cohort is None:
            msg = f"Cohort {cohort_id!r} not found"
            raise CohortNotFoundError(msg)

        result = ReconcileResult(cohort_id=cohort_id)
        for bracket_id in [b.id for b in self._repo.get_brackets(cohort_id)]:
            try:
                self._reconcile_bracket(cohort, bracket_id, override, result, repair_payouts)
            except InvariantViolation as exc:
                logger.error("reconcile: bracket %s halted: %s", bracket_id, exc)
                result.failures[bracket_id] = str(exc)

        logger.log(
            VERBOSE,
            "reconcile: cohort %s, %d advancements across %d brackets, %d completed, %d failed",
            cohort.name,
            result.advancements,
            result.brackets_updated,
            len(result.completed),
            len(result.failures),
        )
        return result

    def resync_cohort(self, cohort_id: str) -> ReconcileResult:
        """Re-derive all bracket state of a cohort from its stored games."""
        logger.info("reconcile: full resync of cohort %s", cohort_id)
        return self.reconcile_cohort(cohort_id, repair_payouts=True)

    def complete_bracket(self, bracket: Bracket, result: ReconcileResult | None = None) -> BracketCompleted:
        """Run the payout trigger for *bracket*, then notify listeners.

        A listener that raises is logged and skipped; the remaining listeners
        and the rest of the cohort scan still run.
        """
        winner = bracket.structure.winner
        if winner is None:
            msg = f"Bracket {bracket.id!r} has no winner"
            raise BracketIntegrityError(msg)
        event = BracketCompleted(
            cohort_id=bracket.cohort_id,
            bracket_id=bracket.id,
            bracket_number=bracket.bracket_number,
            winner_id=winner.id,
            winner_name=winner.name,
        )
        logger.info("reconcile: %s wins bracket %d", winner.name, bracket.bracket_number)
        if result is not None:
            result.completed.append(event)
        self._payouts.on_bracket_completed(bracket)
        for listener in self._listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("reconcile: listener %r failed for bracket %s", listener, bracket.id)
        return event

    # ------------------------------------------------------------------
    # Per-bracket loop
    # ------------------------------------------------------------------

    def _reconcile_bracket(
        self,
        cohort: Cohort,
        bracket_id: str,
        override: Game | None,
        result: ReconcileResult,
        repair_payouts: bool,
    ) -> None:
        max_passes = self._config.max_reconcile_passes
        for pass_number in range(max_passes):
            bracket = self._repo.get_bracket(bracket_id)
            if bracket is None:
                logger.warning("reconcile: bracket %s disappeared mid-scan", bracket_id)
                return
            if bracket.completed:
                if pass_number == 0 and repair_payouts:
                    self._payouts.on_bracket_completed(bracket)
                return

            issues = integrity_issues(bracket.structure)
            if issues:
                msg = f"Bracket {bracket_id!r}: {'; '.join(issues)}"
                raise BracketIntegrityError(msg)

            decision = self._next_decision(cohort, bracket, override)
            if decision is None:
                return

            round_index, match_index, winner = decision
            structure = advance(bracket.structure, round_index, match_index, winner)
            updated = bracket.model_copy(update={"structure": structure})
            self._repo.save_bracket(updated)
            result.record_advancement(bracket_id)
            logger.log(
                VERBOSE,
                "reconcile: bracket %d round %d match %d won by %s",
                bracket.bracket_number,
                round_index + 1,
                match_index + 1,
                winner.name,
            )
            if updated.completed:
                self.complete_bracket(updated, result)

        latest = self._repo.get_bracket(bracket_id)
        if latest is not None and not latest.completed and self._next_decision(cohort, latest, override):
            raise ReconciliationStalledError(bracket_id, max_passes)

    def _next_decision(
        self,
        cohort: Cohort,
        bracket: Bracket,
        override: Game | None,
    ) -> tuple[int, int, Player] | None:
        """Return the first match that both players have scored, with its winner."""
        for round_index, match_index, match in ready_matches(bracket.structure):
            game_number = game_number_for_round(round_index)
            if match.player1 is None or match.player2 is None:
                continue
            score1 = self._score(cohort.id, match.player1.id, game_number, override)
            score2 = self._score(cohort.id, match.player2.id, game_number, override)
            if score1 is None or score2 is None:
                continue
            return round_index, match_index, decide_winner(match, score1, score2, cohort.type)
        return None

    def _score(self, cohort_id: str, player_id: str, game_number: int, override: Game | None) -> int | None:
        if override is not None and override.key == (cohort_id, player_id, game_number):
            return override.score
        game = self._repo.get_game(cohort_id, player_id, game_number)
        return game.score if game is not None else None
