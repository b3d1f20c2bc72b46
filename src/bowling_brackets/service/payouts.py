"""Payout trigger: prize records and cohort promotion on bracket completion.

:meth:`PayoutTrigger.on_bracket_completed` is safe to call any number of
times for the same bracket.  Payouts are created only when none exist for
the bracket id yet, and the cohort is promoted to ``complete`` only once all
of its brackets have a champion.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Callable
from typing import Any

from bowling_brackets.config import TournamentConfig
from bowling_brackets.errors import CohortNotFoundError
from bowling_brackets.store.repository import Repository
from bowling_brackets.store.schema import Bracket, Cohort, CohortStatus, Payout, PayoutPosition, Player

logger = logging.getLogger(__name__)

_SUFFIX: dict[PayoutPosition, str] = {
    PayoutPosition.FIRST: "first",
    PayoutPosition.SECOND: "second",
    PayoutPosition.OPERATOR: "operator",
}


def payout_id(bracket_id: str, position: PayoutPosition) -> str:
    """Return the deterministic payout id for a bracket and position."""
    return f"{bracket_id}_{_SUFFIX[position]}"


class PayoutTrigger:
    """Creates payouts for completed brackets and promotes finished cohorts.

    Args:
        repository: Store holding brackets, cohorts and payouts.
        config: Prize amounts; defaults to :class:`TournamentConfig`.
        today: Clock used to date payouts.
    """

    def __init__(
        self,
        repository: Repository,
        config: TournamentConfig | None = None,
        today: Callable[[], datetime.date] = datetime.date.today,
    ) -> None:
        self._repo = repository
        self._config = config or TournamentConfig()
        self._today = today

    def on_bracket_completed(self, bracket: Bracket) -> list[Payout]:
        """Handle a bracket that has (possibly already) reached completion.

        Returns:
            The payouts created by this call; empty when they already existed
            or the bracket is not complete.

        Raises:
            CohortNotFoundError: If the bracket's cohort is missing.
        """
        winner = bracket.structure.winner
        if not bracket.completed or winner is None:
            logger.debug("payouts: bracket %s not complete; nothing to pay", bracket.id)
            return []

        cohort = self._repo.get_cohort(bracket.cohort_id)
        if cohort is None:
            msg = f"Cohort {bracket.cohort_id!r} for bracket {bracket.id!r} not found"
            raise CohortNotFoundError(msg)

        created: list[Payout] = []
        if self._repo.get_payouts_for_bracket(bracket.id):
            logger.debug("payouts: bracket %s already paid", bracket.id)
        else:
            created = self._build_payouts(bracket, cohort, winner)
            self._repo.save_payouts(created)
            logger.info(
                "payouts: bracket %d of %s paid: 1st %s, 2nd %s",
                bracket.bracket_number,
                cohort.name,
                created[0].player_name,
                created[1].player_name or "?",
            )

        self.promote_cohort(cohort.id)
        return created

    def promote_cohort(self, cohort_id: str) -> bool:
        """Mark the cohort complete if every one of its brackets is complete.

        Returns:
            ``True`` if this call changed the cohort status.
        """
        cohort = self._repo.get_cohort(cohort_id)
        if cohort is None:
            msg = f"Cohort {cohort_id!r} not found"
            raise CohortNotFoundError(msg)
        brackets = self._repo.get_brackets(cohort_id)
        if not brackets or not all(b.completed for b in brackets):
            return False
        if not cohort.status.can_advance_to(CohortStatus.COMPLETE):
            return False
        self._repo.save_cohort(cohort.model_copy(update={"status": CohortStatus.COMPLETE}))
        logger.info("payouts: cohort %s complete (%d brackets)", cohort.name, len(brackets))
        return True

    def _build_payouts(self, bracket: Bracket, cohort: Cohort, winner: Player) -> list[Payout]:
        runner_up = bracket.structure.final_match.loser()
        date = self._today()
        common: dict[str, Any] = {
            "cohort_id": cohort.id,
            "cohort_name": cohort.name,
            "bracket_id": bracket.id,
            "date": date,
        }
        return [
            Payout(
                id=payout_id(bracket.id, PayoutPosition.FIRST),
                player_id=winner.id,
                player_name=winner.name,
                amount=self._config.first_place_amount,
                position=PayoutPosition.FIRST,
                **common,
            ),
            Payout(
                id=payout_id(bracket.id, PayoutPosition.SECOND),
                player_id=runner_up.id if runner_up is not None else None,
                player_name=runner_up.name if runner_up is not None else "",
                amount=self._config.second_place_amount,
                position=PayoutPosition.SECOND,
                **common,
            ),
            Payout(
                id=payout_id(bracket.id, PayoutPosition.OPERATOR),
                player_name="Operator",
                amount=self._config.operator_cut,
                position=PayoutPosition.OPERATOR,
                **common,
            ),
        ]
