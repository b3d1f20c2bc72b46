"""Side-effecting orchestration on top of the pure engine."""

from __future__ import annotations

from bowling_brackets.service.payouts import PayoutTrigger, payout_id
from bowling_brackets.service.reconcile import (
    BracketCompleted,
    BracketListener,
    ReconcileResult,
    ReconciliationDriver,
)
from bowling_brackets.service.stats import ActiveBracket, LedgerSummary, active_brackets, player_ledger
from bowling_brackets.service.tournament import DeploymentResult, TournamentService

__all__ = [
    "ActiveBracket",
    "BracketCompleted",
    "BracketListener",
    "DeploymentResult",
    "LedgerSummary",
    "PayoutTrigger",
    "ReconcileResult",
    "ReconciliationDriver",
    "TournamentService",
    "active_brackets",
    "payout_id",
    "player_ledger",
]
