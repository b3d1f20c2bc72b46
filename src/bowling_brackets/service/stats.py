"""Per-player ledger: entries bought, prizes won and profit by day.

Costs are dated by the cohort's creation day and revenue by the payout
date, so a day can carry revenue without entries (and vice versa).
"""

from __future__ import annotations

from dataclasses import dataclass

import pandas as pd  # type: ignore[import-untyped]

from bowling_brackets.engine.relevance import current_round
from bowling_brackets.store.repository import Repository

LEDGER_COLUMNS: list[str] = ["date", "entries", "cost", "revenue", "pnl"]


@dataclass(frozen=True)
class LedgerSummary:
    """Lifetime totals for one player."""

    total_entries: int
    total_cost: float
    total_revenue: float
    cashes: int

    @property
    def net_pnl(self) -> float:
        return self.total_revenue - self.total_cost

    @property
    def roi_pct(self) -> float:
        """Net profit as a percentage of cost (0 when nothing was spent)."""
        if self.total_cost <= 0:
            return 0.0
        return round(self.net_pnl / self.total_cost * 100, 1)

    @property
    def cash_rate_pct(self) -> float:
        """Share of entries that earned a payout, as a percentage."""
        if self.total_entries == 0:
            return 0.0
        return round(self.cashes / self.total_entries * 100, 1)


@dataclass(frozen=True)
class ActiveBracket:
    bracket_id: str
    bracket_number: int
    cohort_name: str
    cohort_type: str
    current_round: int
    potential: float


def player_ledger(
    repository: Repository,
    player_id: str,
    entry_fee: float = 5.0,
) -> tuple[pd.DataFrame, LedgerSummary]:
    """Build the daily ledger and lifetime summary for a player.

    Args:
        repository: Store holding cohorts, brackets and payouts.
        player_id: Player to report on.
        entry_fee: Cost of one bracket entry.

    Returns:
        A DataFrame with one row per day (columns ``date, entries, cost,
        revenue, pnl``, oldest first) and the matching :class:`LedgerSummary`.
    """
    cohorts = {c.id: c for c in repository.get_cohorts()}
    rows: list[dict[str, object]] = []

    for bracket in repository.get_brackets():
        cohort = cohorts.get(bracket.cohort_id)
        if cohort is None or not bracket.has_player(player_id):
            continue
        rows.append({"date": cohort.created_at.date(), "entries": 1, "cost": entry_fee, "revenue": 0.0})

    cashes = 0
    for payout in repository.get_payouts():
        if payout.is_operator or payout.player_id != player_id:
            continue
        rows.append({"date": payout.date, "entries": 0, "cost": 0.0, "revenue": payout.amount})
        cashes += 1

    if not rows:
        return pd.DataFrame(columns=LEDGER_COLUMNS), LedgerSummary(0, 0.0, 0.0, 0)

    daily = (
        pd.DataFrame(rows)
        .groupby("date", as_index=False)
        .agg(entries=("entries", "sum"), cost=("cost", "sum"), revenue=("revenue", "sum"))
        .sort_values("date")
        .reset_index(drop=True)
    )
    daily["pnl"] = daily["revenue"] - daily["cost"]

    summary = LedgerSummary(
        total_entries=int(daily["entries"].sum()),
        total_cost=float(daily["cost"].sum()),
        total_revenue=float(daily["revenue"].sum()),
        cashes=cashes,
    )
    return daily[LEDGER_COLUMNS], summary


def active_brackets(repository: Repository, player_id: str, potential: float = 25.0) -> list[ActiveBracket]:
    """List the player's uncompleted brackets with the round they are in."""
    cohorts = {c.id: c for c in repository.get_cohorts()}
    found: list[ActiveBracket] = []
    for bracket in repository.get_brackets():
        if bracket.completed or not bracket.has_player(player_id):
            continue
        cohort = cohorts.get(bracket.cohort_id)
        found.append(
            ActiveBracket(
                bracket_id=bracket.id,
                bracket_number=bracket.bracket_number,
                cohort_name=cohort.name if cohort is not None else "",
                cohort_type=cohort.type.value if cohort is not None else "",
                current_round=current_round(bracket, player_id),
                potential=potential,
            )
        )
    return found

