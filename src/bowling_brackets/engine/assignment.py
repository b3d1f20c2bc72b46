"""Bracket assignment: partition player entries into groups of eight.

A player may hold several entries (tickets), each competing for a slot in a
different bracket.  Assignment is best effort:

1. The achievable bracket count ``B`` is found by fixed-point iteration.  A
   player can occupy at most one slot per bracket, so only
   ``min(entries, B)`` of their tickets are usable; ``B`` is recomputed from
   the usable total until it stops shrinking.
2. Every player's first ticket (primary) is queued before any extra ticket
   (secondary), each tier shuffled, so breadth of unique players wins over
   depth for any single player.
3. Each ticket goes to a uniformly random group that still has room and does
   not already hold that player.  Tickets with no candidate are dropped.
4. Only groups that reached exactly eight players are returned; their member
   order is shuffled again for seeding.

Random candidate selection can strand tickets that an optimal matching would
place.  That is accepted: the result reports requested vs placed entries so
callers can surface the discrepancy.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from dataclasses import dataclass, field

from bowling_brackets.engine.shuffle import shuffle
from bowling_brackets.store.schema import BRACKET_SIZE, Player, PlayerEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssignmentResult:
    """Outcome of a bracket assignment.

    Attributes:
        groups: Full groups of ``BRACKET_SIZE`` distinct players.
        bracket_count: Achievable bracket count computed before placement.
        entries_requested: ``player_id -> tickets offered``.
        entries_placed: ``player_id -> tickets that landed in a returned group``.
    """

    groups: tuple[tuple[Player, ...], ...]
    bracket_count: int
    entries_requested: dict[str, int] = field(default_factory=dict)
    entries_placed: dict[str, int] = field(default_factory=dict)

    @property
    def total_requested(self) -> int:
        """Total tickets offered."""
        return sum(self.entries_requested.values())

    @property
    def total_placed(self) -> int:
        """Total tickets placed into returned groups."""
        return sum(self.entries_placed.values())

    @property
    def total_dropped(self) -> int:
        """Tickets that could not be placed."""
        return self.total_requested - self.total_placed

    def dropped_by_player(self) -> dict[str, int]:
        """Return ``player_id -> dropped tickets`` for players with drops."""
        dropped = {
            pid: requested - self.entries_placed.get(pid, 0)
            for pid, requested in self.entries_requested.items()
        }
        return {pid: n for pid, n in dropped.items() if n > 0}


def achievable_bracket_count(entry_counts: Sequence[int]) -> int:
    """Return how many full brackets the given ticket counts can fill.

    Args:
        entry_counts: Tickets held by each distinct player.

    Returns:
        The fixed point of ``B = floor(sum(min(k, B)) / BRACKET_SIZE)``
        starting from ``floor(total / BRACKET_SIZE)``.
    """
    count = sum(entry_counts) // BRACKET_SIZE
    while count > 0:
        usable = sum(min(k, count) for k in entry_counts)
        next_count = usable // BRACKET_SIZE
        if next_count == count:
            break
        count = next_count
    return count


def _merge_entries(entries: Sequence[PlayerEntry]) -> tuple[dict[str, Player], dict[str, int]]:
    """Collapse repeated entries for the same player id."""
    players: dict[str, Player] = {}
    counts: dict[str, int] = {}
    for entry in entries:
        players.setdefault(entry.player.id, entry.player)
        counts[entry.player.id] = counts.get(entry.player.id, 0) + entry.entries
    return players, counts


def assign_brackets(
    entries: Sequence[PlayerEntry],
    rng: random.Random | None = None,
) -> AssignmentResult:
    """Partition *entries* into disjoint groups of eight distinct players.

    Args:
        entries: Players with their ticket multiplicity.  Several entries for
            the same player id are summed.
        rng: Random source; an unseeded generator is used when omitted.

    Returns:
        AssignmentResult with only full groups.  An empty result (no groups)
        means not even one bracket can be formed.
    """
    rand = rng or random.Random()
    players, requested = _merge_entries(entries)
    count = achievable_bracket_count(list(requested.values()))
    if count == 0:
        logger.info("assignment: %d entries cannot fill a bracket", sum(requested.values()))
        return AssignmentResult(groups=(), bracket_count=0, entries_requested=requested)

    primaries = shuffle([players[pid] for pid in requested], rand)
    secondaries = shuffle(
        [players[pid] for pid, k in requested.items() for _ in range(k - 1)],
        rand,
    )

    groups: list[list[Player]] = [[] for _ in range(count)]
    members: list[set[str]] = [set() for _ in range(count)]
    for player in primaries + secondaries:
        candidates = [
            i for i in range(count) if len(groups[i]) < BRACKET_SIZE and player.id not in members[i]
        ]
        if not candidates:
            continue
        target = rand.choice(candidates)
        groups[target].append(player)
        members[target].add(player.id)

    full = [g for g in groups if len(g) == BRACKET_SIZE]
    if len(full) < count:
        logger.warning("assignment: only %d of %d groups filled", len(full), count)

    placed: dict[str, int] = {}
    for group in full:
        for player in group:
            placed[player.id] = placed.get(player.id, 0) + 1

    result = AssignmentResult(
        groups=tuple(tuple(shuffle(g, rand)) for g in full),
        bracket_count=count,
        entries_requested=requested,
        entries_placed=placed,
    )
    logger.info(
        "assignment: %d brackets from %d entries (%d dropped)",
        len(result.groups),
        result.total_requested,
        result.total_dropped,
    )
    return result
