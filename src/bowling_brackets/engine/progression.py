"""Progression engine: apply a match result to a bracket structure.

:func:`advance` is pure.  It returns a new :class:`BracketStructure` and
leaves the input untouched; unchanged matches are shared between the two
(they are frozen), only the decided match and the next-round match it feeds
are rebuilt.

Feeding rule: the winner of match ``m`` in round ``r`` moves to match
``m // 2`` of round ``r + 1``, into ``player1`` when ``m`` is even and
``player2`` when odd.  Deciding the final completes the bracket.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from bowling_brackets.errors import ProgressionError
from bowling_brackets.store.schema import BracketStructure, Match, Player

logger = logging.getLogger(__name__)

_SLOTS: tuple[str, str] = ("player1", "player2")


def next_slot(match_index: int) -> tuple[int, str]:
    """Return ``(next_match_index, slot_name)`` fed by *match_index*."""
    return match_index // 2, _SLOTS[match_index % 2]


def ready_matches(structure: BracketStructure) -> Iterator[tuple[int, int, Match]]:
    """Yield undecided matches whose two slots are both populated."""
    for round_index, match_index, match in structure.iter_matches():
        if not match.completed and match.is_populated:
            yield round_index, match_index, match


def integrity_issues(structure: BracketStructure) -> list[str]:
    """Describe inconsistencies in *structure* (empty list when sound).

    Flags self-paired matches, round-1 matches with an empty slot, and later
    matches with an empty slot whose feeder match has already resolved.
    """
    issues: list[str] = []
    for round_index, match_index, match in structure.iter_matches():
        where = f"round {round_index + 1} match {match_index + 1}"
        if match.is_self_paired:
            issues.append(f"{where} pairs player {match.player_ids[0]!r} against themself")
        for slot_index, slot in enumerate(_SLOTS):
            if getattr(match, slot) is not None:
                continue
            if round_index == 0:
                issues.append(f"{where} has no {slot}")
                continue
            feeder = structure.match(round_index - 1, match_index * 2 + slot_index)
            if feeder.completed:
                issues.append(f"{where} has no {slot} although its feeder match is decided")
    return issues


def _slot_occupant(match: Match, player_id: str) -> Player:
    for occupant in (match.player1, match.player2):
        if occupant is not None and occupant.id == player_id:
            return occupant
    msg = f"Player {player_id!r} is not in this match {match.player_ids}"
    raise ProgressionError(msg)


def advance(
    structure: BracketStructure,
    round_index: int,
    match_index: int,
    winner: Player,
) -> BracketStructure:
    """Record *winner* for one match and seed them into the next round.

    Args:
        structure: Current bracket structure (not modified).
        round_index: Zero-indexed round of the decided match.
        match_index: Zero-indexed match within that round.
        winner: The winning player; must occupy one of the match slots.

    Returns:
        The updated structure.  Re-deciding a match with the same winner, or
        advancing inside an already completed bracket, returns *structure*
        unchanged.

    Raises:
        ProgressionError: If the match has an empty slot, *winner* is not in
            it, it was already decided for someone else, or the next-round
            match it feeds has already been decided.
    """
    if structure.completed:
        logger.debug("advance: bracket already completed; ignoring round %d match %d", round_index, match_index)
        return structure

    match = structure.match(round_index, match_index)
    if match.completed:
        decided_id = match.winner.id if match.winner is not None else None
        if decided_id == winner.id:
            return structure
        msg = (
            f"Round {round_index + 1} match {match_index + 1} was already won by "
            f"{decided_id!r}; cannot award it to {winner.id!r}"
        )
        raise ProgressionError(msg)
    if not match.is_populated:
        msg = f"Round {round_index + 1} match {match_index + 1} is missing a player"
        raise ProgressionError(msg)

    occupant = _slot_occupant(match, winner.id)
    rounds = [list(r) for r in structure.rounds]
    rounds[round_index][match_index] = Match(
        player1=match.player1,
        player2=match.player2,
        completed=True,
        winner=occupant,
    )

    if round_index == len(rounds) - 1:
        logger.debug("advance: %s wins the final", occupant.id)
        return BracketStructure(
            rounds=tuple(tuple(r) for r in rounds),
            completed=True,
            winner=occupant,
        )

    next_index, target = next_slot(match_index)
    other = _SLOTS[1 - _SLOTS.index(target)]
    upcoming = rounds[round_index + 1][next_index]
    if upcoming.completed:
        msg = f"Round {round_index + 2} match {next_index + 1} is already decided"
        raise ProgressionError(msg)

    slots: dict[str, Player | None] = {"player1": upcoming.player1, "player2": upcoming.player2}
    rival = slots[other]
    if rival is not None and rival.id == occupant.id:
        # Never pair a player with themself: move the target occupant across.
        logger.warning(
            "advance: self-pairing guard fired for %s in round %d match %d",
            occupant.id,
            round_index + 2,
            next_index + 1,
        )
        slots[other] = slots[target]
    slots[target] = occupant

    rounds[round_index + 1][next_index] = Match(player1=slots["player1"], player2=slots["player2"])
    logger.debug(
        "advance: %s moves to round %d match %d as %s",
        occupant.id,
        round_index + 2,
        next_index + 1,
        target,
    )
    return BracketStructure(rounds=tuple(tuple(r) for r in rounds))
