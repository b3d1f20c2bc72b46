"""Read-only elimination and relevance queries over brackets.

These predicates tell a score-entry front end which games are still worth
entering for a player.  They are advisory: reconciliation re-derives
eligibility from match state itself and never consults them.
"""

from __future__ import annotations

from collections.abc import Sequence

from bowling_brackets.store.schema import Bracket, Match


def _lost(match: Match, player_id: str) -> bool:
    return match.completed and match.involves(player_id) and match.winner is not None and match.winner.id != player_id


def _eliminated_before(bracket: Bracket, player_id: str, round_index: int) -> bool:
    """Return ``True`` if the player lost a match in a round below *round_index*."""
    return any(
        _lost(match, player_id)
        for r, _, match in bracket.structure.iter_matches()
        if r < round_index
    )


def is_player_eliminated(bracket: Bracket, player_id: str) -> bool:
    """Return ``True`` if the player has lost any decided match in *bracket*."""
    return _eliminated_before(bracket, player_id, len(bracket.structure.rounds))


def is_player_live_in_cohort(player_id: str, brackets: Sequence[Bracket]) -> bool:
    """Return ``True`` if the player is still alive somewhere in the cohort.

    A player assigned to no bracket is vacuously live.
    """
    mine = [b for b in brackets if b.has_player(player_id)]
    if not mine:
        return True
    return any(not is_player_eliminated(b, player_id) for b in mine)


def is_score_relevant(player_id: str, game_number: int, brackets: Sequence[Bracket]) -> bool:
    """Return ``True`` if entering game *game_number* can still matter.

    Game 1 is always relevant.  Game ``N > 1`` is relevant when at least one
    of the player's brackets has them unbeaten through rounds ``1..N-1``.
    A player assigned to no bracket is treated like a live one.
    """
    if game_number <= 1:
        return True
    mine = [b for b in brackets if b.has_player(player_id)]
    if not mine:
        return True
    return any(not _eliminated_before(b, player_id, game_number - 1) for b in mine)


def current_match(bracket: Bracket, player_id: str) -> tuple[int, int, Match] | None:
    """Return the player's earliest undecided match as ``(round, index, match)``."""
    for round_index, match_index, match in bracket.structure.iter_matches():
        if not match.completed and match.involves(player_id):
            return round_index, match_index, match
    return None


def current_round(bracket: Bracket, player_id: str) -> int:
    """Return the 1-based round the player is waiting to bowl, or 0 if none."""
    found = current_match(bracket, player_id)
    return found[0] + 1 if found is not None else 0
