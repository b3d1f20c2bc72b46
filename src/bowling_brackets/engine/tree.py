"""Elimination tree construction for a single 8-player bracket."""

from __future__ import annotations

import random
from collections.abc import Sequence

from bowling_brackets.engine.shuffle import shuffle
from bowling_brackets.store.schema import BRACKET_SIZE, ROUND_SIZES, BracketStructure, Match, Player

_ROUND_NAMES: tuple[str, ...] = ("Quarterfinal", "Semifinal", "Final")


def round_name(round_index: int) -> str:
    """Return the display name of a zero-indexed round."""
    return _ROUND_NAMES[round_index]


def game_number_for_round(round_index: int) -> int:
    """Return the game number bowled for a zero-indexed round."""
    return round_index + 1


def build_tree(players: Sequence[Player], rng: random.Random | None = None) -> BracketStructure:
    """Construct the 3-round elimination tree for eight players.

    Players are shuffled and paired consecutively (0–1, 2–3, 4–5, 6–7) into
    the four round-1 matches.  Rounds 2 and 3 are allocated with empty
    ("TBD") slots that progression fills in.

    Args:
        players: Exactly eight distinct players.
        rng: Optional random source for the pairing shuffle.

    Returns:
        A fresh, uncompleted :class:`BracketStructure`.

    Raises:
        ValueError: If *players* is not eight distinct players.
    """
    if len(players) != BRACKET_SIZE:
        msg = f"Expected {BRACKET_SIZE} players, got {len(players)}"
        raise ValueError(msg)
    if len({p.id for p in players}) != BRACKET_SIZE:
        msg = "Players in a bracket must be distinct"
        raise ValueError(msg)

    order = shuffle(players, rng)
    first_round = tuple(Match(player1=order[i], player2=order[i + 1]) for i in range(0, BRACKET_SIZE, 2))
    later_rounds = tuple(tuple(Match() for _ in range(size)) for size in ROUND_SIZES[1:])
    return BracketStructure(rounds=(first_round, *later_rounds))
