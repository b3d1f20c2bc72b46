"""Score totals and head-to-head comparison.

Every path that decides a match (automatic reconciliation and manual
entry) goes through :func:`compare_scores`, so handicap handling and the
tie-break cannot drift apart between them.

Tie-break: equal totals go to the ``player1`` slot occupant.  This is a
fixed house rule, not a placeholder.
"""

from __future__ import annotations

from dataclasses import dataclass

from bowling_brackets.store.schema import CohortType, Match, Player


@dataclass(frozen=True)
class ScoreLine:
    """A raw game score and the bowler's handicap."""

    score: int
    handicap: int = 0


def total_score(score: int, handicap: int, cohort_type: CohortType) -> int:
    """Return the score that counts: raw plus handicap for Handicap cohorts.

    Example:
        >>> total_score(150, 20, CohortType.HANDICAP)
        170
        >>> total_score(150, 20, CohortType.SCRATCH)
        150
    """
    if cohort_type is CohortType.HANDICAP:
        return score + handicap
    return score


def compare_scores(first: ScoreLine, second: ScoreLine, cohort_type: CohortType) -> int:
    """Order two score lines.

    Returns:
        ``1`` if *first* has the higher total, ``-1`` if *second* does, and
        ``0`` on an exact tie.
    """
    a = total_score(first.score, first.handicap, cohort_type)
    b = total_score(second.score, second.handicap, cohort_type)
    return (a > b) - (a < b)


def decide_winner(match: Match, score1: int, score2: int, cohort_type: CohortType) -> Player:
    """Return the winner of *match* given each slot's raw score.

    Ties resolve to ``player1``.

    Raises:
        ValueError: If either slot of *match* is empty.
    """
    if match.player1 is None or match.player2 is None:
        msg = "Cannot decide a match with an empty slot"
        raise ValueError(msg)
    order = compare_scores(
        ScoreLine(score1, match.player1.handicap),
        ScoreLine(score2, match.player2.handicap),
        cohort_type,
    )
    return match.player2 if order < 0 else match.player1
