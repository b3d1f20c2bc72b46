"""Pure bracket engine: assignment, tree building, progression and queries.

Nothing in this package performs I/O; every function takes explicit state
and returns new state.
"""

from __future__ import annotations

from bowling_brackets.engine.assignment import AssignmentResult, achievable_bracket_count, assign_brackets
from bowling_brackets.engine.progression import advance, integrity_issues, next_slot, ready_matches
from bowling_brackets.engine.relevance import (
    current_match,
    current_round,
    is_player_eliminated,
    is_player_live_in_cohort,
    is_score_relevant,
)
from bowling_brackets.engine.scoring import ScoreLine, compare_scores, decide_winner, total_score
from bowling_brackets.engine.shuffle import shuffle
from bowling_brackets.engine.tree import build_tree, game_number_for_round, round_name

__all__ = [
    "AssignmentResult",
    "ScoreLine",
    "achievable_bracket_count",
    "advance",
    "assign_brackets",
    "build_tree",
    "compare_scores",
    "current_match",
    "current_round",
    "decide_winner",
    "game_number_for_round",
    "integrity_issues",
    "is_player_eliminated",
    "is_player_live_in_cohort",
    "is_score_relevant",
    "next_slot",
    "ready_matches",
    "round_name",
    "shuffle",
    "total_score",
]
