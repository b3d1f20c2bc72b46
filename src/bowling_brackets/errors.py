"""Exception hierarchy shared by the engine, store and service layers.

Three families of failure exist:

* :class:`InputError`: caller-facing validation problems that are rejected
  before they reach tournament state (too few entries, bad scores, duplicate
  names).
* :class:`NotFoundError`: a referenced player / cohort / bracket does not
  exist in the store.
* :class:`InvariantViolation`: conditions that should never happen with
  well-formed data.  The reconciliation driver catches these per bracket,
  logs them and keeps processing the rest of the cohort.

Idempotent replays (payouts already created, bracket already complete) are
not errors and never raise.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------


class BracketError(Exception):
    """Base exception for all bowling bracket errors."""


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


class InputError(BracketError, ValueError):
    """Caller-supplied input is invalid."""


class InsufficientEntriesError(InputError):
    """Not enough entries to form even one full bracket.

    Attributes:
        entries: Number of entries that were offered.
        needed: Additional entries required before a bracket can be formed.
    """

    def __init__(self, entries: int, needed: int) -> None:
        self.entries = entries
        self.needed = needed
        super().__init__(f"Need {needed} more entries to form a bracket (have {entries})")


class ScoreOutOfRangeError(InputError):
    """A raw game score falls outside the accepted range."""


class InvalidGameNumberError(InputError):
    """A game number does not map onto a bracket round."""


class DuplicateNameError(InputError):
    """A player or cohort with the same (case-insensitive) name exists."""


# ---------------------------------------------------------------------------
# Lookup failures
# ---------------------------------------------------------------------------


class NotFoundError(BracketError, KeyError):
    """A referenced entity is not in the store."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message instead.
        return str(self.args[0]) if self.args else ""


class PlayerNotFoundError(NotFoundError):
    """Raised when a player id is unknown."""


class CohortNotFoundError(NotFoundError):
    """Raised when a cohort id is unknown."""


class BracketNotFoundError(NotFoundError):
    """Raised when a bracket id is unknown."""


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class CohortStateError(BracketError):
    """The requested operation is not allowed in the cohort's current status."""


# ---------------------------------------------------------------------------
# Invariant violations
# ---------------------------------------------------------------------------


class InvariantViolation(BracketError):
    """Bracket data is inconsistent with the tournament rules."""


class ProgressionError(InvariantViolation):
    """A match result cannot be applied to the bracket structure."""


class BracketIntegrityError(InvariantViolation):
    """A bracket holds a half-populated match whose feeder already resolved."""


class ReconciliationStalledError(InvariantViolation):
    """Reconciliation hit its pass limit with matches still resolvable."""

    def __init__(self, bracket_id: str, passes: int) -> None:
        self.bracket_id = bracket_id
        self.passes = passes
        super().__init__(f"Could not fully resolve bracket {bracket_id!r} after {passes} passes")
