"""Tournament configuration.

``TournamentConfig`` is a Pydantic model holding the fixed prize amounts,
entry fee, accepted score range and the reconciliation pass limit.  Defaults
match house rules; a JSON file may override any subset of fields.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TournamentConfig(BaseModel):
    """Configured constants for brackets, scoring and payouts."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    first_place_amount: float = Field(default=25.0, ge=0)
    second_place_amount: float = Field(default=10.0, ge=0)
    operator_cut: float = Field(default=5.0, ge=0)
    entry_fee: float = Field(default=5.0, ge=0)
    min_score: int = Field(default=0, ge=0)
    max_score: int = Field(default=300, le=300)
    # A fully scored bracket needs 7 advancements plus one quiet pass.
    max_reconcile_passes: int = Field(default=10, ge=8, le=100)

    @model_validator(mode="after")
    def _check_score_range(self) -> TournamentConfig:
        if self.min_score > self.max_score:
            msg = f"min_score ({self.min_score}) must be <= max_score ({self.max_score})"
            raise ValueError(msg)
        return self


def load_config(path: Path | None = None) -> TournamentConfig:
    """Return the default config, overridden by the JSON file at *path*.

    Raises:
        FileNotFoundError: If *path* is given but does not exist.
        pydantic.ValidationError: If the overrides are invalid.
    """
    if path is None:
        return TournamentConfig()
    if not path.exists():
        msg = f"Config file not found: {path}"
        raise FileNotFoundError(msg)
    override = json.loads(path.read_text())
    return TournamentConfig(**override)
