"""Unit tests for bowling_brackets.config."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from bowling_brackets.config import TournamentConfig, load_config


class TestTournamentConfig:
    @pytest.mark.smoke
    def test_house_defaults(self) -> None:
        config = TournamentConfig()
        assert config.first_place_amount == 25.0
        assert config.second_place_amount == 10.0
        assert config.operator_cut == 5.0
        assert config.entry_fee == 5.0
        assert (config.min_score, config.max_score) == (0, 300)
        assert config.max_reconcile_passes == 10

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(ValidationError):
            TournamentConfig(jackpot=100)  # type: ignore[call-arg]

    def test_pass_limit_must_cover_a_full_bracket(self) -> None:
        with pytest.raises(ValidationError):
            TournamentConfig(max_reconcile_passes=7)

    def test_inverted_score_range_rejected(self) -> None:
        with pytest.raises(ValidationError, match="min_score"):
            TournamentConfig(min_score=250, max_score=200)


class TestLoadConfig:
    def test_none_gives_defaults(self) -> None:
        assert load_config(None) == TournamentConfig()

    def test_partial_override(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"first_place_amount": 30, "operator_cut": 0}))
        config = load_config(path)
        assert config.first_place_amount == 30
        assert config.operator_cut == 0
        assert config.second_place_amount == 10.0

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            load_config(tmp_path / "nope.json")
