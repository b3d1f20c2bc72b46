"""Unit tests for the logging configuration module."""

from __future__ import annotations

import logging
import sys

import pytest

from bowling_brackets.utils.logger import (
    DEBUG,
    NORMAL,
    QUIET,
    VERBOSE,
    LEVEL_NAMES,
    configure_logging,
    resolve_level,
)

_ROOT = "bowling_brackets"
_ENV = "BOWLING_BRACKETS_LOG_LEVEL"


@pytest.mark.smoke
class TestConfigureLogging:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [("QUIET", QUIET), ("NORMAL", NORMAL), ("VERBOSE", VERBOSE), ("DEBUG", DEBUG), ("verbose", VERBOSE)],
    )
    def test_level_names(self, name: str, expected: int) -> None:
        configure_logging(name)
        assert logging.getLogger(_ROOT).level == expected

    def test_unknown_level_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown log level"):
            configure_logging("CHATTY")

    def test_single_stderr_handler_after_reconfigure(self) -> None:
        configure_logging("NORMAL")
        configure_logging("DEBUG")
        root = logging.getLogger(_ROOT)
        assert len(root.handlers) == 1
        handler = root.handlers[0]
        assert isinstance(handler, logging.StreamHandler)
        assert handler.stream is sys.stderr
        assert root.propagate is False

    def test_verbose_level_has_a_name(self) -> None:
        assert logging.getLevelName(VERBOSE) == "VERBOSE"


@pytest.mark.smoke
class TestEnvironmentOverride:
    def test_env_var_used_when_no_argument(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(_ENV, "debug")
        configure_logging()
        assert logging.getLogger(_ROOT).level == DEBUG

    def test_argument_beats_env_var(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(_ENV, "DEBUG")
        configure_logging("QUIET")
        assert logging.getLogger(_ROOT).level == QUIET

    def test_default_is_normal(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(_ENV, raising=False)
        configure_logging()
        assert logging.getLogger(_ROOT).level == NORMAL


class TestResolveLevel:
    def test_names_in_order_of_detail(self) -> None:
        assert [resolve_level(n) for n in LEVEL_NAMES] == [QUIET, NORMAL, VERBOSE, DEBUG]

    def test_whitespace_and_case_ignored(self) -> None:
        assert resolve_level(" verbose ") == VERBOSE

    def test_configure_returns_applied_level(self) -> None:
        assert configure_logging("quiet") == QUIET

    def test_unknown_env_value_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(_ENV, "LOUD")
        with pytest.raises(ValueError, match="Valid levels: QUIET, NORMAL, VERBOSE, DEBUG"):
            resolve_level()


class TestOutput:
    def test_verbose_messages_hidden_at_normal(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging("NORMAL")
        log = logging.getLogger("bowling_brackets.engine")
        log.log(VERBOSE, "round 1 match 2 decided")
        log.info("bracket 1 complete")
        err = capsys.readouterr().err
        assert "round 1 match 2 decided" not in err
        assert "bracket 1 complete" in err

    def test_verbose_messages_shown_at_verbose(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging("VERBOSE")
        logging.getLogger("bowling_brackets.engine").log(VERBOSE, "round 1 match 2 decided")
        err = capsys.readouterr().err
        assert " | bowling_brackets.engine | VERBOSE " in err
        assert "round 1 match 2 decided" in err
