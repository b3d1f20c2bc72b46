"""Shared utilities module."""

from __future__ import annotations

from bowling_brackets.utils.logger import (
    DEBUG,
    LEVEL_NAMES,
    NORMAL,
    QUIET,
    VERBOSE,
    configure_logging,
    resolve_level,
)

__all__ = [
    "DEBUG",
    "LEVEL_NAMES",
    "NORMAL",
    "QUIET",
    "VERBOSE",
    "configure_logging",
    "resolve_level",
]
