"""Logging setup for the ``bowling_brackets`` logger hierarchy.

Every module logs through ``logging.getLogger(__name__)``; this module only
decides how much of that reaches the operator.  Four verbosity names are
accepted, from the command line (``--log-level``) or the
``BOWLING_BRACKETS_LOG_LEVEL`` environment variable:

    ========  ==============  ==================================================
    Name      Python level    What a bracket night shows
    ========  ==============  ==================================================
    QUIET     WARNING (30)    halted brackets, self-pairing guard, stalls only
    NORMAL    INFO (20)       deployments, bracket winners, cohort completion
    VERBOSE   VERBOSE (15)    every match decided during reconciliation
    DEBUG     DEBUG (10)      each score written
    ========  ==============  ==================================================
"""

from __future__ import annotations

import logging
import os
import sys

VERBOSE: int = 15
"""Per-match progression output, between INFO and DEBUG."""

logging.addLevelName(VERBOSE, "VERBOSE")

QUIET: int = logging.WARNING
NORMAL: int = logging.INFO
DEBUG: int = logging.DEBUG

LEVEL_NAMES: tuple[str, ...] = ("QUIET", "NORMAL", "VERBOSE", "DEBUG")

_LEVELS: dict[str, int] = dict(zip(LEVEL_NAMES, (QUIET, NORMAL, VERBOSE, DEBUG), strict=True))

_ROOT_LOGGER_NAME: str = "bowling_brackets"
_ENV_VAR: str = "BOWLING_BRACKETS_LOG_LEVEL"
_LOG_FORMAT: str = "%(asctime)s | %(name)s | %(levelname)-8s | %(message)s"


def resolve_level(level: str | None = None) -> int:
    """Map a verbosity name to a numeric level.

    ``None`` falls back to ``BOWLING_BRACKETS_LOG_LEVEL``, then ``NORMAL``.
    Names are case-insensitive.

    Raises:
        ValueError: If the name is not one of :data:`LEVEL_NAMES`.
    """
    name = level if level is not None else os.environ.get(_ENV_VAR, "NORMAL")
    try:
        return _LEVELS[name.strip().upper()]
    except KeyError:
        msg = f"Unknown log level {name!r}. Valid levels: {', '.join(LEVEL_NAMES)}"
        raise ValueError(msg) from None


def configure_logging(level: str | None = None) -> int:
    """Send ``bowling_brackets`` records at *level* and above to stderr.

    Calling it again replaces the previous handler.

    Returns:
        The numeric level that was applied.

    Raises:
        ValueError: If the level name is unknown.
    """
    numeric_level = resolve_level(level)

    root = logging.getLogger(_ROOT_LOGGER_NAME)
    root.setLevel(numeric_level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    root.addHandler(handler)
    root.propagate = False
    return numeric_level
