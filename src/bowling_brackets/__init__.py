"""Eight-player single-elimination brackets for bowling leagues."""

from __future__ import annotations

__version__ = "0.1.0"
