"""Repository pattern for bowling bracket storage.

Defines an abstract ``Repository`` interface plus two implementations:

* ``InMemoryRepository``: dict-backed, for tests and embedding callers.
* ``JsonRepository``: one JSON document per collection on disk.

The engine never touches storage directly; services receive a repository
by injection and re-read from it before every mutation, so any backend that
honours this interface (a key-value store, SQLite, ...) can be swapped in
without changing tournament logic.
"""

from __future__ import annotations

import abc
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, TypeAdapter

from bowling_brackets.store.schema import Bracket, Cohort, Game, Payout, Player

_M = TypeVar("_M", bound=BaseModel)

# ---------------------------------------------------------------------------
# Abstract Repository
# ---------------------------------------------------------------------------


class Repository(abc.ABC):
    """Abstract base class for bracket data persistence."""

    # -- players -------------------------------------------------------------

    @abc.abstractmethod
    def get_players(self) -> list[Player]:
        """Return all registered players in insertion order."""

    @abc.abstractmethod
    def save_player(self, player: Player) -> None:
        """Insert or replace a player keyed by id."""

    @abc.abstractmethod
    def delete_player(self, player_id: str) -> None:
        """Remove a player (no-op if absent)."""

    # -- cohorts -------------------------------------------------------------

    @abc.abstractmethod
    def get_cohorts(self) -> list[Cohort]:
        """Return all cohorts in insertion order."""

    @abc.abstractmethod
    def save_cohort(self, cohort: Cohort) -> None:
        """Insert or replace a cohort keyed by id."""

    @abc.abstractmethod
    def delete_cohort(self, cohort_id: str) -> None:
        """Remove a cohort record only (no cascade)."""

    # -- brackets ------------------------------------------------------------

    @abc.abstractmethod
    def get_brackets(self, cohort_id: str | None = None) -> list[Bracket]:
        """Return brackets, optionally restricted to one cohort, by number."""

    @abc.abstractmethod
    def save_brackets(self, brackets: list[Bracket]) -> None:
        """Insert or replace each bracket keyed by id."""

    @abc.abstractmethod
    def delete_brackets(self, cohort_id: str) -> None:
        """Remove every bracket belonging to *cohort_id*."""

    # -- games ---------------------------------------------------------------

    @abc.abstractmethod
    def get_games(self, cohort_id: str | None = None) -> list[Game]:
        """Return score records, optionally restricted to one cohort."""

    @abc.abstractmethod
    def save_game(self, game: Game) -> None:
        """Upsert a score keyed by ``(cohort_id, player_id, game_number)``."""

    @abc.abstractmethod
    def delete_games(self, cohort_id: str) -> None:
        """Remove every score recorded for *cohort_id*."""

    # -- payouts -------------------------------------------------------------

    @abc.abstractmethod
    def get_payouts(self) -> list[Payout]:
        """Return all payout records."""

    @abc.abstractmethod
    def save_payouts(self, payouts: list[Payout]) -> None:
        """Insert or replace each payout keyed by id."""

    @abc.abstractmethod
    def delete_payouts(self, cohort_id: str) -> None:
        """Remove every payout belonging to *cohort_id*."""

    # -- concrete lookups ----------------------------------------------------

    def get_player(self, player_id: str) -> Player | None:
        """Return the player with *player_id*, or ``None``."""
        return next((p for p in self.get_players() if p.id == player_id), None)

    def get_cohort(self, cohort_id: str) -> Cohort | None:
        """Return the cohort with *cohort_id*, or ``None``."""
        return next((c for c in self.get_cohorts() if c.id == cohort_id), None)

    def get_bracket(self, bracket_id: str) -> Bracket | None:
        """Return the bracket with *bracket_id*, or ``None``."""
        return next((b for b in self.get_brackets() if b.id == bracket_id), None)

    def save_bracket(self, bracket: Bracket) -> None:
        """Insert or replace a single bracket."""
        self.save_brackets([bracket])

    def get_game(self, cohort_id: str, player_id: str, game_number: int) -> Game | None:
        """Return the score for one triple, or ``None`` if not recorded."""
        key = (cohort_id, player_id, game_number)
        return next((g for g in self.get_games(cohort_id) if g.key == key), None)

    def get_payouts_for_bracket(self, bracket_id: str) -> list[Payout]:
        """Return payouts created for *bracket_id*."""
        return [p for p in self.get_payouts() if p.bracket_id == bracket_id]

    def get_payouts_for_cohort(self, cohort_id: str) -> list[Payout]:
        """Return payouts created for every bracket of *cohort_id*."""
        return [p for p in self.get_payouts() if p.cohort_id == cohort_id]


# ---------------------------------------------------------------------------
# In-memory Repository
# ---------------------------------------------------------------------------


class InMemoryRepository(Repository):
    """Repository implementation backed by plain dictionaries."""

    def __init__(self) -> None:
        self._players: dict[str, Player] = {}
        self._cohorts: dict[str, Cohort] = {}
        self._brackets: dict[str, Bracket] = {}
        self._games: dict[tuple[str, str, int], Game] = {}
        self._payouts: dict[str, Payout] = {}

    def get_players(self) -> list[Player]:
        return list(self._players.values())

    def save_player(self, player: Player) -> None:
        self._players[player.id] = player

    def delete_player(self, player_id: str) -> None:
        self._players.pop(player_id, None)

    def get_cohorts(self) -> list[Cohort]:
        return list(self._cohorts.values())

    def save_cohort(self, cohort: Cohort) -> None:
        self._cohorts[cohort.id] = cohort

    def delete_cohort(self, cohort_id: str) -> None:
        self._cohorts.pop(cohort_id, None)

    def get_brackets(self, cohort_id: str | None = None) -> list[Bracket]:
        brackets = [b for b in self._brackets.values() if cohort_id is None or b.cohort_id == cohort_id]
        return sorted(brackets, key=lambda b: (b.cohort_id, b.bracket_number))

    def save_brackets(self, brackets: list[Bracket]) -> None:
        for bracket in brackets:
            self._brackets[bracket.id] = bracket

    def delete_brackets(self, cohort_id: str) -> None:
        self._brackets = {k: b for k, b in self._brackets.items() if b.cohort_id != cohort_id}

    def get_games(self, cohort_id: str | None = None) -> list[Game]:
        return [g for g in self._games.values() if cohort_id is None or g.cohort_id == cohort_id]

    def save_game(self, game: Game) -> None:
        self._games[game.key] = game

    def delete_games(self, cohort_id: str) -> None:
        self._games = {k: g for k, g in self._games.items() if g.cohort_id != cohort_id}

    def get_payouts(self) -> list[Payout]:
        return list(self._payouts.values())

    def save_payouts(self, payouts: list[Payout]) -> None:
        for payout in payouts:
            self._payouts[payout.id] = payout

    def delete_payouts(self, cohort_id: str) -> None:
        self._payouts = {k: p for k, p in self._payouts.items() if p.cohort_id != cohort_id}


# ---------------------------------------------------------------------------
# JSON Repository
# ---------------------------------------------------------------------------


class JsonRepository(Repository):
    """Repository implementation backed by JSON documents.

    Directory layout::

        {base_path}/
            players.json
            cohorts.json
            brackets.json
            games.json
            payouts.json

    Every read goes back to disk, so two services sharing a directory always
    observe each other's latest writes.
    """

    _PLAYERS = "players"
    _COHORTS = "cohorts"
    _BRACKETS = "brackets"
    _GAMES = "games"
    _PAYOUTS = "payouts"

    def __init__(self, base_path: Path) -> None:
        self._base_path = base_path
        self._adapters: dict[type[Any], TypeAdapter[Any]] = {}

    # -- helpers -------------------------------------------------------------

    def _path(self, collection: str) -> Path:
        return self._base_path / f"{collection}.json"

    def _adapter(self, model: type[_M]) -> TypeAdapter[list[_M]]:
        if model not in self._adapters:
            self._adapters[model] = TypeAdapter(list[model])  # type: ignore[valid-type]
        adapter: TypeAdapter[list[_M]] = self._adapters[model]
        return adapter

    def _load(self, collection: str, model: type[_M]) -> list[_M]:
        path = self._path(collection)
        if not path.exists():
            return []
        return self._adapter(model).validate_json(path.read_bytes())

    def _dump(self, collection: str, model: type[_M], items: list[_M]) -> None:
        self._base_path.mkdir(parents=True, exist_ok=True)
        payload = self._adapter(model).dump_json(items, by_alias=True, indent=2)
        self._path(collection).write_bytes(payload)

    def _upsert(self, collection: str, model: type[_M], items: list[_M], key: str = "id") -> None:
        if not items:
            return
        existing = {getattr(i, key): i for i in self._load(collection, model)}
        for item in items:
            existing[getattr(item, key)] = item
        self._dump(collection, model, list(existing.values()))

    # -- players -------------------------------------------------------------

    def get_players(self) -> list[Player]:
        return self._load(self._PLAYERS, Player)

    def save_player(self, player: Player) -> None:
        self._upsert(self._PLAYERS, Player, [player])

    def delete_player(self, player_id: str) -> None:
        players = [p for p in self.get_players() if p.id != player_id]
        self._dump(self._PLAYERS, Player, players)

    # -- cohorts -------------------------------------------------------------

    def get_cohorts(self) -> list[Cohort]:
        return self._load(self._COHORTS, Cohort)

    def save_cohort(self, cohort: Cohort) -> None:
        self._upsert(self._COHORTS, Cohort, [cohort])

    def delete_cohort(self, cohort_id: str) -> None:
        cohorts = [c for c in self.get_cohorts() if c.id != cohort_id]
        self._dump(self._COHORTS, Cohort, cohorts)

    # -- brackets ------------------------------------------------------------

    def get_brackets(self, cohort_id: str | None = None) -> list[Bracket]:
        brackets = [
            b for b in self._load(self._BRACKETS, Bracket) if cohort_id is None or b.cohort_id == cohort_id
        ]
        return sorted(brackets, key=lambda b: (b.cohort_id, b.bracket_number))

    def save_brackets(self, brackets: list[Bracket]) -> None:
        self._upsert(self._BRACKETS, Bracket, brackets)

    def delete_brackets(self, cohort_id: str) -> None:
        remaining = [b for b in self._load(self._BRACKETS, Bracket) if b.cohort_id != cohort_id]
        self._dump(self._BRACKETS, Bracket, remaining)

    # -- games ---------------------------------------------------------------

    def get_games(self, cohort_id: str | None = None) -> list[Game]:
        return [g for g in self._load(self._GAMES, Game) if cohort_id is None or g.cohort_id == cohort_id]

    def save_game(self, game: Game) -> None:
        self._upsert(self._GAMES, Game, [game], key="key")

    def delete_games(self, cohort_id: str) -> None:
        remaining = [g for g in self._load(self._GAMES, Game) if g.cohort_id != cohort_id]
        self._dump(self._GAMES, Game, remaining)

    # -- payouts -------------------------------------------------------------

    def get_payouts(self) -> list[Payout]:
        return self._load(self._PAYOUTS, Payout)

    def save_payouts(self, payouts: list[Payout]) -> None:
        self._upsert(self._PAYOUTS, Payout, payouts)

    def delete_payouts(self, cohort_id: str) -> None:
        remaining = [p for p in self.get_payouts() if p.cohort_id != cohort_id]
        self._dump(self._PAYOUTS, Payout, remaining)
