from __future__ import annotations

import threading
import uuid
from typing import Dict, Optional

from ...engine.game import Game


class InMemorySessionStore:
    """Thread-safe in-memory store of games keyed by `game_id`.

    Nothing is persisted; sessions live as long as the process. Besides the
    store-wide lock guarding the mapping, every game has its own lock that
    handlers hold while they read or mutate that game.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._games: Dict[str, Game] = {}
        self._game_locks: Dict[str, threading.RLock] = {}

    def create(self, game: Optional[Game] = None) -> str:
        """Register `game` (a fresh one by default) and return its id."""
        gid = uuid.uuid4().hex
        with self._lock:
            self._games[gid] = game if game is not None else Game.new()
            self._game_locks[gid] = threading.RLock()
        return gid

    def get(self, game_id: str) -> Optional[Game]:
        with self._lock:
            return self._games.get(game_id)

    def replace(self, game_id: str, game: Game) -> None:
        with self._lock:
            if game_id not in self._games:
                raise KeyError(game_id)
            self._games[game_id] = game

    def game_lock(self, game_id: str) -> threading.RLock:
        """Lock serializing access to one game; KeyError if unknown."""
        with self._lock:
            return self._game_locks[game_id]

    def __len__(self) -> int:
        with self._lock:
            return len(self._games)
