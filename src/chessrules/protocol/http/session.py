from __future__ import annotations

import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional

from ...engine.game import Game


@dataclass
class _Session:
    game: Game
    lock: threading.Lock = field(default_factory=threading.Lock)


class InMemorySessionStore:
    """Thread-safe in-memory game session store.

    Responsibilities:
    - Create new sessions with unique `game_id`s
    - Hand out a game under its own lock, one operation at a time
    - Delete sessions

    A `Game` is not reentrant, so callers go through `checkout` rather than
    touching the game directly.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._sessions: Dict[str, _Session] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def create(self, game: Optional[Game] = None) -> str:
        """Create a new game session and return its `game_id`."""
        gid = str(uuid.uuid4())
        if game is None:
            game = Game.new()
        with self._lock:
            self._sessions[gid] = _Session(game)
        return gid

    def exists(self, game_id: str) -> bool:
        with self._lock:
            return game_id in self._sessions

    @contextmanager
    def checkout(self, game_id: str) -> Iterator[Game]:
        """Yield the game for `game_id` while holding its session lock.

        Raises:
            KeyError: If no such session exists.
        """
        with self._lock:
            session = self._sessions.get(game_id)
        if session is None:
            raise KeyError(game_id)
        with session.lock:
            yield session.game

    def delete(self, game_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(game_id, None) is not None
