"""Undo support: per-game stacks of pre-turn snapshots.

A snapshot is pushed immediately before a turn mutates the session, so the
top of a stack is always "the game as it was before the last turn". Undoing
hands that snapshot back as the new live session.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Protocol, TypeVar

from .errors import ValidationError

logger = logging.getLogger(__name__)


class Snapshotable(Protocol):
    @property
    def turn_count(self) -> int: ...

    def snapshot(self): ...


S = TypeVar("S", bound=Snapshotable)


class SnapshotStore:
    """Snapshot stacks keyed by game id.

    The store's own lock only guards the dict of stacks; operations on one
    game's stack are expected to run under that game's lock.
    """

    def __init__(self) -> None:
        self._stacks: Dict[str, List[Snapshotable]] = {}
        self._lock = threading.Lock()

    def _stack(self, game_id: str) -> List[Snapshotable]:
        with self._lock:
            return self._stacks.get(game_id, [])

    def push(self, game_id: str, session: Snapshotable) -> None:
        """Store a deep copy of *session* as it is right now."""
        copy = session.snapshot()
        with self._lock:
            self._stacks.setdefault(game_id, []).append(copy)

    def depth(self, game_id: str) -> int:
        with self._lock:
            return len(self._stacks.get(game_id, ()))

    def undo(self, game_id: str, current: S) -> S:
        """Return the most recent snapshot, or *current* if there is none."""
        stack = self._stack(game_id)
        if not stack:
            logger.debug("[%s] Nothing to undo", game_id)
            return current
        return stack.pop()  # type: ignore[return-value]

    def undo_to_turn(self, game_id: str, current: S, turn: int) -> S:
        """Rewind so that *turn* turns have been played.

        Same as calling ``undo`` ``current.turn_count - turn`` times; stops at
        the oldest snapshot if the stack runs out first.
        """
        if turn < 0:
            raise ValidationError(f"Turn must be zero or positive, got {turn}.")
        steps = current.turn_count - turn
        if steps <= 0:
            logger.debug("[%s] No turns to undo (at turn %d, asked for %d)", game_id, current.turn_count, turn)
            return current
        stack = self._stack(game_id)
        session: S = current
        for _ in range(steps):
            if not stack:
                break
            session = stack.pop()  # type: ignore[assignment]
        return session

    def discard(self, game_id: str) -> None:
        with self._lock:
            self._stacks.pop(game_id, None)
