"""Game registry and the public operations consumed by transports.

One ``GameService`` instance owns every live game of a process. Each game
sits behind its own ``threading.Lock`` held for the whole of a call
(snapshot, player shot, AI reply, win check), while the registry lock only
guards the id → game dict, so unrelated games never wait on each other.

Callers only ever receive ``GameStatus`` values.
"""

from __future__ import annotations

import logging
import random
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Union

from .config import BOARD_SIZE, DEFAULT_DIFFICULTY, MAX_GRID_SIZE, MIN_GRID_SIZE
from .errors import GameNotFound, ValidationError
from .events import Category, Event, EventRouter, default_router
from .history import SnapshotStore
from .models import GameStatus
from .placement import ShipPlacement, build_roster, validate_roster
from .session import DuelSession, GameSession
from .strategies import Difficulty

logger = logging.getLogger(__name__)

Session = Union[GameSession, DuelSession]
PlacementInput = Union[ShipPlacement, Mapping[str, Any]]


@dataclass
class _Entry:
    lock: threading.Lock
    session: Session
    discarded: bool = False


def _validate_grid_size(grid_size: int) -> int:
    if isinstance(grid_size, bool) or not isinstance(grid_size, int):
        raise ValidationError(f"Grid size must be an integer, got {grid_size!r}.")
    if not MIN_GRID_SIZE <= grid_size <= MAX_GRID_SIZE:
        raise ValidationError(f"Grid size must be between {MIN_GRID_SIZE} and {MAX_GRID_SIZE}.")
    return grid_size


def _coerce_placements(placements: Optional[Sequence[PlacementInput]]) -> Optional[List[ShipPlacement]]:
    if placements is None:
        return None
    return [p if isinstance(p, ShipPlacement) else ShipPlacement.from_dict(p) for p in placements]


class GameService:
    """Registry of live games plus createGame / placeShips / attack / undo / undoToTurn."""

    def __init__(self, *, router: Optional[EventRouter] = None, snapshots: Optional[SnapshotStore] = None) -> None:
        self._games: Dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._router = router if router is not None else default_router()
        self.snapshots = snapshots if snapshots is not None else SnapshotStore()

    # -------------------- registry --------------------
    def __contains__(self, game_id: object) -> bool:
        with self._lock:
            return game_id in self._games

    def __len__(self) -> int:
        with self._lock:
            return len(self._games)

    def game_ids(self) -> List[str]:
        with self._lock:
            return list(self._games)

    def _entry(self, game_id: str) -> _Entry:
        with self._lock:
            entry = self._games.get(game_id)
        if entry is None:
            raise GameNotFound(game_id)
        return entry

    @contextmanager
    def _locked(self, game_id: str) -> Iterator[_Entry]:
        """Hold *game_id*'s lock; a game discarded while we waited is gone."""
        entry = self._entry(game_id)
        with entry.lock:
            if entry.discarded:
                raise GameNotFound(game_id)
            yield entry

    def _register(self, session: Session) -> None:
        with self._lock:
            self._games[session.game_id] = _Entry(threading.Lock(), session)

    @staticmethod
    def _duel_player(session: DuelSession, player: Optional[str]) -> str:
        if player is None:
            raise ValidationError("Duel games need the acting player's name.")
        session.opponent_of(player)  # validates the name
        return player

    @staticmethod
    def _log_outcome(game_id: str, row: int, col: int, outcome) -> None:
        if outcome is None:
            logger.debug("[%s] Game is over; attack at (%d, %d) ignored", game_id, row, col)
        elif not outcome.consumed:
            logger.debug("[%s] Attack at (%d, %d) not played: %s", game_id, row, col, outcome.value)

    def _check_viewer(self, session: Session, player: Optional[str]) -> None:
        if isinstance(session, DuelSession):
            self._duel_player(session, player)

    def _status(self, session: Session, player: Optional[str], outcome=None) -> GameStatus:
        if isinstance(session, DuelSession):
            return session.status(self._duel_player(session, player), outcome)
        return session.status(outcome)

    # -------------------- operations --------------------
    def create_game(
        self,
        difficulty: Union[str, Difficulty] = DEFAULT_DIFFICULTY,
        grid_size: int = BOARD_SIZE,
        ship_config: Optional[Sequence[int]] = None,
        *,
        auto_place: bool = True,
        seed: Optional[int] = None,
    ) -> GameStatus:
        """Start a game against the AI and return its first status."""
        level = Difficulty.parse(difficulty)
        size = _validate_grid_size(grid_size)
        roster = build_roster(ship_config)
        validate_roster(roster, size)

        game_id = str(uuid.uuid4())
        session = GameSession.create(
            game_id,
            difficulty=level,
            grid_size=size,
            roster=roster,
            rng=random.Random(seed),
            auto_place=auto_place,
            observers=[self._router],
        )
        self._register(session)
        self._router(
            Event(
                Category.SYSTEM,
                "created",
                {"game_id": game_id, "difficulty": level.value, "grid_size": size, "ships": session.fleet_lengths},
            )
        )
        return session.status()

    def create_duel(
        self,
        players: Sequence[str],
        grid_size: int = BOARD_SIZE,
        ship_config: Optional[Sequence[int]] = None,
        *,
        seed: Optional[int] = None,
    ) -> GameStatus:
        """Start a two-player game; the returned status is the first player's view."""
        if len(players) != 2:
            raise ValidationError("A duel needs exactly two players.")
        size = _validate_grid_size(grid_size)
        roster = build_roster(ship_config)
        validate_roster(roster, size)

        game_id = str(uuid.uuid4())
        session = DuelSession(game_id, (players[0], players[1]), grid_size=size, roster=roster, rng=random.Random(seed))
        session.subscribe(self._router)
        self._register(session)
        self._router(
            Event(Category.SYSTEM, "created", {"game_id": game_id, "players": list(session.players), "grid_size": size})
        )
        return session.status(session.players[0])

    def place_ships(
        self,
        game_id: str,
        placements: Optional[Sequence[PlacementInput]],
        player: Optional[str] = None,
    ) -> GameStatus:
        """Commit a fleet; ``placements=None`` lays it out at random."""
        ships = _coerce_placements(placements)
        with self._locked(game_id) as entry:
            session = entry.session
            if isinstance(session, DuelSession):
                name = self._duel_player(session, player)
                session.place_ships(name, ships)
                return session.status(name)
            session.place_ships(ships)
            return session.status()

    def attack(self, game_id: str, row: int, col: int, player: Optional[str] = None) -> GameStatus:
        """Play one turn. Shots that do not count are reported in ``last_attack_result``."""
        with self._locked(game_id) as entry:
            session = entry.session
            if isinstance(session, DuelSession):
                name = self._duel_player(session, player)
                if session.accepts(name, row, col):
                    self.snapshots.push(game_id, session)
                outcome = session.attack(name, row, col)
                self._log_outcome(game_id, row, col, outcome)
                return session.status(name, outcome)
            if session.accepts(row, col):
                self.snapshots.push(game_id, session)
            outcome = session.attack(row, col)
            self._log_outcome(game_id, row, col, outcome)
            return session.status(outcome)

    def undo(self, game_id: str, player: Optional[str] = None) -> GameStatus:
        """Roll back the last turn; a no-op when there is nothing to undo."""
        with self._locked(game_id) as entry:
            self._check_viewer(entry.session, player)
            entry.session = self.snapshots.undo(game_id, entry.session)
            self._router(Event(Category.SYSTEM, "undo", {"game_id": game_id, "turn": entry.session.turn_count}))
            return self._status(entry.session, player)

    def undo_to_turn(self, game_id: str, turn: int, player: Optional[str] = None) -> GameStatus:
        """Roll back until *turn* turns have been played (or the oldest snapshot)."""
        with self._locked(game_id) as entry:
            self._check_viewer(entry.session, player)
            entry.session = self.snapshots.undo_to_turn(game_id, entry.session, turn)
            self._router(Event(Category.SYSTEM, "undo", {"game_id": game_id, "turn": entry.session.turn_count}))
            return self._status(entry.session, player)

    def get_status(self, game_id: str, player: Optional[str] = None) -> GameStatus:
        with self._locked(game_id) as entry:
            return self._status(entry.session, player)

    def discard(self, game_id: str) -> None:
        """End a game's lifecycle: drop it and its snapshots from the registry."""
        with self._lock:
            entry = self._games.pop(game_id, None)
        if entry is None:
            raise GameNotFound(game_id)
        with entry.lock:
            entry.discarded = True
            self.snapshots.discard(game_id)
        self._router(Event(Category.SYSTEM, "discarded", {"game_id": game_id}))
