"""Value types handed across the service boundary.

Everything here is frozen: callers get projections of a session, never a
reference into it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .battleship import Fog, Ship


class GameState(str, Enum):
    SETUP = "Setup"
    PLAYING = "Playing"
    GAME_OVER = "GameOver"


@dataclass(frozen=True)
class MoveRecord:
    turn: int
    player_move: str
    player_result: str
    ai_move: str = ""
    ai_result: str = ""
    shooter: str = "Player"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "turn": self.turn,
            "playerMove": self.player_move,
            "playerResult": self.player_result,
            "aiMove": self.ai_move,
            "aiResult": self.ai_result,
            "shooter": self.shooter,
        }


@dataclass(frozen=True)
class ShipInfo:
    letter: str
    size: int
    row: int
    col: int
    is_horizontal: bool
    hits: int

    @classmethod
    def from_ship(cls, ship: Ship) -> "ShipInfo":
        return cls(ship.letter, ship.length, ship.row, ship.col, ship.horizontal, ship.hits)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "letter": self.letter,
            "size": self.size,
            "row": self.row,
            "col": self.col,
            "isHorizontal": self.is_horizontal,
            "hits": self.hits,
        }


@dataclass(frozen=True)
class GameStatus:
    """What a caller is allowed to see of one game.

    ``opponent_grid`` is the fog-of-war view; the opponent's ship layout is
    never part of a status.
    """

    game_id: str
    state: GameState
    player_grid: Tuple[str, ...]
    ships: Tuple[ShipInfo, ...]
    opponent_grid: Tuple[Tuple[Fog, ...], ...]
    winner: Optional[str]
    is_game_over: bool
    is_my_turn: bool
    ships_placed: bool
    grid_size: int
    difficulty: Optional[str] = None
    last_attack_result: Optional[str] = None
    last_ai_attack_result: Optional[str] = None
    history: Tuple[MoveRecord, ...] = field(default_factory=tuple)

    @property
    def turn_count(self) -> int:
        return len(self.history)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready mapping using the camelCase keys transports expect."""
        return {
            "gameId": self.game_id,
            "state": self.state.value,
            "playerGrid": list(self.player_grid),
            "ships": [s.to_dict() for s in self.ships],
            "opponentGrid": [[cell.value for cell in row] for row in self.opponent_grid],
            "winner": self.winner,
            "isGameOver": self.is_game_over,
            "isMyTurn": self.is_my_turn,
            "shipsPlaced": self.ships_placed,
            "gridSize": self.grid_size,
            "difficulty": self.difficulty,
            "lastAttackResult": self.last_attack_result,
            "lastAiAttackResult": self.last_ai_attack_result,
            "history": [h.to_dict() for h in self.history],
        }
