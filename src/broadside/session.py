"""Game sessions: one match each, player versus AI or player versus player.

A session owns its boards, the AI memory and the move history. It is a plain
synchronous object: nothing in here locks, because GameService holds the
per-game lock around every call.

State machine
-------------
Setup     A board still lacks a committed fleet.
Playing   Both fleets placed; attacks are accepted.
GameOver  One board has no ship segment left. Terminal; attacks are no-ops.

Every session can ``snapshot()`` itself into a structurally independent
copy, which is what the undo stack stores, and compares by value so a
restored snapshot can be checked against the original with ``==``.
"""

from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .battleship import Board, ShotResult
from .bot_logic import AiMemory, BotLogic
from .coord_utils import format_coord
from .errors import NoLegalMove, NotYourTurn, ValidationError
from .events import Category, Event
from .models import GameState, GameStatus, MoveRecord, ShipInfo
from .placement import Roster, ShipPlacement, place_manually, place_randomly
from .strategies import Difficulty

logger = logging.getLogger(__name__)

PLAYER = "Player"
AI = "AI"


class _Session:
    """Shared plumbing: history, state, event subscribers."""

    def __init__(self, game_id: str, grid_size: int, roster: Roster, rng: random.Random) -> None:
        self.game_id = game_id
        self.grid_size = grid_size
        self.roster = list(roster)
        self.rng = rng
        self.history: List[MoveRecord] = []
        self.state = GameState.SETUP
        self.winner: Optional[str] = None
        self.last_attack_result: Optional[str] = None
        self._subs: List[Callable[[Event], None]] = []

    @property
    def turn_count(self) -> int:
        return len(self.history)

    @property
    def is_over(self) -> bool:
        return self.state is GameState.GAME_OVER

    @property
    def fleet_lengths(self) -> List[int]:
        return [length for _, length in self.roster]

    # -------------------- event bus --------------------
    def subscribe(self, cb: Callable[[Event], None]) -> None:
        """Allow external components (service/logger) to receive game events."""
        self._subs.append(cb)

    def _emit(self, ev: Event) -> None:
        for cb in tuple(self._subs):
            try:
                cb(ev)
            except Exception:  # noqa: BLE001
                # a misbehaving subscriber must not corrupt a half-played turn
                logger.exception("Event subscriber failed for %s", ev)

    def _copy_base_into(self, copy: "_Session") -> None:
        copy.history = list(self.history)
        copy.state = self.state
        copy.winner = self.winner
        copy.last_attack_result = self.last_attack_result
        copy._subs = list(self._subs)

    def _base_key(self) -> tuple:
        return (
            self.game_id,
            self.grid_size,
            self.roster,
            self.history,
            self.state,
            self.winner,
            self.last_attack_result,
        )

    def _finish(self, winner: str) -> None:
        self.state = GameState.GAME_OVER
        self.winner = winner
        self._emit(Event(Category.TURN, "end", {"game_id": self.game_id, "winner": winner, "turns": self.turn_count}))


class GameSession(_Session):
    """Single match between a human player and the AI opponent."""

    def __init__(
        self,
        game_id: str,
        *,
        difficulty: Difficulty,
        grid_size: int,
        roster: Roster,
        rng: Optional[random.Random] = None,
    ) -> None:
        """Create a session with empty boards; see ``create`` for a ready-to-play one."""
        super().__init__(game_id, grid_size, roster, rng or random.Random())
        self.difficulty = difficulty
        self.engine = BotLogic(difficulty, self.rng)
        self.player_board = Board(grid_size)
        self.ai_board = Board(grid_size)
        self.memory = AiMemory(alive_lengths=self.fleet_lengths)
        self.player_placed = False
        self.last_ai_attack_result: Optional[str] = None

    @classmethod
    def create(
        cls,
        game_id: str,
        *,
        difficulty: Difficulty,
        grid_size: int,
        roster: Roster,
        rng: Optional[random.Random] = None,
        auto_place: bool = True,
        observers: Sequence[Callable[[Event], None]] = (),
    ) -> "GameSession":
        """New match with the AI fleet laid out; the player's too unless *auto_place* is False."""
        session = cls(game_id, difficulty=difficulty, grid_size=grid_size, roster=roster, rng=rng)
        for cb in observers:
            session.subscribe(cb)
        place_randomly(session.ai_board, session.roster, session.rng)
        if auto_place:
            session.place_ships(None)
        return session

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GameSession):
            return NotImplemented
        return self._key() == other._key()

    __hash__ = None  # type: ignore[assignment]

    def _key(self) -> tuple:
        return self._base_key() + (
            self.difficulty,
            self.player_board,
            self.ai_board,
            self.memory,
            self.player_placed,
            self.last_ai_attack_result,
        )

    def snapshot(self) -> "GameSession":
        """Structurally independent copy of the whole session."""
        copy = GameSession(
            self.game_id,
            difficulty=self.difficulty,
            grid_size=self.grid_size,
            roster=self.roster,
            rng=self.rng,
        )
        self._copy_base_into(copy)
        copy.player_board = self.player_board.clone()
        copy.ai_board = self.ai_board.clone()
        copy.memory = self.memory.clone()
        copy.player_placed = self.player_placed
        copy.last_ai_attack_result = self.last_ai_attack_result
        return copy

    # -------------------- setup --------------------
    def place_ships(self, placements: Optional[Sequence[ShipPlacement]]) -> None:
        """Commit the player's fleet; ``None`` asks for a random layout.

        Allowed until the first turn has been played.
        """
        if self.is_over or self.history:
            raise ValidationError("Ships can only be placed before the first attack.")
        if placements is None:
            place_randomly(self.player_board, self.roster, self.rng)
        else:
            place_manually(self.player_board, placements, self.fleet_lengths)
        self.memory = AiMemory(alive_lengths=[s.length for s in self.player_board.ships])
        self.player_placed = True
        self.state = GameState.PLAYING
        self._emit(
            Event(
                Category.SYSTEM,
                "placed",
                {"game_id": self.game_id, "player": PLAYER, "random": placements is None},
            )
        )

    # -------------------- gameplay --------------------
    def check_target(self, row: int, col: int) -> Optional[ShotResult]:
        """OutOfBounds / AlreadyAttacked for a shot that would not count, else None."""
        if not (0 <= row < self.grid_size and 0 <= col < self.grid_size):
            return ShotResult.OUT_OF_BOUNDS
        if not self.ai_board.is_valid_target(row, col):
            return ShotResult.ALREADY_ATTACKED
        return None

    def accepts(self, row: int, col: int) -> bool:
        """True when attack(row, col) would play a turn."""
        return self.state is GameState.PLAYING and self.check_target(row, col) is None

    def attack(self, row: int, col: int) -> Optional[ShotResult]:
        """Play one round: the player's shot, then (unless it won) the AI's reply.

        Returns None when the game is already over. Shots that do not count
        come back as OUT_OF_BOUNDS / ALREADY_ATTACKED and change nothing.
        """
        if self.is_over:
            return None
        if self.state is GameState.SETUP:
            raise ValidationError("Place your ships before attacking.")
        blocked = self.check_target(row, col)
        if blocked is not None:
            return blocked

        label = format_coord(row, col)
        result, _ = self.ai_board.fire_at(row, col)
        self.last_attack_result = result.value
        record = MoveRecord(turn=self.turn_count + 1, player_move=label, player_result=result.value)
        self._emit(
            Event(
                Category.TURN,
                "shot",
                {"game_id": self.game_id, "shooter": PLAYER, "coord": label, "result": result.value},
            )
        )

        if self.ai_board.all_ships_sunk():
            self.history.append(record)
            self._finish(PLAYER)
            return result

        try:
            move = self.engine.take_turn(self.memory, self.player_board)
        except NoLegalMove as exc:
            logger.warning("[%s] AI skipped its turn: %s", self.game_id, exc)
            self.last_ai_attack_result = "AI has no legal move"
        else:
            record = replace(record, ai_move=move.label, ai_result=move.result.value)
            self.last_ai_attack_result = f"AI attacked {move.label}: {move.result.value}"
            self._emit(
                Event(
                    Category.TURN,
                    "ai_shot",
                    {"game_id": self.game_id, "shooter": AI, "coord": move.label, "result": move.result.value},
                )
            )
        self.history.append(record)

        if self.player_board.all_ships_sunk():
            self._finish(AI)
        return result

    # -------------------- projection --------------------
    def status(self, outcome: Optional[ShotResult] = None) -> GameStatus:
        """Value projection for the human player; *outcome* overrides the last result."""
        return GameStatus(
            game_id=self.game_id,
            state=self.state,
            player_grid=tuple(self.player_board.grid_rows(reveal=True)),
            ships=tuple(ShipInfo.from_ship(s) for s in self.player_board.ships),
            opponent_grid=tuple(tuple(row) for row in self.ai_board.fog_of_war()),
            winner=self.winner,
            is_game_over=self.is_over,
            is_my_turn=self.state is GameState.PLAYING,
            ships_placed=self.player_placed,
            grid_size=self.grid_size,
            difficulty=self.difficulty.value,
            last_attack_result=outcome.value if outcome is not None else self.last_attack_result,
            last_ai_attack_result=self.last_ai_attack_result,
            history=tuple(self.history),
        )


class DuelSession(_Session):
    """Match between two human players taking alternate shots.

    Each shot is its own turn in the history, so undo works shot by shot.
    """

    def __init__(
        self,
        game_id: str,
        players: Tuple[str, str],
        *,
        grid_size: int,
        roster: Roster,
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__(game_id, grid_size, roster, rng or random.Random())
        p1, p2 = players
        if not p1 or not p2 or p1 == p2:
            raise ValidationError("A duel needs two distinct, non-empty player names.")
        self.players = (p1, p2)
        self.boards: Dict[str, Board] = {p1: Board(grid_size), p2: Board(grid_size)}
        self.placed: Dict[str, bool] = {p1: False, p2: False}
        self.current: Optional[str] = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DuelSession):
            return NotImplemented
        return self._key() == other._key()

    __hash__ = None  # type: ignore[assignment]

    def _key(self) -> tuple:
        return self._base_key() + (self.players, self.boards, self.placed, self.current)

    def snapshot(self) -> "DuelSession":
        copy = DuelSession(
            self.game_id,
            self.players,
            grid_size=self.grid_size,
            roster=self.roster,
            rng=self.rng,
        )
        self._copy_base_into(copy)
        copy.boards = {name: board.clone() for name, board in self.boards.items()}
        copy.placed = dict(self.placed)
        copy.current = self.current
        return copy

    def opponent_of(self, player: str) -> str:
        self._require_player(player)
        p1, p2 = self.players
        return p2 if player == p1 else p1

    def _require_player(self, player: str) -> None:
        if player not in self.boards:
            raise ValidationError(f"Unknown player {player!r} in game {self.game_id}.")

    def place_ships(self, player: str, placements: Optional[Sequence[ShipPlacement]]) -> None:
        """Commit *player*'s fleet; the first player to commit shoots first."""
        self._require_player(player)
        if self.state is not GameState.SETUP:
            raise ValidationError("Ships can only be placed during setup.")
        board = self.boards[player]
        if placements is None:
            place_randomly(board, self.roster, self.rng)
        else:
            place_manually(board, placements, self.fleet_lengths)
        self.placed[player] = True
        if self.current is None:
            self.current = player
        if all(self.placed.values()):
            self.state = GameState.PLAYING
        self._emit(
            Event(Category.SYSTEM, "placed", {"game_id": self.game_id, "player": player, "random": placements is None})
        )

    def check_target(self, player: str, row: int, col: int) -> Optional[ShotResult]:
        board = self.boards[self.opponent_of(player)]
        if not (0 <= row < self.grid_size and 0 <= col < self.grid_size):
            return ShotResult.OUT_OF_BOUNDS
        if not board.is_valid_target(row, col):
            return ShotResult.ALREADY_ATTACKED
        return None

    def accepts(self, player: str, row: int, col: int) -> bool:
        return (
            self.state is GameState.PLAYING
            and player == self.current
            and self.check_target(player, row, col) is None
        )

    def attack(self, player: str, row: int, col: int) -> Optional[ShotResult]:
        """Fire one shot for *player*; see GameSession.attack for the return contract."""
        self._require_player(player)
        if self.is_over:
            return None
        if self.state is GameState.SETUP:
            raise ValidationError("Both players must place their ships before attacking.")
        if player != self.current:
            raise NotYourTurn(f"It is {self.current}'s turn, not {player}'s.")
        blocked = self.check_target(player, row, col)
        if blocked is not None:
            return blocked

        opponent = self.opponent_of(player)
        label = format_coord(row, col)
        result, _ = self.boards[opponent].fire_at(row, col)
        self.last_attack_result = result.value
        self.history.append(
            MoveRecord(turn=self.turn_count + 1, player_move=label, player_result=result.value, shooter=player)
        )
        self._emit(
            Event(
                Category.TURN,
                "shot",
                {"game_id": self.game_id, "shooter": player, "coord": label, "result": result.value},
            )
        )
        if self.boards[opponent].all_ships_sunk():
            self._finish(player)
        else:
            self.current = opponent
        return result

    def status(self, viewer: str, outcome: Optional[ShotResult] = None) -> GameStatus:
        """Projection for *viewer*: own grid in full, opponent under fog of war."""
        opponent = self.opponent_of(viewer)
        own = self.boards[viewer]
        return GameStatus(
            game_id=self.game_id,
            state=self.state,
            player_grid=tuple(own.grid_rows(reveal=True)),
            ships=tuple(ShipInfo.from_ship(s) for s in own.ships),
            opponent_grid=tuple(tuple(row) for row in self.boards[opponent].fog_of_war()),
            winner=self.winner,
            is_game_over=self.is_over,
            is_my_turn=self.state is GameState.PLAYING and self.current == viewer,
            ships_placed=self.placed[viewer],
            grid_size=self.grid_size,
            last_attack_result=outcome.value if outcome is not None else self.last_attack_result,
            history=tuple(self.history),
        )
