from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .battleship import MISS, Board, Ship, ShotResult
from .coord_utils import Coord, format_coord
from .errors import NoLegalMove
from .strategies import STRATEGIES, Difficulty

logger = logging.getLogger(__name__)

# (row, col, ship letter) of a confirmed hit whose ship is still afloat
ConfirmedHit = Tuple[int, int, str]


@dataclass
class AiMemory:
    """Per-game scratch state of the AI opponent.

    ``target_stack`` is LIFO with the top at the end of the list.
    """

    target_stack: List[Coord] = field(default_factory=list)
    current_hits: List[ConfirmedHit] = field(default_factory=list)
    alive_lengths: List[int] = field(default_factory=list)

    @property
    def hunting(self) -> bool:
        return bool(self.current_hits)

    def clone(self) -> "AiMemory":
        return AiMemory(
            target_stack=list(self.target_stack),
            current_hits=list(self.current_hits),
            alive_lengths=list(self.alive_lengths),
        )


@dataclass(frozen=True)
class AiMove:
    row: int
    col: int
    result: ShotResult
    from_hunt: bool

    @property
    def label(self) -> str:
        return format_coord(self.row, self.col)


def deduce_orientation(hits: Sequence[ConfirmedHit]) -> Optional[str]:
    """Return "row" when every hit shares a row, "col" when they share a column, else None."""
    if len(hits) < 2:
        return None
    if all(h[0] == hits[0][0] for h in hits):
        return "row"
    if all(h[1] == hits[0][1] for h in hits):
        return "col"
    return None


def free_run(board: Board, row: int, col: int, horizontal: bool) -> int:
    """Length of the straight run of non-Miss cells through (*row*, *col*)."""
    count = 0
    if horizontal:
        for c in range(col, -1, -1):
            if board.cell(row, c) == MISS:
                break
            count += 1
        for c in range(col + 1, board.size):
            if board.cell(row, c) == MISS:
                break
            count += 1
    else:
        for r in range(row, -1, -1):
            if board.cell(r, col) == MISS:
                break
            count += 1
        for r in range(row + 1, board.size):
            if board.cell(r, col) == MISS:
                break
            count += 1
    return count


class BotLogic:
    """
    Search ⇄ Hunt targeting
    -----------------------
    1. Search: no unresolved hits, so the difficulty's strategy picks a cell
       (random, heatmap, or heatmap restricted to one parity class).
    2. Hunt: every confirmed hit queues its orthogonal neighbours on a LIFO
       stack. Once two hits line up, only cells on that line stay queued.
    3. Sinking a ship drops its hits and rebuilds the stack from whatever
       hits remain (another ship was clipped along the way).

    The engine itself only holds the difficulty and the RNG; everything that
    changes during a game lives in the AiMemory passed in, so snapshots of a
    session capture the AI completely.
    """

    def __init__(self, difficulty: Difficulty, rng: random.Random) -> None:
        self.difficulty = difficulty
        self.rng = rng

    @property
    def uses_hunt(self) -> bool:
        return self.difficulty is not Difficulty.EASY

    # ------------------------------------------------------------------ #
    # Shot selection
    # ------------------------------------------------------------------ #
    def choose_shot(self, memory: AiMemory, board: Board) -> Optional[Tuple[Coord, bool]]:
        """Return ((row, col), from_hunt) or None when the board is exhausted."""
        if self.uses_hunt:
            while memory.target_stack:
                r, c = memory.target_stack.pop()
                if board.is_valid_target(r, c):
                    return (r, c), True
        move = STRATEGIES[self.difficulty](board, memory.alive_lengths, self.rng)
        if move is None:
            return None
        return move, False

    def take_turn(self, memory: AiMemory, board: Board) -> AiMove:
        pick = self.choose_shot(memory, board)
        if pick is None:
            raise NoLegalMove(f"No unattacked cell left on the {board.size}x{board.size} board")
        (row, col), from_hunt = pick
        result, ship = board.fire_at(row, col)
        assert result.consumed, f"AI picked unplayable cell {(row, col)}: {result}"
        self.register_result(memory, board, (row, col), result, ship)
        logger.debug(
            "AI (%s) fired %s from %s: %s",
            self.difficulty.value,
            format_coord(row, col),
            "hunt stack" if from_hunt else "search",
            result.value,
        )
        return AiMove(row, col, result, from_hunt)

    # ------------------------------------------------------------------ #
    # Result handling
    # ------------------------------------------------------------------ #
    def register_result(
        self,
        memory: AiMemory,
        board: Board,
        rc: Coord,
        result: ShotResult,
        ship: Optional[Ship],
    ) -> None:
        """Fold the outcome of firing at *rc* into *memory*. Misses change nothing."""
        if result not in (ShotResult.HIT, ShotResult.SUNK):
            return
        assert ship is not None
        r, c = rc
        if self.uses_hunt:
            memory.current_hits.append((r, c, ship.letter))

        if result is ShotResult.SUNK:
            if ship.length in memory.alive_lengths:
                memory.alive_lengths.remove(ship.length)
            if not self.uses_hunt:
                return
            memory.current_hits = [h for h in memory.current_hits if h[2] != ship.letter]
            memory.target_stack.clear()
            for hr, hc, _ in memory.current_hits:
                self.add_neighbours(memory, board, hr, hc)
            self.filter_stack(memory)
            logger.debug(
                "Ship %s sunk; %d unresolved hits, %d queued targets",
                ship.letter,
                len(memory.current_hits),
                len(memory.target_stack),
            )
        elif self.uses_hunt:
            self.add_neighbours(memory, board, r, c)
            self.filter_stack(memory)

    def add_neighbours(self, memory: AiMemory, board: Board, r: int, c: int) -> None:
        """Queue neighbours of (*r*, *c*) that agree with the deduced orientation."""
        axis = deduce_orientation(memory.current_hits)
        candidates: List[Coord] = []
        if axis != "col":
            candidates += [(r, c - 1), (r, c + 1)]
        if axis != "row":
            candidates += [(r - 1, c), (r + 1, c)]

        min_length = min(memory.alive_lengths) if memory.alive_lengths else 1
        for nr, nc in candidates:
            if not board.is_valid_target(nr, nc):
                continue
            if free_run(board, nr, nc, horizontal=(nr == r)) < min_length:
                continue
            if (nr, nc) not in memory.target_stack:
                memory.target_stack.append((nr, nc))

    @staticmethod
    def filter_stack(memory: AiMemory) -> None:
        """With two or more aligned hits keep only targets on that line, in LIFO order."""
        if len(memory.current_hits) < 2:
            return
        axis = deduce_orientation(memory.current_hits)
        r0, c0, _ = memory.current_hits[0]
        if axis == "row":
            memory.target_stack = [t for t in memory.target_stack if t[0] == r0]
        elif axis == "col":
            memory.target_stack = [t for t in memory.target_stack if t[1] == c0]
