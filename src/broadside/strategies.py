"""Search-mode move selection, one function per difficulty.

The difficulty set is closed, so strategies live in a plain function table
(``STRATEGIES``) rather than a class hierarchy. Every strategy has the same
signature::

    strategy(board, alive_lengths, rng) -> (row, col) | None

and returns None only when every cell on *board* has already been attacked.
"""

from __future__ import annotations

import logging
import random
from enum import Enum
from typing import Callable, Dict, Optional, Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from .battleship import HIT, MISS, Board
from .config import EASY_RANDOM_ATTEMPTS
from .coord_utils import Coord
from .errors import ValidationError

logger = logging.getLogger(__name__)


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @classmethod
    def parse(cls, value: "str | Difficulty") -> "Difficulty":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(d.value for d in cls)
            raise ValidationError(f"Invalid difficulty level {value!r} (expected one of: {choices}).") from None


Strategy = Callable[[Board, Sequence[int], random.Random], Optional[Coord]]


def _attacked_mask(board: Board) -> np.ndarray:
    cells = np.array(board.cells, dtype="<U1").reshape(board.size, board.size)
    return (cells == HIT) | (cells == MISS)


def heatmap(board: Board, alive_lengths: Sequence[int]) -> np.ndarray:
    """Count, per cell, how many legal spans of the alive ships cover it.

    A span is legal when it stays on the board and crosses no Hit or Miss.
    """
    size = board.size
    heat = np.zeros((size, size), dtype=np.int64)
    blocked = _attacked_mask(board)
    for length in alive_lengths:
        if length <= 0 or length > size:
            continue
        # horizontal spans: fits[r, c] means columns c..c+length-1 are all free
        fits = ~sliding_window_view(blocked, length, axis=1).any(axis=-1)
        for k in range(length):
            heat[:, k:k + size - length + 1] += fits
        # vertical spans
        fits = ~sliding_window_view(blocked, length, axis=0).any(axis=-1)
        for k in range(length):
            heat[k:k + size - length + 1, :] += fits
    return heat


def parity_mask(size: int) -> np.ndarray:
    """Boolean mask of cells where (row + col) is even."""
    rows, cols = np.indices((size, size))
    return (rows + cols) % 2 == 0


def best_heatmap_move(
    board: Board,
    alive_lengths: Sequence[int],
    rng: random.Random,
    *,
    use_parity: bool,
) -> Optional[Coord]:
    """Pick the unattacked cell with the highest heat, breaking ties at random."""
    heat = heatmap(board, alive_lengths)
    open_cells = ~_attacked_mask(board)
    if not open_cells.any():
        return None

    if use_parity and alive_lengths and min(alive_lengths) > 1:
        even = parity_mask(board.size)
        heat[~even] = 0
        # odd cells stay out even when every open even cell scores 0
        if (open_cells & even).any():
            open_cells &= even
    scores = np.where(open_cells, heat, -1)
    best = scores.max()
    candidates = [(int(r), int(c)) for r, c in np.argwhere(scores == best)]
    choice = rng.choice(candidates)
    logger.debug("Heatmap pick %s (score %d, %d tied)", choice, int(best), len(candidates))
    return choice


def easy_move(board: Board, alive_lengths: Sequence[int], rng: random.Random) -> Optional[Coord]:
    """Random probes, then a linear scan so an open cell is always found."""
    for _ in range(EASY_RANDOM_ATTEMPTS):
        r = rng.randrange(board.size)
        c = rng.randrange(board.size)
        if board.is_valid_target(r, c):
            return r, c
    for r in range(board.size):
        for c in range(board.size):
            if board.is_valid_target(r, c):
                return r, c
    return None


def medium_move(board: Board, alive_lengths: Sequence[int], rng: random.Random) -> Optional[Coord]:
    return best_heatmap_move(board, alive_lengths, rng, use_parity=False)


def hard_move(board: Board, alive_lengths: Sequence[int], rng: random.Random) -> Optional[Coord]:
    return best_heatmap_move(board, alive_lengths, rng, use_parity=True)


STRATEGIES: Dict[Difficulty, Strategy] = {
    Difficulty.EASY: easy_move,
    Difficulty.MEDIUM: medium_move,
    Difficulty.HARD: hard_move,
}
