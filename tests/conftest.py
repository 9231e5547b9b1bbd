from __future__ import annotations

import logging
import random
import sys
from pathlib import Path
from typing import Iterable, Optional, Tuple

import pytest

# Ensure local `src` directory is importable before project is installed.
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from broadside.battleship import Board, Ship
from broadside.placement import build_roster
from broadside.service import GameService
from broadside.session import GameSession
from broadside.strategies import Difficulty

# Keep INFO lifecycle logs out of the test output unless a test asks for them.
logging.basicConfig(level=logging.WARNING)

Layout = Iterable[Tuple[str, int, int, int, bool]]


def build_board(size: int, layout: Layout) -> Board:
    """Board with ships at fixed spots: (letter, length, row, col, horizontal)."""
    board = Board(size)
    for letter, length, row, col, horizontal in layout:
        board.place_ship(Ship(letter, length, row, col, horizontal))
    return board


def attacked_cells(board: Board) -> int:
    return sum(cell in ("X", "O") for cell in board.cells)


@pytest.fixture
def service() -> GameService:
    return GameService()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def make_session():
    """Factory for seeded AI sessions, optionally with a hand-built AI board."""

    def _factory(
        difficulty: Difficulty = Difficulty.MEDIUM,
        grid_size: int = 10,
        seed: int = 7,
        ai_layout: Optional[Layout] = None,
        auto_place: bool = True,
    ) -> GameSession:
        session = GameSession.create(
            "test-game",
            difficulty=difficulty,
            grid_size=grid_size,
            roster=build_roster(None),
            rng=random.Random(seed),
            auto_place=auto_place,
        )
        if ai_layout is not None:
            session.ai_board = build_board(grid_size, ai_layout)
        return session

    return _factory
