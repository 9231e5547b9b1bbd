"""
battleship.py

Contains the core data structures for Broadside, including:
 - Ship records (letter, length, origin, orientation, hit counter)
 - Board class storing ship segments, hits and misses on a flat grid
 - ShotResult / Fog enums describing shot outcomes and the opponent's view

Cells are stored in a flat list indexed by ``row * size + col`` so a board can
be cloned with a couple of list copies.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Tuple

from .config import BOARD_SIZE
from .coord_utils import Coord, in_bounds
from .errors import PlacementError, ValidationError

WATER = "."
HIT = "X"
MISS = "O"


class ShotResult(str, Enum):
    """Outcome of firing at a single cell."""

    HIT = "Hit"
    SUNK = "Sunk"
    MISS = "Miss"
    ALREADY_ATTACKED = "AlreadyAttacked"
    OUT_OF_BOUNDS = "OutOfBounds"

    @property
    def consumed(self) -> bool:
        """True when the shot changed the board (and so used up a turn)."""
        return self in (ShotResult.HIT, ShotResult.SUNK, ShotResult.MISS)


class Fog(str, Enum):
    """Three-valued fog-of-war cell as seen by the opponent."""

    UNKNOWN = "unknown"
    HIT = "hit"
    MISS = "miss"


@dataclass
class Ship:
    letter: str
    length: int
    row: int
    col: int
    horizontal: bool = True
    hits: int = 0

    def cells(self) -> List[Coord]:
        if self.horizontal:
            return [(self.row, self.col + k) for k in range(self.length)]
        return [(self.row + k, self.col) for k in range(self.length)]

    @property
    def is_sunk(self) -> bool:
        return self.hits >= self.length


class Board:
    """
    Represents a single Battleship board with hidden ships.
    We store:
      - self.cells: flat grid holding water ('.'), ship letters, hits ('X') and misses ('O')
      - self.ships: Ship records, used for hit counters and the public ship list

    The win condition (all_ships_sunk) is read from the cells alone, so a
    board restored from a snapshot is always self-consistent.
    """

    def __init__(self, size: int = BOARD_SIZE):
        """Initialise an empty *size*×*size* board with no ships placed."""
        self.size = size
        self.cells: List[str] = [WATER] * (size * size)
        self.ships: List[Ship] = []

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self.size == other.size and self.cells == other.cells and self.ships == other.ships

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Board(size={self.size}, ships={[s.letter for s in self.ships]})"

    def _index(self, row: int, col: int) -> int:
        return row * self.size + col

    def cell(self, row: int, col: int) -> str:
        return self.cells[self._index(row, col)]

    def reset(self) -> None:
        """Remove every ship and shot from the board."""
        self.cells = [WATER] * (self.size * self.size)
        self.ships = []

    # ------------------------------------------------------------------ #
    # Placement
    # ------------------------------------------------------------------ #
    def check_placement(self, row: int, col: int, length: int, horizontal: bool) -> Optional[str]:
        """Return why a ship of *length* cannot go at (*row*,*col*), or None if it fits."""
        if length <= 0:
            return "out_of_bounds"
        end_row = row if horizontal else row + length - 1
        end_col = col + length - 1 if horizontal else col
        if not (in_bounds(row, col, self.size) and in_bounds(end_row, end_col, self.size)):
            return "out_of_bounds"
        for k in range(length):
            r, c = (row, col + k) if horizontal else (row + k, col)
            if self.cells[self._index(r, c)] != WATER:
                return "overlap"
        return None

    def place_ship(self, ship: Ship) -> Ship:
        """Write *ship* into the grid or raise PlacementError leaving the board untouched."""
        if self.ship(ship.letter) is not None:
            raise ValidationError(f"Ship letter {ship.letter!r} is already on the board")
        reason = self.check_placement(ship.row, ship.col, ship.length, ship.horizontal)
        if reason is not None:
            raise PlacementError(reason, ship.letter)
        placed = replace(ship, hits=0)
        for r, c in placed.cells():
            self.cells[self._index(r, c)] = placed.letter
        self.ships.append(placed)
        return placed

    def ship(self, letter: str) -> Optional[Ship]:
        for ship in self.ships:
            if ship.letter == letter:
                return ship
        return None

    # ------------------------------------------------------------------ #
    # Shots
    # ------------------------------------------------------------------ #
    def is_valid_target(self, row: int, col: int) -> bool:
        """Inside board and never fired at before."""
        if not in_bounds(row, col, self.size):
            return False
        return self.cells[self._index(row, col)] not in (HIT, MISS)

    def fire_at(self, row: int, col: int) -> Tuple[ShotResult, Optional[Ship]]:
        """Process a shot at (*row*,*col*) and return (result, ship hit)."""
        if not in_bounds(row, col, self.size):
            return ShotResult.OUT_OF_BOUNDS, None
        idx = self._index(row, col)
        cell = self.cells[idx]
        if cell in (HIT, MISS):
            return ShotResult.ALREADY_ATTACKED, None
        if cell == WATER:
            self.cells[idx] = MISS
            return ShotResult.MISS, None
        self.cells[idx] = HIT
        ship = self.ship(cell)
        assert ship is not None, f"segment {cell!r} at {(row, col)} has no ship record"
        ship.hits += 1
        return (ShotResult.SUNK if ship.is_sunk else ShotResult.HIT), ship

    def is_ship_sunk(self, letter: str) -> bool:
        ship = self.ship(letter)
        return ship is not None and ship.is_sunk

    def all_ships_sunk(self) -> bool:
        """Return True if no ship segment is left anywhere on the grid."""
        return all(cell in (WATER, HIT, MISS) for cell in self.cells)

    # ------------------------------------------------------------------ #
    # Views
    # ------------------------------------------------------------------ #
    def fog_of_war(self) -> List[List[Fog]]:
        """Opponent's view: hits and misses only, never ship identity."""
        view: List[List[Fog]] = []
        for r in range(self.size):
            row: List[Fog] = []
            for c in range(self.size):
                cell = self.cells[self._index(r, c)]
                if cell == HIT:
                    row.append(Fog.HIT)
                elif cell == MISS:
                    row.append(Fog.MISS)
                else:
                    row.append(Fog.UNKNOWN)
            view.append(row)
        return view

    def grid_rows(self, reveal: bool = True) -> List[str]:
        """Rows as strings; with reveal=False ship letters are shown as water."""
        rows = []
        for r in range(self.size):
            chunk = self.cells[r * self.size:(r + 1) * self.size]
            if not reveal:
                chunk = [c if c in (HIT, MISS) else WATER for c in chunk]
            rows.append("".join(chunk))
        return rows

    def clone(self) -> "Board":
        copy = Board(self.size)
        copy.cells = list(self.cells)
        copy.ships = [replace(s) for s in self.ships]
        return copy

    def check_invariants(self) -> None:
        """Assert that cells and ship records describe the same fleet."""
        claimed: dict[Coord, str] = {}
        for ship in self.ships:
            hits = 0
            for r, c in ship.cells():
                assert in_bounds(r, c, self.size), f"ship {ship.letter} leaves the board"
                assert (r, c) not in claimed, f"ships {claimed.get((r, c))} and {ship.letter} overlap"
                claimed[(r, c)] = ship.letter
                cell = self.cell(r, c)
                assert cell in (ship.letter, HIT), f"cell {(r, c)} holds {cell!r}, expected {ship.letter}"
                hits += cell == HIT
            assert hits == ship.hits, f"ship {ship.letter} counts {ship.hits} hits, grid shows {hits}"
        for idx, cell in enumerate(self.cells):
            if cell not in (WATER, MISS):
                assert divmod(idx, self.size) in claimed, f"stray segment {cell!r} at index {idx}"
