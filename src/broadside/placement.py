# placement.py
"""
Fleet placement helpers.
Usage:
    roster = build_roster([4, 3, 3, 2, 2, 1])
    place_randomly(board, roster, rng)          # random layout, retried on failure
    place_manually(board, placements, lengths)  # caller layout, validated first
Manual layouts are checked against a fresh empty board, so a rejected layout
never touches the board it was meant for.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from .battleship import HIT, MISS, Board, Ship
from .config import FLEET_ATTEMPTS, PLACEMENT_ATTEMPTS, SHIPS
from .coord_utils import format_coord
from .errors import FleetPlacementError, PlacementError, ValidationError

logger = logging.getLogger(__name__)

# Letters usable as ship ids; the hit/miss markers are excluded.
SHIP_ALPHABET = "".join(ch for ch in "ABCDEFGHIJKLMNOPQRSTUVWXYZ" if ch not in (HIT, MISS))

Roster = List[Tuple[str, int]]


@dataclass(frozen=True)
class ShipPlacement:
    letter: str
    size: int
    row: int
    col: int
    is_horizontal: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ShipPlacement":
        """Build from a transport payload (``isHorizontal`` or ``is_horizontal``)."""
        horizontal = data.get("is_horizontal", data.get("isHorizontal", True))
        try:
            return cls(
                letter=str(data["letter"]).upper(),
                size=int(data["size"]),
                row=int(data["row"]),
                col=int(data["col"]),
                is_horizontal=bool(horizontal),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ValidationError(f"Malformed ship placement {dict(data)!r}: {exc}") from None


def build_roster(ship_config: Optional[Sequence[int]] = None) -> Roster:
    """Assign letters to a list of ship lengths; None means the standard fleet."""
    if ship_config is None:
        return list(SHIPS)
    lengths = list(ship_config)
    if not lengths:
        raise ValidationError("Ship config cannot be empty.")
    if len(lengths) > len(SHIP_ALPHABET):
        raise ValidationError(f"At most {len(SHIP_ALPHABET)} ships are supported, got {len(lengths)}.")
    for length in lengths:
        if isinstance(length, bool) or not isinstance(length, int) or length <= 0:
            raise ValidationError(f"Ship lengths must be positive integers, got {length!r}.")
    return [(SHIP_ALPHABET[i], length) for i, length in enumerate(lengths)]


def validate_roster(roster: Roster, grid_size: int) -> None:
    """Reject fleets that cannot physically fit on a *grid_size* board."""
    for letter, length in roster:
        if length > grid_size:
            raise ValidationError(
                f"Ship {letter} (length {length}) does not fit on a {grid_size}x{grid_size} board."
            )
    total = sum(length for _, length in roster)
    if total > grid_size * grid_size:
        raise ValidationError(f"Fleet needs {total} cells but the board only has {grid_size * grid_size}.")


def place_randomly(
    board: Board,
    roster: Roster,
    rng: random.Random,
    *,
    attempts: int = PLACEMENT_ATTEMPTS,
    fleet_attempts: int = FLEET_ATTEMPTS,
) -> List[Ship]:
    """Randomly position *roster* on *board* without collisions.

    Each ship gets *attempts* random samples. If one runs out, the whole fleet
    is laid out again on a cleared board, up to *fleet_attempts* times. The
    layout is built on a scratch board, so *board* only changes on success.
    """
    validate_roster(roster, board.size)
    scratch = Board(board.size)
    for fleet_try in range(1, fleet_attempts + 1):
        scratch.reset()
        if _try_place_fleet(scratch, roster, rng, attempts):
            scratch.check_invariants()
            board.cells = scratch.cells
            board.ships = scratch.ships
            return list(board.ships)
        logger.warning(
            "Random layout %d/%d failed on a %dx%d board; starting over",
            fleet_try,
            fleet_attempts,
            board.size,
            board.size,
        )
    raise FleetPlacementError(
        f"Could not place fleet {[length for _, length in roster]} on a "
        f"{board.size}x{board.size} board after {fleet_attempts} attempts"
    )


def _try_place_fleet(board: Board, roster: Roster, rng: random.Random, attempts: int) -> bool:
    for letter, length in roster:
        for _ in range(attempts):
            horizontal = rng.random() < 0.5
            if horizontal:
                row = rng.randrange(board.size)
                col = rng.randrange(board.size - length + 1)
            else:
                row = rng.randrange(board.size - length + 1)
                col = rng.randrange(board.size)
            if board.check_placement(row, col, length, horizontal) is None:
                board.place_ship(Ship(letter, length, row, col, horizontal))
                break
        else:
            logger.debug("No room found for ship %s (length %d) in %d samples", letter, length, attempts)
            return False
    return True


def validate_placements(
    placements: Sequence[ShipPlacement],
    grid_size: int,
    expected_lengths: Optional[Sequence[int]] = None,
) -> Board:
    """Check a manual layout against a fresh board and return that board."""
    if not placements:
        raise ValidationError("Ships list cannot be empty.")
    seen: set[str] = set()
    for p in placements:
        if not isinstance(p.letter, str) or len(p.letter) != 1 or p.letter not in SHIP_ALPHABET:
            raise ValidationError(f"Ship letter must be one of {SHIP_ALPHABET}, got {p.letter!r}.")
        if p.letter in seen:
            raise ValidationError(f"Ship letter {p.letter} is used more than once.")
        seen.add(p.letter)
        if p.size <= 0:
            raise ValidationError(f"Ship {p.letter}: size must be greater than 0.")
    if expected_lengths is not None:
        got = sorted(p.size for p in placements)
        want = sorted(expected_lengths)
        if got != want:
            raise ValidationError(f"Ship sizes {got} do not match the configured fleet {want}.")

    scratch = Board(grid_size)
    for p in placements:
        try:
            scratch.place_ship(Ship(p.letter, p.size, p.row, p.col, p.is_horizontal))
        except PlacementError as exc:
            orientation = "H" if p.is_horizontal else "V"
            origin = format_coord(p.row, p.col) if p.row >= 0 and p.col >= 0 else f"({p.row}, {p.col})"
            raise PlacementError(
                exc.reason,
                p.letter,
                f"Ship {p.letter} (size {p.size}) at {origin} {orientation}: {exc.reason.replace('_', ' ')}",
            ) from None
    scratch.check_invariants()
    return scratch


def place_manually(
    board: Board,
    placements: Sequence[ShipPlacement],
    expected_lengths: Optional[Sequence[int]] = None,
) -> List[Ship]:
    """Replace the fleet on *board* with *placements* once they validate."""
    scratch = validate_placements(placements, board.size, expected_lengths)
    board.cells = scratch.cells
    board.ships = scratch.ships
    return list(board.ships)
