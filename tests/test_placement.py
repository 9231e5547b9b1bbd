from __future__ import annotations

import logging
import random

import pytest

from broadside.battleship import WATER, Board
from broadside.config import SHIPS
from broadside.errors import FleetPlacementError, PlacementError, ValidationError
from broadside.placement import (
    SHIP_ALPHABET,
    ShipPlacement,
    build_roster,
    place_manually,
    place_randomly,
    validate_placements,
    validate_roster,
)

STANDARD = [
    ShipPlacement("A", 4, 0, 0, True),
    ShipPlacement("B", 3, 2, 0, True),
    ShipPlacement("C", 3, 4, 0, False),
    ShipPlacement("D", 2, 9, 8, True),
    ShipPlacement("E", 2, 5, 5, False),
    ShipPlacement("F", 1, 7, 7, True),
]
STANDARD_LENGTHS = [length for _, length in SHIPS]


def test_build_roster_defaults_to_standard_fleet() -> None:
    assert build_roster(None) == SHIPS


def test_build_roster_assigns_letters() -> None:
    assert build_roster([5, 4]) == [("A", 5), ("B", 4)]


def test_ship_alphabet_skips_markers() -> None:
    assert "X" not in SHIP_ALPHABET
    assert "O" not in SHIP_ALPHABET
    letters = [letter for letter, _ in build_roster([1] * len(SHIP_ALPHABET))]
    assert letters == list(SHIP_ALPHABET)


@pytest.mark.parametrize("config", [[], [0], [3, -1], [True], ["3"], [1] * 25])
def test_build_roster_rejects_bad_config(config) -> None:
    with pytest.raises(ValidationError):
        build_roster(config)


@pytest.mark.parametrize(
    "lengths, size",
    [
        ([6], 5),
        ([5] * 6, 5),
        ([11, 1], 10),
    ],
)
def test_validate_roster_rejects_fleets_that_cannot_fit(lengths, size) -> None:
    with pytest.raises(ValidationError):
        validate_roster(build_roster(lengths), size)


@pytest.mark.parametrize("seed", range(10))
def test_random_placement_properties(seed: int) -> None:
    board = Board(10)
    ships = place_randomly(board, list(SHIPS), random.Random(seed))

    footprint = [cell for ship in ships for cell in ship.cells()]
    assert len(footprint) == sum(STANDARD_LENGTHS)
    assert len(set(footprint)) == len(footprint)
    assert sum(cell != WATER for cell in board.cells) == sum(STANDARD_LENGTHS)
    assert not board.all_ships_sunk()
    board.check_invariants()


def test_random_placement_on_smallest_board() -> None:
    board = Board(5)
    place_randomly(board, build_roster([3, 2, 2]), random.Random(0))
    assert sorted(s.length for s in board.ships) == [2, 2, 3]


def test_random_placement_gives_up_loudly(caplog) -> None:
    board = Board(5)
    with caplog.at_level(logging.WARNING, logger="broadside.placement"):
        with pytest.raises(FleetPlacementError):
            place_randomly(board, build_roster([2]), random.Random(0), attempts=0, fleet_attempts=3)
    assert board == Board(5)
    assert sum("starting over" in r.getMessage() for r in caplog.records) == 3


def test_manual_placement_commits_layout() -> None:
    board = Board(10)
    ships = place_manually(board, STANDARD, STANDARD_LENGTHS)
    assert [s.letter for s in ships] == list("ABCDEF")
    assert board.cell(4, 0) == "C" and board.cell(6, 0) == "C"
    board.check_invariants()


def test_manual_placement_replaces_previous_fleet() -> None:
    board = Board(10)
    place_randomly(board, list(SHIPS), random.Random(1))
    place_manually(board, STANDARD, STANDARD_LENGTHS)
    assert sum(cell != WATER for cell in board.cells) == sum(STANDARD_LENGTHS)
    assert board.ship("A").row == 0 and board.ship("A").col == 0


def test_failed_manual_placement_leaves_board_untouched() -> None:
    board = Board(10)
    place_manually(board, STANDARD, STANDARD_LENGTHS)
    before = board.clone()
    clash = [p if p.letter != "B" else ShipPlacement("B", 3, 0, 1, False) for p in STANDARD]
    with pytest.raises(PlacementError) as info:
        place_manually(board, clash, STANDARD_LENGTHS)
    assert info.value.reason == "overlap"
    assert info.value.letter == "B"
    assert "Ship B (size 3) at A2 V" in str(info.value)
    assert board == before


def test_manual_placement_reports_out_of_bounds() -> None:
    layout = [ShipPlacement("A", 3, -1, 0, True)]
    with pytest.raises(PlacementError) as info:
        validate_placements(layout, 10)
    assert info.value.reason == "out_of_bounds"
    assert "(-1, 0)" in str(info.value)


@pytest.mark.parametrize(
    "placements",
    [
        [],
        [ShipPlacement("A", 2, 0, 0), ShipPlacement("A", 1, 5, 5)],
        [ShipPlacement("X", 2, 0, 0)],
        [ShipPlacement("ab", 2, 0, 0)],
        [ShipPlacement("A", 0, 0, 0)],
    ],
)
def test_manual_placement_rejects_malformed_lists(placements) -> None:
    with pytest.raises(ValidationError):
        validate_placements(placements, 10)


def test_manual_placement_requires_configured_sizes() -> None:
    wrong = [p for p in STANDARD if p.letter != "F"] + [ShipPlacement("F", 2, 7, 7, True)]
    with pytest.raises(ValidationError, match="do not match"):
        validate_placements(wrong, 10, STANDARD_LENGTHS)


def test_ship_placement_from_dict() -> None:
    assert ShipPlacement.from_dict({"letter": "b", "size": 3, "row": 1, "col": 2, "isHorizontal": False}) == (
        ShipPlacement("B", 3, 1, 2, False)
    )
    assert ShipPlacement.from_dict({"letter": "A", "size": "2", "row": 0, "col": 0}).is_horizontal


@pytest.mark.parametrize("payload", [{"letter": "A", "size": 2, "row": 0}, {"letter": "A", "size": "two", "row": 0, "col": 0}])
def test_ship_placement_from_dict_rejects_malformed(payload) -> None:
    with pytest.raises(ValidationError):
        ShipPlacement.from_dict(payload)


def test_failed_random_placement_keeps_existing_fleet() -> None:
    board = Board(10)
    place_manually(board, STANDARD, STANDARD_LENGTHS)
    before = board.clone()
    with pytest.raises(FleetPlacementError):
        place_randomly(board, list(SHIPS), random.Random(0), attempts=0, fleet_attempts=1)
    assert board == before
