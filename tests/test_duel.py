"""Two-player games: setup, turn order, per-viewer status, win and undo."""

from __future__ import annotations

import pytest

from broadside.battleship import Fog
from broadside.errors import NotYourTurn, ValidationError
from broadside.models import GameState
from broadside.service import GameService

BOB_FLEET = [
    {"letter": "A", "size": 2, "row": 0, "col": 0, "isHorizontal": True},
    {"letter": "B", "size": 1, "row": 5, "col": 5, "isHorizontal": True},
]
ALICE_FLEET = [
    {"letter": "A", "size": 2, "row": 0, "col": 0, "isHorizontal": True},
    {"letter": "B", "size": 1, "row": 2, "col": 2, "isHorizontal": True},
]


@pytest.fixture
def duel(service: GameService) -> str:
    status = service.create_duel(["alice", "bob"], grid_size=6, ship_config=[2, 1], seed=1)
    return status.game_id


def test_duel_starts_in_setup(service: GameService, duel: str) -> None:
    status = service.get_status(duel, "alice")
    assert status.state is GameState.SETUP
    assert not status.ships_placed
    assert not status.is_my_turn
    assert status.difficulty is None
    assert status.grid_size == 6


@pytest.mark.parametrize("names", [["alice"], ["alice", "bob", "carol"], ["alice", "alice"], ["", "bob"]])
def test_create_duel_rejects_bad_player_lists(service: GameService, names) -> None:
    with pytest.raises(ValidationError):
        service.create_duel(names)
    assert len(service) == 0


def test_duel_calls_need_a_known_player(service: GameService, duel: str) -> None:
    with pytest.raises(ValidationError):
        service.get_status(duel)
    with pytest.raises(ValidationError):
        service.place_ships(duel, None, "mallory")


def test_attack_before_both_fleets_are_placed(service: GameService, duel: str) -> None:
    service.place_ships(duel, BOB_FLEET, "bob")
    assert service.get_status(duel, "bob").state is GameState.SETUP
    with pytest.raises(ValidationError):
        service.attack(duel, 0, 0, "bob")


def test_first_to_place_shoots_first(service: GameService, duel: str) -> None:
    service.place_ships(duel, BOB_FLEET, "bob")
    status = service.place_ships(duel, None, "alice")

    assert status.state is GameState.PLAYING
    assert not status.is_my_turn
    assert service.get_status(duel, "bob").is_my_turn
    with pytest.raises(NotYourTurn):
        service.attack(duel, 0, 0, "alice")
    with pytest.raises(ValidationError):
        service.place_ships(duel, None, "alice")


def test_shots_alternate_and_are_recorded(service: GameService, duel: str) -> None:
    service.place_ships(duel, BOB_FLEET, "bob")
    service.place_ships(duel, ALICE_FLEET, "alice")

    status = service.attack(duel, 0, 0, "bob")
    assert status.last_attack_result == "Hit"
    assert not status.is_my_turn
    record = status.history[0]
    assert (record.turn, record.shooter, record.player_move) == (1, "bob", "A1")

    alice = service.attack(duel, 5, 0, "alice")
    assert alice.last_attack_result == "Miss"
    assert alice.opponent_grid[5][0] is Fog.MISS
    assert alice.opponent_grid[0][0] is Fog.UNKNOWN
    assert alice.player_grid[0] == "XA...."

    bob = service.get_status(duel, "bob")
    assert bob.player_grid[5] == "O....B"
    assert bob.opponent_grid[0][0] is Fog.HIT
    assert bob.is_my_turn


def test_repeat_shot_keeps_the_turn(service: GameService, duel: str) -> None:
    service.place_ships(duel, BOB_FLEET, "bob")
    service.place_ships(duel, ALICE_FLEET, "alice")
    service.attack(duel, 0, 0, "bob")
    service.attack(duel, 5, 0, "alice")

    status = service.attack(duel, 0, 0, "bob")
    assert status.last_attack_result == "AlreadyAttacked"
    assert status.is_my_turn
    assert status.turn_count == 2
    assert service.snapshots.depth(duel) == 2


def test_duel_to_the_end(service: GameService, duel: str) -> None:
    service.place_ships(duel, BOB_FLEET, "bob")
    service.place_ships(duel, ALICE_FLEET, "alice")

    service.attack(duel, 0, 0, "bob")
    service.attack(duel, 5, 0, "alice")
    assert service.attack(duel, 0, 1, "bob").last_attack_result == "Sunk"
    service.attack(duel, 5, 1, "alice")
    final = service.attack(duel, 2, 2, "bob")

    assert final.is_game_over
    assert final.winner == "bob"
    assert final.state is GameState.GAME_OVER
    assert service.get_status(duel, "alice").winner == "bob"

    assert service.attack(duel, 3, 3, "alice") == service.get_status(duel, "alice")
    assert service.get_status(duel, "bob").turn_count == 5


def test_undo_goes_back_one_shot(service: GameService, duel: str) -> None:
    service.place_ships(duel, BOB_FLEET, "bob")
    service.place_ships(duel, ALICE_FLEET, "alice")
    before = service.get_status(duel, "bob")
    service.attack(duel, 0, 0, "bob")

    status = service.undo(duel, "bob")
    assert status == before
    assert status.is_my_turn
    assert service.undo_to_turn(duel, 0, "alice").turn_count == 0


@pytest.mark.parametrize("player", [None, "mallory"])
def test_undo_with_a_bad_player_keeps_the_snapshot(service: GameService, duel: str, player) -> None:
    service.place_ships(duel, BOB_FLEET, "bob")
    service.place_ships(duel, ALICE_FLEET, "alice")
    service.attack(duel, 0, 0, "bob")

    with pytest.raises(ValidationError):
        service.undo(duel, player)
    with pytest.raises(ValidationError):
        service.undo_to_turn(duel, 0, player)

    assert service.get_status(duel, "alice").turn_count == 1
    assert service.snapshots.depth(duel) == 1
    assert service.undo(duel, "alice").turn_count == 0
