"""Game utilities re-exporting the public core API for external import."""

from __future__ import annotations

from .battleship import Board, Fog, ShotResult
from .coord_utils import coord_to_rowcol, format_coord
from .errors import (
    BroadsideError,
    FleetPlacementError,
    GameNotFound,
    NotYourTurn,
    PlacementError,
    ValidationError,
)
from .models import GameState, GameStatus, MoveRecord, ShipInfo
from .placement import ShipPlacement
from .service import GameService
from .strategies import Difficulty

__all__ = [
    "Board",
    "BroadsideError",
    "Difficulty",
    "FleetPlacementError",
    "Fog",
    "GameNotFound",
    "GameService",
    "GameState",
    "GameStatus",
    "MoveRecord",
    "NotYourTurn",
    "PlacementError",
    "ShipInfo",
    "ShipPlacement",
    "ShotResult",
    "ValidationError",
    "coord_to_rowcol",
    "format_coord",
]
