"""Exception taxonomy shared by the board, placement, session and service layers.

Shots that land out of bounds or on an already-attacked cell are *not*
errors; they are reported as ``ShotResult`` members. Everything here is a
failure that the caller has to deal with.
"""

from __future__ import annotations


class BroadsideError(Exception):
    """Base class for all errors raised by the package."""


class GameNotFound(BroadsideError, LookupError):
    """Raised when a game id is not present in the registry."""

    def __init__(self, game_id: str) -> None:
        super().__init__(f"Game not found: {game_id}")
        self.game_id = game_id


class ValidationError(BroadsideError, ValueError):
    """Raised for malformed input. State is left unchanged."""


class PlacementError(ValidationError):
    """A ship cannot be written to the board.

    ``reason`` is ``"overlap"`` or ``"out_of_bounds"``; ``letter`` names the
    offending ship when known.
    """

    def __init__(self, reason: str, letter: str | None = None, message: str | None = None) -> None:
        if message is None:
            who = f"ship {letter}" if letter else "ship"
            message = f"Cannot place {who}: {reason.replace('_', ' ')}"
        super().__init__(message)
        self.reason = reason
        self.letter = letter


class NotYourTurn(ValidationError):
    """A duel player fired out of turn."""


class FleetPlacementError(BroadsideError):
    """Random placement exhausted its attempt budget."""


class NoLegalMove(BroadsideError):
    """The AI found no unattacked cell to fire at."""
