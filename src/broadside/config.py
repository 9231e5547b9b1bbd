"""Central configuration for runtime-tunable parameters.

All constants can be overridden via environment variables so that the
service runs with sensible defaults, while the automated test-suite or an
operator can shrink boards or tighten placement budgets when needed.
"""

from __future__ import annotations

import os


# ===========================================================================
# Board Geometry
# ===========================================================================
# BROADSIDE_BOARD_SIZE: Width and height of a newly created board.
#   Defaults to 10 (for a 10x10 grid).
#   Example: export BROADSIDE_BOARD_SIZE=8
BOARD_SIZE: int = int(os.getenv("BROADSIDE_BOARD_SIZE", "10"))

# Hard limits accepted by create_game(). Row labels run A..T, so 20 is the
# largest board whose coordinates stay single-letter.
MIN_GRID_SIZE: int = 5
MAX_GRID_SIZE: int = 20


# ===========================================================================
# Fleet
# ===========================================================================
# Standard ship roster: list of (letter, length) tuples. Not typically
# overridden by env vars; pass ship_config to create_game() instead.
SHIPS = [
    ("A", 4),
    ("B", 3),
    ("C", 3),
    ("D", 2),
    ("E", 2),
    ("F", 1),
]

# BROADSIDE_PLACEMENT_ATTEMPTS: Random origin/orientation samples tried per
#   ship before the fleet layout is abandoned and started over.
#   Defaults to 100.
PLACEMENT_ATTEMPTS: int = int(os.getenv("BROADSIDE_PLACEMENT_ATTEMPTS", "100"))

# BROADSIDE_FLEET_ATTEMPTS: Whole-fleet restarts on a fresh board before
#   random placement gives up with FleetPlacementError.
#   Defaults to 20.
FLEET_ATTEMPTS: int = int(os.getenv("BROADSIDE_FLEET_ATTEMPTS", "20"))


# ===========================================================================
# AI Opponent
# ===========================================================================
# BROADSIDE_DIFFICULTY: Difficulty used when create_game() is called without one.
#   One of "easy", "medium", "hard". Defaults to "medium".
DEFAULT_DIFFICULTY: str = os.getenv("BROADSIDE_DIFFICULTY", "medium")

# BROADSIDE_EASY_ATTEMPTS: Random probes made by the easy AI before it falls
#   back to a linear scan of the board.
#   Defaults to 100.
EASY_RANDOM_ATTEMPTS: int = int(os.getenv("BROADSIDE_EASY_ATTEMPTS", "100"))


# ===========================================================================
# Debugging and Logging
# ===========================================================================
# BROADSIDE_DEBUG: If "1", entry points log at DEBUG level (AI decisions,
#   hunt-stack updates).
#   Defaults to "0" (disabled).
#   Example: export BROADSIDE_DEBUG=1
DEBUG: bool = os.getenv("BROADSIDE_DEBUG", "0") == "1"

LOG_FORMAT: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
