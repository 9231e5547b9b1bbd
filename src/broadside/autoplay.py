"""Headless harness that plays whole games against the AI through GameService.

The human side is a naive seeker that fires at random unattacked cells, which
makes the harness a quick way to compare difficulties and to shake out
regressions in the AI over many games::

    python -m broadside.autoplay --difficulty hard --games 50 --seed 7 -v
"""

from __future__ import annotations

import argparse
import logging
import random
import sys
from statistics import mean
from typing import Any, Dict, List, Optional, Sequence

from . import config as _cfg
from .battleship import Fog
from .models import GameStatus
from .service import GameService
from .strategies import Difficulty

logger = logging.getLogger(__name__)


def _seeker_target(status: GameStatus, rng: random.Random) -> tuple[int, int]:
    open_cells = [
        (r, c)
        for r, row in enumerate(status.opponent_grid)
        for c, cell in enumerate(row)
        if cell is Fog.UNKNOWN
    ]
    return rng.choice(open_cells)


def play_game(service: GameService, difficulty: Difficulty, grid_size: int, rng: random.Random) -> GameStatus:
    """Play one game to completion and return its final status."""
    status = service.create_game(difficulty, grid_size, seed=rng.randrange(2**32))
    try:
        while not status.is_game_over:
            row, col = _seeker_target(status, rng)
            status = service.attack(status.game_id, row, col)
        return status
    finally:
        service.discard(status.game_id)


def play_games(
    games: int,
    difficulty: "str | Difficulty" = _cfg.DEFAULT_DIFFICULTY,
    grid_size: int = _cfg.BOARD_SIZE,
    seed: Optional[int] = None,
    service: Optional[GameService] = None,
) -> Dict[str, Any]:
    """Play *games* games and return a summary of winners and turn counts."""
    level = Difficulty.parse(difficulty)
    service = service or GameService()
    rng = random.Random(seed)
    turns: List[int] = []
    ai_wins = 0
    for n in range(1, games + 1):
        final = play_game(service, level, grid_size, rng)
        turns.append(final.turn_count)
        if final.winner == "AI":
            ai_wins += 1
        logger.info("Game %d/%d: %s won in %d turns", n, games, final.winner, final.turn_count)
    return {
        "difficulty": level.value,
        "grid_size": grid_size,
        "games": games,
        "ai_wins": ai_wins,
        "ai_win_rate": ai_wins / games if games else 0.0,
        "mean_turns": mean(turns) if turns else 0.0,
        "turns": turns,
    }


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Broadside autoplay harness")
    parser.add_argument(
        "--difficulty",
        choices=[d.value for d in Difficulty],
        default=_cfg.DEFAULT_DIFFICULTY,
        help="AI difficulty.",
    )
    parser.add_argument("--games", type=int, default=10, help="Number of games to play.")
    parser.add_argument("--size", type=int, default=_cfg.BOARD_SIZE, help="Board size.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible runs.")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity.",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        dest="quiet",
        action="store_true",
        help="Only log errors.",
    )
    args = parser.parse_args(argv)

    # Determine log level from CLI flags:
    if args.quiet:
        level = logging.ERROR
    elif args.debug or _cfg.DEBUG:
        level = logging.DEBUG
    elif args.verbose >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=_cfg.LOG_FORMAT)

    summary = play_games(args.games, args.difficulty, args.size, args.seed)
    if not args.quiet:
        print(
            f"{summary['games']} games on {summary['grid_size']}x{summary['grid_size']} "
            f"({summary['difficulty']}): AI won {summary['ai_wins']} "
            f"({summary['ai_win_rate']:.0%}), mean {summary['mean_turns']:.1f} turns"
        )
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
