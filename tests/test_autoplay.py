from __future__ import annotations

import pytest

from broadside.autoplay import main, play_games
from broadside.service import GameService


@pytest.mark.timeout(60)
@pytest.mark.parametrize("difficulty", ["easy", "medium", "hard"])
def test_play_games_summary(difficulty: str) -> None:
    service = GameService()
    summary = play_games(3, difficulty, grid_size=6, seed=5, service=service)

    assert summary["games"] == 3
    assert summary["difficulty"] == difficulty
    assert len(summary["turns"]) == 3
    assert all(0 < t <= 36 for t in summary["turns"])
    assert 0 <= summary["ai_wins"] <= 3
    assert summary["ai_win_rate"] == summary["ai_wins"] / 3
    # finished games are discarded
    assert len(service) == 0


def test_play_games_is_reproducible_with_a_seed() -> None:
    assert play_games(2, "hard", grid_size=6, seed=9) == play_games(2, "hard", grid_size=6, seed=9)


@pytest.mark.timeout(60)
def test_main_prints_summary(capsys) -> None:
    assert main(["--games", "2", "--size", "6", "--seed", "3", "--difficulty", "easy"]) == 0
    out = capsys.readouterr().out
    assert "2 games on 6x6 (easy)" in out


def test_main_quiet(capsys) -> None:
    assert main(["--games", "1", "--size", "6", "--seed", "1", "-q"]) == 0
    assert capsys.readouterr().out == ""
