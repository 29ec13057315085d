"""Bug Snake — the snake mini-game engine behind the portfolio site."""

from bug_snake.engine import GameEngine, GameHooks, GameState, RunState
from bug_snake.food import FoodSpawner
from bug_snake.grid import Grid
from bug_snake.persistence import (
    FileScoreStore,
    MemoryScoreStore,
    PersistenceUnavailable,
    ScoreStore,
)
from bug_snake.snake import Direction, Snake

__all__ = [
    "Direction",
    "FileScoreStore",
    "FoodSpawner",
    "GameEngine",
    "GameHooks",
    "GameState",
    "Grid",
    "MemoryScoreStore",
    "PersistenceUnavailable",
    "RunState",
    "ScoreStore",
    "Snake",
]
