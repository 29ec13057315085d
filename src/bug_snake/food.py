"""Food placement logic."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from bug_snake.grid import Grid, Position
    from bug_snake.snake import Snake

logger = logging.getLogger(__name__)

BUG_GLYPHS: tuple[str, ...] = ("🐛", "🪲", "🐜", "🦗", "🪳", "🦟", "🐞")
MAX_ATTEMPTS = 100


class FoodSpawner:
    """Places food on cells the snake does not occupy.

    Uses a NumPy RNG so placement is reproducible when seeded.
    """

    def __init__(
        self,
        grid: Grid,
        rng: np.random.Generator | None = None,
        max_attempts: int = MAX_ATTEMPTS,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        self.grid = grid
        self.rng = rng if rng is not None else np.random.default_rng()
        self.max_attempts = max_attempts

    def random_cell(self) -> Position:
        """Draw a cell uniformly at random."""
        x = int(self.rng.integers(self.grid.tile_count_x))
        y = int(self.rng.integers(self.grid.tile_count_y))
        return x, y

    def place(self, snake: Snake) -> Position:
        """Return a new food position that avoids the snake.

        Rejection-samples up to ``max_attempts`` times, then scans the board
        in row-major order. A completely full board gets a random cell.
        """
        for _ in range(self.max_attempts):
            pos = self.random_cell()
            if not snake.occupies(pos):
                return pos

        free = self.grid.free_cells(snake)
        if free:
            return free[0]

        logger.warning(
            "Board is full (%d cells); placing food on the snake.",
            self.grid.size,
        )
        return self.random_cell()

    def pick_glyph(self) -> str:
        """Pick the bug glyph drawn for the next food."""
        return BUG_GLYPHS[int(self.rng.integers(len(BUG_GLYPHS)))]
