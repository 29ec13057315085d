"""Tick-based game engine composing grid, snake, food, and score storage."""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from bug_snake.food import FoodSpawner
from bug_snake.grid import Grid, Position
from bug_snake.persistence import PersistenceUnavailable, ScoreStore
from bug_snake.snake import Direction, Snake

logger = logging.getLogger(__name__)

SCORE_PER_FOOD = 10
TICK_INTERVAL_MS = 150


class RunState(str, enum.Enum):
    """Lifecycle of a single round."""

    RUNNING = "running"
    GAME_OVER = "game_over"


@dataclass
class GameState:
    """Everything a round needs between ticks."""

    snake: Snake
    food: Position
    glyph: str
    direction: Direction = Direction.NONE
    pending_direction: Direction = Direction.NONE
    score: int = 0
    best_score: int = 0
    run_state: RunState = RunState.RUNNING
    tick: int = 0

    @property
    def game_over(self) -> bool:
        return self.run_state == RunState.GAME_OVER

    def to_dict(self) -> dict:
        """Serialize to a JSON-friendly dict."""
        return {
            "tick": self.tick,
            "score": self.score,
            "best_score": self.best_score,
            "run_state": self.run_state.value,
            "direction": self.direction.name.lower(),
            "snake": self.snake.to_dict(),
            "food": list(self.food),
            "glyph": self.glyph,
        }


@dataclass
class GameHooks:
    """Callbacks the host wires up for drawing, score display, and sound.

    ``on_eat`` and ``on_game_over`` are treated as best effort: anything they
    raise is logged and dropped.
    """

    on_render: Callable[[GameState], None] | None = None
    on_display: Callable[[int, int, int], None] | None = None
    on_eat: Callable[[], None] | None = None
    on_game_over: Callable[[], None] | None = None


class GameEngine:
    """Single-player snake engine.

    The engine owns one :class:`GameState`. A host calls :meth:`tick` on a
    fixed interval and feeds input through :meth:`request_direction`; both
    run on the same thread so no locking is done here.
    """

    def __init__(
        self,
        grid: Grid,
        store: ScoreStore | None = None,
        hooks: GameHooks | None = None,
        seed: int | None = None,
        score_per_food: int = SCORE_PER_FOOD,
    ) -> None:
        self.grid = grid
        self.store = store
        self.hooks = hooks if hooks is not None else GameHooks()
        self.score_per_food = score_per_food
        self.rng = np.random.default_rng(seed)
        self.spawner = FoodSpawner(grid, rng=self.rng)
        self._persistence_ok = store is not None

        snake = Snake(grid.center())
        food = grid.initial_food()
        if snake.occupies(food):
            food = self.spawner.place(snake)
        self.state = GameState(
            snake=snake,
            food=food,
            glyph=self.spawner.pick_glyph(),
            best_score=self._load_best_score(),
        )
        # Show the loaded best score before the first move.
        self._update_displays()

    @property
    def best_score(self) -> int:
        return self.state.best_score

    @property
    def game_over(self) -> bool:
        return self.state.game_over

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def request_direction(self, direction: Direction) -> bool:
        """Queue a direction for the next tick.

        A request that would reverse the committed direction is discarded,
        as is any request after game over. The latest accepted request wins.
        Returns whether the request was accepted.
        """
        if not isinstance(direction, Direction):
            raise TypeError(f"Expected a Direction, got {direction!r}.")
        state = self.state
        if state.game_over or direction is Direction.NONE:
            return False
        if direction.is_reverse_of(state.direction):
            return False
        state.pending_direction = direction
        return True

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------

    def tick(self) -> dict:
        """Advance the game by one tick.

        Returns the full game state as a serializable dict.
        """
        state = self.state
        if state.game_over:
            return self.get_state()

        self._move()
        self._render()
        return self.get_state()

    def _move(self) -> None:
        state = self.state
        state.direction = state.pending_direction
        if state.direction is Direction.NONE:
            return

        snake = state.snake
        new_head = snake.next_head(state.direction)

        if not self.grid.in_bounds(new_head):
            self._end_game("wall", new_head)
            return
        if snake.collides_with_body(new_head):
            self._end_game("self", new_head)
            return

        ate = new_head == state.food
        snake.advance(new_head, grow=ate)
        state.tick += 1

        if ate:
            state.score += self.score_per_food
            state.glyph = self.spawner.pick_glyph()
            state.food = self.spawner.place(snake)
            self._update_displays()
            self._play(self.hooks.on_eat, "eat")
            # Show the new food straight away.
            self._render()

    def restart(self) -> dict:
        """Start a new round. The best score carries over."""
        state = self.state
        state.snake = Snake(self.grid.center())
        state.direction = Direction.NONE
        state.pending_direction = Direction.NONE
        state.score = 0
        state.run_state = RunState.RUNNING
        state.glyph = self.spawner.pick_glyph()
        state.food = self.spawner.place(state.snake)
        self._update_displays()
        logger.info("Round restarted (best score %d).", state.best_score)
        return self.get_state()

    def get_state(self) -> dict:
        """Return the full, serializable game state."""
        data = self.state.to_dict()
        data["grid"] = self.grid.to_dict()
        return data

    def _end_game(self, cause: str, head: Position) -> None:
        state = self.state
        state.run_state = RunState.GAME_OVER
        state.tick += 1
        self._update_displays()
        self._play(self.hooks.on_game_over, "game over")
        logger.info(
            "Snake hit %s at %s on tick %d with score %d.",
            cause, head, state.tick, state.score,
        )

    # ------------------------------------------------------------------
    # Score bookkeeping
    # ------------------------------------------------------------------

    def _update_displays(self) -> None:
        state = self.state
        self._update_best_score()
        if self.hooks.on_display is not None:
            self.hooks.on_display(state.score, len(state.snake), state.best_score)

    def _update_best_score(self) -> None:
        state = self.state
        if state.score <= state.best_score:
            return
        state.best_score = state.score
        self._save_best_score(state.best_score)

    def _load_best_score(self) -> int:
        if self.store is None:
            return 0
        try:
            saved = self.store.load()
        except PersistenceUnavailable as exc:
            self._disable_persistence(exc)
            return 0
        return saved if saved is not None else 0

    def _save_best_score(self, value: int) -> None:
        if not self._persistence_ok:
            return
        try:
            self.store.save(value)
        except PersistenceUnavailable as exc:
            self._disable_persistence(exc)

    def _disable_persistence(self, exc: Exception) -> None:
        self._persistence_ok = False
        logger.warning("Best score storage unavailable, keeping it in memory: %s", exc)

    # ------------------------------------------------------------------
    # Side channels
    # ------------------------------------------------------------------

    def _render(self) -> None:
        if self.hooks.on_render is not None:
            self.hooks.on_render(self.state)

    @staticmethod
    def _play(sound: Callable[[], None] | None, name: str) -> None:
        if sound is None:
            return
        try:
            sound()
        except Exception:
            logger.warning("Sound '%s' failed to play.", name, exc_info=True)
