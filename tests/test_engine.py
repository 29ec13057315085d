"""Tests for the GameEngine module."""

import json
import logging
from collections import deque

import numpy as np
import pytest

from bug_snake.engine import GameEngine, GameHooks, RunState
from bug_snake.grid import Grid
from bug_snake.persistence import FileScoreStore, MemoryScoreStore
from bug_snake.snake import Direction, Snake

FAR_AWAY = (9, 9)


def _engine(width=10, height=10, **kwargs) -> GameEngine:
    return GameEngine(Grid(width, height), seed=0, **kwargs)


class TestEngineInit:
    def test_default_init(self):
        engine = _engine()
        state = engine.state
        assert state.score == 0
        assert state.best_score == 0
        assert state.run_state == RunState.RUNNING
        assert state.direction is Direction.NONE
        assert list(state.snake.body) == [(3, 5)]

    def test_food_starts_in_fixed_slot(self):
        assert _engine().state.food == (6, 5)

    def test_food_moves_off_snake_on_tiny_grid(self):
        engine = GameEngine(Grid(1, 2), seed=0)
        assert engine.state.food == (0, 0)
        assert engine.state.snake.head == (0, 1)

    def test_best_score_loaded(self):
        engine = _engine(store=MemoryScoreStore(value=40))
        assert engine.best_score == 40


class TestEngineIdle:
    def test_no_direction_is_noop(self):
        engine = _engine()
        state = engine.tick()
        assert list(engine.state.snake.body) == [(3, 5)]
        assert state["tick"] == 0
        assert state["run_state"] == "running"


class TestEngineMovement:
    def test_basic_move(self):
        engine = _engine()
        engine.state.food = FAR_AWAY
        engine.request_direction(Direction.UP)
        engine.tick()
        assert engine.state.snake.head == (3, 4)
        assert len(engine.state.snake) == 1

    def test_eat_food(self):
        engine = _engine()
        engine.request_direction(Direction.RIGHT)
        engine.state.food = (4, 5)
        engine.tick()
        state = engine.state
        assert len(state.snake) == 2
        assert state.score == 10
        assert state.run_state == RunState.RUNNING
        assert not state.snake.occupies(state.food)

    def test_tail_cell_is_not_a_collision(self):
        engine = _engine()
        engine.state.snake = Snake((2, 2), length=3)
        engine.state.food = FAR_AWAY
        engine.request_direction(Direction.RIGHT)
        engine.tick()
        assert list(engine.state.snake.body) == [(3, 2), (2, 2), (1, 2)]
        assert not engine.game_over

    def test_follow_own_tail_in_a_loop(self):
        engine = _engine()
        engine.state.snake.body = deque([(1, 0), (0, 0), (0, 1), (1, 1)])
        engine.state.food = FAR_AWAY
        engine.request_direction(Direction.DOWN)
        engine.tick()
        assert engine.state.snake.head == (1, 1)
        assert not engine.game_over

    def test_length_law(self):
        engine = _engine(width=20, height=20)
        engine.request_direction(Direction.RIGHT)
        eaten = 0
        for i in range(8):
            if i % 2 == 0:
                engine.state.food = engine.state.snake.next_head(Direction.RIGHT)
                eaten += 1
            else:
                engine.state.food = (0, 19)
            engine.tick()
        assert not engine.game_over
        assert len(engine.state.snake) == 1 + eaten
        assert engine.state.score == 10 * eaten


class TestEngineDirection:
    def _moving_right(self) -> GameEngine:
        engine = _engine()
        engine.state.snake = Snake((5, 5), length=3)
        engine.state.food = FAR_AWAY
        engine.request_direction(Direction.RIGHT)
        engine.tick()
        return engine

    def test_reversal_discarded(self):
        engine = self._moving_right()
        assert not engine.request_direction(Direction.LEFT)
        engine.tick()
        assert engine.state.direction is Direction.RIGHT
        assert engine.state.snake.head == (7, 5)

    def test_latest_request_wins(self):
        engine = self._moving_right()
        assert engine.request_direction(Direction.UP)
        assert engine.request_direction(Direction.DOWN)
        engine.tick()
        assert engine.state.direction is Direction.DOWN
        assert engine.state.snake.head == (6, 6)

    def test_quick_turns_cannot_reverse(self):
        engine = self._moving_right()
        engine.request_direction(Direction.UP)
        # LEFT is checked against the committed RIGHT, not the pending UP.
        assert not engine.request_direction(Direction.LEFT)
        engine.tick()
        assert engine.state.direction is Direction.UP

    def test_none_rejected(self):
        assert not _engine().request_direction(Direction.NONE)

    def test_non_direction_is_a_type_error(self):
        with pytest.raises(TypeError):
            _engine().request_direction("up")


class TestEngineWallCollision:
    def test_death_on_wall_hit(self):
        store = MemoryScoreStore(value=30)
        engine = _engine(store=store)
        engine.state.snake = Snake((9, 0))
        engine.state.score = 50
        engine.request_direction(Direction.RIGHT)
        engine.tick()
        assert engine.game_over
        assert engine.best_score == 50
        assert store.saves == [50]

    def test_best_score_kept_when_higher(self):
        store = MemoryScoreStore(value=30)
        engine = _engine(store=store)
        engine.state.snake = Snake((9, 0))
        engine.request_direction(Direction.RIGHT)
        engine.tick()
        assert engine.game_over
        assert engine.best_score == 30
        assert store.saves == []

    def test_game_over_stops_ticks(self):
        engine = _engine()
        engine.state.snake = Snake((3, 0))
        engine.request_direction(Direction.UP)
        engine.tick()
        tick = engine.state.tick
        state = engine.tick()
        assert state["tick"] == tick
        assert state["run_state"] == "game_over"

    def test_input_ignored_after_game_over(self):
        engine = _engine()
        engine.state.snake = Snake((3, 0))
        engine.request_direction(Direction.UP)
        engine.tick()
        assert not engine.request_direction(Direction.LEFT)


class TestEngineSelfCollision:
    def test_dies_on_body(self):
        engine = _engine()
        engine.state.snake.body = deque([(1, 1), (1, 0), (0, 0), (0, 1), (0, 2)])
        engine.state.food = FAR_AWAY
        engine.request_direction(Direction.LEFT)
        engine.tick()
        assert engine.game_over
        # Snake is left as it was before the fatal move.
        assert engine.state.snake.head == (1, 1)


class TestEngineRestart:
    def test_restart_after_game_over(self):
        engine = _engine(store=MemoryScoreStore())
        engine.request_direction(Direction.RIGHT)
        engine.state.food = (4, 5)
        engine.tick()
        engine.state.food = FAR_AWAY
        engine.request_direction(Direction.UP)
        while not engine.game_over:
            engine.tick()
        best = engine.best_score
        assert best == 10

        engine.restart()
        state = engine.state
        assert state.score == 0
        assert list(state.snake.body) == [(3, 5)]
        assert state.direction is Direction.NONE
        assert state.run_state == RunState.RUNNING
        assert state.best_score == best
        assert not state.snake.occupies(state.food)


class TestEngineHooks:
    def test_render_and_display(self):
        renders = []
        displays = []
        hooks = GameHooks(
            on_render=lambda s: renders.append(s.tick),
            on_display=lambda *args: displays.append(args),
        )
        engine = _engine(hooks=hooks)
        engine.request_direction(Direction.RIGHT)
        engine.state.food = (4, 5)
        engine.tick()
        # One out-of-band redraw after eating plus the regular one.
        assert len(renders) == 2
        assert displays == [(0, 1, 0), (10, 2, 10)]

    def test_display_shows_loaded_best_on_start(self):
        displays = []
        hooks = GameHooks(on_display=lambda *args: displays.append(args))
        _engine(store=MemoryScoreStore(value=40), hooks=hooks)
        assert displays == [(0, 1, 40)]

    def test_sound_hooks_fire(self):
        sounds = []
        hooks = GameHooks(
            on_eat=lambda: sounds.append("eat"),
            on_game_over=lambda: sounds.append("game_over"),
        )
        engine = _engine(hooks=hooks)
        engine.request_direction(Direction.RIGHT)
        engine.state.food = (4, 5)
        engine.tick()
        engine.state.food = FAR_AWAY
        engine.request_direction(Direction.UP)
        while not engine.game_over:
            engine.tick()
        assert sounds == ["eat", "game_over"]

    def test_failing_sound_does_not_affect_state(self, caplog):
        def broken():
            raise RuntimeError("no audio device")

        engine = _engine(hooks=GameHooks(on_eat=broken, on_game_over=broken))
        engine.request_direction(Direction.RIGHT)
        engine.state.food = (4, 5)
        with caplog.at_level(logging.WARNING, logger="bug_snake.engine"):
            engine.tick()
        assert engine.state.score == 10
        assert "failed to play" in caplog.text

        engine.state.snake = Snake((9, 0))
        engine.tick()
        assert engine.game_over


class TestEnginePersistence:
    def test_load_failure_degrades_to_memory(self, caplog):
        store = MemoryScoreStore(fail_load=True)
        with caplog.at_level(logging.WARNING, logger="bug_snake.engine"):
            engine = _engine(store=store)
        assert engine.best_score == 0
        assert "in memory" in caplog.text

        store.fail_load = False
        engine.request_direction(Direction.RIGHT)
        engine.state.food = (4, 5)
        engine.tick()
        assert engine.best_score == 10
        assert store.saves == []

    def test_save_failure_degrades_to_memory(self):
        store = MemoryScoreStore(fail_save=True)
        engine = _engine(store=store)
        engine.request_direction(Direction.RIGHT)
        engine.state.food = (4, 5)
        engine.tick()
        assert engine.best_score == 10

        store.fail_save = False
        engine.state.food = (5, 5)
        engine.tick()
        assert engine.best_score == 20
        assert store.saves == []

    def test_file_store_written_on_new_best(self, tmp_path):
        path = tmp_path / "scores.json"
        engine = _engine(store=FileScoreStore(path))
        engine.request_direction(Direction.RIGHT)
        engine.state.food = (4, 5)
        engine.tick()
        assert json.loads(path.read_text()) == {"snakeBestScore": "10"}
        assert _engine(store=FileScoreStore(path)).best_score == 10

    def test_shared_store_never_lowered(self, tmp_path):
        store = FileScoreStore(tmp_path / "scores.json")
        first = _engine(store=store)
        second = _engine(store=store)
        for engine, foods in ((first, 5), (second, 2)):
            engine.request_direction(Direction.RIGHT)
            for _ in range(foods):
                engine.state.food = engine.state.snake.next_head(Direction.RIGHT)
                engine.tick()
        assert first.best_score == 50
        assert second.best_score == 20
        assert store.load() == 50
        assert _engine(store=store).best_score == 50


class TestEngineInvariants:
    def test_random_play(self):
        """Random inputs never break the body, food, or best-score rules."""
        engine = GameEngine(Grid(8, 6), store=MemoryScoreStore(), seed=11)
        rng = np.random.default_rng(5)
        moves = [Direction.UP, Direction.DOWN, Direction.LEFT, Direction.RIGHT]
        best = engine.best_score
        for _ in range(500):
            if engine.game_over:
                engine.restart()
            engine.request_direction(moves[int(rng.integers(4))])
            engine.tick()
            body = list(engine.state.snake.body)
            assert len(set(body)) == len(body)
            if not engine.game_over:
                assert engine.state.food not in body
            assert engine.best_score >= best
            assert engine.best_score >= engine.state.score
            best = engine.best_score


class TestEngineSerialization:
    def test_state_is_json_serializable(self):
        engine = _engine()
        engine.request_direction(Direction.UP)
        state = engine.tick()
        assert isinstance(json.dumps(state), str)
        assert state["direction"] == "up"
        assert state["grid"]["tile_count_x"] == 10
        assert set(state) >= {"tick", "score", "best_score", "snake", "food", "glyph"}
