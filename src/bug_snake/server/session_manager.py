"""In-memory session registry and async tick loops."""

from __future__ import annotations

import asyncio
import json
import logging
import time
import uuid
from dataclasses import dataclass, field

from starlette.websockets import WebSocket, WebSocketState

from bug_snake.config import Settings
from bug_snake.engine import GameEngine, GameHooks
from bug_snake.grid import Grid
from bug_snake.persistence import PersistenceUnavailable, ScoreStore
from bug_snake.snake import Direction

logger = logging.getLogger(__name__)


@dataclass
class SnakeSession:
    """One browser's game: the engine plus the sockets watching it."""

    session_id: str
    engine: GameEngine
    tick_rate_ms: int
    sockets: list[WebSocket] = field(default_factory=list)
    events: list[str] = field(default_factory=list)
    paused: bool = False
    created_at: float = field(default_factory=time.monotonic)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    _task: asyncio.Task | None = field(default=None, repr=False)

    def snapshot(self) -> dict:
        """Current state plus any sound events raised since the last one."""
        state = self.engine.get_state()
        state["session_id"] = self.session_id
        state["paused"] = self.paused
        state["events"] = self.events[:]
        self.events.clear()
        return state


class SessionManager:
    """Central registry of live snake sessions."""

    def __init__(
        self,
        store: ScoreStore | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.store = store
        self.settings = settings if settings is not None else Settings()
        self._sessions: dict[str, SnakeSession] = {}
        self._stopping: set[asyncio.Task] = set()

    def create_session(
        self,
        viewport_width: int = 1280,
        container_width: int | None = None,
        tick_rate_ms: int | None = None,
        seed: int | None = None,
    ) -> SnakeSession:
        """Create a session and start its tick loop.

        Must be called from a running event loop.
        """
        grid = Grid.for_viewport(
            viewport_width, container_width, cell_size=self.settings.cell_size,
        )
        session_id = uuid.uuid4().hex[:12]
        events: list[str] = []
        hooks = GameHooks(
            on_eat=lambda: events.append("eat"),
            on_game_over=lambda: events.append("game_over"),
        )
        engine = GameEngine(grid, store=self.store, hooks=hooks, seed=seed)
        session = SnakeSession(
            session_id=session_id,
            engine=engine,
            tick_rate_ms=tick_rate_ms or self.settings.tick_rate_ms,
            events=events,
        )
        self._sessions[session_id] = session
        session._task = asyncio.create_task(self._tick_loop(session))
        logger.info(
            "Session %s created (%dx%d tiles).",
            session_id, grid.tile_count_x, grid.tile_count_y,
        )
        self._prune_sessions(keep=session)
        return session

    def get_session(self, session_id: str) -> SnakeSession | None:
        return self._sessions.get(session_id)

    def best_score(self) -> int:
        """Best score across the store and every live session."""
        best = 0
        if self.store is not None:
            try:
                best = self.store.load() or 0
            except PersistenceUnavailable as exc:
                logger.warning("Best score storage unavailable: %s", exc)
        for session in self._sessions.values():
            best = max(best, session.engine.best_score)
        return best

    async def handle_direction(self, session: SnakeSession, direction: Direction) -> None:
        async with session.lock:
            session.engine.request_direction(direction)

    async def restart(self, session: SnakeSession) -> None:
        """Restart the round and push the fresh state immediately."""
        async with session.lock:
            session.engine.restart()
            state = session.snapshot()
        await self._broadcast(session, state)

    def set_paused(self, session: SnakeSession, paused: bool) -> None:
        """Pause or resume ticking, e.g. when the page is hidden."""
        if session.paused != paused:
            session.paused = paused
            logger.info(
                "Session %s %s.", session.session_id,
                "paused" if paused else "resumed",
            )

    async def close_session(self, session_id: str) -> bool:
        """Stop a session's tick loop and forget it."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        await self._stop(session)
        logger.info("Session %s closed.", session_id)
        return True

    async def _tick_loop(self, session: SnakeSession) -> None:
        """Tick the engine on a fixed interval, broadcasting live rounds."""
        interval = session.tick_rate_ms / 1000.0
        try:
            while True:
                await asyncio.sleep(interval)
                if session.paused:
                    continue
                async with session.lock:
                    if session.engine.game_over:
                        continue
                    # Ticks may write the score file; keep that off the loop.
                    await asyncio.to_thread(session.engine.tick)
                    state = session.snapshot()
                await self._broadcast(session, state)
        except asyncio.CancelledError:
            logger.info("Tick loop cancelled for session %s.", session.session_id)
        except Exception:
            logger.exception("Tick loop error in session %s.", session.session_id)

    async def _broadcast(self, session: SnakeSession, state: dict) -> None:
        """Send state to every connected socket, dropping dead ones."""
        payload = json.dumps(state, separators=(",", ":"))
        dead: list[WebSocket] = []
        for ws in list(session.sockets):
            try:
                if ws.client_state == WebSocketState.CONNECTED:
                    await ws.send_text(payload)
            except Exception:
                dead.append(ws)
        for ws in dead:
            if ws in session.sockets:
                session.sockets.remove(ws)

    def _prune_sessions(self, keep: SnakeSession) -> None:
        """Bound the registry, evicting finished or unwatched sessions first.

        Evicted sessions are stopped in the background, which also closes
        any sockets still attached to them.
        """
        overflow = len(self._sessions) - self.settings.max_sessions
        if overflow <= 0:
            return
        candidates = sorted(
            (s for s in self._sessions.values() if s is not keep),
            key=lambda s: (
                bool(s.sockets) and not s.engine.game_over, s.created_at,
            ),
        )
        for stale in candidates[:overflow]:
            self._sessions.pop(stale.session_id, None)
            task = asyncio.create_task(self._stop(stale))
            self._stopping.add(task)
            task.add_done_callback(self._stopping.discard)
        logger.info(
            "Pruned %d sessions (retaining up to %d).",
            overflow, self.settings.max_sessions,
        )

    async def _stop(self, session: SnakeSession) -> None:
        task = session._task
        if task and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        for ws in list(session.sockets):
            try:
                if ws.client_state == WebSocketState.CONNECTED:
                    await ws.close(code=1000, reason="Session closed.")
            except Exception:
                logger.warning(
                    "Failed closing socket in session %s.", session.session_id,
                )
        session.sockets.clear()

    async def cleanup(self) -> None:
        """Cancel all running tick loops."""
        sessions = list(self._sessions.values())
        self._sessions.clear()
        for session in sessions:
            await self._stop(session)
        if self._stopping:
            await asyncio.gather(*self._stopping, return_exceptions=True)
        logger.info("SessionManager cleanup complete.")
