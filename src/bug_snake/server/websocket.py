"""WebSocket handler for live snake play."""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from bug_snake.server.session_manager import SessionManager, SnakeSession
from bug_snake.snake import Direction

logger = logging.getLogger(__name__)

ws_router = APIRouter()

# Arrow names from the touch pad and WASD from the keyboard.
_DIRECTION_MAP: dict[str, Direction] = {
    "up": Direction.UP,
    "down": Direction.DOWN,
    "left": Direction.LEFT,
    "right": Direction.RIGHT,
    "w": Direction.UP,
    "s": Direction.DOWN,
    "a": Direction.LEFT,
    "d": Direction.RIGHT,
}


def _get_manager(ws: WebSocket) -> SessionManager:
    return ws.app.state.session_manager


async def _dispatch(
    manager: SessionManager, session: SnakeSession, msg: dict,
) -> None:
    """Apply one client message; unknown shapes are ignored."""
    direction_str = msg.get("direction")
    if isinstance(direction_str, str):
        direction = _DIRECTION_MAP.get(direction_str.lower())
        if direction is not None:
            await manager.handle_direction(session, direction)
        return

    action = msg.get("action")
    if action == "restart":
        await manager.restart(session)
    elif action == "pause":
        manager.set_paused(session, True)
    elif action == "resume":
        manager.set_paused(session, False)


@ws_router.websocket("/snake/sessions/{session_id}/play")
async def play(websocket: WebSocket, session_id: str) -> None:
    """Send directions and controls, receive game state each tick."""
    manager = _get_manager(websocket)
    session = manager.get_session(session_id)
    if session is None:
        await websocket.close(code=4004, reason="Session not found.")
        return

    await websocket.accept()
    session.sockets.append(websocket)
    logger.info("Client connected to session %s.", session_id)

    # Initial snapshot so the client can draw before the first tick.
    await websocket.send_text(
        json.dumps(session.snapshot(), separators=(",", ":")),
    )

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                msg = json.loads(raw)
            except json.JSONDecodeError:
                continue
            if not isinstance(msg, dict):
                continue
            await _dispatch(manager, session, msg)
    except WebSocketDisconnect:
        logger.info("Client disconnected from session %s.", session_id)
    finally:
        if websocket in session.sockets:
            session.sockets.remove(websocket)
