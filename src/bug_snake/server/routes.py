"""REST API route handlers for snake sessions and the static landing page."""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse

from bug_snake.server.models import (
    BestScoreResponse,
    CreateSessionRequest,
    ErrorResponse,
    SessionSummary,
)
from bug_snake.server.session_manager import SessionManager

router = APIRouter(prefix="/snake", tags=["snake"])
site_router = APIRouter(tags=["site"])


def _get_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


@site_router.get("/", include_in_schema=False)
async def index(request: Request) -> FileResponse:
    """Serve the landing page."""
    page = Path(request.app.state.settings.static_dir) / "index.html"
    if not page.is_file():
        raise HTTPException(status_code=404, detail="Landing page not found.")
    return FileResponse(page)


@router.get("/best-score")
async def get_best_score(request: Request) -> BestScoreResponse:
    """Return the persisted best score."""
    return BestScoreResponse(best_score=_get_manager(request).best_score())


@router.post("/sessions", status_code=201)
async def create_session(
    body: CreateSessionRequest, request: Request,
) -> SessionSummary:
    """Start a new snake session sized for the caller's viewport."""
    manager = _get_manager(request)
    try:
        session = manager.create_session(
            viewport_width=body.viewport_width,
            container_width=body.container_width,
            tick_rate_ms=body.tick_rate_ms,
            seed=body.seed,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    grid = session.engine.grid
    return SessionSummary(
        session_id=session.session_id,
        tile_count_x=grid.tile_count_x,
        tile_count_y=grid.tile_count_y,
        cell_size=grid.cell_size,
        tick_rate_ms=session.tick_rate_ms,
        best_score=session.engine.best_score,
    )


@router.get(
    "/sessions/{session_id}",
    responses={404: {"model": ErrorResponse}},
)
async def get_session(session_id: str, request: Request) -> dict:
    """Get the full state of a session."""
    session = _get_manager(request).get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found.")
    state = session.engine.get_state()
    state["session_id"] = session.session_id
    state["paused"] = session.paused
    return state


@router.delete(
    "/sessions/{session_id}",
    status_code=204,
    responses={404: {"model": ErrorResponse}},
)
async def delete_session(session_id: str, request: Request) -> None:
    """Stop a session."""
    if not await _get_manager(request).close_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found.")
