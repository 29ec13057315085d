"""Pydantic models for API request/response schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CreateSessionRequest(BaseModel):
    """Request body for POST /snake/sessions."""

    viewport_width: int = Field(default=1280, ge=1)
    container_width: int | None = Field(default=None, ge=20)
    tick_rate_ms: int | None = Field(default=None, ge=50, le=2000)
    seed: int | None = None


class SessionSummary(BaseModel):
    """Compact session info returned on creation."""

    session_id: str
    tile_count_x: int
    tile_count_y: int
    cell_size: int
    tick_rate_ms: int
    best_score: int


class BestScoreResponse(BaseModel):
    """Response for GET /snake/best-score."""

    best_score: int


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    detail: str
