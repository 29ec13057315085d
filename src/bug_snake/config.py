"""Runtime configuration for the site server."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields
from pathlib import Path

from bug_snake.engine import TICK_INTERVAL_MS
from bug_snake.grid import DEFAULT_CELL_SIZE

logger = logging.getLogger(__name__)

# Environment variable -> Settings field.
_ENV_MAP: dict[str, str] = {
    "HOST": "host",
    "PORT": "port",
    "BUG_SNAKE_STATIC_DIR": "static_dir",
    "BUG_SNAKE_SCORE_FILE": "score_file",
    "BUG_SNAKE_TICK_MS": "tick_rate_ms",
    "BUG_SNAKE_MAX_SESSIONS": "max_sessions",
}


@dataclass(frozen=True)
class Settings:
    """Server and game settings.

    Supports JSON serialization and environment overrides.
    """

    # HTTP
    host: str = "127.0.0.1"
    port: int = 3000
    static_dir: str = "public"

    # Persistence
    score_file: str = "data/scores.json"

    # Game
    tick_rate_ms: int = TICK_INTERVAL_MS
    cell_size: int = DEFAULT_CELL_SIZE
    max_sessions: int = 100

    def __post_init__(self) -> None:
        if not 1 <= self.port <= 65535:
            raise ValueError("port must be between 1 and 65535.")
        if self.tick_rate_ms < 10:
            raise ValueError("tick_rate_ms must be at least 10.")
        if self.cell_size < 1:
            raise ValueError("cell_size must be at least 1.")
        if self.max_sessions < 1:
            raise ValueError("max_sessions must be at least 1.")

    def to_dict(self) -> dict:
        return asdict(self)

    def save(self, path: str | Path) -> None:
        """Write settings to a JSON file."""
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(json.dumps(self.to_dict(), indent=2))
        logger.info("Settings saved to %s", p)

    @classmethod
    def load(cls, path: str | Path) -> Settings:
        """Load settings from a JSON file."""
        return cls(**json.loads(Path(path).read_text()))

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        base: Settings | None = None,
    ) -> Settings:
        """Overlay environment variables on *base* (or the defaults)."""
        env = os.environ if environ is None else environ
        values = (base or cls()).to_dict()
        types = {f.name: f.type for f in fields(cls)}
        for var, name in _ENV_MAP.items():
            raw = env.get(var)
            if raw is None or raw == "":
                continue
            if types[name] == "int":
                try:
                    values[name] = int(raw)
                except ValueError as exc:
                    raise ValueError(f"{var} must be an integer, got {raw!r}.") from exc
            else:
                values[name] = raw
        return cls(**values)
