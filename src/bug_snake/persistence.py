"""Best-score storage backends."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

BEST_SCORE_KEY = "snakeBestScore"


class PersistenceUnavailable(RuntimeError):
    """Raised when the best score cannot be read or written."""


class ScoreStore(Protocol):
    """Durable home for a single best-score integer."""

    def load(self) -> int | None: ...

    def save(self, value: int) -> None: ...


def _parse(raw: object) -> int:
    """Decode a stored value, which is kept as decimal text."""
    if not isinstance(raw, str) or not raw.strip().isdecimal():
        raise PersistenceUnavailable(f"Corrupt best score value: {raw!r}.")
    return int(raw)


class MemoryScoreStore:
    """In-process store, mainly for tests.

    Set ``fail_load`` / ``fail_save`` to simulate unavailable storage.
    """

    def __init__(
        self,
        value: int | None = None,
        fail_load: bool = False,
        fail_save: bool = False,
    ) -> None:
        self.value = value
        self.fail_load = fail_load
        self.fail_save = fail_save
        self.saves: list[int] = []

    def load(self) -> int | None:
        if self.fail_load:
            raise PersistenceUnavailable("Storage is unavailable.")
        return self.value

    def save(self, value: int) -> None:
        if self.fail_save:
            raise PersistenceUnavailable("Storage is unavailable.")
        if self.value is None or value > self.value:
            self.value = value
        self.saves.append(value)


class FileScoreStore:
    """JSON key-value file holding the best score as decimal text.

    Saving never lowers the stored value. Other keys in the file are preserved, so several values can share one
    document the way they share browser storage.
    """

    def __init__(self, path: str | Path, key: str = BEST_SCORE_KEY) -> None:
        self.path = Path(path)
        self.key = key

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise PersistenceUnavailable(
                f"Cannot read {self.path}: {exc}",
            ) from exc
        if not isinstance(data, dict):
            raise PersistenceUnavailable(f"{self.path} is not a JSON object.")
        return data

    def load(self) -> int | None:
        data = self._read()
        if self.key not in data:
            return None
        return _parse(data[self.key])

    def save(self, value: int) -> None:
        if value < 0:
            raise ValueError("Best score cannot be negative.")
        data = self._read()
        # Another writer may already hold a higher score.
        try:
            stored = _parse(data[self.key]) if self.key in data else None
        except PersistenceUnavailable:
            logger.warning("Replacing corrupt best score in %s", self.path)
            stored = None
        if stored is not None and stored >= value:
            return
        data[self.key] = str(value)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as exc:
            raise PersistenceUnavailable(
                f"Cannot write {self.path}: {exc}",
            ) from exc
        logger.debug("Best score %d saved to %s", value, self.path)

    def clear(self) -> None:
        """Forget the stored best score."""
        data = self._read()
        if data.pop(self.key, None) is None:
            return
        try:
            self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as exc:
            raise PersistenceUnavailable(
                f"Cannot write {self.path}: {exc}",
            ) from exc
        logger.info("Best score cleared from %s", self.path)
