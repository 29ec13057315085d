"""Snake representation and movement logic."""

from __future__ import annotations

import enum
from collections import deque

from bug_snake.grid import Position


class Direction(enum.Enum):
    """Movement directions with (dx, dy) values; y grows downwards."""

    UP = (0, -1)
    DOWN = (0, 1)
    LEFT = (-1, 0)
    RIGHT = (1, 0)
    NONE = (0, 0)

    @property
    def opposite(self) -> Direction:
        """The direction that would cause an instant 180° reversal."""
        return _OPPOSITES[self]

    def is_reverse_of(self, other: Direction) -> bool:
        """Check whether moving this way would turn straight back on *other*."""
        return self is not Direction.NONE and self.opposite is other


_OPPOSITES: dict[Direction, Direction] = {
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
    Direction.NONE: Direction.NONE,
}


class Snake:
    """A snake represented as an ordered deque of (x, y) body segments.

    The head is ``body[0]``; the tail is ``body[-1]``.
    """

    def __init__(self, start: Position, length: int = 1) -> None:
        if length < 1:
            raise ValueError("Snake length must be at least 1.")
        x, y = start
        # Extra segments trail off to the left of the head.
        self.body: deque[Position] = deque(
            (x - i, y) for i in range(length)
        )

    def __len__(self) -> int:
        return len(self.body)

    def __iter__(self):
        return iter(self.body)

    @property
    def head(self) -> Position:
        """Return the head coordinate."""
        return self.body[0]

    @property
    def tail(self) -> Position:
        """Return the tail coordinate."""
        return self.body[-1]

    def next_head(self, direction: Direction) -> Position:
        """Compute the next head position without moving."""
        dx, dy = direction.value
        x, y = self.head
        return x + dx, y + dy

    def advance(self, new_head: Position, grow: bool = False) -> Position | None:
        """Prepend *new_head* and drop the tail unless growing.

        Returns the vacated tail cell, or ``None`` if the snake grew.
        """
        self.body.appendleft(new_head)
        if grow:
            return None
        return self.body.pop()

    def occupies(self, pos: Position) -> bool:
        """Check whether any segment sits on *pos*."""
        return pos in self.body

    def collides_with_body(self, pos: Position) -> bool:
        """Check *pos* against every segment except the tail.

        The tail is vacated on a plain move, so stepping into it is legal.
        A single-segment snake has nothing to collide with.
        """
        if len(self.body) == 1:
            return False
        return any(seg == pos for seg in list(self.body)[:-1])

    def to_dict(self) -> dict:
        """Serialize snake state to a dictionary."""
        return {
            "body": [list(seg) for seg in self.body],
            "length": len(self.body),
        }
