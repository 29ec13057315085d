"""Grid geometry for the snake game."""

from __future__ import annotations

from collections.abc import Iterable

import numpy as np

DEFAULT_CELL_SIZE = 20

# Responsive canvas sizing.
MOBILE_BREAKPOINT = 768
MOBILE_MAX_WIDTH = 300
MOBILE_ASPECT = 0.67
DESKTOP_WIDTH = 600
DESKTOP_HEIGHT = 400

Position = tuple[int, int]


class Grid:
    """Fixed-size tile grid derived from a pixel canvas.

    Coordinates use (x, y) ordering, i.e. (column, row). Occupancy masks
    are built as NumPy arrays indexed ``[row, column]``.
    """

    def __init__(
        self,
        tile_count_x: int,
        tile_count_y: int,
        cell_size: int = DEFAULT_CELL_SIZE,
    ) -> None:
        if tile_count_x < 1 or tile_count_y < 1:
            raise ValueError("Grid dimensions must be at least 1×1.")
        if cell_size < 1:
            raise ValueError("cell_size must be at least 1.")
        self.tile_count_x = tile_count_x
        self.tile_count_y = tile_count_y
        self.cell_size = cell_size

    @classmethod
    def from_canvas(
        cls,
        width_px: int,
        height_px: int,
        cell_size: int = DEFAULT_CELL_SIZE,
    ) -> Grid:
        """Build a grid from a canvas size in pixels."""
        if cell_size < 1:
            raise ValueError("cell_size must be at least 1.")
        return cls(width_px // cell_size, height_px // cell_size, cell_size)

    @classmethod
    def for_viewport(
        cls,
        viewport_width: int,
        container_width: int | None = None,
        cell_size: int = DEFAULT_CELL_SIZE,
    ) -> Grid:
        """Size the canvas the way the page does for a given viewport.

        Narrow viewports get a small canvas that fits the container, snapped
        to whole cells; anything wider gets the fixed desktop canvas.
        """
        if viewport_width <= MOBILE_BREAKPOINT:
            container = (
                container_width if container_width is not None
                else DESKTOP_WIDTH
            )
            mobile_width = min(container, MOBILE_MAX_WIDTH)
            width = (mobile_width // cell_size) * cell_size
            height = int((mobile_width * MOBILE_ASPECT) // cell_size) * cell_size
            return cls.from_canvas(width, height, cell_size)
        return cls.from_canvas(DESKTOP_WIDTH, DESKTOP_HEIGHT, cell_size)

    @property
    def width_px(self) -> int:
        return self.tile_count_x * self.cell_size

    @property
    def height_px(self) -> int:
        return self.tile_count_y * self.cell_size

    @property
    def size(self) -> int:
        """Total number of cells."""
        return self.tile_count_x * self.tile_count_y

    def in_bounds(self, pos: Position) -> bool:
        """Check whether a coordinate lies within the grid."""
        x, y = pos
        return 0 <= x < self.tile_count_x and 0 <= y < self.tile_count_y

    def center(self) -> Position:
        """Spawn cell for a fresh snake: a third across, halfway down."""
        return self.tile_count_x // 3, self.tile_count_y // 2

    def initial_food(self) -> Position:
        """Food slot used before the first placement."""
        return int(self.tile_count_x * 0.6), self.tile_count_y // 2

    def occupancy(self, occupied: Iterable[Position]) -> np.ndarray:
        """Return a boolean ``[row, column]`` mask of the occupied cells."""
        mask = np.zeros((self.tile_count_y, self.tile_count_x), dtype=bool)
        for x, y in occupied:
            if self.in_bounds((x, y)):
                mask[y, x] = True
        return mask

    def free_cells(self, occupied: Iterable[Position]) -> list[Position]:
        """Return every unoccupied cell in row-major order."""
        rows, cols = np.nonzero(~self.occupancy(occupied))
        return list(zip(cols.tolist(), rows.tolist(), strict=True))

    def to_dict(self) -> dict:
        """Serialize grid geometry to a dictionary."""
        return {
            "tile_count_x": self.tile_count_x,
            "tile_count_y": self.tile_count_y,
            "cell_size": self.cell_size,
        }
