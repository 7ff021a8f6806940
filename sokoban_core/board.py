from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .codec import packed_len, read_nibble, write_nibble
from .errors import OutOfBoundsError
from .geometry import SYMBOLS, Point, Size


@dataclass
class Board:
    """A Sokoban grid stored as packed nibbles, plus the cached validation result."""
    size: Size
    cells: bytearray  # packed_len(size) bytes, two cells per byte
    is_valid: bool = False
    agent_position: Optional[Point] = field(default=None)

    @classmethod
    def new(cls, size: Size) -> 'Board':
        """Creates an all-wall board of the given size. Fill it with `set` and validate it before playing."""
        return cls(size=size, cells=bytearray(packed_len(size)))

    def contains(self, point: Point) -> bool:
        return 0 <= point.x < self.size.width and 0 <= point.y < self.size.height

    def index(self, point: Point) -> int:
        """Calculates the row-major cell index for a point."""
        return point.y * self.size.width + point.x

    def get(self, point: Point) -> Optional[int]:
        """Gets the cell state at `point`, or None when the point lies outside the grid."""
        if not self.contains(point):
            return None
        return read_nibble(self.cells, self.index(point))

    def set(self, point: Point, state: int) -> None:
        """Overwrites one cell. Does not revalidate the board."""
        if not self.contains(point):
            raise OutOfBoundsError(f"Attempt of setting a value beyond the field: ({point.x}, {point.y})")
        write_nibble(self.cells, self.index(point), state)

    def copy(self) -> 'Board':
        return Board(
            size=self.size,
            cells=bytearray(self.cells),
            is_valid=self.is_valid,
            agent_position=self.agent_position,
        )

    def points(self) -> Iterable[Point]:
        """Iterates over all points in row-major order."""
        for y in range(self.size.height):
            for x in range(self.size.width):
                yield Point(x, y)

    def rows(self) -> List[List[int]]:
        return [
            [read_nibble(self.cells, y * self.size.width + x) for x in range(self.size.width)]
            for y in range(self.size.height)
        ]

    def pretty(self) -> str:
        """Renders the grid with one symbol per cell and one line per row."""
        lines: List[str] = []
        for row in self.rows():
            lines.append("".join(SYMBOLS.get(state, '?') for state in row))
        return "".join(line + "\n" for line in lines)
