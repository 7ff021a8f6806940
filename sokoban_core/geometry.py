from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

# Cell states, one nibble each.
WALL = 0
FLOOR = 1
CRATE = 2
CRATE_ON_DEST = 3
AGENT = 4
AGENT_ON_DEST = 5
DEST = 6

MAX_STATE = DEST

SYMBOLS: Dict[int, str] = {
    WALL: '*',
    FLOOR: '.',
    CRATE: 'c',
    CRATE_ON_DEST: 'C',
    AGENT: 's',
    AGENT_ON_DEST: 'S',
    DEST: 'X',
}
STATES_BY_SYMBOL: Dict[str, int] = {sym: state for state, sym in SYMBOLS.items()}


@dataclass(frozen=True)
class Size:
    """Grid dimensions in cells."""
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"board size must be positive, got {self.width}x{self.height}")

    @property
    def cells(self) -> int:
        return self.width * self.height


DEFAULT_SIZE = Size(width=8, height=8)


@dataclass(frozen=True)
class Point:
    """Zero-based grid coordinate, x is the column and y the row."""
    x: int
    y: int


class Direction(Enum):
    Backward = (-1, 0)
    Forward = (1, 0)
    Up = (0, -1)
    Down = (0, 1)

    @property
    def delta(self) -> Tuple[int, int]:
        return self.value

    @classmethod
    def parse(cls, text: str) -> 'Direction':
        """Looks up a direction by name, ignoring case."""
        for d in cls:
            if d.name.lower() == str(text).strip().lower():
                return d
        raise ValueError(f"unknown direction: {text!r}")


def offset(point: Point, direction: Direction) -> Optional[Point]:
    """Returns the neighbour of `point` in `direction`, or None when it would leave the grid on the low side."""
    dx, dy = direction.delta
    if (dx < 0 and point.x == 0) or (dy < 0 and point.y == 0):
        return None
    return Point(point.x + dx, point.y + dy)
