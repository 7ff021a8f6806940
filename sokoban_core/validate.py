from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .board import Board
from .codec import packed_len
from .errors import InvalidStateError, LengthMismatchError
from .geometry import (
    AGENT,
    AGENT_ON_DEST,
    CRATE,
    CRATE_ON_DEST,
    DEFAULT_SIZE,
    DEST,
    STATES_BY_SYMBOL,
    Point,
    Size,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tally:
    """Cell counts gathered in one scan of a board."""
    agents: int
    crates: int  # crates not on a destination
    destinations: int  # destinations without a crate
    paired: int  # crates sitting on a destination
    agent_position: Optional[Point]  # last agent cell seen in row-major order


def tally(board: Board) -> Tally:
    agents = crates = destinations = paired = 0
    agent_position: Optional[Point] = None
    for point in board.points():
        state = board.get(point)
        if state == CRATE:
            crates += 1
        elif state == CRATE_ON_DEST:
            paired += 1
        elif state == DEST:
            destinations += 1
        elif state in (AGENT, AGENT_ON_DEST):
            agents += 1
            agent_position = point
    return Tally(agents, crates, destinations, paired, agent_position)


def validate_board(board: Board) -> Board:
    """
    Returns a copy of `board` with `is_valid` and `agent_position` recomputed.
    A board is valid when it holds exactly one agent and as many unpaired
    crates as unpaired destinations. Invalid boards never carry an agent position.
    """
    counts = tally(board)
    result = board.copy()
    result.is_valid = counts.agents == 1 and counts.crates == counts.destinations
    result.agent_position = counts.agent_position if result.is_valid else None
    if not result.is_valid:
        logger.debug(
            "invalid board: agents=%d crates=%d destinations=%d",
            counts.agents, counts.crates, counts.destinations,
        )
    return result


def board_from_bytes(raw: bytes, size: Optional[Size] = None) -> Board:
    """Builds and validates a board from externally supplied packed cells."""
    size = size or DEFAULT_SIZE
    expected = packed_len(size)
    if len(raw) != expected:
        raise LengthMismatchError(
            f"Passed field length {len(raw)} does not match {expected} bytes for {size.width}x{size.height}"
        )
    return validate_board(Board(size=size, cells=bytearray(raw)))


def is_solved(board: Board) -> bool:
    """True when the board is valid and no crate is left off a destination."""
    return board.is_valid and tally(board).crates == 0


def parse_board(text: str) -> Board:
    """Builds a validated board from symbol rows such as '.scX'. Blank lines are skipped."""
    rows = [line.strip() for line in text.splitlines() if line.strip()]
    if not rows:
        raise LengthMismatchError("empty board")
    width = len(rows[0])
    for r in rows:
        if len(r) != width:
            raise LengthMismatchError(f"ragged row {r!r}: expected width {width}")
    board = Board.new(Size(width=width, height=len(rows)))
    for y, r in enumerate(rows):
        for x, sym in enumerate(r):
            if sym not in STATES_BY_SYMBOL:
                raise InvalidStateError(f"unknown cell symbol {sym!r} at ({x}, {y})")
            board.set(Point(x, y), STATES_BY_SYMBOL[sym])
    return validate_board(board)
