from __future__ import annotations

from typing import Dict, Optional, Tuple

from .board import Board
from .errors import InvalidBoardError
from .geometry import (
    AGENT,
    AGENT_ON_DEST,
    CRATE,
    CRATE_ON_DEST,
    DEST,
    FLOOR,
    Direction,
    Point,
    offset,
)

# What a crate turns into when pushed onto a given cell.
_PUSH_TARGETS: Dict[int, int] = {FLOOR: CRATE, DEST: CRATE_ON_DEST}
# What the agent's new cell becomes when it steps into a cell.
_AGENT_ON: Dict[int, int] = {FLOOR: AGENT, DEST: AGENT_ON_DEST, CRATE: AGENT, CRATE_ON_DEST: AGENT_ON_DEST}


def step_point(board: Board, point: Point, direction: Direction) -> Optional[Point]:
    """Gets the neighbouring point in `direction`, or None when it falls outside the board."""
    nxt = offset(point, direction)
    if nxt is None or not board.contains(nxt):
        return None
    return nxt


def _resolve(board: Board, cur: Point, direction: Direction) -> Optional[Tuple[Point, Optional[Point]]]:
    """Returns (agent target, crate target) for a legal step, or None for a no-op."""
    nxt = step_point(board, cur, direction)
    if nxt is None:
        return None
    ahead = board.get(nxt)
    if ahead in (FLOOR, DEST):
        return nxt, None
    if ahead in (CRATE, CRATE_ON_DEST):
        beyond = step_point(board, nxt, direction)
        if beyond is not None and board.get(beyond) in _PUSH_TARGETS:
            return nxt, beyond
    # Walls, out-of-range nibbles and blocked pushes.
    return None


def make_step(board: Board, direction: Direction) -> Board:
    """
    Applies one move of the agent and returns the resulting board.
    The input board is never modified. Blocked moves return an unchanged copy.
    Only one crate can be pushed at a time; `is_valid` is carried over as-is.
    """
    if not board.is_valid or board.agent_position is None:
        raise InvalidBoardError("Invalid board")
    cur = board.agent_position
    result = board.copy()
    resolved = _resolve(board, cur, direction)
    if resolved is None:
        return result
    nxt, beyond = resolved
    ahead = board.get(nxt)
    if beyond is not None:
        result.set(beyond, _PUSH_TARGETS[board.get(beyond)])
    result.set(nxt, _AGENT_ON[ahead])
    result.set(cur, FLOOR)
    result.agent_position = nxt
    return result
