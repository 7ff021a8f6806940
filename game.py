from __future__ import annotations

# Facade module that re-exports the Sokoban core.
# The Flask app and tests import from here; single-responsibility modules
# live under sokoban_core/*.

from sokoban_core.geometry import (
    AGENT,
    AGENT_ON_DEST,
    CRATE,
    CRATE_ON_DEST,
    DEFAULT_SIZE,
    DEST,
    FLOOR,
    SYMBOLS,
    WALL,
    Direction,
    Point,
    Size,
    offset,
)
from sokoban_core.errors import (
    AlreadyFinishedError,
    AlreadyStartedError,
    InvalidBoardError,
    InvalidStateError,
    LengthMismatchError,
    NotFoundError,
    NotRunningError,
    OutOfBoundsError,
    SokobanError,
    UnauthorizedError,
)
from sokoban_core.codec import packed_len, read_nibble, write_nibble
from sokoban_core.board import Board
from sokoban_core.validate import (
    Tally,
    board_from_bytes,
    is_solved,
    parse_board,
    tally,
    validate_board,
)
from sokoban_core.moves import make_step, step_point
from sokoban_core.session import GameSession, GameStatus
from sokoban_core.store import (
    DEFAULT_DB,
    create_board,
    create_game,
    db_append_board,
    db_get_board,
    db_get_game,
    db_replace_board,
    start_game,
    step_game,
    step_stored_board,
    validate_stored_board,
)
