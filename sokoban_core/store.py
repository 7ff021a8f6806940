from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional, Tuple

from .board import Board
from .errors import InvalidBoardError, NotFoundError
from .geometry import Direction, Point, Size
from .moves import make_step
from .session import GameSession, GameStatus
from .validate import board_from_bytes, validate_board

logger = logging.getLogger(__name__)

DEFAULT_DB = os.getenv("SOKOBAN_DB", os.path.join("data", "sokoban.db"))

_BOARD_COLUMNS = "width, height, cells, is_valid, agent_x, agent_y"


def _ensure_db_dir(db_path: str) -> None:
    """Ensures the directory for the SQLite DB exists before connecting."""
    directory = os.path.dirname(db_path)
    if directory and not os.path.exists(directory):
        os.makedirs(directory, exist_ok=True)


def _resolve_db_path(db_path: str) -> str:
    """Resolves a potentially unwritable DB path to a writable one, creating the directory if needed."""
    if db_path == ":memory:":
        return db_path
    try:
        _ensure_db_dir(db_path)
        return db_path
    except PermissionError:
        logger.warning("cannot create directory for %s, looking for a fallback", db_path)
    candidates = [
        os.getenv('SOKOBAN_DB_DIR'),
        os.path.join(os.getcwd(), 'data'),
        '/tmp',
    ]
    base = os.path.basename(db_path) or 'sokoban.db'
    for d in candidates:
        if not d:
            continue
        try:
            os.makedirs(d, exist_ok=True)
            return os.path.join(d, base)
        except OSError:
            continue
    return base


def _ensure_db(conn: sqlite3.Connection) -> None:
    """Ensures the board and game tables exist."""
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS boards (
            idx INTEGER PRIMARY KEY,
            width INTEGER NOT NULL,
            height INTEGER NOT NULL,
            cells BLOB NOT NULL,
            is_valid INTEGER NOT NULL,
            agent_x INTEGER,
            agent_y INTEGER
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS games (
            idx INTEGER PRIMARY KEY,
            width INTEGER NOT NULL,
            height INTEGER NOT NULL,
            cells BLOB NOT NULL,
            is_valid INTEGER NOT NULL,
            agent_x INTEGER,
            agent_y INTEGER,
            player TEXT NOT NULL,
            status TEXT NOT NULL,
            created_at TEXT NOT NULL
        )
        """
    )


@contextmanager
def _transaction(db_path: str) -> Iterator[sqlite3.Connection]:
    """Opens a connection holding the write lock for the whole block; commits on success."""
    conn = sqlite3.connect(_resolve_db_path(db_path), isolation_level=None)
    try:
        conn.execute("BEGIN IMMEDIATE")
        _ensure_db(conn)
        try:
            yield conn
        except BaseException:
            conn.execute("ROLLBACK")
            raise
        conn.execute("COMMIT")
    finally:
        conn.close()


def _board_values(board: Board) -> Tuple[int, int, bytes, int, Optional[int], Optional[int]]:
    pos = board.agent_position
    return (
        board.size.width,
        board.size.height,
        bytes(board.cells),
        1 if board.is_valid else 0,
        pos.x if pos is not None else None,
        pos.y if pos is not None else None,
    )


def _board_from_row(row: Tuple) -> Board:
    width, height, cells, is_valid, agent_x, agent_y = row[:6]
    position = Point(int(agent_x), int(agent_y)) if agent_x is not None else None
    return Board(
        size=Size(width=int(width), height=int(height)),
        cells=bytearray(cells),
        is_valid=bool(is_valid),
        agent_position=position,
    )


def _next_index(conn: sqlite3.Connection, table: str) -> int:
    # Rows are never deleted, so the row count is the next free index.
    (count,) = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()
    return int(count)


# ---------- Boards ----------

def _load_board(conn: sqlite3.Connection, index: int) -> Optional[Board]:
    row = conn.execute(f"SELECT {_BOARD_COLUMNS} FROM boards WHERE idx = ?", (index,)).fetchone()
    return _board_from_row(row) if row else None


def _save_board(conn: sqlite3.Connection, index: int, board: Board) -> None:
    conn.execute(
        f"INSERT OR REPLACE INTO boards (idx, {_BOARD_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
        (index,) + _board_values(board),
    )


def db_append_board(db_path: str, board: Board) -> int:
    with _transaction(db_path) as conn:
        index = _next_index(conn, "boards")
        _save_board(conn, index, board)
    logger.info("stored board %d (%dx%d, valid=%s)", index, board.size.width, board.size.height, board.is_valid)
    return index


def db_get_board(db_path: str, index: int) -> Optional[Board]:
    with _transaction(db_path) as conn:
        return _load_board(conn, index)


def db_replace_board(db_path: str, index: int, board: Board) -> None:
    with _transaction(db_path) as conn:
        if _load_board(conn, index) is None:
            raise NotFoundError(f"No board at index {index}")
        _save_board(conn, index, board)


def create_board(db_path: str, raw: bytes, size: Optional[Size] = None) -> int:
    """Validates packed cells and appends the board, returning its index."""
    return db_append_board(db_path, board_from_bytes(raw, size))


def validate_stored_board(db_path: str, index: int) -> Board:
    with _transaction(db_path) as conn:
        board = _load_board(conn, index)
        if board is None:
            raise NotFoundError(f"No board at index {index}")
        board = validate_board(board)
        _save_board(conn, index, board)
    return board


def step_stored_board(db_path: str, index: int, direction: Direction) -> Optional[Board]:
    """Moves the agent on a stored board. Invalid boards are left untouched and yield None."""
    with _transaction(db_path) as conn:
        board = _load_board(conn, index)
        if board is None:
            raise NotFoundError(f"No board at index {index}")
        if not board.is_valid:
            return None
        board = make_step(board, direction)
        _save_board(conn, index, board)
    return board


# ---------- Games ----------

def _load_game(conn: sqlite3.Connection, index: int) -> Optional[GameSession]:
    row = conn.execute(
        f"SELECT {_BOARD_COLUMNS}, player, status FROM games WHERE idx = ?", (index,)
    ).fetchone()
    if not row:
        return None
    return GameSession(board=_board_from_row(row), player=row[6], status=GameStatus(row[7]))


def _save_game(conn: sqlite3.Connection, index: int, game: GameSession, created_at: Optional[str] = None) -> None:
    if created_at is None:
        conn.execute(
            "UPDATE games SET width = ?, height = ?, cells = ?, is_valid = ?, agent_x = ?, agent_y = ?, "
            "player = ?, status = ? WHERE idx = ?",
            _board_values(game.board) + (game.player, game.status.value, index),
        )
        return
    conn.execute(
        f"INSERT INTO games (idx, {_BOARD_COLUMNS}, player, status, created_at) "
        f"VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
        (index,) + _board_values(game.board) + (game.player, game.status.value, created_at),
    )


def db_get_game(db_path: str, index: int) -> Optional[GameSession]:
    with _transaction(db_path) as conn:
        return _load_game(conn, index)


def create_game(db_path: str, board_index: int, player: str) -> int:
    """Starts a new unactive game on a copy of a stored, valid board."""
    with _transaction(db_path) as conn:
        board = _load_board(conn, board_index)
        if board is None:
            raise NotFoundError(f"No board at index {board_index}")
        if not board.is_valid:
            raise InvalidBoardError("Invalid board to play!")
        game = GameSession.create(board, player)
        index = _next_index(conn, "games")
        created_at = datetime.now(timezone.utc).isoformat(timespec='seconds').replace('+00:00', 'Z')
        _save_game(conn, index, game, created_at=created_at)
    logger.info("created game %d on board %d for %s", index, board_index, player)
    return index


def start_game(db_path: str, index: int) -> GameSession:
    with _transaction(db_path) as conn:
        game = _load_game(conn, index)
        if game is None:
            raise NotFoundError(f"Game {index} doesn't exist")
        game.start()
        _save_game(conn, index, game)
    return game


def step_game(db_path: str, index: int, direction: Direction, caller: str) -> GameSession:
    """Applies one turn to a stored game as a single read-compute-replace."""
    with _transaction(db_path) as conn:
        game = _load_game(conn, index)
        if game is None:
            raise NotFoundError(f"Game {index} doesn't exist")
        game.step(direction, caller)
        _save_game(conn, index, game)
    return game
