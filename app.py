from __future__ import annotations

import base64
import binascii
import logging
import os
from typing import Any, Dict, Optional, Tuple

from flask import Flask, jsonify, request

from game import (
    DEFAULT_DB,
    AlreadyFinishedError,
    AlreadyStartedError,
    Board,
    Direction,
    GameSession,
    GameStatus,
    NotFoundError,
    NotRunningError,
    Point,
    Size,
    SokobanError,
    UnauthorizedError,
    create_board,
    create_game,
    db_get_board,
    db_get_game,
    start_game,
    step_game,
    step_stored_board,
    validate_stored_board,
)

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config.setdefault("SOKOBAN_DB", DEFAULT_DB)


def _db() -> str:
    return app.config["SOKOBAN_DB"]


def _truthy(value: Optional[str]) -> bool:
    return (value or "").lower() in ("1", "true", "yes", "on")


# ---------- JSON codecs ----------

def board_to_json(b: Board) -> Dict[str, Any]:
    pos = b.agent_position
    return {
        "cells": base64.b64encode(bytes(b.cells)).decode("ascii"),
        "size": {"width": int(b.size.width), "height": int(b.size.height)},
        "isValid": bool(b.is_valid),
        "agentPosition": {"x": int(pos.x), "y": int(pos.y)} if pos is not None else None,
    }


def board_from_json(obj: Dict[str, Any]) -> Board:
    """Rebuilds a board exactly as serialized, without revalidating it."""
    size = size_from_json(obj["size"])
    pos = obj.get("agentPosition")
    return Board(
        size=size,
        cells=bytearray(decode_cells(obj["cells"])),
        is_valid=bool(obj.get("isValid", False)),
        agent_position=Point(int(pos["x"]), int(pos["y"])) if pos else None,
    )


def size_from_json(obj: Optional[Dict[str, Any]]) -> Optional[Size]:
    if obj is None:
        return None
    return Size(width=int(obj["width"]), height=int(obj["height"]))


def decode_cells(text: str) -> bytes:
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, TypeError) as e:
        raise ValueError(f"cells must be base64: {e}") from e


def game_to_json(g: GameSession) -> Dict[str, Any]:
    return {
        "board": board_to_json(g.board),
        "player": g.player,
        "status": g.status.value,
    }


def json_to_game(obj: Dict[str, Any]) -> GameSession:
    return GameSession(
        board=board_from_json(obj["board"]),
        player=str(obj["player"]),
        status=GameStatus(obj.get("status", GameStatus.Unactive.value)),
    )


# ---------- Error mapping ----------

def _status_for(e: SokobanError) -> int:
    if isinstance(e, NotFoundError):
        return 404
    if isinstance(e, UnauthorizedError):
        return 403
    if isinstance(e, (AlreadyStartedError, AlreadyFinishedError, NotRunningError)):
        return 409
    return 400


@app.errorhandler(SokobanError)
def handle_sokoban_error(e: SokobanError) -> Tuple[Any, int]:
    logger.info("request rejected: %s: %s", type(e).__name__, e)
    return jsonify({"ok": False, "error": str(e), "kind": type(e).__name__}), _status_for(e)


def _body() -> Dict[str, Any]:
    body = request.get_json(force=True, silent=True)
    return body if isinstance(body, dict) else {}


def _direction(body: Dict[str, Any]) -> Direction:
    return Direction.parse(body.get("direction", ""))


# ---------- Boards ----------

@app.post("/api/boards")
def api_create_board() -> Any:
    body = _body()
    try:
        raw = decode_cells(body["cells"])
        size = size_from_json(body.get("size"))
    except (KeyError, ValueError, TypeError) as e:
        return jsonify({"ok": False, "error": f"bad board: {e}"}), 400
    index = create_board(_db(), raw, size)
    board = db_get_board(_db(), index)
    return jsonify({"ok": True, "index": index, "board": board_to_json(board)})


@app.get("/api/boards/<int:index>")
def api_get_board(index: int) -> Any:
    board = db_get_board(_db(), index)
    if board is None:
        raise NotFoundError(f"No board at index {index}")
    return jsonify({"ok": True, "index": index, "board": board_to_json(board)})


@app.post("/api/boards/<int:index>/validate")
def api_validate_board(index: int) -> Any:
    board = validate_stored_board(_db(), index)
    return jsonify({"ok": True, "index": index, "board": board_to_json(board)})


@app.post("/api/boards/<int:index>/step")
def api_step_board(index: int) -> Any:
    try:
        direction = _direction(_body())
    except ValueError as e:
        return jsonify({"ok": False, "error": str(e)}), 400
    board = step_stored_board(_db(), index, direction)
    if board is None:
        return jsonify({"ok": False, "error": "board is not valid"}), 400
    return jsonify({"ok": True, "index": index, "board": board_to_json(board)})


# ---------- Games ----------

@app.post("/api/games")
def api_create_game() -> Any:
    body = _body()
    try:
        board_index = int(body["board"])
        player = str(body["player"])
    except (KeyError, ValueError, TypeError) as e:
        return jsonify({"ok": False, "error": f"bad game: {e}"}), 400
    index = create_game(_db(), board_index, player)
    game = db_get_game(_db(), index)
    return jsonify({"ok": True, "index": index, "game": game_to_json(game)})


@app.get("/api/games/<int:index>")
def api_get_game(index: int) -> Any:
    game = db_get_game(_db(), index)
    if game is None:
        raise NotFoundError(f"Game {index} doesn't exist")
    return jsonify({"ok": True, "index": index, "game": game_to_json(game)})


@app.post("/api/games/<int:index>/start")
def api_start_game(index: int) -> Any:
    game = start_game(_db(), index)
    return jsonify({"ok": True, "index": index, "game": game_to_json(game)})


@app.post("/api/games/<int:index>/step")
def api_step_game(index: int) -> Any:
    body = _body()
    caller = request.headers.get("X-Player") or body.get("player")
    if not caller:
        return jsonify({"ok": False, "error": "caller identity required"}), 400
    try:
        direction = _direction(body)
    except ValueError as e:
        return jsonify({"ok": False, "error": str(e)}), 400
    game = step_game(_db(), index, direction, str(caller))
    return jsonify({"ok": True, "index": index, "game": game_to_json(game)})


# Entrypoint for "python app.py"
if __name__ == "__main__":
    logging.basicConfig(
        level=logging.DEBUG if _truthy(os.getenv("SOKOBAN_DEBUG")) else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    debug = _truthy(os.getenv("FLASK_DEBUG", os.getenv("DEBUG", "0")))
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")), debug=debug)
