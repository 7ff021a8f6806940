from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from .board import Board
from .errors import (
    AlreadyFinishedError,
    AlreadyStartedError,
    NotRunningError,
    UnauthorizedError,
)
from .geometry import Direction
from .moves import make_step
from .validate import is_solved

logger = logging.getLogger(__name__)


class GameStatus(Enum):
    Unactive = "Unactive"
    Running = "Running"
    Finished = "Finished"


@dataclass
class GameSession:
    """A single-player game: one board, one authorized player and a linear lifecycle."""
    board: Board
    player: str
    status: GameStatus = GameStatus.Unactive

    @classmethod
    def create(cls, board: Board, player: str) -> 'GameSession':
        return cls(board=board.copy(), player=player, status=GameStatus.Unactive)

    def start(self) -> None:
        if self.status is GameStatus.Running:
            raise AlreadyStartedError("Game is already running!")
        if self.status is GameStatus.Finished:
            raise AlreadyFinishedError("Game is already finished!")
        self.status = GameStatus.Running
        logger.info("game for %s started", self.player)

    def step(self, direction: Direction, caller: str) -> None:
        """
        Moves the agent on behalf of `caller`. Blocked moves still use up the turn.
        The game finishes as soon as no crate is left off a destination.
        """
        if caller != self.player:
            raise UnauthorizedError(f"Incorrect caller {caller!r}")
        if self.status is GameStatus.Unactive:
            raise NotRunningError("Game has not been started yet!")
        if self.status is GameStatus.Finished:
            raise AlreadyFinishedError("Game is already finished!")

        new_board = make_step(self.board, direction)
        logger.debug("old board:\n%s", self.board.pretty())
        logger.debug("new board:\n%s", new_board.pretty())
        self.board = new_board
        if is_solved(new_board):
            self.status = GameStatus.Finished
            logger.info("game for %s finished", self.player)
