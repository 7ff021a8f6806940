from __future__ import annotations


class SokobanError(Exception):
    """Base class for all errors raised by the core."""


class OutOfBoundsError(SokobanError):
    pass


class InvalidStateError(SokobanError):
    pass


class LengthMismatchError(SokobanError):
    pass


class InvalidBoardError(SokobanError):
    """A move was attempted on a board without exactly one agent."""


class AlreadyStartedError(SokobanError):
    pass


class AlreadyFinishedError(SokobanError):
    pass


class NotRunningError(SokobanError):
    pass


class UnauthorizedError(SokobanError):
    pass


class NotFoundError(SokobanError):
    """No board or game is stored at the requested index."""
