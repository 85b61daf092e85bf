"""
errors.py - Exception hierarchy for the Connect Four AI

Runtime failures derive from Connect4Error so the game controller can turn
them into game messages. InvariantViolation is a programming error and
deliberately derives from AssertionError instead.
"""


class Connect4Error(Exception):
    """Base class for recoverable runtime errors."""


class TransientExternalError(Connect4Error):
    """An embedding, search or completion call failed or timed out."""


class MalformedResponseError(Connect4Error):
    """The completion text could not be parsed or named an illegal column."""

    def __init__(self, message: str, response: str = ""):
        super().__init__(message)
        self.response = response


class NoLegalMoveError(Connect4Error):
    """No column on the board has an open slot."""


class RecordStoreError(Connect4Error):
    """A training record could not be read or written."""


class InvariantViolation(AssertionError):
    """Caller bug: placement into a full column, coordinates off the grid, ..."""
