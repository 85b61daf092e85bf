"""
utils.py - Constants and enumerations for the Connect Four implementation

This module provides the board dimensions, the Player and GameStatus
enumerations, and small grid helpers used throughout the package.

Grid convention: grid[row, col] with row 0 at the bottom of the board.
Columns are numbered 1..COLS at every public interface and converted to
0-based indices only when touching the grid.
"""

from enum import Enum
from typing import Optional

import numpy as np

# Game constants
ROWS = 6
COLS = 7
CONNECT_N = 4  # Number of pieces in a row to win
CELL_COUNT = ROWS * COLS


class Player(Enum):
    """Enumeration representing players and cell states."""
    EMPTY = 0
    RED = 1
    BLUE = 2

    def other(self) -> 'Player':
        """Get the other player."""
        if self == Player.RED:
            return Player.BLUE
        elif self == Player.BLUE:
            return Player.RED
        return Player.EMPTY

    @property
    def label(self) -> str:
        """Human readable name ("Red", "Blue", or "" for empty)."""
        if self == Player.EMPTY:
            return ""
        return self.name.capitalize()

    @classmethod
    def parse(cls, value: str) -> 'Player':
        """Parse "red"/"blue" (any case) into a Player."""
        for player in (cls.RED, cls.BLUE):
            if player.name.lower() == str(value).strip().lower():
                return player
        raise ValueError(f"invalid player {value!r}")

    def __str__(self):
        return self.label


class GameStatus(Enum):
    """States of the turn state machine."""
    SETUP = "setup"
    IN_PROGRESS = "in_progress"
    RED_WINS = "red_wins"
    BLUE_WINS = "blue_wins"
    TIE = "tie"

    def is_game_over(self) -> bool:
        """Check if the game reached a terminal state."""
        return self in (GameStatus.RED_WINS, GameStatus.BLUE_WINS, GameStatus.TIE)

    @classmethod
    def won_by(cls, player: Player) -> 'GameStatus':
        if player == Player.RED:
            return cls.RED_WINS
        if player == Player.BLUE:
            return cls.BLUE_WINS
        raise ValueError(f"no win status for {player!r}")

    @property
    def winner(self) -> Optional[Player]:
        if self == GameStatus.RED_WINS:
            return Player.RED
        if self == GameStatus.BLUE_WINS:
            return Player.BLUE
        return None


def is_valid_position(row: int, col: int) -> bool:
    """
    Check if a 0-based (row, col) position is within the board boundaries.

    Args:
        row: Row index (0 is the bottom row)
        col: Column index

    Returns:
        True if position is valid, False otherwise
    """
    return 0 <= row < ROWS and 0 <= col < COLS


def is_valid_column(column: int) -> bool:
    """Check if a 1-based column number is on the board."""
    return isinstance(column, (int, np.integer)) and not isinstance(column, bool) and 1 <= column <= COLS


def render_board_ascii(grid: np.ndarray) -> str:
    """
    Render the board as ASCII art, top row first.

    Args:
        grid: The game grid (row 0 is the bottom)

    Returns:
        ASCII representation of the board
    """
    symbols = {
        Player.EMPTY.value: ".",
        Player.RED.value: "R",
        Player.BLUE.value: "B",
    }

    result = ["|" + "-" * (COLS * 2 - 1) + "|"]
    for row in range(ROWS - 1, -1, -1):
        result.append("|" + " ".join(symbols[int(grid[row, col])] for col in range(COLS)) + "|")
    result.append("|" + "-" * (COLS * 2 - 1) + "|")
    result.append("|" + " ".join(str(col) for col in range(1, COLS + 1)) + "|")

    return "\n".join(result)
