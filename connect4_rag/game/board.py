"""
board.py - Board representation for Connect Four

This module implements the Board class which holds the 7x6 grid, the ownership
of every cell and the last placement. Win detection lives in rules.py; the
board itself only knows how to place pieces and how to probe a hypothetical
placement without leaving a trace.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

import numpy as np

from connect4_rag.debug import debug
from connect4_rag.errors import InvariantViolation
from connect4_rag.utils import (ROWS, COLS, CELL_COUNT, Player, is_valid_column,
                                is_valid_position, render_board_ascii)


@dataclass(frozen=True)
class LastMove:
    """The most recent placement: 1-based column, 0-based row (0 = bottom)."""
    column: int
    row: int
    player: Player


@dataclass(frozen=True)
class Cell:
    occupied: bool
    owner: Player = Player.EMPTY


class Board:
    """
    Represents a Connect Four game board.

    The grid is a numpy array indexed grid[row, col] with row 0 at the bottom.
    Columns fill bottom-up, so the occupied cells of a column always form a
    contiguous block starting at row 0.
    """

    def __init__(self):
        """Initialize an empty Connect Four board."""
        debug.trace("Initializing new Board", "board")
        self.grid = np.zeros((ROWS, COLS), dtype=np.int8)
        self.last_move: Optional[LastMove] = None
        self.moves_made: List[int] = []

    def copy(self) -> 'Board':
        """
        Create a deep copy of the current board.

        Returns:
            A new Board instance with the same state
        """
        new_board = Board()
        new_board.grid = self.grid.copy()
        new_board.last_move = self.last_move
        new_board.moves_made = self.moves_made.copy()
        return new_board

    @classmethod
    def from_rows(cls, rows: List[str]) -> 'Board':
        """
        Build a board from text rows, top row first ('.' empty, 'R' red, 'B' blue).

        Used by tests and by the CLI to load positions; gravity is not checked
        here, callers are expected to describe legal positions.
        """
        if len(rows) != ROWS:
            raise ValueError(f"expected {ROWS} rows, got {len(rows)}")

        symbols = {'.': Player.EMPTY, 'R': Player.RED, 'B': Player.BLUE}
        board = cls()
        for offset, line in enumerate(rows):
            line = line.replace(" ", "")
            if len(line) != COLS:
                raise ValueError(f"row {offset} must have {COLS} cells: {line!r}")
            row = ROWS - 1 - offset
            for col, symbol in enumerate(line):
                board.grid[row, col] = symbols[symbol.upper()].value
        return board

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def owner(self, column: int, row: int) -> Player:
        """Owner of the cell at a 1-based column and 0-based row."""
        col = column - 1
        if not is_valid_position(row, col):
            raise InvariantViolation(f"cell ({column}, {row}) is outside the grid")
        return Player(int(self.grid[row, col]))

    def next_open_row(self, column: int) -> Optional[int]:
        """
        Find the row where a piece dropped in the column would land.

        Args:
            column: 1-based column number

        Returns:
            The 0-based row index, or None if the column is full
        """
        if not is_valid_column(column):
            raise InvariantViolation(f"column {column} is outside the grid")

        col = column - 1
        for row in range(ROWS):
            if self.grid[row, col] == Player.EMPTY.value:
                return row
        return None

    def is_column_open(self, column: int) -> bool:
        """Check if the column is on the board and has at least one open row."""
        return is_valid_column(column) and self.next_open_row(column) is not None

    def open_columns(self) -> List[int]:
        """
        Get the columns where a piece can still be placed.

        Returns:
            Ascending list of 1-based column numbers
        """
        return [column for column in range(1, COLS + 1) if self.is_column_open(column)]

    def is_full(self) -> bool:
        """True when all 42 cells are occupied."""
        return int(np.count_nonzero(self.grid)) == CELL_COUNT

    def count(self, player: Player) -> int:
        """Number of pieces the player has on the board."""
        return int(np.count_nonzero(self.grid == player.value))

    def cells(self) -> Tuple[Tuple[Cell, ...], ...]:
        """Read-only view of the grid: cells()[row][col], row 0 at the bottom."""
        return tuple(
            tuple(
                Cell(occupied=bool(value != Player.EMPTY.value), owner=Player(int(value)))
                for value in self.grid[row]
            )
            for row in range(ROWS)
        )

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def place(self, column: int, player: Player) -> LastMove:
        """
        Drop a piece for the player into the column.

        The caller is responsible for validating the column first; placing into
        a full or non-existent column is a programming error.

        Args:
            column: 1-based column number
            player: Player.RED or Player.BLUE

        Returns:
            The LastMove describing where the piece landed
        """
        if player == Player.EMPTY:
            raise InvariantViolation("cannot place an empty piece")

        row = self.next_open_row(column)
        if row is None:
            raise InvariantViolation(f"column {column} is full")

        debug.trace(f"Placing {player} at column {column}, row {row}", "board")
        self.grid[row, column - 1] = player.value
        self.last_move = LastMove(column=column, row=row, player=player)
        self.moves_made.append(column)
        return self.last_move

    @contextmanager
    def probe(self, column: int, player: Player, row: Optional[int] = None) -> Iterator[LastMove]:
        """
        Temporarily put a piece on the board.

        Without a row the piece lands on the column's next open row; with a row
        the existing cell is overridden (used to ask "would this cell have won
        for the other player"). The cell is restored on exit, and last_move and
        moves_made are never touched.

        Yields:
            A LastMove describing the hypothetical placement
        """
        if row is None:
            row = self.next_open_row(column)
            if row is None:
                raise InvariantViolation(f"column {column} is full")
        elif not is_valid_position(row, column - 1):
            raise InvariantViolation(f"cell ({column}, {row}) is outside the grid")

        col = column - 1
        saved = self.grid[row, col]
        self.grid[row, col] = player.value
        try:
            yield LastMove(column=column, row=row, player=player)
        finally:
            self.grid[row, col] = saved

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def get_state(self) -> np.ndarray:
        """
        Get the current board state as a numpy array.

        Returns:
            Copy of the grid (row 0 is the bottom)
        """
        return self.grid.copy()

    def render(self) -> str:
        """Render the board as a string."""
        return render_board_ascii(self.grid)

    def __str__(self) -> str:
        return self.render()
