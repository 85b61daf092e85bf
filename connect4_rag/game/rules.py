"""
rules.py - Win and tie detection for Connect Four

evaluate() only looks at the four lines that run through the last placement:
the row, the column and both diagonals. Each line is walked from one edge of
the grid to the other with one running count per player; a count resets when
the walk meets an empty cell or a piece of the other player.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, List, Optional, Tuple

from connect4_rag.debug import debug
from connect4_rag.errors import InvariantViolation
from connect4_rag.game.board import Board, LastMove
from connect4_rag.utils import ROWS, COLS, CONNECT_N, Player, is_valid_position


class VerdictKind(Enum):
    NONE = auto()
    WIN = auto()
    TIE = auto()


@dataclass(frozen=True)
class Verdict:
    kind: VerdictKind
    winner: Optional[Player] = None

    @classmethod
    def none(cls) -> 'Verdict':
        return cls(VerdictKind.NONE)

    @classmethod
    def win(cls, player: Player) -> 'Verdict':
        return cls(VerdictKind.WIN, player)

    @classmethod
    def tie(cls) -> 'Verdict':
        return cls(VerdictKind.TIE)

    @property
    def is_win(self) -> bool:
        return self.kind == VerdictKind.WIN

    @property
    def is_tie(self) -> bool:
        return self.kind == VerdictKind.TIE

    @property
    def is_game_over(self) -> bool:
        return self.kind != VerdictKind.NONE


def _lines_through(row: int, col: int) -> Iterator[List[Tuple[int, int]]]:
    """Yield the four full lines (edge to edge) that pass through (row, col)."""
    # Horizontal: the whole row
    yield [(row, c) for c in range(COLS)]

    # Vertical: the whole column
    yield [(r, col) for r in range(ROWS)]

    # Diagonal going up and to the right: step back to the line start first
    r, c = row, col
    while r > 0 and c > 0:
        r -= 1
        c -= 1
    line = []
    while is_valid_position(r, c):
        line.append((r, c))
        r += 1
        c += 1
    yield line

    # Diagonal going up and to the left
    r, c = row, col
    while r > 0 and c < COLS - 1:
        r -= 1
        c += 1
    line = []
    while is_valid_position(r, c):
        line.append((r, c))
        r += 1
        c -= 1
    yield line


def _scan_line(board: Board, line: List[Tuple[int, int]]) -> Optional[Player]:
    red = 0
    blue = 0
    for r, c in line:
        value = board.grid[r, c]
        if value == Player.RED.value:
            red += 1
            blue = 0
        elif value == Player.BLUE.value:
            blue += 1
            red = 0
        else:
            red = 0
            blue = 0

        if red == CONNECT_N:
            return Player.RED
        if blue == CONNECT_N:
            return Player.BLUE
    return None


def evaluate(board: Board, last_move: LastMove) -> Verdict:
    """
    Decide whether the placement described by last_move ended the game.

    Args:
        board: The board, already containing the placed piece
        last_move: Where the piece landed

    Returns:
        Verdict.win(player), Verdict.tie() when all 42 cells are occupied
        without a winner, otherwise Verdict.none()
    """
    row, col = last_move.row, last_move.column - 1
    if not is_valid_position(row, col):
        raise InvariantViolation(f"win check at ({last_move.column}, {last_move.row}) is outside the grid")

    for line in _lines_through(row, col):
        winner = _scan_line(board, line)
        if winner is not None:
            debug.debug(f"{winner} wins through column {last_move.column}, row {last_move.row}", "rules")
            return Verdict.win(winner)

    if board.is_full():
        debug.debug("Board is full without a winner", "rules")
        return Verdict.tie()

    return Verdict.none()


def would_win(board: Board, column: int, player: Player, row: Optional[int] = None) -> bool:
    """
    Check whether the player would win by holding the given cell.

    The piece is only probed; the board is identical before and after.

    Args:
        board: The current board
        column: 1-based column to test
        player: The player to test for
        row: Explicit row to override; defaults to the column's next open row
    """
    with board.probe(column, player, row=row) as move:
        verdict = evaluate(board, move)
    return verdict.is_win and verdict.winner == player
