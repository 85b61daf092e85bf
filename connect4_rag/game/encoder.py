"""
encoder.py - Canonical text encoding of a Connect Four board

The canonical text is the embedding input and the equality key used to
recognize a board configuration that was seen before. Layout:

    |🟢|🟢|🟢|🟢|🟢|🟢|🟢|      <- top row (row 5)
    ...
    |🟢|🔵|🔴|🔴|🟢|🟢|🟢|      <- bottom row (row 0)

Every line ends with a newline. 🔴 marks the pieces of the perspective player
(the AI side unless stated otherwise), 🔵 the pieces of the other player and
🟢 an empty cell.
"""

from typing import List

import numpy as np

from connect4_rag.game.board import Board
from connect4_rag.utils import ROWS, COLS, Player

EMPTY_SYMBOL = "🟢"
OWN_SYMBOL = "🔴"
OTHER_SYMBOL = "🔵"


def encode(board: Board, perspective: Player = Player.RED) -> str:
    """
    Serialize a board into its canonical text.

    Args:
        board: The board to encode
        perspective: Whose pieces are drawn with the own-player symbol

    Returns:
        Six pipe-delimited lines, top row first
    """
    if perspective == Player.EMPTY:
        raise ValueError("perspective must be a player")

    symbols = {
        Player.EMPTY.value: EMPTY_SYMBOL,
        perspective.value: OWN_SYMBOL,
        perspective.other().value: OTHER_SYMBOL,
    }

    lines = []
    for row in range(ROWS - 1, -1, -1):
        cells = [symbols[int(board.grid[row, col])] for col in range(COLS)]
        lines.append("|" + "|".join(cells) + "|\n")
    return "".join(lines)


def equal(a: str, b: str) -> bool:
    """Two canonical texts describe the same configuration iff they are equal."""
    return a == b


def split_rows(text: str) -> List[List[str]]:
    """Split canonical text into rows of cell symbols, top row first."""
    rows = [line for line in text.split("\n") if line.strip()]
    if len(rows) != ROWS:
        raise ValueError(f"board text must have {ROWS} rows, got {len(rows)}")

    cells = []
    for line in rows:
        row = line.strip().strip("|").split("|")
        if len(row) != COLS:
            raise ValueError(f"board row must have {COLS} cells: {line!r}")
        for symbol in row:
            if symbol not in (EMPTY_SYMBOL, OWN_SYMBOL, OTHER_SYMBOL):
                raise ValueError(f"unknown cell symbol {symbol!r}")
        cells.append(row)
    return cells


def decode(text: str, perspective: Player = Player.RED) -> np.ndarray:
    """
    Inverse of encode(): rebuild the grid (row 0 at the bottom).

    Returns:
        int8 numpy array of shape (ROWS, COLS) holding Player values
    """
    values = {
        EMPTY_SYMBOL: Player.EMPTY.value,
        OWN_SYMBOL: perspective.value,
        OTHER_SYMBOL: perspective.other().value,
    }

    grid = np.zeros((ROWS, COLS), dtype=np.int8)
    for offset, row in enumerate(split_rows(text)):
        for col, symbol in enumerate(row):
            grid[ROWS - 1 - offset, col] = values[symbol]
    return grid


def count_markers(text: str) -> int:
    """Number of own-player pieces in the canonical text."""
    return text.count(OWN_SYMBOL)


def to_prompt_grid(text: str) -> str:
    """
    Rewrite canonical text into the form the language model reads best.

    Models know Connect Four with Red and Yellow discs, so own pieces are
    shown as R, the other player's as Y and empty cells as '.'.
    """
    lines = []
    for row in split_rows(text):
        cells = []
        for symbol in row:
            if symbol == OWN_SYMBOL:
                cells.append(" R ")
            elif symbol == OTHER_SYMBOL:
                cells.append(" Y ")
            else:
                cells.append(" . ")
        lines.append("|" + "|".join(cells) + "|")
    return "\n".join(lines) + "\n"
