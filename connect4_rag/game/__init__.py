"""
connect4_rag.game - Core game mechanics for Connect Four

This package contains the board representation, win/tie detection, the
canonical text encoding of a board and the turn state machine.
"""

from connect4_rag.game.board import Board, LastMove
from connect4_rag.game.rules import Verdict, evaluate

# GameController is imported from connect4_rag.game.controller directly; it
# pulls in the AI pipeline and would create a circular import here.
__all__ = ['Board', 'LastMove', 'Verdict', 'evaluate']
