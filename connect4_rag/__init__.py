"""
connect4_rag - Connect Four against a retrieval-assisted language model

This package provides the Connect Four game engine (board, win detection,
canonical board encoding), the training-record pipeline that harvests
examples from played and simulated moves, and the move-selection protocol
that turns a similar historical board plus a language model suggestion
into a validated column.
"""

# Version number
__version__ = '0.1.0'
