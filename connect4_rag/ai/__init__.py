"""
connect4_rag/ai/__init__.py - Retrieval-assisted move selection

This package provides the training recorder that harvests examples from
simulated and observed moves, the move arbiter that asks a language model to
pick among retrieved candidate columns, the commentary generator, and the
embedding/completion backends they run against.
"""

# Don't import anything here to avoid circular imports
__all__ = []
