"""
connect4_rag.interfaces - User interfaces for Connect Four

This package contains the terminal interface for playing against the
retrieval-assisted AI.
"""

# Don't import anything here to avoid circular imports
__all__ = []
