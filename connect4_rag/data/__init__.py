"""
connect4_rag.data - Training record persistence and similarity search

This package holds the file-backed record store and the in-memory vector
index that answers "which stored board looks most like this one".
"""

# Don't import anything here to avoid circular imports
__all__ = []
