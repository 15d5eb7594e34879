"""
DocSearch

Semantic search over files, URLs and inline content backed by SQLite.
"""

__version__ = "1.0.0"
