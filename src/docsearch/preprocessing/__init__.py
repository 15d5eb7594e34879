"""
DocSearch Preprocessing Module

Text chunking for the indexing pipeline.
"""

from docsearch.preprocessing.chunker import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_OVERLAP,
    TextChunk,
    TextChunker,
    chunk_text,
)

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_OVERLAP",
    "TextChunk",
    "TextChunker",
    "chunk_text",
]
