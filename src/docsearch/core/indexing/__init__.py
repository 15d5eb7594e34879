"""
Core Indexing Pipeline

Components:
- pipeline.py: orchestrator for index, search, list and delete

Chunking, embedding, fetching and storage are injected, so each can be
replaced in tests.
"""

from .pipeline import IndexingPipeline, create_pipeline

__all__ = [
    "IndexingPipeline",
    "create_pipeline",
]
