from datetime import datetime
from typing import Optional
from sqlmodel import Field
from sqlalchemy import Column, LargeBinary

from .base import IDMixin, utcnow


# ============================================
# 1. DOCUMENT MODEL (one per indexed source)
# ============================================
class Document(IDMixin, table=True):
    """
    An indexed source: a file path, a URL or a caller-supplied identifier.
    Replaced wholesale on reindex.
    """
    __tablename__ = "documents"

    source: str = Field(unique=True, index=True)
    source_type: str  # SourceType value
    indexed_at: datetime = Field(default_factory=utcnow)
    content_size: int = 0  # characters, summed over chunks
    chunk_count: int = 0
    title: Optional[str] = None


# ============================================
# 2. CHUNK MODEL (owned by exactly one Document)
# ============================================
class Chunk(IDMixin, table=True):
    """
    A span [start_offset, end_offset) of the document text with its embedding.
    Chunks are always written and removed together with their document.
    """
    __tablename__ = "chunks"

    document_id: int = Field(foreign_key="documents.id", index=True)
    chunk_index: int
    content: str
    start_offset: int
    end_offset: int

    # Little-endian float32 blob, dimension * 4 bytes
    embedding: bytes = Field(sa_column=Column(LargeBinary, nullable=False))
