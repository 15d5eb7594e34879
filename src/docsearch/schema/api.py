from pydantic import BaseModel
from typing import List, Optional

from .enums import SourceType


# --- search ---

class SearchRequest(BaseModel):
    query: str
    top_k: int = 5  # <= 0 falls back to 5
    min_score: Optional[float] = None  # None -> 0.3
    source_filter: Optional[str] = None


class SearchResultItem(BaseModel):
    content: str
    source: str
    chunk_index: int
    score: float


class SearchResponse(BaseModel):
    results: List[SearchResultItem] = []
    count: int = 0


# --- index ---

class IndexRequest(BaseModel):
    """Exactly one of file_path, url or (content + source)."""
    file_path: Optional[str] = None
    url: Optional[str] = None
    content: Optional[str] = None
    source: Optional[str] = None
    reindex: bool = False


class IndexResponse(BaseModel):
    source: str
    source_type: SourceType
    chunk_count: int
    message: str


# --- list ---

class ListRequest(BaseModel):
    source_type: Optional[SourceType] = None  # None lists everything


class DocumentInfo(BaseModel):
    source: str
    source_type: str
    chunk_count: int
    content_size: int
    indexed_at: str  # "YYYY-MM-DD HH:MM:SS"
    title: Optional[str] = None


class ListResponse(BaseModel):
    documents: List[DocumentInfo] = []
    count: int = 0


# --- delete ---

class DeleteRequest(BaseModel):
    source: str


class DeleteResponse(BaseModel):
    source: str
    deleted: bool
    message: str
