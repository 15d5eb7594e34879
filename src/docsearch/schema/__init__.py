from .base import IDMixin, utcnow
from .enums import SourceType
from .documents import Document, Chunk
from .api import (
    SearchRequest,
    SearchResultItem,
    SearchResponse,
    IndexRequest,
    IndexResponse,
    ListRequest,
    DocumentInfo,
    ListResponse,
    DeleteRequest,
    DeleteResponse,
)
