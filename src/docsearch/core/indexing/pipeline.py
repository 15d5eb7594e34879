"""
Main indexing orchestrator.

Coordinates: acquire content → chunk → embed → store, and serves the
search / list / delete operations on top of the same collaborators.

The pipeline keeps no state of its own. Store calls and file reads block,
so they run in worker threads via asyncio.to_thread.
"""
import asyncio
from pathlib import Path
from typing import Optional, Tuple

from docsearch.config import Settings, get_settings
from docsearch.core.exceptions import (
    ConfigurationError,
    ConflictError,
    DocSearchError,
    FetchError,
    StorageError,
    UpstreamError,
    ValidationError,
)
from docsearch.core.logging import get_logger
from docsearch.preprocessing import TextChunker
from docsearch.schema import (
    DeleteRequest,
    DeleteResponse,
    DocumentInfo,
    IndexRequest,
    IndexResponse,
    ListRequest,
    ListResponse,
    SearchRequest,
    SearchResponse,
    SearchResultItem,
    SourceType,
)
from docsearch.services import ChunkRecord, DocumentStore
from docsearch.utils.embeddings import EmbeddingService, OpenAIEmbeddingProvider
from docsearch.utils.fetcher import ContentFetcher

logger = get_logger(__name__)

DEFAULT_TOP_K = 5
DEFAULT_MIN_SCORE = 0.3
INDEXED_AT_FORMAT = "%Y-%m-%d %H:%M:%S"


class IndexingPipeline:
    """
    Indexes files, URLs and raw content, and answers semantic searches.

    Flow for index():
    1. Resolve exactly one content source
    2. Refuse duplicates unless reindex is requested
    3. Chunk the text
    4. Embed every chunk in one gateway call
    5. Replace the stored document atomically
    """

    def __init__(
        self,
        store: DocumentStore,
        embedder: EmbeddingService,
        fetcher: ContentFetcher,
        chunker: TextChunker,
    ):
        self.store = store
        self.embedder = embedder
        self.fetcher = fetcher
        self.chunker = chunker

        logger.info(
            "indexing_pipeline_initialized",
            chunk_size=chunker.chunk_size,
            overlap=chunker.overlap,
        )

    # ------------------------------------------------------------------
    # Index
    # ------------------------------------------------------------------

    async def index(self, request: IndexRequest) -> IndexResponse:
        content, source, source_type, title = await self._resolve_content(request)

        logger.info("indexing_document", source=source, source_type=source_type.value)

        if not request.reindex:
            exists = await asyncio.to_thread(self.store.document_exists, source)
            if exists:
                raise ConflictError(source)

        chunks = self.chunker.chunk_text(content)
        if not chunks:
            raise ValidationError(
                "no chunks generated from content (is the content empty?)",
                field="content",
            )

        embeddings = await self.embedder.embed([chunk.content for chunk in chunks])
        if len(embeddings) != len(chunks):
            raise StorageError(
                f"embedding count mismatch: got {len(embeddings)} embeddings "
                f"for {len(chunks)} chunks",
                operation="index",
            )

        records = [
            ChunkRecord(
                chunk_index=chunk.index,
                content=chunk.content,
                start_offset=chunk.start_offset,
                end_offset=chunk.end_offset,
                embedding=embedding,
            )
            for chunk, embedding in zip(chunks, embeddings)
        ]

        await asyncio.to_thread(self.store.index_document, source, source_type, title, records)

        return IndexResponse(
            source=source,
            source_type=source_type,
            chunk_count=len(records),
            message=f"Successfully indexed {source} ({len(records)} chunks)",
        )

    async def _resolve_content(
        self, request: IndexRequest
    ) -> Tuple[str, str, SourceType, Optional[str]]:
        """Return (content, source, source_type, title) for the one given source."""
        has_file = bool(request.file_path)
        has_url = bool(request.url)
        has_content = bool(request.content) and bool(request.source)

        provided = sum([has_file, has_url, has_content])
        if provided == 0:
            raise ValidationError("must provide exactly one of: file_path, url, or (content + source)")
        if provided > 1:
            raise ValidationError("provide exactly one of: file_path, url, or (content + source)")

        if has_file:
            content = await asyncio.to_thread(read_text_file, request.file_path)
            return content, request.file_path, SourceType.FILE, None

        if has_url:
            result = await self.fetcher.fetch_url(request.url)
            return result.content, request.url, SourceType.URL, result.title or None

        return request.content, request.source, SourceType.CONTENT, None

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search(self, request: SearchRequest) -> SearchResponse:
        if not request.query or not request.query.strip():
            raise ValidationError("query is required", field="query")

        top_k = request.top_k if request.top_k > 0 else DEFAULT_TOP_K
        min_score = request.min_score if request.min_score is not None else DEFAULT_MIN_SCORE

        query_embedding = await self.embedder.embed_query(request.query)
        if not query_embedding:
            raise UpstreamError("no embedding returned for query")

        scored = await asyncio.to_thread(
            self.store.search,
            query_embedding,
            top_k,
            min_score,
            request.source_filter or None,
        )

        results = [
            SearchResultItem(
                content=item.content,
                source=item.source,
                chunk_index=item.chunk_index,
                score=item.score,
            )
            for item in scored
        ]

        logger.info("search_completed", top_k=top_k, min_score=min_score, results=len(results))
        return SearchResponse(results=results, count=len(results))

    # ------------------------------------------------------------------
    # List / Delete
    # ------------------------------------------------------------------

    async def list_documents(self, request: Optional[ListRequest] = None) -> ListResponse:
        source_type = request.source_type if request else None
        documents = await asyncio.to_thread(self.store.list_documents, source_type)

        infos = [
            DocumentInfo(
                source=doc.source,
                source_type=doc.source_type,
                chunk_count=doc.chunk_count,
                content_size=doc.content_size,
                indexed_at=doc.indexed_at.strftime(INDEXED_AT_FORMAT),
                title=doc.title,
            )
            for doc in documents
        ]
        return ListResponse(documents=infos, count=len(infos))

    async def delete(self, request: DeleteRequest) -> DeleteResponse:
        """Delete a document. Store failures are reported, not raised."""
        if not request.source:
            raise ValidationError("source is required", field="source")

        try:
            await asyncio.to_thread(self.store.delete_document, request.source)
        except DocSearchError as e:
            logger.warning("document_delete_failed", source=request.source, error=e.message)
            return DeleteResponse(
                source=request.source,
                deleted=False,
                message=f"Failed to delete: {e.message}",
            )

        return DeleteResponse(
            source=request.source,
            deleted=True,
            message=f"Successfully deleted {request.source}",
        )


def read_text_file(file_path: str) -> str:
    """Read a file as UTF-8, falling back to latin-1 for legacy encodings."""
    path = Path(file_path)
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise FetchError(f"failed to read file: {e}", source=file_path) from e

    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        logger.warning("file_not_utf8", file_path=file_path)
        return raw.decode("latin-1")


# ============================================================================
# FACTORY FUNCTION
# ============================================================================

def create_pipeline(settings: Optional[Settings] = None) -> IndexingPipeline:
    """
    Build an IndexingPipeline with the production collaborators:
    OpenAI embeddings, httpx fetcher and the SQLite document store.
    """
    settings = settings or get_settings()

    if not settings.openai_api_key:
        raise ConfigurationError("OPENAI_API_KEY environment variable is required")

    settings.ensure_db_directory()
    store = DocumentStore(
        settings.database_url,
        dimension=settings.embedding_dimension,
    )
    store.init_schema()

    provider = OpenAIEmbeddingProvider(
        api_key=settings.openai_api_key,
        model=settings.embedding_model,
        timeout=settings.request_timeout,
    )
    embedder = EmbeddingService(provider, dimension=settings.embedding_dimension)
    fetcher = ContentFetcher(timeout=settings.request_timeout)
    chunker = TextChunker(chunk_size=settings.chunk_size, overlap=settings.overlap)

    logger.info("pipeline_created", db_path=settings.db_path, model=settings.embedding_model)
    return IndexingPipeline(store=store, embedder=embedder, fetcher=fetcher, chunker=chunker)
