"""
Document Store
Transactional persistence of documents and their chunk embeddings plus
cosine-similarity search over the stored vectors.

Every write runs in a single transaction: a document and its chunks are
visible either completely or not at all.
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence

from sqlalchemy import LargeBinary, bindparam, delete, func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from docsearch.core.exceptions import NotFoundError, StorageError
from docsearch.core.logging import get_logger
from docsearch.schema import Chunk, Document, SourceType
from docsearch.schema.base import utcnow
from docsearch.utils.db import create_db_engine, init_db
from docsearch.utils.vectors import EMBEDDING_DIMENSION, serialize_embedding

logger = get_logger(__name__)


@dataclass
class ChunkRecord:
    """A chunk ready to be stored: text, position and its embedding."""
    chunk_index: int
    content: str
    start_offset: int
    end_offset: int
    embedding: List[float]


@dataclass
class ScoredChunk:
    content: str
    source: str
    chunk_index: int
    score: float


class DocumentStore:
    def __init__(
        self,
        database_url: str,
        dimension: int = EMBEDDING_DIMENSION,
        echo: bool = False,
    ):
        self.dimension = dimension
        self.engine = create_db_engine(database_url, dimension=dimension, echo=echo)

    def init_schema(self):
        try:
            init_db(self.engine)
        except SQLAlchemyError as e:
            raise StorageError(f"failed to run migrations: {e}", operation="init") from e

    def close(self):
        self.engine.dispose()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def index_document(
        self,
        source: str,
        source_type: SourceType,
        title: Optional[str],
        chunks: Sequence[ChunkRecord],
    ):
        """
        Replace whatever is stored under `source` with a new document and
        its chunks. On any failure the previous state is left untouched.
        """
        source_type = SourceType(source_type).value
        content_size = sum(len(chunk.content) for chunk in chunks)

        try:
            with Session(self.engine) as session, session.begin():
                self._delete_source(session, source)

                document = Document(
                    source=source,
                    source_type=source_type,
                    indexed_at=utcnow(),
                    content_size=content_size,
                    chunk_count=len(chunks),
                    title=title or None,
                )
                session.add(document)
                session.flush()

                for chunk in chunks:
                    session.add(Chunk(
                        document_id=document.id,
                        chunk_index=chunk.chunk_index,
                        content=chunk.content,
                        start_offset=chunk.start_offset,
                        end_offset=chunk.end_offset,
                        embedding=serialize_embedding(chunk.embedding, self.dimension),
                    ))
        except StorageError as e:
            logger.error("index_document_failed", source=source, error=e.message)
            raise
        except SQLAlchemyError as e:
            logger.error("index_document_failed", source=source, error=str(e))
            raise StorageError(f"failed to store document: {e}", operation="index") from e

        logger.info(
            "document_indexed",
            source=source,
            source_type=source_type,
            chunks=len(chunks),
            content_size=content_size,
        )

    def delete_document(self, source: str):
        """Delete a document and all of its chunks."""
        try:
            with Session(self.engine) as session, session.begin():
                removed = self._delete_source(session, source)
        except SQLAlchemyError as e:
            raise StorageError(f"failed to delete document: {e}", operation="delete") from e

        if removed == 0:
            raise NotFoundError(source)

        logger.info("document_deleted", source=source)

    def _delete_source(self, session: Session, source: str) -> int:
        """Delete chunks then the document row; returns documents removed."""
        document_ids = select(Document.id).where(Document.source == source)
        session.exec(
            delete(Chunk)
            .where(Chunk.document_id.in_(document_ids))
            .execution_options(synchronize_session=False)
        )
        result = session.exec(
            delete(Document)
            .where(Document.source == source)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def search(
        self,
        query_embedding: Sequence[float],
        top_k: int,
        min_score: float,
        source_filter: Optional[str] = None,
    ) -> List[ScoredChunk]:
        """
        Rank chunks by cosine similarity (score = 1 - distance), keep the
        top_k, then drop anything under min_score. The score cut happens
        after the limit, so fewer than top_k results may come back even
        when lower-ranked chunks would pass it.
        """
        if len(query_embedding) != self.dimension:
            raise StorageError(
                f"invalid query embedding dimension: got {len(query_embedding)}, "
                f"expected {self.dimension}",
                operation="search",
            )

        query_blob = bindparam(
            "query_embedding",
            serialize_embedding(query_embedding, self.dimension),
            type_=LargeBinary,
        )
        score = (1 - func.vec_distance_cosine(Chunk.embedding, query_blob)).label("score")

        statement = (
            select(Chunk.content, Document.source, Chunk.chunk_index, score)
            .join(Document, Chunk.document_id == Document.id)
        )
        if source_filter:
            statement = statement.where(Document.source == source_filter)
        statement = statement.order_by(score.desc(), Chunk.id).limit(top_k)

        try:
            with Session(self.engine) as session:
                rows = session.exec(statement).all()
        except SQLAlchemyError as e:
            raise StorageError(f"failed to execute search query: {e}", operation="search") from e

        results = [
            ScoredChunk(content=content, source=source, chunk_index=chunk_index, score=float(row_score))
            for content, source, chunk_index, row_score in rows
            if row_score >= min_score
        ]

        logger.debug(
            "search_executed",
            top_k=top_k,
            min_score=min_score,
            source_filter=source_filter,
            candidates=len(rows),
            results=len(results),
        )
        return results

    def list_documents(self, source_type: Optional[SourceType] = None) -> List[Document]:
        """All documents, newest first, optionally of one source type."""
        statement = select(Document)
        if source_type:
            statement = statement.where(Document.source_type == SourceType(source_type).value)
        statement = statement.order_by(Document.indexed_at.desc(), Document.id.desc())

        try:
            with Session(self.engine) as session:
                return list(session.exec(statement).all())
        except SQLAlchemyError as e:
            raise StorageError(f"failed to list documents: {e}", operation="list") from e

    def document_exists(self, source: str) -> bool:
        statement = select(func.count()).select_from(Document).where(Document.source == source)
        try:
            with Session(self.engine) as session:
                return session.exec(statement).one() > 0
        except SQLAlchemyError as e:
            raise StorageError(
                f"failed to check document existence: {e}", operation="exists"
            ) from e

