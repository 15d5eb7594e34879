"""
Pytest configuration and shared fixtures for DocSearch tests.
"""
import pytest
import httpx
from typing import Callable, List, Optional
from sqlmodel import Session, select

from docsearch.core.exceptions import ProviderRateLimitError
from docsearch.core.indexing import IndexingPipeline
from docsearch.preprocessing import TextChunker
from docsearch.schema import Chunk, Document
from docsearch.services import DocumentStore
from docsearch.utils.embeddings import EmbeddingItem, EmbeddingService
from docsearch.utils.fetcher import ContentFetcher

# Small vectors keep the tests fast; the store and gateway take the dimension explicitly
TEST_DIMENSION = 8


# ============================================================================
# Vector Helpers
# ============================================================================

def unit_vector(position: int, dimension: int = TEST_DIMENSION) -> List[float]:
    """One-hot vector along `position`."""
    vec = [0.0] * dimension
    vec[position] = 1.0
    return vec


def text_vector(text: str, dimension: int = TEST_DIMENSION) -> List[float]:
    """
    Deterministic bag-of-words vector with non-negative components.
    Texts sharing words get similar vectors.
    """
    vec = [0.01] * dimension
    for word in text.lower().split():
        vec[sum(ord(c) for c in word) % dimension] += 1.0
    return vec


# ============================================================================
# Mock Services
# ============================================================================

class FakeEmbeddingProvider:
    """
    Stand-in for the OpenAI provider.

    Returns items in reverse order (the gateway must reassemble by index)
    and can be told to throttle the first N calls.
    """

    def __init__(
        self,
        dimension: int = TEST_DIMENSION,
        rate_limit_failures: int = 0,
        vector_fn: Optional[Callable[[str], List[float]]] = None,
    ):
        self.dimension = dimension
        self.rate_limit_failures = rate_limit_failures
        self.vector_fn = vector_fn or (lambda text: text_vector(text, dimension))
        self.calls: List[List[str]] = []

    async def embed_batch(self, texts: List[str]) -> List[EmbeddingItem]:
        self.calls.append(list(texts))
        if self.rate_limit_failures > 0:
            self.rate_limit_failures -= 1
            raise ProviderRateLimitError("Rate limit reached", error_type="rate_limit_exceeded")

        items = [EmbeddingItem(index=i, embedding=self.vector_fn(t)) for i, t in enumerate(texts)]
        return list(reversed(items))


@pytest.fixture
def fake_provider():
    return FakeEmbeddingProvider()


@pytest.fixture
def embedder(fake_provider):
    """EmbeddingService over the fake provider, with no real waiting."""
    return EmbeddingService(
        fake_provider,
        dimension=TEST_DIMENSION,
        initial_backoff=0,
        batch_delay=0,
    )


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "doc_search.db"


def stored_document(store, source: str) -> Document:
    """Load one document row, failing the test when it is absent."""
    with Session(store.engine) as session:
        document = session.exec(select(Document).where(Document.source == source)).first()
    assert document is not None, f"{source} is not indexed"
    return document


def stored_chunks(store, source: str) -> List[Chunk]:
    """Chunks of one document in chunk_index order."""
    statement = (
        select(Chunk)
        .join(Document, Chunk.document_id == Document.id)
        .where(Document.source == source)
        .order_by(Chunk.chunk_index)
    )
    with Session(store.engine) as session:
        return list(session.exec(statement).all())


@pytest.fixture
def store(db_path):
    """Fresh SQLite-backed store per test."""
    document_store = DocumentStore(f"sqlite:///{db_path}", dimension=TEST_DIMENSION)
    document_store.init_schema()
    yield document_store
    document_store.close()


# ============================================================================
# HTTP Fixtures
# ============================================================================

PAGES = {
    "/article": (
        "text/html; charset=utf-8",
        "<html><head><title> Vector Search </title><style>p {color: red}</style></head>"
        "<body><script>var tracking = 1;</script><h1>Cosine   similarity</h1>"
        "<p>ranks\n documents by angle.</p></body></html>",
    ),
    "/notes.txt": ("text/plain", "plain notes about embeddings"),
    "/image.png": ("image/png", "\x89PNG"),
}


def page_handler(request: httpx.Request) -> httpx.Response:
    page = PAGES.get(request.url.path)
    if page is None:
        return httpx.Response(404, text="missing")
    content_type, body = page
    return httpx.Response(200, headers={"content-type": content_type}, text=body)


@pytest.fixture
def fetcher():
    return ContentFetcher(transport=httpx.MockTransport(page_handler))


# ============================================================================
# Pipeline
# ============================================================================

@pytest.fixture
def chunker():
    return TextChunker(chunk_size=50, overlap=10)


@pytest.fixture
def pipeline(store, embedder, fetcher, chunker):
    return IndexingPipeline(store=store, embedder=embedder, fetcher=fetcher, chunker=chunker)
