"""
Embedding gateway.

EmbeddingService batches texts, calls an EmbeddingProvider per batch,
retries throttled batches with exponential backoff and reassembles each
batch's vectors by the index the provider tagged them with.
"""
import asyncio
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

import openai

from docsearch.core.exceptions import (
    EmbeddingDimensionError,
    MissingEmbeddingError,
    ProviderRateLimitError,
    UpstreamError,
)
from docsearch.core.logging import get_logger
from docsearch.utils.vectors import EMBEDDING_DIMENSION

logger = get_logger(__name__)

DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"
MAX_BATCH_SIZE = 100
MAX_ATTEMPTS = 3
INITIAL_BACKOFF = 1.0  # seconds, doubled per attempt
BATCH_DELAY = 0.1  # seconds between consecutive batches


@dataclass
class EmbeddingItem:
    """One provider result, tagged with its position inside the batch."""
    index: int
    embedding: List[float]


class EmbeddingProvider(Protocol):
    """Anything that can embed one batch of up to MAX_BATCH_SIZE texts."""

    async def embed_batch(self, texts: List[str]) -> List[EmbeddingItem]:
        ...


class OpenAIEmbeddingProvider:
    """OpenAI embeddings API adapter (text-embedding-3-small, 1536 dims)."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_EMBEDDING_MODEL,
        timeout: float = 30.0,
        client: Optional[openai.AsyncOpenAI] = None,
    ):
        self.model = model
        # Retries are owned by EmbeddingService, so the SDK must not retry
        self.client = client or openai.AsyncOpenAI(
            api_key=api_key,
            timeout=timeout,
            max_retries=0,
        )
        logger.info("openai_embedding_provider_initialized", model=model, timeout=timeout)

    async def embed_batch(self, texts: List[str]) -> List[EmbeddingItem]:
        try:
            response = await self.client.embeddings.create(
                model=self.model,
                input=texts,
                encoding_format="float",
            )
        except openai.RateLimitError as e:
            raise ProviderRateLimitError(
                f"OpenAI API rate limit: {e.message}",
                error_type=getattr(e, "type", None),
            ) from e
        except openai.APIError as e:
            raise UpstreamError(
                f"OpenAI API error: {e.message} (type: {e.type})",
                error_type=e.type,
            ) from e

        return [EmbeddingItem(index=item.index, embedding=item.embedding) for item in response.data]


class EmbeddingService:
    """
    Order-preserving, batched, rate-limit aware embedding of many texts.

    All waits are asyncio sleeps, so cancelling the calling task aborts
    backoff and inter-batch pauses immediately.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        dimension: int = EMBEDDING_DIMENSION,
        batch_size: int = MAX_BATCH_SIZE,
        max_attempts: int = MAX_ATTEMPTS,
        initial_backoff: float = INITIAL_BACKOFF,
        batch_delay: float = BATCH_DELAY,
    ):
        self.provider = provider
        self.dimension = dimension
        self.batch_size = batch_size
        self.max_attempts = max_attempts
        self.initial_backoff = initial_backoff
        self.batch_delay = batch_delay

    async def embed(self, texts: Sequence[str]) -> List[List[float]]:
        """Embed texts; result[i] belongs to texts[i]."""
        if not texts:
            return []

        texts = list(texts)
        embeddings: List[List[float]] = []

        for start in range(0, len(texts), self.batch_size):
            end = min(start + self.batch_size, len(texts))
            try:
                batch_embeddings = await self._embed_batch(texts[start:end])
            except UpstreamError as e:
                logger.error("embedding_batch_failed", start=start, end=end, error=e.message)
                raise

            embeddings.extend(batch_embeddings)

            if end < len(texts):
                await asyncio.sleep(self.batch_delay)

        logger.debug("embeddings_generated", count=len(embeddings))
        return embeddings

    async def embed_query(self, text: str) -> List[float]:
        """Embed a single query string."""
        embeddings = await self.embed([text])
        if not embeddings:
            raise UpstreamError("no embedding returned for query")
        return embeddings[0]

    async def _embed_batch(self, batch: List[str]) -> List[List[float]]:
        for attempt in range(self.max_attempts):
            try:
                items = await self.provider.embed_batch(batch)
            except ProviderRateLimitError as e:
                if attempt == self.max_attempts - 1:
                    raise UpstreamError(
                        f"rate limit exceeded after {self.max_attempts} attempts: {e.message}",
                        error_type=e.error_type,
                    ) from e

                backoff = self.initial_backoff * (2 ** attempt)
                logger.warning(
                    "embedding_rate_limited",
                    attempt=attempt + 1,
                    max_attempts=self.max_attempts,
                    backoff=backoff,
                )
                await asyncio.sleep(backoff)
                continue

            return self._reassemble(items, len(batch))

        # max_attempts < 1
        raise UpstreamError("embedding batch was never attempted")

    def _reassemble(self, items: List[EmbeddingItem], batch_size: int) -> List[List[float]]:
        """Place each vector at its tagged index and check nothing is missing."""
        slots: List[Optional[List[float]]] = [None] * batch_size

        for item in items:
            if not 0 <= item.index < batch_size:
                raise UpstreamError(f"invalid embedding index: {item.index}")
            if len(item.embedding) != self.dimension:
                raise EmbeddingDimensionError(got=len(item.embedding), expected=self.dimension)
            slots[item.index] = list(item.embedding)

        for i, embedding in enumerate(slots):
            if embedding is None:
                raise MissingEmbeddingError(i)

        return slots
