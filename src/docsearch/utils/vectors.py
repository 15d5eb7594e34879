"""
Embedding blob codec and cosine distance.

Vectors are stored as fixed-size little-endian float32 blobs
(dimension * 4 bytes).
"""
from typing import List, Sequence

import numpy as np

from docsearch.core.exceptions import EmbeddingSerializationError

EMBEDDING_DIMENSION = 1536
FLOAT32_LE = np.dtype("<f4")


def serialize_embedding(embedding: Sequence[float], dimension: int = EMBEDDING_DIMENSION) -> bytes:
    """Pack a vector into a dimension*4 byte blob."""
    if len(embedding) != dimension:
        raise EmbeddingSerializationError(
            f"cannot serialize embedding of dimension {len(embedding)}, expected {dimension}"
        )
    return np.asarray(embedding, dtype=FLOAT32_LE).tobytes()


def deserialize_embedding(blob: bytes, dimension: int = EMBEDDING_DIMENSION) -> List[float]:
    """Unpack a blob produced by serialize_embedding."""
    return _as_array(blob, dimension).tolist()


def cosine_distance(a: bytes, b: bytes, dimension: int = EMBEDDING_DIMENSION) -> float:
    """
    1 - cosine similarity between two blobs.
    A zero vector has no direction; it is treated as maximally unrelated (1.0).
    """
    va = _as_array(a, dimension).astype(np.float64)
    vb = _as_array(b, dimension).astype(np.float64)

    norm = np.linalg.norm(va) * np.linalg.norm(vb)
    if norm == 0:
        return 1.0
    return float(1.0 - np.dot(va, vb) / norm)


def _as_array(blob: bytes, dimension: int) -> np.ndarray:
    expected = dimension * FLOAT32_LE.itemsize
    if blob is None or len(blob) != expected:
        size = 0 if blob is None else len(blob)
        raise EmbeddingSerializationError(
            f"invalid embedding blob size: got {size} bytes, expected {expected}"
        )
    return np.frombuffer(blob, dtype=FLOAT32_LE)
