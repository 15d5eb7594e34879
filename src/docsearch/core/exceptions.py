"""
Exception hierarchy for DocSearch.

Every failure the pipeline surfaces is a DocSearchError subclass carrying a
human-readable message plus a details dict for logs and API error bodies.
`status_code` is the HTTP status the API layer answers with.
"""

from typing import Any, Dict, Optional


class DocSearchError(Exception):
    """Base exception for all DocSearch errors."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = dict(details or {})
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(DocSearchError):
    """Malformed, missing or conflicting request fields."""

    status_code = 400

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = dict(details or {})
        if field:
            details["field"] = field
        super().__init__(message, details)


class ConflictError(DocSearchError):
    """Index requested for a source that already exists without reindex."""

    status_code = 409

    def __init__(self, source: str, details: Optional[Dict[str, Any]] = None) -> None:
        details = dict(details or {})
        details["source"] = source
        self.source = source
        super().__init__(
            f"document already indexed: {source} (use reindex=true to force re-indexing)",
            details,
        )


class NotFoundError(DocSearchError):
    """Lookup or delete of a source that is not indexed."""

    status_code = 404

    def __init__(self, source: str, details: Optional[Dict[str, Any]] = None) -> None:
        details = dict(details or {})
        details["source"] = source
        self.source = source
        super().__init__(f"document not found: {source}", details)


class FetchError(DocSearchError):
    """Content retrieval failed (bad URL, scheme, status, content type, unreadable file)."""

    status_code = 502

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = dict(details or {})
        if source:
            details["source"] = source
        super().__init__(message, details)


class UpstreamError(DocSearchError):
    """Embedding provider failure."""

    status_code = 502

    def __init__(
        self,
        message: str,
        error_type: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = dict(details or {})
        if error_type:
            details["error_type"] = error_type
        self.error_type = error_type
        super().__init__(message, details)


class ProviderRateLimitError(UpstreamError):
    """Provider answered "too many requests". Retried by the gateway."""

    pass


class EmbeddingDimensionError(UpstreamError):
    """Provider returned a vector of the wrong length."""

    def __init__(self, got: int, expected: int) -> None:
        super().__init__(
            f"unexpected embedding dimension: got {got}, expected {expected}",
            details={"got": got, "expected": expected},
        )


class MissingEmbeddingError(UpstreamError):
    """Provider response lacks a vector for some input position."""

    def __init__(self, index: int) -> None:
        super().__init__(f"missing embedding for index {index}", details={"index": index})


class StorageError(DocSearchError):
    """Transaction or serialization failure in the document store."""

    status_code = 500

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = dict(details or {})
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class EmbeddingSerializationError(StorageError):
    """Vector blob of the wrong size."""

    pass


class ConfigurationError(DocSearchError):
    """Settings are missing or invalid for the requested operation."""

    status_code = 500
