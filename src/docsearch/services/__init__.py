from .document_store import ChunkRecord, DocumentStore, ScoredChunk

__all__ = ["ChunkRecord", "DocumentStore", "ScoredChunk"]
