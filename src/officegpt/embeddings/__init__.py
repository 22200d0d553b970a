"""Embedding providers, record building and vector stores."""

from .records import RecordIdFactory, VectorRecordBuilder, default_record_id
from .service import (
    EmbeddingBatcher,
    EmbeddingConfig,
    EmbeddingProvider,
    HashEmbeddingProvider,
    LangChainEmbeddingProvider,
    canonicalize_vector,
)
from .store import ChromaVectorStore, VectorStore

__all__ = [
    "ChromaVectorStore",
    "EmbeddingBatcher",
    "EmbeddingConfig",
    "EmbeddingProvider",
    "HashEmbeddingProvider",
    "LangChainEmbeddingProvider",
    "RecordIdFactory",
    "VectorRecordBuilder",
    "VectorStore",
    "canonicalize_vector",
    "default_record_id",
]
