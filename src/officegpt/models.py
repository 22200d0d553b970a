"""Shared domain models used across the OfficeGPT pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Sequence, Tuple, Union

MetadataValue = Union[str, int, float, bool, Sequence[str]]
EmbeddingVector = Tuple[float, ...]


@dataclass(frozen=True)
class BytesDocument:
    """Upload held in memory, e.g. from a multipart request."""

    data: bytes
    original_name: str


@dataclass(frozen=True)
class PathDocument:
    """Document already present on the local filesystem."""

    path: Path
    original_name: str | None = None

    @property
    def display_name(self) -> str:
        return self.original_name or self.path.name


Document = Union[BytesDocument, PathDocument]


@dataclass(frozen=True)
class ExtractedText:
    """Plain text recovered from a document."""

    text: str
    source: str
    total_pages: int | None = None


@dataclass(frozen=True)
class Chunk:
    """Bounded text segment ready for embedding."""

    index: int
    text: str
    source: str
    total_pages: int | None = None
    start_index: int = 0


@dataclass(frozen=True)
class VectorRecord:
    """Storage record pairing a vector with flat metadata."""

    id: str
    vector: EmbeddingVector
    metadata: Mapping[str, MetadataValue]


@dataclass(frozen=True)
class RetrievedChunk:
    """Chunk returned from the vector store during retrieval."""

    text: str
    metadata: Mapping[str, MetadataValue]
    rank: int
    score: float | None = None

    @property
    def source(self) -> str:
        return str(self.metadata.get("source", ""))


@dataclass(frozen=True)
class IngestionResult:
    """Outcome of indexing a single document."""

    source: str
    chunk_count: int
    batch_count: int
    record_ids: Tuple[str, ...] = ()

    def __int__(self) -> int:
        return self.chunk_count


@dataclass(frozen=True)
class ChatAnswer:
    """Answer generated for one question, with the chunks that grounded it."""

    response_text: str
    source_count: int
    sources: Tuple[RetrievedChunk, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ChatTurn:
    """A question and its answer; conversation state lives with the caller."""

    query: str
    answer: str


__all__ = [
    "BytesDocument",
    "ChatAnswer",
    "ChatTurn",
    "Chunk",
    "Document",
    "EmbeddingVector",
    "ExtractedText",
    "IngestionResult",
    "MetadataValue",
    "PathDocument",
    "RetrievedChunk",
    "VectorRecord",
]
