"""Vector store implementations."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Mapping, Protocol, Sequence

import chromadb
from chromadb.api import ClientAPI

from officegpt.embeddings.service import EmbeddingProvider, canonicalize_vector
from officegpt.errors import ProviderError
from officegpt.models import RetrievedChunk, VectorRecord


class VectorStore(Protocol):
    """Protocol for vector persistence backends."""

    def upsert(self, records: Sequence[VectorRecord]) -> None:
        """Insert or replace *records* keyed by their id."""

    def similarity_search(self, query: str, *, k: int = 3) -> Sequence[RetrievedChunk]:
        """Return the top-k chunks for *query*, most relevant first."""

    def count(self) -> int:
        """Return total number of stored records."""


class ChromaVectorStore:
    """Chroma-backed vector store.

    Queries are embedded with the same provider used for ingestion. Calls into
    the Chroma client are capped at ``max_concurrency`` in flight.
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        collection_name: str = "officegpt",
        *,
        client: ClientAPI | None = None,
        persist_directory: str | Path | None = None,
        max_concurrency: int = 5,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        if client is not None:
            self._client = client
        elif persist_directory is not None:
            self._client = chromadb.PersistentClient(path=str(persist_directory))
        else:
            self._client = chromadb.EphemeralClient()
        self._collection = self._client.get_or_create_collection(
            name=collection_name,
            metadata={"hnsw:space": "cosine"},
        )
        self._provider = embedding_provider
        self._slots = threading.BoundedSemaphore(max_concurrency)

    def upsert(self, records: Sequence[VectorRecord]) -> None:
        if not records:
            return
        try:
            with self._slots:
                self._collection.upsert(
                    ids=[record.id for record in records],
                    embeddings=[list(record.vector) for record in records],
                    metadatas=[dict(record.metadata) for record in records],
                    documents=[str(record.metadata.get("text", "")) for record in records],
                )
        except Exception as exc:
            raise ProviderError("vector_store", f"upsert of {len(records)} records failed: {exc}") from exc

    def similarity_search(self, query: str, *, k: int = 3) -> Sequence[RetrievedChunk]:
        if k <= 0:
            return []
        try:
            raw_vectors = list(self._provider.embed_batch([query]))
        except Exception as exc:
            raise ProviderError("embedding", f"query embedding failed: {exc}") from exc
        if len(raw_vectors) != 1:
            raise ProviderError("embedding", f"returned {len(raw_vectors)} vectors for one query")
        vector = list(canonicalize_vector(raw_vectors[0]))
        try:
            with self._slots:
                results = self._collection.query(
                    query_embeddings=[vector],
                    n_results=k,
                    include=["documents", "metadatas", "distances"],
                )
        except Exception as exc:
            raise ProviderError("vector_store", f"similarity search failed: {exc}") from exc
        return self._deserialize_results(results)

    def count(self) -> int:
        try:
            with self._slots:
                return int(self._collection.count())
        except Exception as exc:
            raise ProviderError("vector_store", f"count failed: {exc}") from exc

    def reset(self) -> None:
        with self._slots:
            existing = self._collection.get(include=[])
            ids = existing.get("ids") or []
            if ids:
                self._collection.delete(ids=ids)

    def _deserialize_results(self, results: Mapping[str, object]) -> Sequence[RetrievedChunk]:
        documents = self._first(results.get("documents"))
        metadatas = self._first(results.get("metadatas"))
        distances = self._first(results.get("distances"))
        retrieved: list[RetrievedChunk] = []
        for rank, metadata in enumerate(metadatas):
            metadata = dict(metadata or {})
            document = documents[rank] if rank < len(documents) else None
            distance = distances[rank] if rank < len(distances) else None
            text = document if document is not None else str(metadata.get("text", ""))
            score = 1.0 - float(distance) if distance is not None else None
            retrieved.append(RetrievedChunk(text=text, metadata=metadata, rank=rank, score=score))
        return retrieved

    @staticmethod
    def _first(value: object) -> list:
        if isinstance(value, list) and value:
            return list(value[0] or [])
        return []
