"""Assemble embedded chunks into vector-store records."""

from __future__ import annotations

import time
from typing import Callable, Dict, List, Mapping, Sequence
from uuid import uuid4

from officegpt.models import Chunk, EmbeddingVector, MetadataValue, VectorRecord

RecordIdFactory = Callable[[int], str]


def default_record_id(global_index: int) -> str:
    """``doc_<index>_<epoch ms>_<random>``; the suffix keeps concurrent ingestions apart."""
    return f"doc_{global_index}_{int(time.time() * 1000)}_{uuid4().hex[:12]}"


def _is_flat(value: object) -> bool:
    if isinstance(value, (str, int, float, bool)):
        return True
    if isinstance(value, (list, tuple)):
        return all(isinstance(item, str) for item in value)
    return False


class VectorRecordBuilder:
    """Build :class:`VectorRecord` objects with flat, store-compatible metadata."""

    def __init__(self, id_factory: RecordIdFactory | None = None) -> None:
        self._id_factory = id_factory or default_record_id

    def build(
        self,
        chunk: Chunk,
        vector: EmbeddingVector,
        *,
        batch_offset: int,
        position: int,
        original_name: str | None = None,
    ) -> VectorRecord:
        metadata: Dict[str, MetadataValue] = {
            "text": chunk.text,
            "source": original_name or chunk.source or "",
        }
        if chunk.total_pages is not None:
            metadata["totalPages"] = chunk.total_pages
        return VectorRecord(
            id=self._id_factory(batch_offset + position),
            vector=tuple(vector),
            metadata=self.flatten(metadata),
        )

    def build_batch(
        self,
        chunks: Sequence[Chunk],
        vectors: Sequence[EmbeddingVector],
        batch_offset: int,
        *,
        original_name: str | None = None,
    ) -> List[VectorRecord]:
        if len(chunks) != len(vectors):
            raise ValueError(f"Got {len(vectors)} vectors for {len(chunks)} chunks")
        return [
            self.build(chunk, vector, batch_offset=batch_offset, position=position, original_name=original_name)
            for position, (chunk, vector) in enumerate(zip(chunks, vectors))
        ]

    @staticmethod
    def flatten(metadata: Mapping[str, object]) -> Dict[str, MetadataValue]:
        """Reject nested values; lists are kept only when they hold strings."""
        flat: Dict[str, MetadataValue] = {}
        for key, value in metadata.items():
            if not _is_flat(value):
                raise ValueError(f"Metadata field {key!r} is not a scalar or list of strings")
            flat[key] = list(value) if isinstance(value, tuple) else value  # type: ignore[assignment]
        return flat
